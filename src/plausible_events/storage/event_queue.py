"""
Module: event_queue.py
Description: Durable queue of events awaiting retry.

Stores one JSON file per undelivered event so pending events survive
process restarts. Records are create-then-delete only: nothing ever
rewrites an existing record, so concurrent persist/list/delete calls need
no locking.

Key Components:
- EventQueue / EventRecord: storage interface used by the delivery engine
- FileEventQueue: filesystem implementation rooted at a directory
- Atomic writes: records are written under a temporary name and renamed

Dependencies: pathlib, os, time, uuid
"""

import os
import time
from abc import ABC, abstractmethod
from pathlib import Path
from typing import List, Union
from uuid import uuid4

from plausible_events.models.event import Event
from plausible_events.utils.logger import get_logger

logger = get_logger(__name__)

RECORD_PREFIX = "event_"
RECORD_SUFFIX = ".json"
TEMP_SUFFIX = ".tmp"


class EventRecord(ABC):
    """Handle to one persisted event."""

    name: str

    @abstractmethod
    def read(self) -> Event:
        """
        Load the stored event.

        Raises:
            DecodeFailure: If the record body is not a valid event
            FileNotFoundError: If the record was deleted meanwhile
        """

    @abstractmethod
    def delete(self) -> None:
        """Remove the record. Deleting a missing record is not an error."""


class EventQueue(ABC):
    """Store of events pending delivery."""

    @abstractmethod
    def persist(self, event: Event) -> EventRecord:
        """Write event to a new, uniquely named record."""

    @abstractmethod
    def list_pending(self) -> List[EventRecord]:
        """Return every stored record, in no particular order."""


class FileEventRecord(EventRecord):
    """Persisted event stored as a single JSON file."""

    def __init__(self, path: Path):
        self.path = path
        self.name = path.name

    def read(self) -> Event:
        return Event.from_json(self.path.read_bytes())

    def delete(self) -> None:
        try:
            self.path.unlink()
        except FileNotFoundError:
            pass

    def __repr__(self) -> str:
        return f"FileEventRecord({str(self.path)!r})"


class FileEventQueue(EventQueue):
    """
    Directory-backed event queue.

    Record file names are derived from the creation time in nanoseconds
    plus a random suffix, e.g. ``event_1718000000123456789_3f2a9c1b.json``.

    Attributes:
        directory: Root directory of the queue (created on demand)

    Example:
        >>> queue = FileEventQueue("/var/lib/myapp/events")
        >>> record = queue.persist(event)
        >>> [r.name for r in queue.list_pending()]
        ['event_1718000000123456789_3f2a9c1b.json']
    """

    def __init__(self, directory: Union[str, Path]):
        if not directory:
            raise ValueError("directory must be a non-empty path")
        self.directory = Path(directory)

    def persist(self, event: Event) -> FileEventRecord:
        """
        Write an event to a new record file.

        Args:
            event: Event to store

        Returns:
            Handle to the new record

        Raises:
            ValueError: If event is not an Event
            OSError: If the record cannot be written
        """
        if not isinstance(event, Event):
            raise ValueError("event must be an Event instance")

        self.directory.mkdir(parents=True, exist_ok=True)
        stem = f"{RECORD_PREFIX}{time.time_ns()}_{uuid4().hex[:8]}"
        final_path = self.directory / f"{stem}{RECORD_SUFFIX}"
        temp_path = self.directory / f"{stem}{TEMP_SUFFIX}"

        try:
            temp_path.write_text(event.to_json(), encoding="utf-8")
            os.replace(temp_path, final_path)
        except OSError as e:
            logger.error(
                "Failed to persist event",
                directory=str(self.directory),
                record=final_path.name,
                error=str(e)
            )
            temp_path.unlink(missing_ok=True)
            raise

        logger.debug(
            "Event persisted for retry",
            record=final_path.name,
            event_name=event.name,
            domain=event.domain
        )
        return FileEventRecord(final_path)

    def list_pending(self) -> List[FileEventRecord]:
        self.directory.mkdir(parents=True, exist_ok=True)
        return [
            FileEventRecord(path)
            for path in self.directory.iterdir()
            if path.is_file() and path.name.endswith(RECORD_SUFFIX)
        ]
