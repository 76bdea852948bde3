"""
Module: delivery/engine.py
Description: Event delivery engine.

Accepts events fire-and-forget and delivers each one on its own asyncio
task: try immediately, and on failure persist the event to the durable
queue and retry on the backoff schedule. At startup, events left in the
queue by a previous process are replayed once each.

Key Components:
- DeliveryEngine: submit / deliver / replay orchestration
- DeliveryState: per-event state machine (NEW -> PENDING -> DELIVERED | DROPPED)
- ReplaySummary: counts reported by a replay pass

Dependencies: asyncio, tenacity (via delivery.retry), pydantic
"""

import asyncio
from enum import Enum
from typing import Any, Dict, Optional, Set

from pydantic import BaseModel

from plausible_events.delivery.retry import FINAL_WAIT, delivery_retrying
from plausible_events.delivery.transport import HttpTransport
from plausible_events.exceptions import DecodeFailure, TransportFailure
from plausible_events.models.event import Event
from plausible_events.storage.event_queue import EventQueue, EventRecord, FileEventQueue
from plausible_events.utils.logger import get_logger

logger = get_logger(__name__)


class DeliveryState(str, Enum):
    """Lifecycle of a single event within one process."""

    NEW = "new"
    PENDING = "pending"
    DELIVERED = "delivered"
    DROPPED = "dropped"
    DISABLED = "disabled"


class ReplaySummary(BaseModel):
    """Outcome counts of one replay pass."""

    delivered: int = 0
    pending: int = 0
    discarded: int = 0
    skipped: int = 0


class _Delivery:
    """Mutable bookkeeping for one event's delivery task."""

    def __init__(self, event: Event):
        self.event = event
        self.state = DeliveryState.NEW
        self.record: Optional[EventRecord] = None
        self.attempts = 0


class DeliveryEngine:
    """
    Orchestrates immediate delivery, retry persistence and startup replay.

    Every submitted event gets its own task, so events are not ordered
    relative to each other, but one event's attempts are strictly
    sequential. Callers never see delivery outcomes; failures are logged.

    Attributes:
        config: DeliverySettings read on every attempt
        transport: Object with ``async post(event)`` raising TransportFailure
        queue: EventQueue holding events pending retry

    Example:
        >>> async with DeliveryEngine(settings) as engine:
        ...     engine.submit("example.com", "pageview", "app://localhost/home")
        ...     await engine.join()
    """

    def __init__(
        self,
        config,
        transport=None,
        queue: Optional[EventQueue] = None,
        sleep=asyncio.sleep
    ):
        self.config = config
        self.transport = transport if transport is not None else HttpTransport(config)
        self.queue = queue if queue is not None else FileEventQueue(config.event_dir)
        self._sleep = sleep
        self._tasks: Set[asyncio.Task] = set()
        self._replay_task: Optional[asyncio.Task] = None

    async def __aenter__(self) -> "DeliveryEngine":
        self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    def start(self) -> asyncio.Task:
        """
        Schedule the startup replay on the running event loop.

        Replay runs once per engine; later calls return the same task.
        """
        if self._replay_task is None:
            self._replay_task = self._spawn(self.replay(), "replay")
        return self._replay_task

    def submit(
        self,
        domain: str,
        name: str,
        url: str,
        referrer: str = "",
        screen_width: int = 0,
        props: Optional[Dict[str, Any]] = None
    ) -> None:
        """
        Build an event and schedule its delivery.

        Args:
            domain: Site identifier
            name: Event name ("pageview" or a custom name)
            url: Triggering location; missing scheme/authority are defaulted
            referrer: Referrer string
            screen_width: Device width in dp
            props: Optional custom properties, stringified

        Raises:
            pydantic.ValidationError: If the event fields are invalid
        """
        self.submit_event(Event(
            domain=domain,
            name=name,
            url=url,
            referrer=referrer,
            screen_width=screen_width,
            props=props
        ))

    def submit_event(self, event: Event) -> None:
        """Schedule delivery of event without waiting for the outcome."""
        if not isinstance(event, Event):
            raise ValueError("event must be an Event instance")
        self._spawn(self.deliver(event), f"deliver-{event.name}")

    async def deliver(self, event: Event) -> DeliveryState:
        """
        Run the full delivery protocol for one event.

        Returns:
            Final state within this process. PENDING means every attempt
            failed and the record stays on disk for the next replay.
        """
        delivery = _Delivery(event)

        def retries_disabled(retry_state) -> bool:
            return delivery.state is DeliveryState.NEW and not self.config.retry_on_failure

        def before_retry(retry_state) -> None:
            error = retry_state.outcome.exception()
            if delivery.record is None:
                delivery.record = self.queue.persist(event)
                delivery.state = DeliveryState.PENDING
            logger.warning(
                "Event delivery failed, will retry",
                event_name=event.name,
                domain=event.domain,
                attempt=retry_state.attempt_number,
                retry_in_seconds=retry_state.next_action.sleep,
                record=delivery.record.name,
                error=str(error)
            )

        sent = False
        try:
            async for attempt in delivery_retrying(
                stop=retries_disabled,
                before_sleep=before_retry,
                sleep=self._sleep
            ):
                with attempt:
                    sent = await self._attempt(delivery)

        except TransportFailure as e:
            if delivery.record is None:
                delivery.state = DeliveryState.DROPPED
                logger.warning(
                    "Event delivery failed, retries disabled, dropping event",
                    event_name=event.name,
                    domain=event.domain,
                    error=e.reason
                )
                return delivery.state

            logger.error(
                "Event delivery failed after all retries, leaving it for next startup",
                event_name=event.name,
                domain=event.domain,
                attempts=delivery.attempts,
                record=delivery.record.name,
                error=e.reason
            )
            await self._sleep(FINAL_WAIT)
            return delivery.state

        if delivery.record is not None:
            delivery.record.delete()
        delivery.state = DeliveryState.DELIVERED if sent else DeliveryState.DISABLED
        return delivery.state

    async def replay(self) -> ReplaySummary:
        """
        Attempt each persisted event exactly once.

        Corrupt records are deleted. Failed records stay for the next
        startup; replay never enters the retry loop.
        """
        summary = ReplaySummary()
        records = self.queue.list_pending()

        if records:
            logger.info("Replaying persisted events", count=len(records))

        for record in records:
            try:
                event = record.read()
            except FileNotFoundError:
                # Delivered by a concurrent retry loop since listing
                continue
            except DecodeFailure as e:
                logger.error(
                    "Failed to decode event JSON, discarding",
                    record=record.name,
                    error=str(e)
                )
                record.delete()
                summary.discarded += 1
                continue
            except OSError as e:
                logger.error(
                    "Failed to read persisted event, keeping record",
                    record=record.name,
                    error=str(e),
                    error_type=type(e).__name__
                )
                summary.pending += 1
                continue

            try:
                sent = await self._attempt(_Delivery(event))
            except TransportFailure as e:
                logger.warning(
                    "Replay attempt failed, keeping record",
                    record=record.name,
                    event_name=event.name,
                    error=e.reason
                )
                summary.pending += 1
                continue
            except Exception as e:
                logger.error(
                    "Unexpected error replaying event, keeping record",
                    record=record.name,
                    event_name=event.name,
                    error=str(e),
                    error_type=type(e).__name__
                )
                summary.pending += 1
                continue

            if not sent:
                summary.skipped += 1
                continue

            record.delete()
            summary.delivered += 1

        logger.info("Replay finished", **summary.model_dump())
        return summary

    async def join(self) -> None:
        """Wait until every outstanding task (replay and deliveries) has finished."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def aclose(self) -> None:
        """
        Cancel outstanding tasks.

        Interrupted retry loops leave their records on disk for the next replay.
        """
        tasks = list(self._tasks)
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
            logger.info("Delivery engine closed", cancelled_tasks=len(tasks))

    @property
    def pending_tasks(self) -> int:
        return len(self._tasks)

    async def _attempt(self, delivery: _Delivery) -> bool:
        """
        Make one delivery attempt unless the engine is disabled.

        Returns:
            True if the event was posted, False if sending is disabled

        Raises:
            TransportFailure: If the post failed
        """
        if not self.config.enable:
            logger.warning(
                "Plausible disabled, not sending event",
                event_name=delivery.event.name,
                domain=delivery.event.domain
            )
            return False

        delivery.attempts += 1
        await self.transport.post(delivery.event)
        return True

    def _spawn(self, coro, name: str) -> asyncio.Task:
        task = asyncio.get_running_loop().create_task(self._run(coro, name), name=name)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def _run(self, coro, name: str):
        try:
            return await coro
        except asyncio.CancelledError:
            logger.debug("Delivery task cancelled", task=name)
            raise
        except Exception as e:
            logger.error(
                "Delivery task failed",
                task=name,
                error=str(e),
                error_type=type(e).__name__
            )
            return None
