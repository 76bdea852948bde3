"""
Module: conftest.py
Description: Shared pytest fixtures for delivery client tests.

Provides test settings rooted in a temporary directory, sample events,
and fakes for the transport, the durable queue, the sleep function and
the tracker's client so delivery logic runs without network or real waits.
"""

from typing import List

import pytest

from plausible_events.config.settings import DeliverySettings
from plausible_events.delivery.engine import DeliveryEngine
from plausible_events.exceptions import TransportFailure
from plausible_events.models.event import Event
from plausible_events.storage.event_queue import EventQueue, EventRecord, FileEventQueue

SCREEN_WIDTH = 123


class FakeTransport:
    """
    Scripted transport.

    Each post consumes the next outcome: True means success, an exception
    instance is raised. Once the script runs out every post succeeds
    (or fails, with always_fail=True).
    """

    def __init__(self, outcomes=None, always_fail: bool = False, before_post=None):
        self.outcomes = list(outcomes or [])
        self.always_fail = always_fail
        self.before_post = before_post
        self.events: List[Event] = []

    @property
    def calls(self) -> int:
        return len(self.events)

    async def post(self, event: Event) -> None:
        if self.before_post is not None:
            self.before_post(self)
        self.events.append(event)
        if self.outcomes:
            outcome = self.outcomes.pop(0)
        elif self.always_fail:
            outcome = TransportFailure("Received unexpected response: 503 unavailable", 503)
        else:
            outcome = True
        if isinstance(outcome, BaseException):
            raise outcome


class RecordingSleep:
    """Sleep replacement that records requested delays and returns at once."""

    def __init__(self, on_sleep=None):
        self.delays: List[float] = []
        self.on_sleep = on_sleep

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)
        if self.on_sleep is not None:
            self.on_sleep(seconds)


class MemoryEventRecord(EventRecord):
    def __init__(self, queue: "MemoryEventQueue", name: str):
        self.queue = queue
        self.name = name

    def read(self) -> Event:
        try:
            body = self.queue.records[self.name]
        except KeyError:
            raise FileNotFoundError(self.name)
        return Event.from_json(body)

    def delete(self) -> None:
        self.queue.records.pop(self.name, None)


class MemoryEventQueue(EventQueue):
    """In-memory EventQueue used to exercise the engine without a filesystem."""

    def __init__(self):
        self.records = {}
        self._counter = 0

    def persist(self, event: Event) -> MemoryEventRecord:
        self._counter += 1
        name = f"event_{self._counter}.json"
        self.records[name] = event.to_json()
        return MemoryEventRecord(self, name)

    def list_pending(self) -> List[MemoryEventRecord]:
        return [MemoryEventRecord(self, name) for name in list(self.records)]


class FakeClient:
    """Collects events submitted by the tracker facade."""

    def __init__(self):
        self.events: List[Event] = []

    def submit(self, domain, name, url, referrer="", screen_width=0, props=None):
        self.events.append(Event(
            domain=domain,
            name=name,
            url=url,
            referrer=referrer,
            screen_width=screen_width,
            props=props
        ))


@pytest.fixture
def test_settings(tmp_path):
    """
    Provide test configuration settings.

    Disables .env loading and points the event directory at a
    per-test temporary directory.
    """
    return DeliverySettings(
        _env_file=None,
        domain="test.example.com",
        host="https://plausible.test/api",
        user_agent="plausible-events-test/1.0",
        event_dir=tmp_path / "events",
        screen_width=SCREEN_WIDTH,
        log_level="DEBUG"
    )


@pytest.fixture
def sample_event():
    """Provide a typical custom event."""
    return Event(
        domain="test.example.com",
        name="signup",
        url="app://localhost/login",
        referrer="https://search.example.org/?q=app",
        screen_width=SCREEN_WIDTH,
        props={"plan": "pro", "trial": "true"}
    )


@pytest.fixture
def file_queue(test_settings):
    return FileEventQueue(test_settings.event_dir)


@pytest.fixture
def memory_queue():
    return MemoryEventQueue()


@pytest.fixture
def recording_sleep():
    return RecordingSleep()


@pytest.fixture
def fake_transport():
    return FakeTransport()


@pytest.fixture
def fake_client():
    return FakeClient()


@pytest.fixture
def engine(test_settings, fake_transport, file_queue, recording_sleep):
    """DeliveryEngine wired to the fake transport, a temp-dir queue and a recording sleep."""
    return DeliveryEngine(
        test_settings,
        transport=fake_transport,
        queue=file_queue,
        sleep=recording_sleep
    )
