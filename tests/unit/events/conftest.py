"""Fixtures for event bus tests."""

import threading
from unittest.mock import MagicMock

import pytest

from evbus.events.bus import EventBus
from evbus.events.models import Event
from evbus.events.registry import HandlerRegistry

WAIT_TIMEOUT = 5.0


@pytest.fixture
def bus():
    """Isolated bus with a small worker pool."""
    instance = EventBus(max_workers=2)
    yield instance
    instance.shutdown(wait=True)


@pytest.fixture
def registry():
    """Fresh registry for each test."""
    reg = HandlerRegistry("test")
    yield reg
    reg.clear()


@pytest.fixture
def event_factory():
    """Factory for creating test events."""

    def _factory(event_type: str = "test.event", **payload):
        return Event(event_type=event_type, payload=payload)

    return _factory


@pytest.fixture
def mock_event_handler():
    """Mock event handler function."""
    return MagicMock(return_value=None)


@pytest.fixture
def recorder():
    """Handler that records events and signals each call."""

    class Recorder:
        def __init__(self):
            self.events = []
            self.threads = []
            self.called = threading.Event()

        def __call__(self, event):
            self.events.append(event)
            self.threads.append(threading.current_thread())
            self.called.set()

        def wait(self, timeout: float = WAIT_TIMEOUT) -> bool:
            return self.called.wait(timeout)

    return Recorder()
