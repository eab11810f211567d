"""Exceptions for the event bus.

Only construction failures ever reach a firing caller. Handler failures
are wrapped in HandlerExecutionError, logged and returned as part of the
dispatch outcome instead of being raised.
"""

from typing import Any, Hashable, Optional


class EventBusError(Exception):
    """Base exception for all event bus errors.

    Example:
        try:
            fire("note-on", "note")
        except EventBusError as e:
            logger.error("event_bus_error", error=str(e))
    """

    pass


class EventConstructionError(EventBusError, ValueError):
    """Raised when an event cannot be built from the supplied payload.

    Example:
        >>> fire("note-on", "note", 60, "vel")
        Traceback (most recent call last):
        ...
        EventConstructionError: Event payload requires key/value pairs, got 3 tokens
    """

    pass


class HandlerExecutionError(EventBusError):
    """Failure raised inside a handler invocation.

    Never propagated: the dispatcher builds one per failed invocation and
    attaches it to the returned outcome. The original exception is
    available as ``__cause__``.

    Attributes:
        event: The event being dispatched.
        key: Key the failing handler was registered under.
    """

    def __init__(self, event: Any, key: Hashable, cause: Optional[BaseException] = None):
        self.event = event
        self.key = key
        message = f"Handler {key!r} failed for event {getattr(event, 'event_type', None)!r}"
        if cause is not None:
            message = f"{message}: {cause}"
        super().__init__(message)
        self.__cause__ = cause
