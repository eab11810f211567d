"""Event context binding for structured logging.

Binds the identity of the event being fired to every log entry made while
its handlers run, including entries from nested firings.

Usage:
    from evbus.logging import bind_event_context

    with bind_event_context(event_type="note-on", correlation_id="..."):
        logger.info("handling")
"""

from contextlib import contextmanager
from typing import Any, Generator, Optional

import structlog


@contextmanager
def bind_event_context(
    event_type: Any,
    correlation_id: Optional[str] = None,
    **extra_context: Any,
) -> Generator[None, None, None]:
    """Bind event-scoped context to all logs within the context manager.

    Values that were bound before entering are restored on exit, so a
    nested firing does not clobber the context of the outer one.

    Args:
        event_type: Type of the event being fired.
        correlation_id: Identifier of the event instance.
        **extra_context: Additional key-value pairs to include in logs.
    """
    context: dict[str, Any] = {"event_type": event_type}

    if correlation_id is not None:
        context["correlation_id"] = correlation_id

    context.update(extra_context)

    tokens = structlog.contextvars.bind_contextvars(**context)
    try:
        yield
    finally:
        structlog.contextvars.reset_contextvars(**tokens)


def get_current_event_type() -> Optional[Any]:
    """Get the event type currently bound in the logging context."""
    return structlog.contextvars.get_contextvars().get("event_type")
