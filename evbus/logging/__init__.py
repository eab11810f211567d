"""Structured logging for evbus.

Public API:
    - configure_logging(): Initialize logging
    - get_module_logger(): Get a logger for the calling module
    - bind_event_context(): Context manager for event-scoped logging
    - get_current_event_type(): Event type bound in the current context
"""

from evbus.logging.setup import configure_logging, get_module_logger
from evbus.logging.context import bind_event_context, get_current_event_type

__all__ = [
    "configure_logging",
    "get_module_logger",
    "bind_event_context",
    "get_current_event_type",
]
