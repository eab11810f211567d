"""evbus - in-process event dispatch with sync and pooled handlers."""

from evbus.events import (
    DONE,
    Event,
    EventBus,
    EventConstructionError,
    HandlerRef,
    fire,
    fire_sync,
    register,
    register_event_handler,
    register_sync,
    unregister,
    unregister_all,
)

__version__ = "0.1.0"

__all__ = [
    "DONE",
    "Event",
    "EventBus",
    "EventConstructionError",
    "HandlerRef",
    "fire",
    "fire_sync",
    "register",
    "register_event_handler",
    "register_sync",
    "unregister",
    "unregister_all",
]
