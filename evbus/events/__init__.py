"""In-process event bus.

Producers fire a named event with a key/value payload; every handler
registered for that name runs, either on the firing thread (sync handlers)
or on a worker pool (async handlers).

Usage:

    from evbus.events import DONE, fire, fire_sync, register, register_sync

    def on_note(event):
        play(event["note"], event["vel"])

    register("note-on", on_note, "player")
    fire("note-on", "note", 60, "vel", 100)

    # Handlers returning DONE are removed after running
    register_sync("ping", lambda: DONE, "once")
    fire("ping")

    # Wait for async handlers too
    fire_sync("note-on", note=62, vel=90)
"""

from evbus.events.arity import (
    DYNAMIC_ARITY,
    DynamicIndirection,
    FixedArity,
    HandlerRef,
    arg_count,
    make_entry,
)
from evbus.events.bus import (
    EventBus,
    clear_handlers,
    fire,
    fire_sync,
    get_event_bus,
    get_handlers_for_event,
    get_registered_events,
    register,
    register_event_handler,
    register_sync,
    shutdown_event_bus,
    unregister,
    unregister_all,
)
from evbus.events.dispatcher import dispatch_event, run_handler
from evbus.events.exceptions import (
    EventBusError,
    EventConstructionError,
    HandlerExecutionError,
)
from evbus.events.executor import WorkerPool
from evbus.events.models import DONE, Event, HandlerOutcome, HandlerResult
from evbus.events.registry import HandlerRegistry

__all__ = [
    "DONE",
    "DYNAMIC_ARITY",
    "DynamicIndirection",
    "Event",
    "EventBus",
    "EventBusError",
    "EventConstructionError",
    "FixedArity",
    "HandlerExecutionError",
    "HandlerOutcome",
    "HandlerRef",
    "HandlerRegistry",
    "HandlerResult",
    "WorkerPool",
    "arg_count",
    "clear_handlers",
    "dispatch_event",
    "fire",
    "fire_sync",
    "get_event_bus",
    "get_handlers_for_event",
    "get_registered_events",
    "make_entry",
    "register",
    "register_event_handler",
    "register_sync",
    "run_handler",
    "shutdown_event_bus",
    "unregister",
    "unregister_all",
]
