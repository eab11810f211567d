"""Event bus: registration and the firing protocol.

Each bus owns a sync registry, an async registry and a worker pool. Firing
an event runs the sync handlers on the calling thread, then either runs the
async handlers inline (``fire_sync``) or hands them to the pool as a single
unit of work (``fire``).

The module-level functions at the bottom operate on a process-wide default
bus created on first use.
"""

import atexit
import threading
from typing import Any, Callable, Dict, Hashable, List, Optional

from evbus.configuration import settings
from evbus.events.dispatcher import dispatch_event
from evbus.events.executor import WorkerPool
from evbus.events.models import Event
from evbus.events.registry import HandlerRegistry
from evbus.logging import bind_event_context, get_module_logger

logger = get_module_logger()


class EventBus:
    """In-process event bus.

    Usage:
        bus = EventBus()

        bus.register("note-on", lambda event: play(event["note"]), "player")
        bus.register_sync("note-on", record, "recorder")

        bus.fire("note-on", "note", 60, "vel", 100)
        bus.fire_sync("note-on", note=62, vel=90)

    Handlers may take the event or no argument at all, and can return DONE
    to unsubscribe themselves.
    """

    def __init__(
        self,
        max_workers: Optional[int] = None,
        pool: Optional[WorkerPool] = None,
    ):
        """Initialize the bus.

        Args:
            max_workers: Worker pool size; defaults to settings, then CPU count.
            pool: Worker pool to use instead of creating one.
        """
        self._lock = threading.RLock()
        self.sync_handlers = HandlerRegistry("sync", lock=self._lock)
        self.async_handlers = HandlerRegistry("async", lock=self._lock)
        self.pool = pool or WorkerPool(max_workers=max_workers)

    # -------------------------------------------------------------------------
    # Registration
    # -------------------------------------------------------------------------

    def register(self, event_type: Hashable, handler: Callable, key: Hashable) -> bool:
        """Run ``handler`` on the worker pool whenever ``event_type`` fires.

        ``fire_sync`` overrides this and runs the handler on the firing
        thread. Re-registering ``key`` replaces the previous handler.

        Returns:
            True, always.
        """
        return self.async_handlers.register(event_type, key, handler)

    def register_sync(
        self, event_type: Hashable, handler: Callable, key: Hashable
    ) -> bool:
        """Run ``handler`` on the firing thread whenever ``event_type`` fires.

        The firing call blocks until all sync handlers have returned.

        Returns:
            True, always.
        """
        return self.sync_handlers.register(event_type, key, handler)

    def unregister(self, event_type: Hashable, key: Hashable) -> None:
        """Remove the handler under ``key`` from both registries."""
        with self._lock:
            self.sync_handlers.remove(event_type, key)
            self.async_handlers.remove(event_type, key)

    def unregister_all(self, event_type: Hashable) -> None:
        """Remove every sync and async handler for ``event_type``."""
        with self._lock:
            self.sync_handlers.remove_all(event_type)
            self.async_handlers.remove_all(event_type)

    def clear(self) -> None:
        """Remove every handler from both registries.

        WARNING: This is intended for testing only.
        """
        with self._lock:
            self.sync_handlers.clear()
            self.async_handlers.clear()

    # -------------------------------------------------------------------------
    # Firing
    # -------------------------------------------------------------------------

    def fire(self, event_type: Hashable, /, *pairs: Any, **fields: Any) -> Event:
        """Fire an event built from alternating key/value tokens.

        Returns once the sync handlers are done; async handlers run later
        on the worker pool.

            bus.fire("filter-sweep-done", "instrument", "phat-bass")

        Raises:
            EventConstructionError: On a malformed payload, before any
                handler runs.
        """
        event = Event.from_pairs(event_type, *pairs, **fields)
        return self.publish(event)

    def fire_sync(self, event_type: Hashable, /, *pairs: Any, **fields: Any) -> Event:
        """Fire an event and wait for every handler, sync and async.

        Events fired by the handlers themselves go back to the default
        behaviour of ``fire`` unless they use ``fire_sync`` too.
        """
        event = Event.from_pairs(event_type, *pairs, **fields)
        return self.publish(event, force_sync=True)

    def publish(self, event: Event, force_sync: bool = False) -> Event:
        """Run the firing protocol for an already built event.

        Args:
            event: The event to fire.
            force_sync: Run the async stage inline and wait for it.

        Returns:
            The fired event.
        """
        with bind_event_context(
            event_type=event.event_type,
            correlation_id=str(event.correlation_id),
        ):
            logger.debug(
                "event_fired",
                payload=dict(event.payload),
                force_sync=force_sync,
            )
            dispatch_event(self.sync_handlers, event)
            if force_sync:
                dispatch_event(self.async_handlers, event)
            else:
                self.pool.submit(dispatch_event, self.async_handlers, event)
        return event

    # -------------------------------------------------------------------------
    # Introspection & lifecycle
    # -------------------------------------------------------------------------

    def get_registered_events(self) -> List[Hashable]:
        """Event types with at least one sync or async handler."""
        with self._lock:
            types = self.sync_handlers.event_types()
            types.extend(
                t for t in self.async_handlers.event_types() if t not in types
            )
        return types

    def get_handlers_for_event(self, event_type: Hashable) -> Dict[str, Dict]:
        """Handlers for ``event_type`` as ``{"sync": {...}, "async": {...}}``."""
        with self._lock:
            return {
                "sync": self.sync_handlers.handlers_for(event_type),
                "async": self.async_handlers.handlers_for(event_type),
            }

    def start(self) -> None:
        """Start the worker pool ahead of the first async dispatch."""
        self.pool.start()

    def shutdown(self, wait: bool = True) -> None:
        """Shut down the worker pool. Later async dispatches are dropped."""
        self.pool.shutdown(wait=wait)


# Global bus instance
_default_bus: Optional[EventBus] = None
_default_bus_lock = threading.Lock()


def get_event_bus() -> EventBus:
    """Get the process-wide default bus, creating it on first call."""
    global _default_bus

    if _default_bus is None:
        with _default_bus_lock:
            # Double-check locking pattern
            if _default_bus is None:
                _default_bus = EventBus()
                logger.debug("default_event_bus_initialized")

    return _default_bus


def shutdown_event_bus(wait: bool = True) -> None:
    """Shut down the default bus worker pool, if the bus exists."""
    with _default_bus_lock:
        bus = _default_bus
    if bus is not None:
        bus.shutdown(wait=wait)


@atexit.register
def _atexit_shutdown():
    """Best-effort shutdown at process exit."""
    try:
        shutdown_event_bus(wait=settings.events.shutdown_wait)
    except Exception:
        pass


def register(event_type: Hashable, handler: Callable, key: Hashable) -> bool:
    """Register an async handler on the default bus. See EventBus.register."""
    return get_event_bus().register(event_type, handler, key)


def register_sync(event_type: Hashable, handler: Callable, key: Hashable) -> bool:
    """Register a sync handler on the default bus. See EventBus.register_sync."""
    return get_event_bus().register_sync(event_type, handler, key)


def unregister(event_type: Hashable, key: Hashable) -> None:
    """Remove ``key`` from both registries of the default bus."""
    get_event_bus().unregister(event_type, key)


def unregister_all(event_type: Hashable) -> None:
    """Remove all handlers for ``event_type`` from the default bus."""
    get_event_bus().unregister_all(event_type)


def fire(event_type: Hashable, /, *pairs: Any, **fields: Any) -> Event:
    """Fire an event on the default bus. See EventBus.fire."""
    return get_event_bus().fire(event_type, *pairs, **fields)


def fire_sync(event_type: Hashable, /, *pairs: Any, **fields: Any) -> Event:
    """Fire an event on the default bus and wait for every handler."""
    return get_event_bus().fire_sync(event_type, *pairs, **fields)


def register_event_handler(
    event_type: Hashable, key: Optional[Hashable] = None, sync: bool = False
):
    """Decorator to register a handler on the default bus.

    Args:
        event_type: The type of event to handle (e.g., 'note-on').
        key: Handler key; defaults to the handler's qualified name.
        sync: Register in the sync registry instead of the async one.

    Example:
        @register_event_handler("note-on", sync=True)
        def log_note(event):
            logger.info("note", note=event["note"])
    """

    def decorator(handler_func: Callable) -> Callable:
        handler_key = key
        if handler_key is None:
            module = getattr(handler_func, "__module__", None)
            name = getattr(handler_func, "__qualname__", None) or repr(handler_func)
            handler_key = f"{module}.{name}" if module else name
        if sync:
            register_sync(event_type, handler_func, handler_key)
        else:
            register(event_type, handler_func, handler_key)
        return handler_func

    return decorator


def get_registered_events() -> List[Hashable]:
    """Event types with handlers on the default bus."""
    return get_event_bus().get_registered_events()


def get_handlers_for_event(event_type: Hashable) -> Dict[str, Dict]:
    """Handlers registered on the default bus for ``event_type``."""
    return get_event_bus().get_handlers_for_event(event_type)


def clear_handlers() -> None:
    """Clear all handlers on the default bus.

    WARNING: This is intended for testing only.
    """
    get_event_bus().clear()
    logger.debug("cleared_all_event_handlers")
