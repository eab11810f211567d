"""Concurrent handler registry.

Maps event type -> handler key -> handler entry. A bus owns two registries
(sync and async) that share one re-entrant lock, so a removal spanning both
commits atomically.

The lock is held for mutations and for the shallow copy taken by
``snapshot``; it is never held while a handler runs.
"""

import threading
from typing import Callable, Dict, Hashable, List, Optional

from evbus.events.arity import HandlerEntry, describe_handler, make_entry
from evbus.logging import get_module_logger

logger = get_module_logger()


class HandlerRegistry:
    """Thread-safe registry of keyed handler entries per event type.

    Handlers for one event type keep registration order. Re-registering an
    existing key replaces the entry in place.

    Attributes:
        name: Label used in log records ("sync" or "async").
        lock: Lock serializing all mutations; may be shared between registries.
    """

    def __init__(self, name: str, lock: Optional[threading.RLock] = None):
        self.name = name
        self.lock = lock or threading.RLock()
        self._handlers: Dict[Hashable, Dict[Hashable, HandlerEntry]] = {}

    def register(self, event_type: Hashable, key: Hashable, handler: Callable) -> bool:
        """Insert or replace the handler registered under ``key``.

        Returns:
            True, always.
        """
        entry = make_entry(handler)
        with self.lock:
            handlers = self._handlers.setdefault(event_type, {})
            replaced = key in handlers
            handlers[key] = entry
            total = len(handlers)

        logger.debug(
            "event_handler_registered",
            registry=self.name,
            event_type=event_type,
            key=key,
            handler=describe_handler(handler),
            arity=entry.arity,
            replaced=replaced,
            total_handlers=total,
        )
        return True

    def remove(self, event_type: Hashable, key: Hashable) -> bool:
        """Remove the handler under ``key``. No-op if absent.

        Returns:
            True if an entry was removed.
        """
        with self.lock:
            handlers = self._handlers.get(event_type)
            if handlers is None or key not in handlers:
                return False
            del handlers[key]
            if not handlers:
                del self._handlers[event_type]

        logger.debug(
            "event_handler_removed",
            registry=self.name,
            event_type=event_type,
            key=key,
        )
        return True

    def remove_all(self, event_type: Hashable) -> int:
        """Remove every handler for ``event_type``. No-op if none.

        Returns:
            Number of entries removed.
        """
        with self.lock:
            handlers = self._handlers.pop(event_type, {})

        if handlers:
            logger.debug(
                "event_handlers_cleared",
                registry=self.name,
                event_type=event_type,
                removed=len(handlers),
            )
        return len(handlers)

    def snapshot(self, event_type: Hashable) -> Dict[Hashable, HandlerEntry]:
        """Copy of the handlers for ``event_type`` at this instant."""
        with self.lock:
            return dict(self._handlers.get(event_type, {}))

    def prune(
        self, event_type: Hashable, done: Dict[Hashable, HandlerEntry]
    ) -> List[Hashable]:
        """Remove handlers that finished, relative to a snapshot.

        A key is removed only while the live entry is still the one that
        was snapshotted; an entry re-registered in the meantime is kept.

        Args:
            event_type: Event type the snapshot was taken for.
            done: Snapshotted entries keyed by handler key.

        Returns:
            Keys actually removed.
        """
        removed = []
        with self.lock:
            handlers = self._handlers.get(event_type)
            if handlers is None:
                return removed
            for key, entry in done.items():
                if handlers.get(key) is entry:
                    del handlers[key]
                    removed.append(key)
            if not handlers:
                del self._handlers[event_type]

        if removed:
            logger.debug(
                "event_handlers_pruned",
                registry=self.name,
                event_type=event_type,
                keys=removed,
            )
        return removed

    def event_types(self) -> List[Hashable]:
        """Event types with at least one handler."""
        with self.lock:
            return list(self._handlers.keys())

    def handlers_for(self, event_type: Hashable) -> Dict[Hashable, Callable]:
        """Registered handlers for ``event_type`` keyed by handler key."""
        return {key: entry.handler for key, entry in self.snapshot(event_type).items()}

    def count(self, event_type: Optional[Hashable] = None) -> int:
        """Number of entries for one event type, or across all types."""
        with self.lock:
            if event_type is not None:
                return len(self._handlers.get(event_type, {}))
            return sum(len(handlers) for handlers in self._handlers.values())

    def clear(self) -> None:
        """Remove every entry.

        WARNING: This is intended for testing only.
        """
        with self.lock:
            self._handlers.clear()
        logger.debug("event_registry_cleared", registry=self.name)
