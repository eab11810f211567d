"""Handler arity resolution.

Handlers may accept no arguments or the event record. The number of
positional arguments a handler takes is read from its signature:

- ``FixedArity`` entries resolve it once, when the handler is registered.
- ``DynamicIndirection`` entries wrap a ``HandlerRef`` whose target can be
  rebound later, and resolve it again on every invocation.

Only the first matching shape is considered: a handler declaring
``def handler(event=None)`` is called with the event.
"""

import inspect
import threading
from dataclasses import dataclass
from typing import Any, Callable, Optional, Tuple, Union

from evbus.logging import get_module_logger

logger = get_module_logger()

DYNAMIC_ARITY = -1

_POSITIONAL_KINDS = (
    inspect.Parameter.POSITIONAL_ONLY,
    inspect.Parameter.POSITIONAL_OR_KEYWORD,
)


def describe_handler(handler: Any) -> str:
    """Human-readable handler name for log records."""
    if isinstance(handler, HandlerRef):
        return repr(handler)
    module = getattr(handler, "__module__", None)
    name = getattr(handler, "__qualname__", None) or getattr(handler, "__name__", None)
    if name is None:
        return repr(handler)
    return f"{module}.{name}" if module else name


def arg_count(handler: Callable) -> int:
    """Get the number of positional arguments a callable accepts.

    A ``*args`` parameter counts as one more accepted argument. Callables
    without an inspectable signature are assumed to take the event.
    """
    try:
        signature = inspect.signature(handler)
    except (TypeError, ValueError):
        logger.debug(
            "handler_signature_unavailable",
            handler=describe_handler(handler),
        )
        return 1

    count = 0
    for parameter in signature.parameters.values():
        if parameter.kind in _POSITIONAL_KINDS:
            count += 1
        elif parameter.kind is inspect.Parameter.VAR_POSITIONAL:
            return count + 1
    return count


class HandlerRef:
    """Rebindable reference to a handler.

    Registering a HandlerRef instead of a plain function makes the entry
    dynamic: the bus looks the target up, and recomputes its arity, every
    time the event fires.

    Usage:
        ref = HandlerRef(on_note)
        register("note-on", ref, "notes")
        ref.rebind(lambda: print("no event needed"))

        # Late-bound module attribute, picks up redefinitions
        register("note-on", HandlerRef.attribute(synths, "on_note"), "synth")
    """

    def __init__(self, target: Optional[Callable] = None):
        self._target = target
        self._owner: Any = None
        self._attribute: Optional[str] = None
        self._lock = threading.Lock()

    @classmethod
    def attribute(cls, owner: Any, name: str) -> "HandlerRef":
        """Reference ``getattr(owner, name)``, looked up at every call."""
        ref = cls()
        ref._owner = owner
        ref._attribute = name
        return ref

    @property
    def is_attribute(self) -> bool:
        return self._attribute is not None

    def deref(self) -> Callable:
        """Return the current target.

        Raises:
            LookupError: If the reference is unbound.
        """
        if self._attribute is not None:
            try:
                return getattr(self._owner, self._attribute)
            except AttributeError as e:
                raise LookupError(f"{self!r} is unbound") from e
        with self._lock:
            target = self._target
        if target is None:
            raise LookupError(f"{self!r} is unbound")
        return target

    def rebind(self, target: Callable) -> None:
        """Point the reference at a new callable."""
        if self._attribute is not None:
            setattr(self._owner, self._attribute, target)
            return
        with self._lock:
            self._target = target

    def __call__(self, *args: Any) -> Any:
        return self.deref()(*args)

    def __repr__(self) -> str:
        if self._attribute is not None:
            owner = getattr(self._owner, "__name__", type(self._owner).__name__)
            return f"HandlerRef({owner}.{self._attribute})"
        return f"HandlerRef({describe_handler(self._target) if self._target else None})"


@dataclass(frozen=True, eq=False)
class FixedArity:
    """Handler whose arity was resolved at registration."""

    handler: Callable
    arity: int

    def resolve(self) -> Tuple[Callable, int]:
        return self.handler, self.arity


@dataclass(frozen=True, eq=False)
class DynamicIndirection:
    """Handler behind a HandlerRef, resolved on every invocation."""

    ref: HandlerRef
    arity: int = DYNAMIC_ARITY

    @property
    def handler(self) -> HandlerRef:
        return self.ref

    def resolve(self) -> Tuple[Callable, int]:
        target = self.ref.deref()
        return target, arg_count(target)


HandlerEntry = Union[FixedArity, DynamicIndirection]


def make_entry(handler: Callable) -> HandlerEntry:
    """Build the registry entry for a handler."""
    if isinstance(handler, HandlerRef):
        return DynamicIndirection(ref=handler)
    return FixedArity(handler=handler, arity=arg_count(handler))
