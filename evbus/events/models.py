"""Event models for the event bus.

Provides the immutable Event record fired into the bus, the DONE sentinel
handlers return to unsubscribe themselves, and HandlerOutcome, the result
of one guarded handler invocation.
"""

from collections.abc import Hashable, Mapping
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, Iterator, Optional
from uuid import UUID, uuid4

from evbus.events.exceptions import EventConstructionError, HandlerExecutionError

EVENT_TYPE_KEY = "event_type"


class HandlerResult(Enum):
    """Special handler return values."""

    DONE = "done"
    """Remove the handler after this invocation."""


DONE = HandlerResult.DONE


@dataclass(frozen=True)
class Event(Mapping):
    """Immutable record of a fired event.

    The payload is exposed read-only. The event itself is a read-only
    mapping of ``event_type`` plus the payload:

        event = Event.from_pairs("note-on", "note", 60, "vel", 100)
        event["note"]        # 60
        dict(event)          # {"event_type": "note-on", "note": 60, "vel": 100}
    """

    event_type: Hashable
    """The type of event (e.g., 'note-on')."""

    payload: Mapping[Any, Any] = field(default_factory=dict)
    """Key/value properties supplied when the event was fired."""

    correlation_id: UUID = field(default_factory=uuid4)
    """Unique ID of this event instance."""

    timestamp: datetime = field(default_factory=datetime.now)
    """When the event was built."""

    def __post_init__(self):
        if not isinstance(self.payload, MappingProxyType):
            object.__setattr__(self, "payload", MappingProxyType(dict(self.payload)))

    @classmethod
    def from_pairs(cls, event_type: Hashable, /, *pairs: Any, **fields: Any) -> "Event":
        """Build an event from alternating key/value tokens.

        Keyword fields are merged after the positional pairs.

        Raises:
            EventConstructionError: On an odd token count, an unhashable key
                or a payload key shadowing ``event_type``.
        """
        if not isinstance(event_type, Hashable):
            raise EventConstructionError(
                f"Event type must be hashable, got {type(event_type).__name__}"
            )
        if len(pairs) % 2:
            raise EventConstructionError(
                f"Event payload requires key/value pairs, got {len(pairs)} tokens"
            )

        payload: Dict[Any, Any] = {}
        for key, value in zip(pairs[::2], pairs[1::2]):
            if not isinstance(key, Hashable):
                raise EventConstructionError(
                    f"Event payload key must be hashable, got {type(key).__name__}"
                )
            payload[key] = value
        payload.update(fields)

        if EVENT_TYPE_KEY in payload:
            raise EventConstructionError(
                f"'{EVENT_TYPE_KEY}' is reserved and cannot be used as a payload key"
            )

        return cls(event_type=event_type, payload=payload)

    def __getitem__(self, key: Any) -> Any:
        if key == EVENT_TYPE_KEY:
            return self.event_type
        return self.payload[key]

    def __iter__(self) -> Iterator[Any]:
        yield EVENT_TYPE_KEY
        yield from self.payload

    def __len__(self) -> int:
        return len(self.payload) + 1

    def to_dict(self) -> Dict[Any, Any]:
        """Flatten the event into ``{"event_type": ..., **payload}``."""
        data: Dict[Any, Any] = {EVENT_TYPE_KEY: self.event_type}
        data.update(self.payload)
        return data

    def __hash__(self) -> int:
        """Hash based on correlation_id and timestamp."""
        return hash((self.correlation_id, self.timestamp))


@dataclass
class HandlerOutcome:
    """Result of one guarded handler invocation."""

    key: Hashable
    result: Any = None
    error: Optional[HandlerExecutionError] = None

    @property
    def succeeded(self) -> bool:
        return self.error is None

    @property
    def done(self) -> bool:
        """True when the handler asked to be removed."""
        return self.error is None and self.result is DONE
