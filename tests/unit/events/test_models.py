"""Unit tests for event models."""

from datetime import datetime
from collections.abc import Mapping
from types import MappingProxyType
from uuid import UUID

import pytest

from evbus.events.exceptions import EventConstructionError, HandlerExecutionError
from evbus.events.models import DONE, Event, HandlerOutcome, HandlerResult

pytestmark = pytest.mark.unit


class TestEventFromPairs:
    """Tests for building events from key/value tokens."""

    def test_builds_payload_from_pairs(self):
        event = Event.from_pairs("note-on", "note", 60, "vel", 100)

        assert event.event_type == "note-on"
        assert event.payload == {"note": 60, "vel": 100}
        assert event.to_dict() == {"event_type": "note-on", "note": 60, "vel": 100}

    def test_no_payload(self):
        event = Event.from_pairs("ping")

        assert event.payload == {}
        assert event.to_dict() == {"event_type": "ping"}

    def test_keyword_fields_are_merged_after_pairs(self):
        event = Event.from_pairs("note-on", "note", 60, note=61, vel=90)

        assert event.payload == {"note": 61, "vel": 90}

    def test_odd_token_count_raises(self):
        with pytest.raises(EventConstructionError, match="3 tokens"):
            Event.from_pairs("note-on", "note", 60, "vel")

    def test_construction_error_is_value_error(self):
        with pytest.raises(ValueError):
            Event.from_pairs("note-on", "note")

    def test_unhashable_key_raises(self):
        with pytest.raises(EventConstructionError):
            Event.from_pairs("note-on", ["note"], 60)

    def test_unhashable_event_type_raises(self):
        with pytest.raises(EventConstructionError):
            Event.from_pairs({"type": "note-on"})

    def test_reserved_event_type_key_raises(self):
        with pytest.raises(EventConstructionError, match="reserved"):
            Event.from_pairs("note-on", "event_type", "other")

    def test_reserved_event_type_keyword_raises(self):
        with pytest.raises(EventConstructionError, match="reserved"):
            Event.from_pairs("note-on", event_type="other")

    def test_non_string_keys_are_allowed(self):
        event = Event.from_pairs("cc", 7, 127)

        assert event[7] == 127


class TestEvent:
    """Tests for the event record."""

    def test_defaults(self):
        event = Event(event_type="test.event")

        assert event.payload == {}
        assert isinstance(event.correlation_id, UUID)
        assert isinstance(event.timestamp, datetime)

    def test_payload_is_read_only(self):
        source = {"note": 60}
        event = Event(event_type="note-on", payload=source)

        assert isinstance(event.payload, MappingProxyType)
        with pytest.raises(TypeError):
            event.payload["note"] = 61

        source["note"] = 61
        assert event["note"] == 60

    def test_fields_are_frozen(self):
        event = Event(event_type="note-on")

        with pytest.raises(AttributeError):
            event.event_type = "note-off"

    def test_item_access(self):
        event = Event.from_pairs("note-on", "note", 60)

        assert event["event_type"] == "note-on"
        assert event["note"] == 60
        assert event.get("vel") is None
        assert event.get("vel", 64) == 64
        assert "note" in event
        assert "event_type" in event
        assert "vel" not in event
        assert list(event) == ["event_type", "note"]

    def test_event_is_a_mapping(self):
        event = Event.from_pairs("note-on", "note", 60, "vel", 100)
        expected = {"event_type": "note-on", "note": 60, "vel": 100}

        assert isinstance(event, Mapping)
        assert len(event) == 3
        assert dict(event) == expected
        assert {**event} == expected
        assert dict(event.items()) == expected
        assert list(event.keys()) == ["event_type", "note", "vel"]

    def test_missing_key_raises_key_error(self):
        event = Event.from_pairs("note-on")

        with pytest.raises(KeyError):
            event["note"]

    def test_events_are_hashable_and_distinct(self):
        first = Event.from_pairs("note-on", "note", 60)
        second = Event.from_pairs("note-on", "note", 60)

        assert first.correlation_id != second.correlation_id
        assert len({first, second}) == 2


class TestHandlerOutcome:
    """Tests for HandlerOutcome."""

    def test_done_when_result_is_sentinel(self):
        outcome = HandlerOutcome(key="k", result=DONE)

        assert outcome.done is True
        assert outcome.succeeded is True

    def test_done_sentinel_is_enum_member(self):
        assert DONE is HandlerResult.DONE

    def test_not_done_for_other_values(self):
        assert HandlerOutcome(key="k", result="done").done is False
        assert HandlerOutcome(key="k", result=None).done is False

    def test_failed_outcome(self):
        event = Event.from_pairs("note-on")
        error = HandlerExecutionError(event, "k", RuntimeError("boom"))
        outcome = HandlerOutcome(key="k", error=error)

        assert outcome.succeeded is False
        assert outcome.done is False
        assert isinstance(error.__cause__, RuntimeError)
        assert "boom" in str(error)
        assert "'k'" in str(error)
