"""Unit tests for the dispatch engine."""

from unittest.mock import MagicMock, patch

import pytest

from evbus.events.arity import HandlerRef
from evbus.events.dispatcher import dispatch_event, run_handler
from evbus.events.exceptions import HandlerExecutionError
from evbus.events.models import DONE

pytestmark = pytest.mark.unit


class TestRunHandler:
    """Tests for the per-handler error boundary."""

    def test_passes_event_to_one_arg_handler(self, registry, event_factory):
        event = event_factory("note-on", note=60)
        handler = MagicMock(return_value="ok")
        registry.register("note-on", "k", handler)

        outcome = run_handler("k", registry.snapshot("note-on")["k"], event)

        handler.assert_called_once_with(event)
        assert outcome.result == "ok"
        assert outcome.succeeded

    def test_calls_zero_arg_handler_without_arguments(self, registry, event_factory):
        calls = []
        registry.register("tick", "k", lambda: calls.append("called"))

        run_handler("k", registry.snapshot("tick")["k"], event_factory("tick"))

        assert calls == ["called"]

    def test_handler_exception_is_captured(self, registry, event_factory):
        event = event_factory("note-on", note=60)
        registry.register("note-on", "k", MagicMock(side_effect=ValueError("bad note")))

        outcome = run_handler("k", registry.snapshot("note-on")["k"], event)

        assert not outcome.succeeded
        assert isinstance(outcome.error, HandlerExecutionError)
        assert outcome.error.key == "k"
        assert outcome.error.event is event
        assert isinstance(outcome.error.__cause__, ValueError)

    def test_handler_failure_is_logged_with_payload(self, registry, event_factory):
        event = event_factory("note-on", note=60)
        registry.register("note-on", "k", MagicMock(side_effect=ValueError("bad note")))

        with patch("evbus.events.dispatcher.logger") as mock_logger:
            run_handler("k", registry.snapshot("note-on")["k"], event)

        mock_logger.exception.assert_called_once()
        args, kwargs = mock_logger.exception.call_args
        assert args[0] == "event_handler_failed"
        assert kwargs["payload"] == {"note": 60}
        assert kwargs["key"] == "k"
        assert kwargs["error"] == "bad note"

    def test_arity_mismatch_is_captured(self, registry, event_factory):
        def needs_two(event, extra):
            pass

        registry.register("note-on", "k", needs_two)

        outcome = run_handler("k", registry.snapshot("note-on")["k"], event_factory("note-on"))

        assert isinstance(outcome.error.__cause__, TypeError)

    def test_unbound_dynamic_handler_is_captured(self, registry, event_factory):
        registry.register("note-on", "k", HandlerRef())

        outcome = run_handler("k", registry.snapshot("note-on")["k"], event_factory("note-on"))

        assert isinstance(outcome.error.__cause__, LookupError)

    def test_dynamic_handler_uses_current_target_and_arity(self, registry, event_factory):
        seen = []
        ref = HandlerRef(lambda event: seen.append(event["note"]))
        registry.register("note-on", "k", ref)
        entry = registry.snapshot("note-on")["k"]

        run_handler("k", entry, event_factory("note-on", note=60))
        ref.rebind(lambda: seen.append("no-args"))
        run_handler("k", entry, event_factory("note-on", note=61))

        assert seen == [60, "no-args"]


class TestDispatchEvent:
    """Tests for dispatch_event."""

    def test_calls_handlers_in_registration_order(self, registry, event_factory):
        order = []
        registry.register("note-on", "first", lambda e: order.append("first"))
        registry.register("note-on", "second", lambda e: order.append("second"))
        registry.register("note-on", "third", lambda: order.append("third"))

        outcomes = dispatch_event(registry, event_factory("note-on"))

        assert order == ["first", "second", "third"]
        assert [o.key for o in outcomes] == ["first", "second", "third"]

    def test_no_handlers_does_not_raise(self, registry, event_factory):
        assert dispatch_event(registry, event_factory("unregistered")) == []

    def test_only_matching_event_type_is_dispatched(self, registry, event_factory):
        on_handler = MagicMock()
        off_handler = MagicMock()
        registry.register("note-on", "k", on_handler)
        registry.register("note-off", "k", off_handler)

        event = event_factory("note-on")
        dispatch_event(registry, event)

        on_handler.assert_called_once_with(event)
        off_handler.assert_not_called()

    def test_exception_does_not_stop_other_handlers(self, registry, event_factory):
        failing = MagicMock(side_effect=RuntimeError("boom"))
        succeeding = MagicMock(return_value="success")
        registry.register("note-on", "failing", failing)
        registry.register("note-on", "succeeding", succeeding)

        event = event_factory("note-on")
        outcomes = dispatch_event(registry, event)

        failing.assert_called_once_with(event)
        succeeding.assert_called_once_with(event)
        assert [o.succeeded for o in outcomes] == [False, True]
        assert outcomes[1].result == "success"

    def test_done_handlers_are_pruned(self, registry, event_factory):
        once = MagicMock(return_value=DONE)
        always = MagicMock(return_value=None)
        registry.register("ping", "once", once)
        registry.register("ping", "always", always)

        dispatch_event(registry, event_factory("ping"))
        dispatch_event(registry, event_factory("ping"))

        assert once.call_count == 1
        assert always.call_count == 2
        assert list(registry.handlers_for("ping")) == ["always"]

    def test_failing_handler_is_not_pruned(self, registry, event_factory):
        registry.register("ping", "failing", MagicMock(side_effect=RuntimeError()))

        dispatch_event(registry, event_factory("ping"))

        assert list(registry.handlers_for("ping")) == ["failing"]

    def test_registration_during_pass_is_not_called_but_kept(self, registry, event_factory):
        late = MagicMock()

        def registers_late(event):
            registry.register("ping", "late", late)
            return DONE

        registry.register("ping", "early", registers_late)

        dispatch_event(registry, event_factory("ping"))

        late.assert_not_called()
        assert list(registry.handlers_for("ping")) == ["late"]

        event = event_factory("ping")
        dispatch_event(registry, event)
        late.assert_called_once_with(event)

    def test_removal_during_pass_does_not_skip_snapshot(self, registry, event_factory):
        second = MagicMock()
        registry.register("ping", "first", lambda: registry.remove("ping", "second"))
        registry.register("ping", "second", second)

        dispatch_event(registry, event_factory("ping"))

        second.assert_called_once()
        assert list(registry.handlers_for("ping")) == ["first"]

    def test_reregistered_done_handler_survives(self, registry, event_factory):
        replacement = MagicMock(return_value=None)

        def replace_self():
            registry.register("ping", "k", replacement)
            return DONE

        registry.register("ping", "k", replace_self)

        dispatch_event(registry, event_factory("ping"))

        assert registry.handlers_for("ping") == {"k": replacement}
