"""Event dispatch engine.

Runs the handlers registered for an event in one registry. Every handler
call goes through ``run_handler``, which catches and logs any failure so a
broken subscriber never affects its siblings or the caller. Handlers that
return DONE are pruned from the live registry once the pass is over.
"""

from typing import Hashable, List

from evbus.events.arity import HandlerEntry
from evbus.events.exceptions import HandlerExecutionError
from evbus.events.models import Event, HandlerOutcome
from evbus.events.registry import HandlerRegistry
from evbus.logging import get_module_logger

logger = get_module_logger()


def run_handler(key: Hashable, entry: HandlerEntry, event: Event) -> HandlerOutcome:
    """Invoke one handler with as many arguments as it accepts.

    The handler receives the first ``arity`` values of ``(event,)``. Any
    exception, including a failure to resolve a dynamic handler, is logged
    with the event payload and returned in the outcome.
    """
    try:
        handler, arity = entry.resolve()
        result = handler(*(event,)[:arity])
    except Exception as e:
        error = HandlerExecutionError(event, key, e)
        logger.exception(
            "event_handler_failed",
            event_type=event.event_type,
            key=key,
            payload=dict(event.payload),
            error=str(e),
            correlation_id=str(event.correlation_id),
        )
        return HandlerOutcome(key=key, error=error)
    return HandlerOutcome(key=key, result=result)


def dispatch_event(registry: HandlerRegistry, event: Event) -> List[HandlerOutcome]:
    """Dispatch an event to the handlers of one registry.

    Handlers run in registration order against a snapshot taken when the
    pass starts. Handlers registered during the pass are not called by it.

    Args:
        registry: Registry to read handlers from.
        event: The event to dispatch.

    Returns:
        One outcome per handler called.
    """
    handlers = registry.snapshot(event.event_type)

    logger.debug(
        "dispatching_event",
        registry=registry.name,
        event_type=event.event_type,
        handler_count=len(handlers),
        correlation_id=str(event.correlation_id),
    )

    outcomes = []
    done = {}
    for key, entry in handlers.items():
        outcome = run_handler(key, entry, event)
        outcomes.append(outcome)
        if outcome.done:
            done[key] = entry

    if done:
        registry.prune(event.event_type, done)

    return outcomes
