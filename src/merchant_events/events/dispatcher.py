from __future__ import annotations
import logging
import threading
from collections.abc import Mapping
from typing import Any, Callable, List, Optional, Tuple

from ..core.calendar import CalendarTime
from ..core.ids import EventId
from .errors import EffectApplicationError, EventNotFoundError
from .model import EffectResult, EventDefinition, EventTriggerResult
from .registry import EventRegistry

logger = logging.getLogger(__name__)

EventHandler = Callable[[EventDefinition], None]

DEFAULT_MAX_CHAIN_DEPTH = 8


class EventDispatcher:
    """
    Fires events: applies their effects, notifies subscribers and walks
    follow-up chains depth-first.

    Subscribers are called synchronously while the dispatcher lock is held.
    A subscriber must not register or trigger events itself; it should only
    read, or queue its change for the next tick.
    """

    def __init__(self, registry: EventRegistry, max_chain_depth: int = DEFAULT_MAX_CHAIN_DEPTH):
        self.registry = registry
        self.max_chain_depth = max_chain_depth
        self._handlers: List[EventHandler] = []
        self._lock = threading.RLock()

    def subscribe(self, handler: EventHandler):
        with self._lock:
            self._handlers.append(handler)

    def unsubscribe(self, handler: EventHandler):
        with self._lock:
            self._handlers.remove(handler)

    def update(self, context: Mapping[str, Any], now: CalendarTime) -> List[EventTriggerResult]:
        """Triggers every event due at `now`, highest priority first."""
        results: List[EventTriggerResult] = []
        with self._lock:
            for definition in self.registry.due_events(now, context):
                results.append(self._trigger(definition, context, chain=()))
        return results

    def trigger(self, event_id: str, context: Optional[Mapping[str, Any]] = None) -> EventTriggerResult:
        """Fires an event regardless of its schedule and conditions."""
        context = context if context is not None else {}
        definition = self.registry.get(event_id)
        if definition is None:
            logger.warning("Trigger requested for unknown event '%s'", event_id)
            return EventTriggerResult(success=False, error=EventNotFoundError(event_id))
        with self._lock:
            return self._trigger(definition, context, chain=())

    def _trigger(self, definition: EventDefinition, context: Mapping[str, Any], chain: Tuple[EventId, ...]) -> EventTriggerResult:
        result = EventTriggerResult(success=True, event=definition, rewards=definition.rewards)

        # Every effect runs, even after one fails
        for effect in definition.effects:
            effect_result = self._apply_effect(definition, effect, context)
            result.effects.append(effect_result)
            if not effect_result.success:
                result.success = False
                if result.error is None:
                    result.error = effect_result.error or EffectApplicationError(
                        f"{type(effect).__name__} reported failure for event '{definition.id}'"
                    )

        for handler in list(self._handlers):
            handler(definition)
        logger.debug("Triggered event '%s' (success=%s)", definition.id, result.success)

        chain = chain + (definition.id,)
        for follow_up_id in definition.follow_up_ids:
            follow_up = self._trigger_follow_up(follow_up_id, context, chain)
            if follow_up is not None:
                result.follow_ups.append(follow_up)
        return result

    def _trigger_follow_up(self, follow_up_id: EventId, context: Mapping[str, Any], chain: Tuple[EventId, ...]) -> Optional[EventTriggerResult]:
        parent_id = chain[-1]
        if follow_up_id in chain:
            logger.warning("Skipping follow-up '%s' of '%s': cycle %s", follow_up_id, parent_id, " -> ".join(chain + (follow_up_id,)))
            return None
        if len(chain) >= self.max_chain_depth:
            logger.warning("Skipping follow-up '%s' of '%s': chain deeper than %d", follow_up_id, parent_id, self.max_chain_depth)
            return None

        definition = self.registry.get(follow_up_id)
        if definition is None:
            follow_up = EventTriggerResult(success=False, error=EventNotFoundError(follow_up_id))
        else:
            follow_up = self._trigger(definition, context, chain)
        if not follow_up.success:
            # Reported, never propagated into the parent's result
            logger.warning("Follow-up '%s' of '%s' failed: %s", follow_up_id, parent_id, follow_up.error)
        return follow_up

    @staticmethod
    def _apply_effect(definition: EventDefinition, effect, context: Mapping[str, Any]) -> EffectResult:
        try:
            return effect.apply(context)
        except Exception as exc:
            logger.exception("Effect %s of event '%s' raised", type(effect).__name__, definition.id)
            error = EffectApplicationError(f"{type(effect).__name__} failed for event '{definition.id}': {exc}")
            error.__cause__ = exc
            return EffectResult(success=False, error=error)
