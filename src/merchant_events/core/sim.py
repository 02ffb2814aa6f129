from dataclasses import dataclass, field
from typing import Any, Dict, List

from .calendar import CalendarTime
from .log import EventLog
from .state import EngineState
from ..events import conditions as cond
from ..events.conditions import check_all
from ..events.model import EventTriggerResult


@dataclass
class TickReport:
    now: CalendarTime
    log: EventLog
    results: List[EventTriggerResult] = field(default_factory=list)

    def triggered_ids(self) -> List[str]:
        ids: List[str] = []
        for result in self.results:
            ids.extend(result.chain_ids())
        return ids


def build_context(state: EngineState) -> Dict[str, Any]:
    context = dict(state.facts)
    context[cond.CURRENT_SEASON] = state.now.season
    context[cond.DAYS_PASSED] = state.now.ordinal()
    context[cond.RANDOM_VALUE] = state.rng.random()
    return context


def _log_result(log: EventLog, day: int, result: EventTriggerResult, source: str):
    if result.event is None:
        log.add_entry("event.failed", day, reason=str(result.error), details={"source": source})
        return
    event = result.event
    changes: Dict[str, Any] = {}
    for effect_result in result.effects:
        changes.update(effect_result.changes)
    if result.success:
        log.add_entry(
            "event.triggered",
            day,
            event_id=event.id,
            reason=f"{event.name} ({event.priority.name.lower()}, {source}).",
            details={"changes": changes},
        )
    else:
        log.add_entry(
            "event.failed",
            day,
            event_id=event.id,
            reason=f"{event.name} failed: {result.error}",
            details={"changes": changes, "source": source},
        )
    for follow_up in result.follow_ups:
        _log_result(log, day, follow_up, source=f"follow-up of {event.id}")


def step(state: EngineState) -> TickReport:
    """
    Advances the event engine by one simulated day.
    """
    log = EventLog()
    now = state.now
    day = now.ordinal()
    context = build_context(state)
    report = TickReport(now=now, log=log)

    # 1. Calendar events
    for result in state.dispatcher.update(context, now):
        report.results.append(result)
        _log_result(log, day, result, source="scheduled")

    # 2. Random pool
    state.frequency.update_game_state(state.phase, state.player_level, day)
    candidates = [d for d in state.registry.random_pool() if check_all(d.conditions, context)]
    state.rng.shuffle(candidates)
    limit = 1
    clustered, size = state.frequency.should_cluster_events()
    if clustered:
        limit = size
        log.add_entry("events.cluster", day, reason=f"Event cluster of up to {size}.")
    fired = 0
    for definition in candidates:
        if fired >= limit:
            break
        if state.frequency.should_trigger_event(definition.id, definition.rarity):
            fired += 1
            result = state.dispatcher.trigger(definition.id, context)
            report.results.append(result)
            _log_result(log, day, result, source=f"random, {definition.rarity.name.lower()}")

    if not report.results:
        log.add_entry("events.roll", day, reason="No events triggered today.")

    # 3. Advance notices for tomorrow onwards
    for notification in state.registry.get_notifications(now):
        if notification.days_until == 0:
            continue
        log.add_entry(
            "event.notice",
            day,
            event_id=notification.event_id,
            reason=f"{notification.event_name} in {notification.days_until} day(s).",
            details={"days_until": notification.days_until, "message": notification.message},
        )

    state.now = now.next_day()
    return report
