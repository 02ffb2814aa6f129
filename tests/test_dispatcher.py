import pytest

from merchant_events.core.calendar import CalendarTime, Season
from merchant_events.core.ids import EventId
from merchant_events.events import conditions as cond
from merchant_events.events.conditions import GoldCondition
from merchant_events.events.dispatcher import EventDispatcher
from merchant_events.events.effects import MarketBoostEffect, ReputationEffect, UnlockFeatureEffect
from merchant_events.events.errors import EffectApplicationError, EventNotFoundError
from merchant_events.events.model import (
    EffectResult,
    EventCategory,
    EventDefinition,
    EventPriority,
    EventRewards,
)
from merchant_events.events.schedule import MonthlySchedule

FIRST_OF_SPRING = CalendarTime(1, Season.SPRING, 1)


def _event(event_id, priority=EventPriority.NORMAL, schedule=None, **kwargs):
    return EventDefinition(id=EventId(event_id), name=event_id, priority=priority, schedule=schedule, **kwargs)


class FailingEffect:
    def apply(self, context):
        return EffectResult(success=False)


class ExplodingEffect:
    def apply(self, context):
        raise RuntimeError("boom")


class RecordingEffect:
    def __init__(self, calls):
        self.calls = calls

    def apply(self, context):
        self.calls.append(dict(context))
        return EffectResult(success=True, changes={"recorded": True})


def test_update_notifies_in_priority_order(registry, dispatcher, notified):
    monthly = MonthlySchedule(day_of_month=1)
    registry.register(_event("normal", EventPriority.NORMAL, monthly))
    registry.register(_event("low", EventPriority.LOW, monthly))
    registry.register(_event("urgent", EventPriority.URGENT, monthly))
    registry.register(_event("high", EventPriority.HIGH, monthly))

    results = dispatcher.update({}, FIRST_OF_SPRING)

    assert notified == ["urgent", "high", "normal", "low"]
    assert [r.event.id for r in results] == notified
    assert all(r.success for r in results)


def test_update_breaks_priority_ties_by_registration_order(registry, dispatcher, notified):
    monthly = MonthlySchedule(day_of_month=1)
    for event_id in ["b", "a", "d", "c"]:
        registry.register(_event(event_id, EventPriority.NORMAL, monthly))
    registry.register(_event("first", EventPriority.HIGH, monthly))

    dispatcher.update({}, FIRST_OF_SPRING)

    assert notified == ["first", "b", "a", "d", "c"]


def test_update_respects_schedule_and_conditions(registry, dispatcher, notified):
    registry.register(_event("payday", schedule=MonthlySchedule(15)))
    registry.register(_event("bonus", schedule=MonthlySchedule(15), conditions=[GoldCondition(1000)]))

    dispatcher.update({cond.PLAYER_GOLD: 10}, CalendarTime(1, Season.SPRING, 14))
    assert notified == []

    dispatcher.update({cond.PLAYER_GOLD: 10}, CalendarTime(1, Season.SPRING, 15))
    assert notified == ["payday"]

    dispatcher.update({cond.PLAYER_GOLD: 5000}, CalendarTime(1, Season.SUMMER, 15))
    assert notified == ["payday", "payday", "bonus"]


def test_dragon_attack_chain(registry, dispatcher, notified):
    registry.register(_event(
        "dragon_attack",
        EventPriority.URGENT,
        category=EventCategory.MAJOR,
        follow_up_ids=[EventId("rebuild_town"), EventId("hero_celebration")],
    ))
    registry.register(_event("rebuild_town"))
    registry.register(_event("hero_celebration"))

    result = dispatcher.trigger("dragon_attack")

    assert result.success
    assert result.chain_ids() == ["dragon_attack", "rebuild_town", "hero_celebration"]
    assert notified == ["dragon_attack", "rebuild_town", "hero_celebration"]
    assert [f.event.id for f in result.follow_ups] == ["rebuild_town", "hero_celebration"]


def test_follow_ups_run_depth_first_before_next_sibling(registry, dispatcher, notified):
    monthly = MonthlySchedule(day_of_month=1)
    registry.register(_event("a", EventPriority.HIGH, monthly, follow_up_ids=[EventId("b"), EventId("c")]))
    registry.register(_event("b", follow_up_ids=[EventId("d")]))
    registry.register(_event("c"))
    registry.register(_event("d"))
    registry.register(_event("z", EventPriority.HIGH, monthly))

    dispatcher.update({}, FIRST_OF_SPRING)

    assert notified == ["a", "b", "d", "c", "z"]


def test_trigger_unknown_event_is_a_result_not_an_exception(dispatcher, notified):
    result = dispatcher.trigger("nope")
    assert not result.success
    assert result.event is None
    assert isinstance(result.error, EventNotFoundError)
    assert result.chain_ids() == []
    assert notified == []


def test_trigger_bypasses_schedule_and_conditions(registry, dispatcher, notified):
    registry.register(_event("gated", schedule=MonthlySchedule(30), conditions=[GoldCondition(10 ** 9)]))
    assert dispatcher.trigger("gated").success
    assert notified == ["gated"]


def test_all_effects_run_even_after_failures(registry, dispatcher, notified):
    calls = []
    registry.register(_event("shaky", effects=[
        FailingEffect(),
        ExplodingEffect(),
        RecordingEffect(calls),
    ]))

    result = dispatcher.trigger("shaky", {cond.PLAYER_GOLD: 7})

    assert not result.success
    assert len(result.effects) == 3
    assert [e.success for e in result.effects] == [False, False, True]
    assert isinstance(result.error, EffectApplicationError)
    assert isinstance(result.effects[1].error, EffectApplicationError)
    assert calls == [{cond.PLAYER_GOLD: 7}]
    assert notified == ["shaky"]


def test_follow_up_failures_do_not_fail_the_parent(registry, dispatcher, notified):
    registry.register(_event(
        "parent",
        effects=[ReputationEffect(amount=1)],
        follow_up_ids=[EventId("missing"), EventId("broken"), EventId("fine")],
    ))
    registry.register(_event("broken", effects=[FailingEffect()]))
    registry.register(_event("fine"))

    result = dispatcher.trigger("parent")

    assert result.success
    assert result.error is None
    assert [f.success for f in result.follow_ups] == [False, False, True]
    assert isinstance(result.follow_ups[0].error, EventNotFoundError)
    assert notified == ["parent", "broken", "fine"]


def test_follow_up_cycle_is_cut(registry, dispatcher, notified):
    registry.register(_event("a", follow_up_ids=[EventId("b")]))
    registry.register(_event("b", follow_up_ids=[EventId("a"), EventId("c")]))
    registry.register(_event("c"))

    result = dispatcher.trigger("a")

    assert result.success
    assert notified == ["a", "b", "c"]


def test_chain_depth_is_bounded(registry, notified):
    dispatcher = EventDispatcher(registry, max_chain_depth=3)
    dispatcher.subscribe(lambda definition: notified.append(definition.id))
    for i in range(10):
        registry.register(_event(f"e{i}", follow_up_ids=[EventId(f"e{i + 1}")] if i < 9 else []))

    dispatcher.trigger("e0")

    assert notified == ["e0", "e1", "e2"]


def test_rewards_are_passed_through(registry, dispatcher):
    registry.register(EventDefinition(
        id=EventId("dragon_defeat"),
        name="Dragon Defeated",
        description="The town celebrates defeating the dragon",
        category=EventCategory.MAJOR,
        priority=EventPriority.URGENT,
        effects=[
            ReputationEffect(amount=50),
            MarketBoostEffect(price_multiplier=1.5, duration_days=7),
            UnlockFeatureEffect(feature="dragon_scales_trading"),
        ],
        rewards=EventRewards(gold=10000, reputation=50, items=["dragon_scale", "hero_medal"]),
    ))

    result = dispatcher.trigger("dragon_defeat")

    assert result.success
    assert result.rewards.gold == 10000
    assert result.rewards.reputation == 50
    assert "dragon_scale" in result.rewards.items
    assert result.effects[2].changes == {"feature_unlocked": "dragon_scales_trading"}


def test_unsubscribe(registry, dispatcher):
    seen = []
    handler = seen.append
    dispatcher.subscribe(handler)
    registry.register(_event("a"))
    dispatcher.trigger("a")
    dispatcher.unsubscribe(handler)
    dispatcher.trigger("a")
    assert [d.id for d in seen] == ["a"]


def test_follow_up_failure_is_logged(registry, dispatcher, caplog):
    registry.register(_event("parent", follow_up_ids=[EventId("ghost")]))
    with caplog.at_level("WARNING", logger="merchant_events.events.dispatcher"):
        dispatcher.trigger("parent")
    assert any("ghost" in message for message in caplog.messages)
