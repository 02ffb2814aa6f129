"""
Declarative event effects.

An effect never touches gold totals, prices or inventories itself. apply()
returns an EffectResult describing the change, and the market, inventory and
progression systems that own that state decide how to apply it.
"""
from __future__ import annotations
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Sequence, Union

from ..core.ids import FeatureId, ItemId, QuestId
from .model import EffectResult

DEFAULT_CITIZENS = 100


@dataclass(frozen=True)
class PaydayEffect:
    wage_multiplier: float = 1.0
    base_wage: int = 0
    citizens: int = DEFAULT_CITIZENS

    def apply(self, context: Mapping[str, Any]) -> EffectResult:
        wage = int(self.base_wage * self.wage_multiplier)
        return EffectResult(
            success=True,
            changes={
                "gold_distributed": int(self.base_wage * self.wage_multiplier * self.citizens),
                "citizens_paid": self.citizens,
                "wage_per_citizen": wage,
            },
        )


@dataclass(frozen=True)
class MarketCrashEffect:
    price_reduction: float # fraction, 0.3 = prices drop 30%

    def apply(self, context: Mapping[str, Any]) -> EffectResult:
        return EffectResult(
            success=True,
            changes={
                "prices_reduced": True,
                "reduction_percent": self.price_reduction * 100,
            },
        )


@dataclass(frozen=True)
class MarketBoostEffect:
    price_multiplier: float
    duration_days: int = 0

    def apply(self, context: Mapping[str, Any]) -> EffectResult:
        return EffectResult(
            success=True,
            changes={
                "prices_boosted": True,
                "boost_percent": (self.price_multiplier - 1) * 100,
                "duration_days": self.duration_days,
            },
        )


@dataclass(frozen=True)
class ReputationEffect:
    amount: int

    def apply(self, context: Mapping[str, Any]) -> EffectResult:
        return EffectResult(success=True, changes={"reputation_change": self.amount})


@dataclass(frozen=True)
class UnlockFeatureEffect:
    feature: FeatureId

    def apply(self, context: Mapping[str, Any]) -> EffectResult:
        return EffectResult(success=True, changes={"feature_unlocked": self.feature})


@dataclass(frozen=True)
class ItemSpawnEffect:
    item_ids: Sequence[ItemId] = ()
    quantities: Sequence[int] = ()

    def apply(self, context: Mapping[str, Any]) -> EffectResult:
        # Items without a matching quantity are dropped
        items = dict(zip(self.item_ids, self.quantities))
        return EffectResult(success=True, changes={"items_spawned": items})


@dataclass(frozen=True)
class QuestStartEffect:
    quest_id: QuestId
    quest_name: str = ""
    objectives: Sequence[str] = ()
    time_limit_days: int = 0
    reward_gold: int = 0

    def apply(self, context: Mapping[str, Any]) -> EffectResult:
        return EffectResult(
            success=True,
            changes={
                "quest_started": self.quest_id,
                "quest_name": self.quest_name,
                "objectives": list(self.objectives),
                "time_limit": self.time_limit_days,
                "reward_gold": self.reward_gold,
            },
        )


@dataclass(frozen=True)
class WeatherEffect:
    weather: str # "sunny", "rainy", "stormy", "snowy"
    duration_days: int = 1

    def apply(self, context: Mapping[str, Any]) -> EffectResult:
        return EffectResult(
            success=True,
            changes={"weather_changed": self.weather, "duration_days": self.duration_days},
        )


@dataclass(frozen=True)
class TaxEffect:
    tax_rate: float

    def apply(self, context: Mapping[str, Any]) -> EffectResult:
        return EffectResult(
            success=True,
            changes={"tax_applied": True, "tax_rate": self.tax_rate * 100},
        )


@dataclass(frozen=True)
class CompetitorEffect:
    competitor_id: str
    competitor_name: str = ""
    strength: float = 0.5 # 0.0 to 1.0

    def apply(self, context: Mapping[str, Any]) -> EffectResult:
        return EffectResult(
            success=True,
            changes={
                "competitor_added": self.competitor_id,
                "competitor_name": self.competitor_name,
                "strength": self.strength,
            },
        )


Effect = Union[
    PaydayEffect,
    MarketCrashEffect,
    MarketBoostEffect,
    ReputationEffect,
    UnlockFeatureEffect,
    ItemSpawnEffect,
    QuestStartEffect,
    WeatherEffect,
    TaxEffect,
    CompetitorEffect,
]
