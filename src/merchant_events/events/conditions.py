from __future__ import annotations
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Dict, List, Sequence, Union

from ..core.calendar import Season
from ..core.ids import ItemId, QuestId

# Context keys. The caller supplies only the facts its conditions read;
# a missing or mistyped fact makes the condition false.
PLAYER_RANK = "player_rank"
PLAYER_GOLD = "player_gold"
PLAYER_REPUTATION = "player_reputation"
CURRENT_SEASON = "current_season"
COMPLETED_QUESTS = "completed_quests"
PLAYER_INVENTORY = "player_inventory"
RANDOM_VALUE = "random_value"
DAYS_PASSED = "days_passed"
SHOP_LEVEL = "shop_level"

RANK_ORDER: Dict[str, int] = {
    "Apprentice": 1,
    "Journeyman": 2,
    "Expert": 3,
    "Master": 4,
}


def _int_fact(context: Mapping, key: str):
    value = context.get(key)
    if isinstance(value, bool) or not isinstance(value, int):
        return None
    return value


def _number_fact(context: Mapping, key: str):
    value = context.get(key)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return value


@dataclass(frozen=True)
class RankCondition:
    min_rank: str

    def check(self, context: Mapping) -> bool:
        player_rank = context.get(PLAYER_RANK)
        if not isinstance(player_rank, str):
            return False
        if player_rank not in RANK_ORDER or self.min_rank not in RANK_ORDER:
            return False
        return RANK_ORDER[player_rank] >= RANK_ORDER[self.min_rank]


@dataclass(frozen=True)
class GoldCondition:
    min_gold: int

    def check(self, context: Mapping) -> bool:
        gold = _int_fact(context, PLAYER_GOLD)
        return gold is not None and gold >= self.min_gold


@dataclass(frozen=True)
class ReputationCondition:
    min_reputation: float

    def check(self, context: Mapping) -> bool:
        reputation = _number_fact(context, PLAYER_REPUTATION)
        return reputation is not None and reputation >= self.min_reputation


@dataclass(frozen=True)
class SeasonCondition:
    season: Season

    def check(self, context: Mapping) -> bool:
        current = _int_fact(context, CURRENT_SEASON) # Season is an IntEnum
        return current is not None and current == int(self.season)


@dataclass(frozen=True)
class QuestCondition:
    quest_id: QuestId

    def check(self, context: Mapping) -> bool:
        completed = context.get(COMPLETED_QUESTS)
        if isinstance(completed, (str, bytes)) or not isinstance(completed, (list, tuple, set, frozenset)):
            return False
        return self.quest_id in completed


@dataclass(frozen=True)
class ItemCondition:
    required: Mapping[ItemId, int] = field(default_factory=dict) # min quantity per item

    def check(self, context: Mapping) -> bool:
        inventory = context.get(PLAYER_INVENTORY)
        if not isinstance(inventory, Mapping):
            return False
        for item_id, required_qty in self.required.items():
            held = inventory.get(item_id)
            if isinstance(held, bool) or not isinstance(held, int) or held < required_qty:
                return False
        return True


@dataclass(frozen=True)
class RandomCondition:
    probability: float

    def check(self, context: Mapping) -> bool:
        draw = _number_fact(context, RANDOM_VALUE)
        return draw is not None and draw < self.probability


@dataclass(frozen=True)
class TimeCondition:
    min_days_passed: int

    def check(self, context: Mapping) -> bool:
        days = _int_fact(context, DAYS_PASSED)
        return days is not None and days >= self.min_days_passed


@dataclass(frozen=True)
class ShopLevelCondition:
    min_level: int

    def check(self, context: Mapping) -> bool:
        level = _int_fact(context, SHOP_LEVEL)
        return level is not None and level >= self.min_level


@dataclass(frozen=True)
class CompoundCondition:
    children: Sequence["Condition"] = ()
    require_all: bool = True # False = OR

    def check(self, context: Mapping) -> bool:
        if self.require_all:
            return all(child.check(context) for child in self.children)
        return any(child.check(context) for child in self.children)


Condition = Union[
    RankCondition,
    GoldCondition,
    ReputationCondition,
    SeasonCondition,
    QuestCondition,
    ItemCondition,
    RandomCondition,
    TimeCondition,
    ShopLevelCondition,
    CompoundCondition,
]


def check_all(conditions: List[Condition], context: Mapping[str, Any]) -> bool:
    """Short-circuiting AND over the conditions; an empty list passes."""
    for condition in conditions:
        if not condition.check(context):
            return False
    return True
