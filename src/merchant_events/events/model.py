from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum, IntEnum
from typing import Any, Dict, List, Optional, TYPE_CHECKING

from ..core.calendar import Season
from ..core.ids import EventId
from .schedule import SeasonalSchedule

if TYPE_CHECKING:
    from .conditions import Condition
    from .effects import Effect
    from .schedule import Schedule


class EventCategory(Enum):
    REGULAR = "regular"
    SEASONAL = "seasonal"
    MAJOR = "major"
    RANDOM = "random"


class EventPriority(IntEnum):
    LOW = 0
    NORMAL = 1
    HIGH = 2
    URGENT = 3


class Rarity(IntEnum):
    COMMON = 0
    UNCOMMON = 1
    RARE = 2
    EPIC = 3
    LEGENDARY = 4


class GamePhase(IntEnum):
    EARLY = 0
    MID = 1
    LATE = 2
    END = 3


@dataclass
class EventRewards:
    gold: int = 0
    reputation: int = 0
    items: List[str] = field(default_factory=list)
    experience: int = 0


@dataclass
class EventDefinition:
    id: EventId
    name: str
    description: str = ""
    category: EventCategory = EventCategory.REGULAR
    priority: EventPriority = EventPriority.NORMAL
    active: bool = True
    schedule: Optional["Schedule"] = None
    # All conditions must pass (AND) for a scheduled trigger
    conditions: List["Condition"] = field(default_factory=list)
    effects: List["Effect"] = field(default_factory=list)
    rewards: Optional[EventRewards] = None
    follow_up_ids: List[EventId] = field(default_factory=list)
    notification_lead_days: int = 0 # 0 = no advance notice
    rarity: Rarity = Rarity.COMMON # Only consulted for random-pool events


@dataclass
class EffectResult:
    success: bool
    changes: Dict[str, Any] = field(default_factory=dict)
    error: Optional[Exception] = None


@dataclass
class EventTriggerResult:
    success: bool
    event: Optional[EventDefinition] = None
    effects: List[EffectResult] = field(default_factory=list)
    rewards: Optional[EventRewards] = None
    error: Optional[Exception] = None
    # Follow-up results never affect this result's success
    follow_ups: List["EventTriggerResult"] = field(default_factory=list)

    def chain_ids(self) -> List[EventId]:
        """Ids of every event triggered by this call, depth-first, parent first."""
        ids: List[EventId] = []
        if self.event is not None:
            ids.append(self.event.id)
        for follow_up in self.follow_ups:
            ids.extend(follow_up.chain_ids())
        return ids


@dataclass
class EventNotification:
    event_id: EventId
    event_name: str
    days_until: int
    message: str


def new_seasonal_event(event_id: str, name: str, season: Season, day: int) -> EventDefinition:
    """Shorthand for a normal-priority event fixed to a day of a season."""
    return EventDefinition(
        id=EventId(event_id),
        name=name,
        category=EventCategory.SEASONAL,
        priority=EventPriority.NORMAL,
        schedule=SeasonalSchedule(season=season, day_of_season=day),
    )
