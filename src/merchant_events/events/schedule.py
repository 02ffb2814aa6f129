"""
Calendar schedules for deterministic events.

Every variant answers should_trigger(now) as a pure function of its own fields
and the supplied CalendarTime, so it can be evaluated any number of times per
tick (the upcoming-event scan walks days forward and asks repeatedly).
"""
from __future__ import annotations
from dataclasses import dataclass
from typing import Optional, Union

from ..core.calendar import CalendarTime, Season


@dataclass(frozen=True)
class OneTimeSchedule:
    at: CalendarTime

    def should_trigger(self, now: CalendarTime) -> bool:
        return (now.year, now.season, now.day) == (self.at.year, self.at.season, self.at.day)


@dataclass(frozen=True)
class MonthlySchedule:
    day_of_month: int

    def should_trigger(self, now: CalendarTime) -> bool:
        return now.day == self.day_of_month


@dataclass(frozen=True)
class SeasonalSchedule:
    season: Season
    day_of_season: int

    def should_trigger(self, now: CalendarTime) -> bool:
        return now.season == self.season and now.day == self.day_of_season


@dataclass(frozen=True)
class RandomSchedule:
    probability: float

    def should_trigger(self, now: CalendarTime) -> bool:
        # Pooled events are rolled by the FrequencyEngine, never by the calendar
        return False


Schedule = Union[OneTimeSchedule, MonthlySchedule, SeasonalSchedule, RandomSchedule]


def should_trigger(schedule: Optional[Schedule], now: CalendarTime) -> bool:
    if schedule is None:
        return False
    return schedule.should_trigger(now)
