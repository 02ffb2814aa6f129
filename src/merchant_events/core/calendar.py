from __future__ import annotations
from dataclasses import dataclass
from enum import IntEnum


class Season(IntEnum):
    SPRING = 0
    SUMMER = 1
    AUTUMN = 2
    WINTER = 3

    @property
    def label(self) -> str:
        return self.name.capitalize()

    @classmethod
    def parse(cls, value) -> "Season":
        """Accepts a Season, its index, or a case-insensitive name."""
        if isinstance(value, Season):
            return value
        if isinstance(value, str):
            try:
                return cls[value.strip().upper()]
            except KeyError:
                raise ValueError(f"Unknown season '{value}'.")
        if isinstance(value, int) and not isinstance(value, bool):
            return cls(value)
        raise ValueError(f"Cannot interpret {value!r} as a season.")


DAYS_PER_SEASON = 30
DAYS_PER_YEAR = DAYS_PER_SEASON * len(Season)


@dataclass(frozen=True, order=True)
class CalendarTime:
    year: int = 1
    season: Season = Season.SPRING
    day: int = 1 # 1-based day within the season

    def next_day(self) -> "CalendarTime":
        day = self.day + 1
        season = self.season
        year = self.year
        if day > DAYS_PER_SEASON:
            day = 1
            if season == Season.WINTER:
                season = Season.SPRING
                year += 1
            else:
                season = Season(season + 1)
        return CalendarTime(year=year, season=season, day=day)

    def plus_days(self, days: int) -> "CalendarTime":
        if days < 0:
            raise ValueError("plus_days only walks forward in time.")
        return CalendarTime.from_ordinal(self.ordinal() + days)

    def ordinal(self) -> int:
        """Absolute simulated day index; year 1, Spring, day 1 is day 0."""
        return (self.year - 1) * DAYS_PER_YEAR + int(self.season) * DAYS_PER_SEASON + (self.day - 1)

    @classmethod
    def from_ordinal(cls, ordinal: int) -> "CalendarTime":
        year, rest = divmod(ordinal, DAYS_PER_YEAR)
        season, day = divmod(rest, DAYS_PER_SEASON)
        return cls(year=year + 1, season=Season(season), day=day + 1)

    @classmethod
    def parse(cls, text: str) -> "CalendarTime":
        """Parses 'year:season:day', e.g. '1:autumn:12'."""
        parts = text.split(":")
        if len(parts) != 3:
            raise ValueError(f"Expected 'year:season:day', got '{text}'.")
        year, season, day = parts
        time = cls(year=int(year), season=Season.parse(season), day=int(day))
        if not 1 <= time.day <= DAYS_PER_SEASON:
            raise ValueError(f"Day must be between 1 and {DAYS_PER_SEASON}: {text}")
        return time

    def __str__(self) -> str:
        return f"Year {self.year}, {self.season.label} {self.day}"
