"""
Stochastic firing of pooled (non-calendar) events.

All cooldowns and recency measures run on the simulated day counter fed in
through update_game_state(), so pausing or fast-forwarding the game keeps the
frequency ledger in step with the calendar. Only adjust_frequency() is
throttled on wall-clock time, because it reacts to the player rather than to
the game world.
"""
from __future__ import annotations
import copy
import logging
import random
import threading
import time
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Tuple

from ..core.ids import EventId
from .model import GamePhase, Rarity

logger = logging.getLogger(__name__)


@dataclass
class FrequencyConfig:
    # Base frequencies, expressed as expected occurrences per 100 days
    base_common_frequency: float = 3.0
    base_uncommon_frequency: float = 1.5
    base_rare_frequency: float = 0.5
    base_epic_frequency: float = 0.2
    base_legendary_frequency: float = 0.05

    # Modifiers
    player_level_multiplier: float = 0.05 # +5% per player level
    day_progress_multiplier: float = 0.02 # +2% per elapsed day
    recent_event_penalty: float = 0.3 # probability floor right after an occurrence
    variety_bonus: float = 1.2
    recent_window_days: float = 7.0
    variety_window_days: float = 3.0
    probability_cap: float = 0.5

    # Cooldowns, in simulated days
    min_cooldown_common: int = 0
    min_cooldown_uncommon: int = 1
    min_cooldown_rare: int = 3
    min_cooldown_epic: int = 7
    min_cooldown_legendary: int = 14

    phase_multipliers: Dict[GamePhase, float] = field(default_factory=lambda: {
        GamePhase.EARLY: 0.8,
        GamePhase.MID: 1.0,
        GamePhase.LATE: 1.2,
        GamePhase.END: 1.5,
    })

    # Clustering
    clustering_enabled: bool = True
    cluster_probability: float = 0.15
    max_cluster_size: int = 3

    # Engagement tuning
    adjustment_interval_s: float = 3600.0
    common_frequency_band: Tuple[float, float] = (1.0, 5.0)
    uncommon_frequency_band: Tuple[float, float] = (0.5, 2.5)

    def base_frequency(self, rarity: Rarity) -> float:
        return {
            Rarity.COMMON: self.base_common_frequency,
            Rarity.UNCOMMON: self.base_uncommon_frequency,
            Rarity.RARE: self.base_rare_frequency,
            Rarity.EPIC: self.base_epic_frequency,
            Rarity.LEGENDARY: self.base_legendary_frequency,
        }[Rarity(rarity)]

    def cooldown_days(self, rarity: Rarity) -> int:
        return {
            Rarity.COMMON: self.min_cooldown_common,
            Rarity.UNCOMMON: self.min_cooldown_uncommon,
            Rarity.RARE: self.min_cooldown_rare,
            Rarity.EPIC: self.min_cooldown_epic,
            Rarity.LEGENDARY: self.min_cooldown_legendary,
        }[Rarity(rarity)]


@dataclass
class EventFrequencyData:
    event_id: EventId
    rarity: Rarity
    last_occurred: float = 0.0 # simulated day
    occurrence_count: int = 0
    average_interval: float = 0.0 # days, exponential moving average
    next_eligible: float = 0.0


@dataclass
class EventSuggestion:
    event_id: EventId
    weight: float
    probability: float
    rarity: Rarity


@dataclass
class EventFrequencyStats:
    total_events: int = 0
    total_occurrences: int = 0
    events_by_rarity: Dict[Rarity, int] = field(default_factory=dict)
    average_intervals: Dict[Rarity, float] = field(default_factory=dict)


INTERVAL_SMOOTHING = 0.3


class FrequencyEngine:
    def __init__(
        self,
        config: Optional[FrequencyConfig] = None,
        rng: Optional[random.Random] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._config = copy.deepcopy(config) if config is not None else FrequencyConfig()
        self._rng = rng if rng is not None else random.Random()
        self._clock = clock
        self._lock = threading.RLock()
        self._history: Dict[EventId, EventFrequencyData] = {}
        self._phase = GamePhase.EARLY
        self._player_level = 1
        self._day = 0
        self._last_adjustment: Optional[float] = None

    # --- State ---

    @property
    def config(self) -> FrequencyConfig:
        with self._lock:
            return copy.deepcopy(self._config)

    def set_config(self, config: FrequencyConfig):
        with self._lock:
            self._config = copy.deepcopy(config)

    @property
    def day(self) -> int:
        with self._lock:
            return self._day

    def update_game_state(self, phase: GamePhase, player_level: int, day_count: int):
        with self._lock:
            self._phase = GamePhase(phase)
            self._player_level = player_level
            self._day = day_count

    def history(self, event_id: str) -> Optional[EventFrequencyData]:
        with self._lock:
            data = self._history.get(EventId(event_id))
            return copy.copy(data) if data is not None else None

    def reset_event_history(self):
        """Clears the ledger and game state for a new game."""
        with self._lock:
            self._history = {}
            self._day = 0
            self._player_level = 1
            self._phase = GamePhase.EARLY
        logger.info("Event frequency history reset")

    # --- Triggering ---

    def should_trigger_event(self, event_id: str, rarity: Rarity) -> bool:
        with self._lock:
            if not self._is_eligible(EventId(event_id)):
                return False
            probability = self._probability(EventId(event_id), rarity)
            roll = self._rng.random()
            if roll >= probability:
                return False
            self._record(EventId(event_id), rarity)
        logger.debug("Pooled event '%s' fired (p=%.4f, roll=%.4f)", event_id, probability, roll)
        return True

    def record_occurrence(self, event_id: str, rarity: Rarity):
        """Books an occurrence that happened outside should_trigger_event."""
        with self._lock:
            self._record(EventId(event_id), rarity)

    def is_eligible(self, event_id: str) -> bool:
        with self._lock:
            return self._is_eligible(EventId(event_id))

    def event_probability(self, event_id: str, rarity: Rarity) -> float:
        with self._lock:
            return self._probability(EventId(event_id), rarity)

    def base_frequency(self, rarity: Rarity) -> float:
        """Per-day probability before any multipliers."""
        with self._lock:
            return self._config.base_frequency(rarity) / 100.0

    def cooldown_days(self, rarity: Rarity) -> int:
        with self._lock:
            return self._config.cooldown_days(rarity)

    def _is_eligible(self, event_id: EventId) -> bool:
        data = self._history.get(event_id)
        if data is None:
            return True
        return self._day >= data.next_eligible

    def _probability(self, event_id: EventId, rarity: Rarity) -> float:
        config = self._config
        base = config.base_frequency(rarity) / 100.0
        phase = config.phase_multipliers.get(self._phase, 1.0)
        level = 1.0 + self._player_level * config.player_level_multiplier
        progress = 1.0 + self._day * config.day_progress_multiplier
        probability = base * phase * level * progress * self._recent_penalty(event_id) * self._variety_bonus()
        return min(probability, config.probability_cap)

    def _recent_penalty(self, event_id: EventId) -> float:
        data = self._history.get(event_id)
        if data is None:
            return 1.0
        window = self._config.recent_window_days
        days_since = self._day - data.last_occurred
        if days_since < window:
            floor = self._config.recent_event_penalty
            return floor + (1.0 - floor) * (max(days_since, 0) / window)
        return 1.0

    def _variety_bonus(self) -> float:
        window = self._config.variety_window_days
        distinct_recent = sum(
            1 for data in self._history.values()
            if self._day - data.last_occurred < window
        )
        if distinct_recent >= 5:
            return self._config.variety_bonus
        if distinct_recent >= 3:
            return 1.0 + (self._config.variety_bonus - 1.0) * 0.5
        return 1.0

    def _record(self, event_id: EventId, rarity: Rarity):
        now = self._day
        data = self._history.get(event_id)
        if data is None:
            data = EventFrequencyData(event_id=event_id, rarity=Rarity(rarity))
            self._history[event_id] = data

        if data.occurrence_count > 0:
            interval = now - data.last_occurred
            if data.average_interval == 0:
                data.average_interval = interval
            else:
                data.average_interval = INTERVAL_SMOOTHING * interval + (1 - INTERVAL_SMOOTHING) * data.average_interval

        data.rarity = Rarity(rarity)
        data.last_occurred = now
        data.occurrence_count += 1
        data.next_eligible = now + self._config.cooldown_days(rarity)

    # --- Tuning and suggestions ---

    def adjust_frequency(self, engagement_score: float) -> bool:
        """
        Nudges the common and uncommon base frequencies toward the player's
        engagement (0.0 bored .. 1.0 hooked). Returns False when throttled.
        """
        with self._lock:
            now = self._clock()
            if self._last_adjustment is not None and now - self._last_adjustment < self._config.adjustment_interval_s:
                return False

            config = self._config
            if engagement_score < 0.3:
                factor = 0.9
            elif engagement_score > 0.7:
                factor = 1.1
            else:
                factor = 1.0
            common_lo, common_hi = config.common_frequency_band
            uncommon_lo, uncommon_hi = config.uncommon_frequency_band
            config.base_common_frequency = max(common_lo, min(common_hi, config.base_common_frequency * factor))
            config.base_uncommon_frequency = max(uncommon_lo, min(uncommon_hi, config.base_uncommon_frequency * factor))
            self._last_adjustment = now
        logger.info("Adjusted frequencies for engagement %.2f (x%.1f)", engagement_score, factor)
        return True

    def should_cluster_events(self) -> Tuple[bool, int]:
        """Rolls for a burst; returns (cluster, size) with size in 1..max_cluster_size."""
        with self._lock:
            if not self._config.clustering_enabled or self._config.max_cluster_size < 1:
                return False, 0
            if self._rng.random() < self._config.cluster_probability:
                return True, self._rng.randint(1, self._config.max_cluster_size)
            return False, 0

    def get_next_events(self, count: int) -> List[EventSuggestion]:
        with self._lock:
            suggestions = [
                EventSuggestion(
                    event_id=event_id,
                    weight=self._weight(data),
                    probability=self._probability(event_id, data.rarity),
                    rarity=data.rarity,
                )
                for event_id, data in self._history.items()
                if self._is_eligible(event_id)
            ]
        suggestions.sort(key=lambda s: s.weight, reverse=True)
        return suggestions[:max(count, 0)]

    def _weight(self, data: EventFrequencyData) -> float:
        rarity_weight = 1.0 / (int(data.rarity) + 1.0)
        days_since = self._day - data.last_occurred
        time_weight = min(days_since / 7.0, 2.0)
        frequency_weight = 1.0 / max(data.occurrence_count, 1)
        return rarity_weight * time_weight * frequency_weight

    def get_event_stats(self) -> EventFrequencyStats:
        stats = EventFrequencyStats()
        intervals: Dict[Rarity, List[float]] = {}
        with self._lock:
            for data in self._history.values():
                stats.total_events += 1
                stats.total_occurrences += data.occurrence_count
                stats.events_by_rarity[data.rarity] = stats.events_by_rarity.get(data.rarity, 0) + 1
                if data.average_interval > 0:
                    intervals.setdefault(data.rarity, []).append(data.average_interval)
        for rarity, values in intervals.items():
            stats.average_intervals[rarity] = sum(values) / len(values)
        return stats
