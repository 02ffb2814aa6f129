import random
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

from .calendar import CalendarTime
from .rng import POOL_STREAM, get_seeded_rng
from ..events.dispatcher import EventDispatcher
from ..events.frequency import FrequencyEngine, FrequencyConfig
from ..events.load import load_frequency_config
from ..events.model import GamePhase
from ..events.registry import EventRegistry


@dataclass
class EngineState:
    seed: int
    now: CalendarTime = field(default_factory=CalendarTime)
    # Player/economy facts handed to conditions every tick (rank, gold, ...)
    facts: Dict[str, Any] = field(default_factory=dict)
    phase: GamePhase = GamePhase.EARLY
    player_level: int = 1
    catalog_path: Optional[Path] = None
    config_path: Optional[Path] = None

    rng: random.Random = field(init=False)
    registry: EventRegistry = field(default_factory=EventRegistry)
    dispatcher: EventDispatcher = field(init=False)
    frequency: FrequencyEngine = field(init=False)

    def __post_init__(self):
        self.rng = get_seeded_rng(self.seed)
        config = load_frequency_config(self.config_path) if self.config_path else FrequencyConfig()
        self.frequency = FrequencyEngine(config=config, rng=get_seeded_rng(self.seed, POOL_STREAM))
        self.dispatcher = EventDispatcher(self.registry)
        if self.catalog_path:
            self.registry.load_from_yaml(self.catalog_path)

    def new_game(self, start: Optional[CalendarTime] = None):
        """Rewinds the clock and clears the frequency ledger; the catalog stays."""
        self.now = start or CalendarTime()
        self.rng = get_seeded_rng(self.seed)
        self.frequency.reset_event_history()
