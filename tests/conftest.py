import random
from pathlib import Path
from typing import List

import pytest

from merchant_events.events.dispatcher import EventDispatcher
from merchant_events.events.registry import EventRegistry


class FixedRandom(random.Random):
    """random() replays the given draws (cycling); everything else is seeded."""

    def __init__(self, draws, seed: int = 0):
        super().__init__(seed)
        self._draws = list(draws)
        self._index = 0

    def random(self):
        value = self._draws[self._index % len(self._draws)]
        self._index += 1
        return value


@pytest.fixture
def data_path() -> Path:
    return Path(__file__).parent.parent / "data"


@pytest.fixture
def registry() -> EventRegistry:
    return EventRegistry()


@pytest.fixture
def dispatcher(registry) -> EventDispatcher:
    return EventDispatcher(registry)


@pytest.fixture
def notified(dispatcher) -> List[str]:
    """Ids of every event the dispatcher notifies, in notification order."""
    seen: List[str] = []
    dispatcher.subscribe(lambda definition: seen.append(definition.id))
    return seen


@pytest.fixture
def fixed_rng():
    def make(*draws, seed: int = 0) -> FixedRandom:
        return FixedRandom(draws or (0.0,), seed=seed)
    return make
