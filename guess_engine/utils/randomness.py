"""
Random sources for the 50/50 confirm split, the only randomness in the engine.

The engine source only draws each session's seed at start. The split itself
reads question_random_source(session_seed, q_index), so a question asked again
after a rollback draws the same value and sessions never share state.

Inject SeededRandomSource or ScriptedRandomSource for reproducible sessions.
"""

import random
from typing import Iterable, List, Optional, Protocol, Union

SESSION_SEED_RANGE = 2 ** 31


class RandomSource(Protocol):
    """Protocol for a uniform [0, 1) source."""

    def random(self) -> float:
        ...


class SystemRandomSource:
    """Unseeded source backed by the random module."""

    def random(self) -> float:
        return random.random()


class SeededRandomSource:
    """Private random.Random with a fixed seed."""

    def __init__(self, seed: Optional[Union[int, str]] = None):
        self._rng = random.Random(seed)

    def random(self) -> float:
        return self._rng.random()


class ScriptedRandomSource:
    """Returns the given values in order, then repeats the last one."""

    def __init__(self, values: Iterable[float]):
        self._values: List[float] = list(values)
        if not self._values:
            raise ValueError("ScriptedRandomSource needs at least one value")
        self._index = 0

    def random(self) -> float:
        value = self._values[min(self._index, len(self._values) - 1)]
        self._index += 1
        return value


def draw_session_seed(source: RandomSource) -> int:
    """Draw a per-session seed from the engine source."""
    return int(source.random() * SESSION_SEED_RANGE)


def question_random_source(session_seed: int, q_index: int) -> SeededRandomSource:
    """Source for the question at q_index; depends only on its arguments."""
    return SeededRandomSource(f"{session_seed}:{q_index}")
