"""Shared utilities for entropy math, title normalization, and randomness."""

from .entropy import entropy_bits, inverse_simpson
from .randomness import (
    RandomSource,
    ScriptedRandomSource,
    SeededRandomSource,
    SystemRandomSource,
    draw_session_seed,
    question_random_source,
)
from .titles import normalize_title_initial

__all__ = [
    "entropy_bits",
    "inverse_simpson",
    "normalize_title_initial",
    "RandomSource",
    "ScriptedRandomSource",
    "SeededRandomSource",
    "SystemRandomSource",
    "draw_session_seed",
    "question_random_source",
]
