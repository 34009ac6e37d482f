"""
Engine configuration — reveal, confirm, weighting, exploration and flow parameters.

EngineConfig defaults are defined here. Callers may pass a dict (e.g. loaded
from a JSON file); from_dict() flattens its sections and merges them with
these defaults. Nothing in the engine hard-codes a threshold.
"""

import json
from pathlib import Path
from typing import Dict, List, Literal, Optional, Tuple, Union

from pydantic import BaseModel, Field, model_validator

_SECTIONS = ("confirm", "algo", "flow", "data_quality", "popularity")


def _default_answer_likelihoods() -> Dict[str, Tuple[float, float]]:
    # (multiplier if item has the attribute, multiplier if it lacks it)
    return {
        "YES": (0.98, 0.02),
        "PROBABLY_YES": (0.7, 0.3),
        "UNKNOWN": (1.0, 1.0),
        "DONT_CARE": (1.0, 1.0),
        "PROBABLY_NO": (0.3, 0.7),
        "NO": (0.02, 0.98),
    }


def _default_answer_strengths() -> Dict[str, float]:
    return {
        "YES": 1.0,
        "PROBABLY_YES": 0.6,
        "UNKNOWN": 0.0,
        "DONT_CARE": 0.0,
        "PROBABLY_NO": -0.6,
        "NO": -1.0,
    }


class EngineConfig(BaseModel):
    """Configuration for the guessing engine."""

    # -------------------------------------------------------------------------
    # Confirm / reveal
    # -------------------------------------------------------------------------

    # Top probability at or above which the engine reveals its guess.
    reveal_threshold: float = 0.85

    # Inclusive confidence band in which a confirm question is inserted.
    confidence_confirm_band: Tuple[float, float] = (0.45, 0.75)

    # Question indices (1-based) that always get a confirm question.
    forced_confirm_indices: List[int] = Field(default_factory=lambda: [6, 10])

    # Confirm type choice: >= hard min asks a hard confirm, >= soft min a soft one.
    soft_confidence_min: float = 0.3
    hard_confidence_min: float = 0.6

    # -------------------------------------------------------------------------
    # Weight initialization
    # weight = (popularity + popularity_epsilon) ** alpha
    # -------------------------------------------------------------------------

    alpha: float = 0.5
    popularity_epsilon: float = 0.5
    # False ignores accumulated play bonus when seeding weights.
    use_play_bonus: bool = True

    # -------------------------------------------------------------------------
    # Answer processing
    # -------------------------------------------------------------------------

    # Derived tags count as present when their confidence is at least this.
    derived_confidence_threshold: float = 0.5

    # Multiplier applied to a wrongly revealed item.
    reveal_penalty: float = 0.1

    # "likelihood": multiply by answer_likelihoods pair.
    # "exponential": multiply by exp(+-beta * strength).
    weight_update_mode: Literal["likelihood", "exponential"] = "likelihood"
    answer_likelihoods: Dict[str, Tuple[float, float]] = Field(
        default_factory=_default_answer_likelihoods
    )
    answer_strengths: Dict[str, float] = Field(default_factory=_default_answer_strengths)
    beta: float = 1.0
    # Summary questions use sign(strength) * summary_strength_scale.
    summary_strength_scale: float = 0.6
    explore_strength_scale: float = 1.0
    soft_confirm_strength_scale: float = 1.0

    # -------------------------------------------------------------------------
    # Exploration
    # -------------------------------------------------------------------------

    explore_strategy: Literal["information_gain", "coverage"] = "information_gain"
    # Oracle likelihood pair (P(yes|has), P(yes|lacks)) for expected entropy.
    information_gain_likelihoods: Tuple[float, float] = (0.9, 0.1)
    # Probability-mass coverage band a tag must fall in. None disables the band.
    explore_coverage_band: Optional[Tuple[float, float]] = (0.05, 0.95)
    # When nothing is in band: hard confirm first, then explore without band.
    explore_band_fallback_enabled: bool = True

    # -------------------------------------------------------------------------
    # Flow
    # -------------------------------------------------------------------------

    max_questions: int = 30
    max_reveal_misses: int = 3
    fail_list_size: int = 5

    # Effective-candidates trigger: min(max, max(min, round(n / divisor))).
    effective_confirm_min: int = 3
    effective_confirm_max: int = 10
    effective_confirm_divisor: int = 20

    # Run of NO answers after which exploration prefers high coverage.
    consecutive_no_for_hit: int = 3

    # Ask a hard confirm right after a wrong reveal.
    hard_confirm_after_reveal_miss: bool = True

    # Tag category -> first question index at which it may be asked.
    category_unlock_index: Dict[str, int] = Field(default_factory=dict)

    # -------------------------------------------------------------------------
    # Data quality (count-based coverage gate)
    # RATIO: items/total >= min_coverage_ratio
    # WORKS: items >= min_coverage_items
    # AUTO:  ratio >= max(min_ratio, min(min_items, total) / total)
    # All modes also require ratio <= max_coverage_ratio.
    # -------------------------------------------------------------------------

    coverage_gate_mode: Literal["RATIO", "WORKS", "AUTO"] = "AUTO"
    min_coverage_ratio: float = 0.0
    min_coverage_items: int = 1
    max_coverage_ratio: float = 1.0

    # -------------------------------------------------------------------------
    # Popularity
    # -------------------------------------------------------------------------

    # Added to the revealed item's popularity after a correct guess.
    play_bonus_on_success: float = 1.0

    @model_validator(mode="after")
    def check_ranges(self):
        lo, hi = self.confidence_confirm_band
        if lo > hi:
            raise ValueError(f"confidence_confirm_band is inverted: {self.confidence_confirm_band}")
        if self.explore_coverage_band is not None:
            lo, hi = self.explore_coverage_band
            if lo > hi:
                raise ValueError(f"explore_coverage_band is inverted: {self.explore_coverage_band}")
        if self.hard_confidence_min < self.soft_confidence_min:
            raise ValueError(
                f"hard_confidence_min ({self.hard_confidence_min}) must be >= "
                f"soft_confidence_min ({self.soft_confidence_min})"
            )
        if self.effective_confirm_max < self.effective_confirm_min:
            raise ValueError("effective_confirm_max must be >= effective_confirm_min")
        if self.effective_confirm_divisor <= 0:
            raise ValueError("effective_confirm_divisor must be positive")
        if not 0.0 < self.reveal_penalty <= 1.0:
            raise ValueError(f"reveal_penalty must be in (0, 1], got {self.reveal_penalty}")
        for grade, pair in self.answer_likelihoods.items():
            if any(v < 0.0 or v > 1.0 for v in pair):
                raise ValueError(f"Likelihoods for {grade} must be in [0, 1], got {pair}")
        if any(v < 0.0 or v > 1.0 for v in self.information_gain_likelihoods):
            raise ValueError("information_gain_likelihoods must be in [0, 1]")
        if self.max_questions < 1:
            raise ValueError("max_questions must be at least 1")
        return self

    @classmethod
    def from_dict(cls, config_dict: Dict) -> "EngineConfig":
        """Create config from dictionary (e.g., loaded from JSON)."""
        flat = {}
        for section in _SECTIONS:
            if section in config_dict:
                flat.update(config_dict[section])
        # Flat keys at the top level win over sectioned ones.
        flat.update({k: v for k, v in config_dict.items() if k not in _SECTIONS})
        allowed = set(cls.model_fields)
        filtered = {k: v for k, v in flat.items() if k in allowed}
        return cls.model_validate(filtered)


DEFAULT_CONFIG = EngineConfig()


def resolve_config(config: Optional["EngineConfig"]) -> "EngineConfig":
    """Return config or DEFAULT_CONFIG when none is provided."""
    return config if config is not None else DEFAULT_CONFIG


def load_config(path: Union[Path, str]) -> EngineConfig:
    """Load an EngineConfig from a JSON file (sectioned or flat)."""
    with open(path) as f:
        return EngineConfig.from_dict(json.load(f))
