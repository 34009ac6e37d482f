"""
Exploration question scoring.

Two interchangeable strategies rank attribute candidates (plain tags and
summary groupings):
- coverage: probability mass carrying the attribute, nearest 0.5 wins
  (or highest wins in prefer-high mode)
- information gain: lowest expected posterior entropy under a fixed
  yes/no oracle wins

Ties break on candidate key ascending. Both return None when nothing lies in
the optional coverage band.
"""

import logging
from dataclasses import dataclass
from typing import Dict, FrozenSet, List, Optional, Tuple

import numpy as np

from ...models.config import EngineConfig
from ...models.question import ExploreTag
from ...utils.entropy import entropy_bits

logger = logging.getLogger(__name__)

# Scores closer than this are treated as tied so ordering falls to the key.
_SCORE_DECIMALS = 12


@dataclass(frozen=True)
class AttributeCandidate:
    """An askable attribute and the candidate items that possess it."""

    key: str
    question: ExploreTag
    holders: FrozenSet[str]
    category: Optional[str] = None


def coverage_of(holders: FrozenSet[str], probs: Dict[str, float]) -> float:
    """Sum of probability over items possessing the attribute."""
    return float(sum(probs.get(item_id, 0.0) for item_id in holders))


def _in_band(value: float, band: Optional[Tuple[float, float]]) -> bool:
    if band is None:
        return True
    return band[0] <= value <= band[1]


def passes_coverage_gate(holder_count: int, total: int, config: EngineConfig) -> bool:
    """
    Count-based data-quality gate on how many candidates carry an attribute.

    RATIO compares holder_count/total to min_coverage_ratio, WORKS compares
    holder_count to min_coverage_items, AUTO uses the stricter of the two
    (min_coverage_items clamped to total). max_coverage_ratio applies to all.
    """
    if total <= 0:
        return False
    ratio = holder_count / total
    if ratio > config.max_coverage_ratio:
        return False
    if config.coverage_gate_mode == "RATIO":
        return ratio >= config.min_coverage_ratio
    if config.coverage_gate_mode == "WORKS":
        return holder_count >= config.min_coverage_items
    min_ratio = max(
        config.min_coverage_ratio,
        min(config.min_coverage_items, total) / max(total, 1),
    )
    return ratio >= min_ratio


def select_by_coverage(
    candidates: List[AttributeCandidate],
    probs: Dict[str, float],
    band: Optional[Tuple[float, float]] = None,
    prefer_high: bool = False,
) -> Optional[Tuple[AttributeCandidate, float]]:
    """Return (candidate, coverage) nearest 0.5, or highest when prefer_high; None if none in band."""
    best = None
    best_key = None
    for candidate in candidates:
        coverage = coverage_of(candidate.holders, probs)
        if not _in_band(coverage, band):
            continue
        score = -coverage if prefer_high else abs(coverage - 0.5)
        sort_key = (round(score, _SCORE_DECIMALS), candidate.key)
        if best_key is None or sort_key < best_key:
            best, best_key = (candidate, coverage), sort_key
    return best


def expected_entropy(
    holders: FrozenSet[str],
    probs: Dict[str, float],
    likelihoods: Tuple[float, float] = (0.9, 0.1),
) -> float:
    """
    E[H'] = P(yes) * H(posterior | yes) + P(no) * H(posterior | no), in bits.

    likelihoods is (P(yes | has attribute), P(yes | lacks attribute)).
    """
    if not probs:
        return 0.0
    ids = list(probs)
    p = np.array([probs[i] for i in ids], dtype=float)
    has = np.array([i in holders for i in ids], dtype=bool)
    l_yes = np.where(has, likelihoods[0], likelihoods[1])
    joint_yes = p * l_yes
    joint_no = p * (1.0 - l_yes)
    p_yes = float(joint_yes.sum())
    p_no = float(joint_no.sum())
    h_yes = entropy_bits(joint_yes / p_yes) if p_yes > 0 else 0.0
    h_no = entropy_bits(joint_no / p_no) if p_no > 0 else 0.0
    return p_yes * h_yes + p_no * h_no


def select_by_information_gain(
    candidates: List[AttributeCandidate],
    probs: Dict[str, float],
    band: Optional[Tuple[float, float]] = None,
    likelihoods: Tuple[float, float] = (0.9, 0.1),
) -> Optional[Tuple[AttributeCandidate, float]]:
    """Return (candidate, expected entropy) minimizing expected entropy; None if none in band."""
    best = None
    best_key = None
    for candidate in candidates:
        if not _in_band(coverage_of(candidate.holders, probs), band):
            continue
        score = expected_entropy(candidate.holders, probs, likelihoods)
        sort_key = (round(score, _SCORE_DECIMALS), candidate.key)
        if best_key is None or sort_key < best_key:
            best, best_key = (candidate, score), sort_key
    return best


def select_explore(
    candidates: List[AttributeCandidate],
    probs: Dict[str, float],
    config: EngineConfig,
    band: Optional[Tuple[float, float]],
    prefer_high: bool = False,
) -> Optional[AttributeCandidate]:
    """Run the configured strategy (coverage when prefer_high) and log the pick."""
    if prefer_high or config.explore_strategy == "coverage":
        picked = select_by_coverage(candidates, probs, band, prefer_high=prefer_high)
        if picked is not None:
            logger.info(
                "[explore] SELECTED_BY_COVERAGE tag=%s coverage=%.4f prefer_high=%s",
                picked[0].key, picked[1], prefer_high,
            )
    else:
        picked = select_by_information_gain(
            candidates, probs, band, config.information_gain_likelihoods
        )
        if picked is not None:
            logger.info(
                "[explore] SELECTED_BY_IG tag=%s expected_entropy=%.4f coverage=%.4f",
                picked[0].key, picked[1], coverage_of(picked[0].holders, probs),
            )
    if picked is None:
        logger.info("[explore] NO_CANDIDATE_IN_BAND band=%s candidates=%s", band, len(candidates))
        return None
    return picked[0]
