"""
Scorer — turns weights into probabilities and summary statistics.

Contains:
- normalize: weights -> probabilities (raises on a zero sum)
- rank_items / top_candidate: (probability desc, id asc) ordering
- confidence, effective_candidates, effective_confirm_threshold
"""

import math
from typing import Collection, Dict, List, Optional, Tuple

import numpy as np

from ..errors import DegenerateWeightsError
from ..utils.entropy import inverse_simpson


def normalize(weights: Dict[str, float]) -> Dict[str, float]:
    """p_i = w_i / sum(w). Raises DegenerateWeightsError if the sum is not positive."""
    if not weights:
        raise DegenerateWeightsError("Cannot normalize an empty weight vector")
    ids = list(weights)
    values = np.array([weights[i] for i in ids], dtype=float)
    total = values.sum()
    if not np.isfinite(total) or total <= 0:
        raise DegenerateWeightsError(f"Weights sum to {total}; cannot normalize")
    probs = values / total
    return {item_id: float(p) for item_id, p in zip(ids, probs)}


def rank_items(probs: Dict[str, float]) -> List[Tuple[str, float]]:
    """(item_id, probability) pairs ordered by probability desc, then id asc."""
    return sorted(probs.items(), key=lambda kv: (-kv[1], kv[0]))


def confidence(probs: Dict[str, float]) -> float:
    """Probability of the top-ranked item; 0 for an empty vector."""
    if not probs:
        return 0.0
    return rank_items(probs)[0][1]


def top_candidate(
    probs: Dict[str, float],
    excluded: Collection[str] = (),
) -> Optional[str]:
    """Best-ranked item id not in excluded, or None."""
    for item_id, _ in rank_items(probs):
        if item_id not in excluded:
            return item_id
    return None


def effective_candidates(probs: Dict[str, float]) -> float:
    """Inverse Simpson index 1 / sum(p^2); 0 for an empty vector."""
    if not probs:
        return 0.0
    return inverse_simpson(list(probs.values()))


def effective_confirm_threshold(
    total_candidates: int,
    minimum: int,
    maximum: int,
    divisor: int,
) -> int:
    """Effective-candidates trigger scaled to the pool: min(max, max(min, round(n / divisor)))."""
    # Half rounds up.
    scaled = math.floor(total_candidates / divisor + 0.5)
    return min(maximum, max(minimum, scaled))
