"""
Entropy helpers: Shannon entropy in bits and Simpson concentration.
"""

from typing import Sequence

import numpy as np


def entropy_bits(probs: Sequence[float]) -> float:
    """Shannon entropy in bits; zero-probability entries contribute nothing."""
    p = np.asarray(probs, dtype=float)
    p = p[p > 0]
    if p.size == 0:
        return 0.0
    return float(-(p * np.log2(p)).sum())


def inverse_simpson(probs: Sequence[float]) -> float:
    """1 / sum(p^2): the number of equally likely items with the same concentration."""
    p = np.asarray(probs, dtype=float)
    sum_sq = float((p * p).sum())
    if sum_sq <= 0:
        return 0.0
    return 1.0 / sum_sq
