"""
Confirm questions: when to insert one, which type, and what to ask.

Soft confirms ask a derived tag aimed at the current top candidate. Hard
confirms ask an exact structural fact of the top candidate (title initial,
then author), each kind at most once per session.
"""

import logging
from typing import Collection, Dict, List, Optional, Tuple

from ...models.item import Item
from ...models.question import HARD_CONFIRM_ORDER, HardConfirm, HardConfirmType, SoftConfirm
from ...utils.randomness import RandomSource
from ...utils.titles import normalize_title_initial
from .explore import AttributeCandidate, coverage_of

logger = logging.getLogger(__name__)

SOFT = "SOFT"
HARD = "HARD"


def should_insert_confirm(
    q_index: int,
    confidence: float,
    effective: float,
    forced_indices: Collection[int],
    band: Tuple[float, float],
    effective_threshold: float,
) -> bool:
    """True on a forced index, when confidence is in band (inclusive), or when few effective candidates remain."""
    if q_index in forced_indices:
        return True
    if band[0] <= confidence <= band[1]:
        return True
    return effective <= effective_threshold


def select_confirm_type(
    confidence: float,
    has_soft_data: bool,
    soft_min: float,
    hard_min: float,
    rng: RandomSource,
) -> str:
    """
    HARD when confidence >= hard_min; SOFT when soft data exists and
    confidence >= soft_min; otherwise a 50/50 split when soft data exists,
    else HARD.
    """
    if confidence >= hard_min:
        return HARD
    if has_soft_data and confidence >= soft_min:
        return SOFT
    if has_soft_data:
        return SOFT if rng.random() < 0.5 else HARD
    return HARD


def next_hard_confirm_type(used: Collection[HardConfirmType]) -> Optional[HardConfirmType]:
    """First kind in TITLE_INITIAL -> AUTHOR order not yet used; None when exhausted."""
    for confirm_type in HARD_CONFIRM_ORDER:
        if confirm_type not in used:
            return confirm_type
    return None


def hard_confirm_value(item: Item, confirm_type: HardConfirmType) -> Optional[str]:
    """Value to confirm for item, or None when the item has nothing usable."""
    if confirm_type == HardConfirmType.TITLE_INITIAL:
        initial = normalize_title_initial(item.title)
        return None if initial == "?" else initial
    author = item.author.strip()
    return author or None


def build_hard_confirm(
    top_item: Optional[Item],
    used: Collection[HardConfirmType],
) -> Optional[HardConfirm]:
    """
    Hard confirm about top_item using the next unused kind that has a value.

    Returns None when there is no top item or every remaining kind is
    exhausted or unusable for it.
    """
    if top_item is None:
        return None
    remaining = [t for t in HARD_CONFIRM_ORDER if t not in used]
    for confirm_type in remaining:
        value = hard_confirm_value(top_item, confirm_type)
        if value is None:
            logger.debug(
                "[confirm] HARD_VALUE_MISSING item=%s type=%s", top_item.id, confirm_type.value
            )
            continue
        return HardConfirm(confirm_type=confirm_type, value=value)
    return None


def _nearest_half(
    candidates: List[AttributeCandidate],
    probs: Dict[str, float],
) -> Optional[AttributeCandidate]:
    scored = [
        (round(abs(coverage_of(c.holders, probs) - 0.5), 12), c.key, c)
        for c in candidates
    ]
    if not scored:
        return None
    return min(scored, key=lambda s: (s[0], s[1]))[2]


def select_soft_confirm(
    candidates: List[AttributeCandidate],
    probs: Dict[str, float],
    top_item_id: Optional[str],
    band: Optional[Tuple[float, float]],
) -> Optional[SoftConfirm]:
    """
    Pick a derived tag to confirm.

    Prefers tags the top candidate carries, then any tag; within each group
    only coverage inside band counts, nearest 0.5 wins, ties on key.
    """
    def in_band(c: AttributeCandidate) -> bool:
        if band is None:
            return True
        return band[0] <= coverage_of(c.holders, probs) <= band[1]

    banded = [c for c in candidates if in_band(c)]
    on_top = [c for c in banded if top_item_id is not None and top_item_id in c.holders]
    picked = _nearest_half(on_top, probs) or _nearest_half(banded, probs)
    if picked is None:
        return None
    logger.info(
        "[confirm] SOFT_SELECTED tag=%s coverage=%.4f targets_top=%s",
        picked.key, coverage_of(picked.holders, probs), picked in on_top,
    )
    return SoftConfirm(tag_key=picked.key)
