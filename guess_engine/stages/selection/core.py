"""
Next-question selection: confirm gate, then exploration, then fallbacks.

Order of preference:
1. Right after a reveal miss, a hard confirm about the new top candidate.
2. When the confirm gate opens, a soft or hard confirm.
3. Exploration within the coverage band.
4. With band fallback enabled: a hard confirm, then exploration without band.
Returns None when nothing can be asked; the state machine then forces a reveal.
"""

import logging
from dataclasses import dataclass, field
from typing import Collection, Dict, List, Optional, Set, Union

from ...models.config import EngineConfig
from ...models.item import Item, SummaryGroup, Tag
from ...models.question import (
    AnswerGrade,
    ExploreTag,
    HardConfirm,
    HardConfirmType,
    QuestionHistoryEntry,
    SoftConfirm,
)
from ...utils.randomness import RandomSource
from ..scoring import (
    confidence,
    effective_candidates,
    effective_confirm_threshold,
    top_candidate,
)
from .confirm import (
    SOFT,
    build_hard_confirm,
    select_confirm_type,
    select_soft_confirm,
    should_insert_confirm,
)
from .explore import AttributeCandidate, passes_coverage_gate, select_explore

logger = logging.getLogger(__name__)

Question = Union[ExploreTag, SoftConfirm, HardConfirm]


@dataclass
class SelectionContext:
    """Everything the selector reads for one decision."""

    items: Dict[str, Item]
    probs: Dict[str, float]
    history: List[QuestionHistoryEntry]
    q_index: int
    config: EngineConfig
    rng: RandomSource
    tags: Dict[str, Tag] = field(default_factory=dict)
    summary_groups: List[SummaryGroup] = field(default_factory=list)
    rejected_ids: Collection[str] = ()
    after_reveal_miss: bool = False


def used_tag_keys(history: List[QuestionHistoryEntry]) -> Set[str]:
    """
    Keys that may not be explored again.

    Every asked tag or summary counts; a summary answered NO also uses up
    each of its member tags.
    """
    used: Set[str] = set()
    for entry in history:
        question = entry.question
        if isinstance(question, ExploreTag):
            used.add(question.tag_key)
            if question.is_summary and entry.answer == AnswerGrade.NO:
                used.update(question.summary_tag_keys)
        elif isinstance(question, SoftConfirm):
            used.add(question.tag_key)
    return used


def used_hard_confirm_types(history: List[QuestionHistoryEntry]) -> Set[HardConfirmType]:
    return {
        entry.question.confirm_type
        for entry in history
        if isinstance(entry.question, HardConfirm)
    }


def consecutive_no_run(history: List[QuestionHistoryEntry]) -> int:
    """Number of trailing answers that are a firm NO."""
    run = 0
    for entry in reversed(history):
        if entry.answer != AnswerGrade.NO:
            break
        run += 1
    return run


def _unlocked(category: Optional[str], q_index: int, config: EngineConfig) -> bool:
    if category is None:
        return True
    unlock_at = config.category_unlock_index.get(category)
    return unlock_at is None or q_index >= unlock_at


def _holders_by_tag(items: Dict[str, Item], threshold: float, derived_only: bool) -> Dict[str, Set[str]]:
    holders: Dict[str, Set[str]] = {}
    for item in items.values():
        for key in item.tag_keys(threshold, derived_only=derived_only):
            holders.setdefault(key, set()).add(item.id)
    return holders


def build_explore_candidates(ctx: SelectionContext) -> List[AttributeCandidate]:
    """Unused, unlocked tags and summary groups that pass the coverage gate."""
    config = ctx.config
    threshold = config.derived_confidence_threshold
    used = used_tag_keys(ctx.history)
    total = len(ctx.items)
    candidates: List[AttributeCandidate] = []

    holders_by_tag = _holders_by_tag(ctx.items, threshold, derived_only=False)
    for key in sorted(holders_by_tag):
        if key in used:
            continue
        tag = ctx.tags.get(key)
        category = tag.category if tag else None
        if not _unlocked(category, ctx.q_index, config):
            continue
        holders = holders_by_tag[key]
        if not passes_coverage_gate(len(holders), total, config):
            continue
        candidates.append(
            AttributeCandidate(
                key=key,
                question=ExploreTag(tag_key=key),
                holders=frozenset(holders),
                category=category,
            )
        )

    for group in ctx.summary_groups:
        key = group.candidate_key
        if key in used or not group.tag_keys:
            continue
        if not _unlocked(group.category, ctx.q_index, config):
            continue
        holders = {
            item.id for item in ctx.items.values()
            if item.has_any_tag(group.tag_keys, threshold)
        }
        if not passes_coverage_gate(len(holders), total, config):
            continue
        candidates.append(
            AttributeCandidate(
                key=key,
                question=ExploreTag(
                    tag_key=key,
                    summary_id=group.id,
                    summary_tag_keys=list(group.tag_keys),
                ),
                holders=frozenset(holders),
                category=group.category,
            )
        )
    return candidates


def build_soft_candidates(ctx: SelectionContext) -> List[AttributeCandidate]:
    """Unused, unlocked derived tags carried (above threshold) by at least one candidate."""
    config = ctx.config
    used = used_tag_keys(ctx.history)
    holders_by_tag = _holders_by_tag(
        ctx.items, config.derived_confidence_threshold, derived_only=True
    )
    candidates = []
    for key in sorted(holders_by_tag):
        if key in used:
            continue
        tag = ctx.tags.get(key)
        category = tag.category if tag else None
        if not _unlocked(category, ctx.q_index, config):
            continue
        candidates.append(
            AttributeCandidate(
                key=key,
                question=ExploreTag(tag_key=key),
                holders=frozenset(holders_by_tag[key]),
                category=category,
            )
        )
    return candidates


def _try_hard_confirm(ctx: SelectionContext, top_item: Optional[Item]) -> Optional[HardConfirm]:
    """Hard confirm about the top candidate; never two in a row."""
    if ctx.history and isinstance(ctx.history[-1].question, HardConfirm):
        return None
    return build_hard_confirm(top_item, used_hard_confirm_types(ctx.history))


def _select_confirm(ctx: SelectionContext, top_id: Optional[str], top_item: Optional[Item]) -> Optional[Question]:
    config = ctx.config
    soft_candidates = build_soft_candidates(ctx)
    confirm_type = select_confirm_type(
        confidence(ctx.probs),
        bool(soft_candidates),
        config.soft_confidence_min,
        config.hard_confidence_min,
        ctx.rng,
    )
    if confirm_type == SOFT:
        question = select_soft_confirm(
            soft_candidates, ctx.probs, top_id, config.explore_coverage_band
        )
    else:
        question = _try_hard_confirm(ctx, top_item)
    if question is None:
        logger.info(
            "[select] CONFIRM_UNAVAILABLE type=%s q_index=%s", confirm_type, ctx.q_index
        )
    return question


def select_next_question(ctx: SelectionContext) -> Optional[Question]:
    """
    Choose the question for ctx.q_index.

    Returns None when confirms and exploration are both exhausted.
    """
    config = ctx.config
    top_id = top_candidate(ctx.probs, ctx.rejected_ids)
    top_item = ctx.items.get(top_id) if top_id is not None else None

    if ctx.after_reveal_miss and config.hard_confirm_after_reveal_miss:
        question = _try_hard_confirm(ctx, top_item)
        if question is not None:
            logger.info("[select] HARD_AFTER_REVEAL_MISS q_index=%s top=%s", ctx.q_index, top_id)
            return question

    threshold = effective_confirm_threshold(
        len(ctx.items),
        config.effective_confirm_min,
        config.effective_confirm_max,
        config.effective_confirm_divisor,
    )
    if should_insert_confirm(
        ctx.q_index,
        confidence(ctx.probs),
        effective_candidates(ctx.probs),
        config.forced_confirm_indices,
        config.confidence_confirm_band,
        threshold,
    ):
        question = _select_confirm(ctx, top_id, top_item)
        if question is not None:
            return question

    explore_candidates = build_explore_candidates(ctx)
    prefer_high = consecutive_no_run(ctx.history) >= config.consecutive_no_for_hit
    band = config.explore_coverage_band
    picked = select_explore(explore_candidates, ctx.probs, config, band, prefer_high)
    if picked is not None:
        return picked.question

    if band is not None and config.explore_band_fallback_enabled:
        question = _try_hard_confirm(ctx, top_item)
        if question is not None:
            logger.info("[select] BAND_FALLBACK_HARD_CONFIRM q_index=%s", ctx.q_index)
            return question
        picked = select_explore(explore_candidates, ctx.probs, config, None, prefer_high)
        if picked is not None:
            logger.info("[select] BAND_FALLBACK_UNBANDED tag=%s", picked.key)
            return picked.question

    logger.info("[select] NO_QUESTION_AVAILABLE q_index=%s", ctx.q_index)
    return None
