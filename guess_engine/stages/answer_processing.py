"""
Answer processing — folds one graded answer into the weight vector.

For each item, decides whether it "possesses" the asked attribute, then
multiplies its weight by the (has, lacks) pair for the answer grade.
Weights are not renormalized here; the scorer does that on read.

Two update rules, selected by config.weight_update_mode:
- likelihood: multiply by config.answer_likelihoods[grade]
- exponential: multiply by exp(+beta * s) if has, exp(-beta * s) if lacks

The public entry points are apply_answer and apply_reveal_penalty.
"""

import math
from typing import Callable, Dict, Tuple

from ..errors import InvalidAnswerGradeError, UnknownQuestionKindError
from ..models.config import DEFAULT_CONFIG, EngineConfig
from ..models.item import Item
from ..models.question import (
    AnswerGrade,
    ExploreTag,
    HardConfirm,
    HardConfirmType,
    SoftConfirm,
    parse_grade,
    parse_question,
)
from ..utils.titles import normalize_title_initial


def _hard_confirm_matches(item: Item, question: HardConfirm) -> bool:
    if question.confirm_type == HardConfirmType.TITLE_INITIAL:
        return normalize_title_initial(item.title) == question.value
    return item.author.strip() == question.value.strip()


def possession_test(question, threshold: float) -> Callable[[Item], bool]:
    """
    Return a predicate telling whether an item possesses the asked attribute.

    Summary questions are an OR over their tag keys. Soft confirms only count
    derived tags above threshold. Hard confirms compare the item's field.
    """
    question = parse_question(question)
    if isinstance(question, ExploreTag):
        if question.is_summary:
            keys = list(question.summary_tag_keys)
            return lambda item: item.has_any_tag(keys, threshold)
        return lambda item: item.has_tag(question.tag_key, threshold)
    if isinstance(question, SoftConfirm):
        return lambda item: item.has_tag(question.tag_key, threshold, derived_only=True)
    if isinstance(question, HardConfirm):
        return lambda item: _hard_confirm_matches(item, question)
    raise UnknownQuestionKindError(f"Unsupported question kind: {type(question).__name__}")


def _likelihood_pair(grade: AnswerGrade, config: EngineConfig) -> Tuple[float, float]:
    pair = config.answer_likelihoods.get(grade.value)
    if pair is None:
        raise InvalidAnswerGradeError(f"No likelihoods configured for grade {grade.value}")
    return pair


def _answer_strength(question, grade: AnswerGrade, config: EngineConfig) -> float:
    """Signed answer strength for the exponential rule, scaled per question kind."""
    strength = config.answer_strengths.get(grade.value)
    if strength is None:
        raise InvalidAnswerGradeError(f"No strength configured for grade {grade.value}")
    if isinstance(question, ExploreTag):
        if question.is_summary:
            return math.copysign(config.summary_strength_scale, strength) if strength else 0.0
        return strength * config.explore_strength_scale
    if isinstance(question, SoftConfirm):
        return strength * config.soft_confirm_strength_scale
    return strength


def _multiplier_pair(question, grade: AnswerGrade, config: EngineConfig) -> Tuple[float, float]:
    """(multiplier if has, multiplier if lacks) under the configured update rule."""
    if config.weight_update_mode == "exponential":
        s = _answer_strength(question, grade, config)
        return math.exp(config.beta * s), math.exp(-config.beta * s)
    return _likelihood_pair(grade, config)


def apply_answer(
    weights: Dict[str, float],
    question,
    grade,
    items: Dict[str, Item],
    config: EngineConfig = DEFAULT_CONFIG,
) -> Dict[str, float]:
    """
    Return new weights after observing grade for question.

    Items missing from `items` count as lacking the attribute. Raises
    UnknownQuestionKindError for a malformed descriptor and
    InvalidAnswerGradeError for an unknown grade.
    """
    question = parse_question(question)
    grade = parse_grade(grade)
    has_mult, lacks_mult = _multiplier_pair(question, grade, config)
    if has_mult == 1.0 and lacks_mult == 1.0:
        return dict(weights)
    has_attribute = possession_test(question, config.derived_confidence_threshold)
    updated = {}
    for item_id, weight in weights.items():
        item = items.get(item_id)
        has = item is not None and has_attribute(item)
        updated[item_id] = weight * (has_mult if has else lacks_mult)
    return updated


def apply_reveal_penalty(
    weights: Dict[str, float],
    item_id: str,
    penalty: float,
) -> Dict[str, float]:
    """Return new weights with item_id multiplied by penalty."""
    return {
        k: (w * penalty if k == item_id else w)
        for k, w in weights.items()
    }
