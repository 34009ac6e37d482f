"""Engine stages: candidate pool, scoring, answer processing, question selection, phrasing."""

from .answer_processing import apply_answer, apply_reveal_penalty, possession_test
from .candidate_pool import filter_by_gate, get_candidate_pool, initialize_weights
from .phrasing import question_text
from .scoring import (
    confidence,
    effective_candidates,
    effective_confirm_threshold,
    normalize,
    rank_items,
    top_candidate,
)
from .selection import SelectionContext, select_next_question

__all__ = [
    "SelectionContext",
    "apply_answer",
    "apply_reveal_penalty",
    "confidence",
    "effective_candidates",
    "effective_confirm_threshold",
    "filter_by_gate",
    "get_candidate_pool",
    "initialize_weights",
    "normalize",
    "possession_test",
    "question_text",
    "rank_items",
    "select_next_question",
    "top_candidate",
]
