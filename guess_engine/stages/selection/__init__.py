"""Question selection: exploration strategies, confirm insertion, and orchestration."""

from .confirm import (
    HARD,
    SOFT,
    build_hard_confirm,
    next_hard_confirm_type,
    select_confirm_type,
    select_soft_confirm,
    should_insert_confirm,
)
from .core import (
    SelectionContext,
    build_explore_candidates,
    build_soft_candidates,
    consecutive_no_run,
    select_next_question,
    used_hard_confirm_types,
    used_tag_keys,
)
from .explore import (
    AttributeCandidate,
    coverage_of,
    expected_entropy,
    passes_coverage_gate,
    select_by_coverage,
    select_by_information_gain,
)

__all__ = [
    "AttributeCandidate",
    "HARD",
    "SOFT",
    "SelectionContext",
    "build_explore_candidates",
    "build_hard_confirm",
    "build_soft_candidates",
    "consecutive_no_run",
    "coverage_of",
    "expected_entropy",
    "next_hard_confirm_type",
    "passes_coverage_gate",
    "select_by_coverage",
    "select_by_information_gain",
    "select_confirm_type",
    "select_next_question",
    "select_soft_confirm",
    "should_insert_confirm",
    "used_hard_confirm_types",
    "used_tag_keys",
]
