"""Data models for the guessing engine."""

from .config import DEFAULT_CONFIG, EngineConfig, load_config, resolve_config
from .item import (
    Classification,
    GateChoice,
    Item,
    SummaryGroup,
    Tag,
    TagRef,
    TagType,
    ensure_items,
)
from .question import (
    AnswerGrade,
    ExploreTag,
    HardConfirm,
    HardConfirmType,
    QuestionDescriptor,
    QuestionHistoryEntry,
    SoftConfirm,
    parse_grade,
    parse_question,
)
from .session import GuessSession, RevealState, SessionPhase, WeightSnapshot
from .turn import RankedCandidate, RollbackResult, TurnResult

__all__ = [
    "AnswerGrade",
    "Classification",
    "DEFAULT_CONFIG",
    "EngineConfig",
    "ExploreTag",
    "GateChoice",
    "GuessSession",
    "HardConfirm",
    "HardConfirmType",
    "Item",
    "QuestionDescriptor",
    "QuestionHistoryEntry",
    "RankedCandidate",
    "RevealState",
    "RollbackResult",
    "SessionPhase",
    "SoftConfirm",
    "SummaryGroup",
    "Tag",
    "TagRef",
    "TagType",
    "TurnResult",
    "WeightSnapshot",
    "ensure_items",
    "load_config",
    "parse_grade",
    "parse_question",
    "resolve_config",
]
