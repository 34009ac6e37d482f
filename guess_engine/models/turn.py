"""
What each engine operation hands back to the caller.
"""

from typing import List, Optional

from pydantic import BaseModel, Field

from .item import Item
from .question import QuestionHistoryEntry
from .session import RevealState, SessionPhase


class RankedCandidate(BaseModel):
    """An item with its current probability, as listed on failure."""

    item_id: str
    title: str = ""
    author: str = ""
    probability: float


class TurnResult(BaseModel):
    """Session state after an operation: the next question, a reveal, or a terminal phase."""

    session_id: str
    phase: SessionPhase
    question: Optional[QuestionHistoryEntry] = None
    reveal: Optional[RevealState] = None
    reveal_item: Optional[Item] = None
    confidence: float = 0.0
    question_count: int = 0
    reveal_miss_count: int = 0
    fail_list: List[RankedCandidate] = Field(default_factory=list)


class RollbackResult(BaseModel):
    """
    Outcome of a rollback.

    actual_q_index is the snapshot index used, which may be below the
    requested one when no exact snapshot exists.
    """

    requested_q_index: int
    actual_q_index: int
    turn: TurnResult
