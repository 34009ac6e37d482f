"""
Session model — one guessing game: weights, snapshots, history and phase.

The session is the unit of persistence. It is created by start_session,
mutated once per answer and saved whole by the repository.
"""

from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from .item import GateChoice
from .question import QuestionHistoryEntry


class SessionPhase(str, Enum):
    QUIZ = "QUIZ"
    CONFIRM = "CONFIRM"
    REVEAL = "REVEAL"
    SUCCESS = "SUCCESS"
    FAIL_LIST = "FAIL_LIST"


TERMINAL_PHASES = (SessionPhase.SUCCESS, SessionPhase.FAIL_LIST)


class WeightSnapshot(BaseModel):
    """Weights as they were before the question at q_index was answered."""

    q_index: int
    weights: Dict[str, float]


class RevealState(BaseModel):
    item_id: str
    forced: bool = False


class GuessSession(BaseModel):
    """A guessing session with its weight vector and question log."""

    session_id: str
    gate: GateChoice = GateChoice.EITHER
    phase: SessionPhase = SessionPhase.QUIZ
    question_count: int = 0
    reveal_miss_count: int = 0
    rejected_item_ids: List[str] = Field(default_factory=list)
    weights: Dict[str, float] = Field(default_factory=dict)
    weight_snapshots: List[WeightSnapshot] = Field(default_factory=list)
    question_history: List[QuestionHistoryEntry] = Field(default_factory=list)
    current_reveal: Optional[RevealState] = None
    play_bonus_applied: bool = False
    # Seeds the confirm split per question index
    rng_seed: int = 0
    created_at: str = ""

    @property
    def is_terminal(self) -> bool:
        return self.phase in TERMINAL_PHASES

    def pending_question(self) -> Optional[QuestionHistoryEntry]:
        """Last asked question if it has not been answered yet."""
        if self.question_history and self.question_history[-1].answer is None:
            return self.question_history[-1]
        return None

    def record_snapshot(self, q_index: int, weights: Dict[str, float]) -> None:
        """Store a copy of weights under q_index, replacing any snapshot with that index."""
        snapshot = WeightSnapshot(q_index=q_index, weights=dict(weights))
        for i, existing in enumerate(self.weight_snapshots):
            if existing.q_index == q_index:
                self.weight_snapshots[i] = snapshot
                return
        self.weight_snapshots.append(snapshot)
        self.weight_snapshots.sort(key=lambda s: s.q_index)

    def snapshot_at_or_below(self, q_index: int) -> Optional[WeightSnapshot]:
        """Snapshot with the greatest index not above q_index."""
        best = None
        for snapshot in self.weight_snapshots:
            if snapshot.q_index <= q_index and (best is None or snapshot.q_index > best.q_index):
                best = snapshot
        return best

    def reject(self, item_id: str) -> None:
        if item_id not in self.rejected_item_ids:
            self.rejected_item_ids.append(item_id)
