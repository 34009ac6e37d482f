"""
Batch self-play — runs sessions against known target items and summarizes them.

A simulated player answers every question truthfully for its target (YES if
the target possesses the attribute, NO otherwise), optionally replacing an
answer with a random grade at the given noise rate, and confirms a reveal
only when it names the target.
"""

import logging
import random
from dataclasses import asdict, dataclass, field
from typing import Dict, List, Optional, Tuple

from .models.item import GateChoice, Item
from .models.question import AnswerGrade
from .models.session import SessionPhase
from .stages.answer_processing import possession_test
from .stages.orchestrator import GuessEngine

logger = logging.getLogger(__name__)

CONFIDENCE_RANGES: List[Tuple[float, float, str]] = [
    (0.0, 0.2, "0-20%"),
    (0.2, 0.4, "20-40%"),
    (0.4, 0.6, "40-60%"),
    (0.6, 0.8, "60-80%"),
    (0.8, 1.0000001, "80-100%"),
]


@dataclass
class SimulationOutcome:
    """Result of one simulated session."""

    target_id: str
    success: bool
    phase: str
    questions: int
    reveal_misses: int
    final_confidence: float
    revealed_ids: List[str] = field(default_factory=list)
    asked_keys: List[str] = field(default_factory=list)


@dataclass
class SimulationReport:
    """Aggregate statistics over simulated sessions."""

    total_sessions: int
    success_sessions: int
    success_rate: float
    average_questions: float
    average_confidence: float
    question_distribution: Dict[int, int]
    confidence_distribution: Dict[str, int]
    tag_effectiveness: Dict[str, Dict[str, int]]
    outcomes: List[SimulationOutcome] = field(default_factory=list)

    @classmethod
    def from_outcomes(cls, outcomes: List[SimulationOutcome]) -> "SimulationReport":
        total = len(outcomes)
        successes = sum(1 for o in outcomes if o.success)
        question_distribution: Dict[int, int] = {}
        for o in outcomes:
            question_distribution[o.questions] = question_distribution.get(o.questions, 0) + 1
        confidence_distribution = {
            label: sum(1 for o in outcomes if lo <= o.final_confidence < hi)
            for lo, hi, label in CONFIDENCE_RANGES
        }
        tag_effectiveness: Dict[str, Dict[str, int]] = {}
        for o in outcomes:
            for key in set(o.asked_keys):
                stats = tag_effectiveness.setdefault(key, {"used": 0, "success": 0})
                stats["used"] += 1
                if o.success:
                    stats["success"] += 1
        return cls(
            total_sessions=total,
            success_sessions=successes,
            success_rate=successes / total if total else 0.0,
            average_questions=sum(o.questions for o in outcomes) / total if total else 0.0,
            average_confidence=sum(o.final_confidence for o in outcomes) / total if total else 0.0,
            question_distribution=dict(sorted(question_distribution.items())),
            confidence_distribution=confidence_distribution,
            tag_effectiveness=tag_effectiveness,
            outcomes=outcomes,
        )

    def to_dict(self, include_outcomes: bool = False) -> Dict:
        data = asdict(self)
        if not include_outcomes:
            data.pop("outcomes")
        return data


def oracle_answer(question, target: Item, threshold: float) -> AnswerGrade:
    """Truthful firm answer for target."""
    return AnswerGrade.YES if possession_test(question, threshold)(target) else AnswerGrade.NO


def _question_key(question) -> str:
    if hasattr(question, "tag_key"):
        return question.tag_key
    return f"hard:{question.confirm_type.value}"


def simulate_session(
    engine: GuessEngine,
    target: Item,
    gate: GateChoice = GateChoice.EITHER,
    noise: float = 0.0,
    rng: Optional[random.Random] = None,
) -> SimulationOutcome:
    """Play one session for target until SUCCESS or FAIL_LIST."""
    rng = rng or random.Random()
    config = engine.config
    threshold = config.derived_confidence_threshold
    grades = list(AnswerGrade)
    # Each answer or reveal miss moves toward a terminal phase; this bounds the loop.
    step_limit = (config.max_questions + 1) * (config.max_reveal_misses + 1) + 1

    turn = engine.start_session(gate)
    revealed: List[str] = []
    asked: List[str] = []
    for _ in range(step_limit):
        if turn.phase in (SessionPhase.SUCCESS, SessionPhase.FAIL_LIST):
            break
        if turn.phase == SessionPhase.REVEAL:
            revealed.append(turn.reveal.item_id)
            turn = engine.answer_reveal(turn.session_id, turn.reveal.item_id == target.id)
            continue
        question = turn.question.question
        asked.append(_question_key(question))
        if noise > 0 and rng.random() < noise:
            grade = rng.choice(grades)
        else:
            grade = oracle_answer(question, target, threshold)
        turn = engine.answer(turn.session_id, grade)
    else:
        logger.warning("[simulation] STEP_LIMIT target=%s session=%s", target.id, turn.session_id)

    return SimulationOutcome(
        target_id=target.id,
        success=turn.phase == SessionPhase.SUCCESS,
        phase=turn.phase.value,
        questions=turn.question_count,
        reveal_misses=turn.reveal_miss_count,
        final_confidence=turn.confidence,
        revealed_ids=revealed,
        asked_keys=asked,
    )


def run_simulation(
    engine: GuessEngine,
    targets: List[Item],
    gate: GateChoice = GateChoice.EITHER,
    noise: float = 0.0,
    seed: Optional[int] = None,
) -> SimulationReport:
    """Simulate one session per target and aggregate the outcomes."""
    rng = random.Random(seed)
    outcomes = [simulate_session(engine, target, gate, noise, rng) for target in targets]
    report = SimulationReport.from_outcomes(outcomes)
    logger.info(
        "[simulation] DONE sessions=%s success_rate=%.3f avg_questions=%.2f",
        report.total_sessions, report.success_rate, report.average_questions,
    )
    return report
