"""
Session state machine — runs the guess loop for one session at a time.

QUIZ/CONFIRM -> answer -> {QUIZ, CONFIRM, REVEAL}
REVEAL -> correct -> SUCCESS (play bonus once)
REVEAL -> wrong -> penalty + reject -> {QUIZ, CONFIRM, REVEAL(forced), FAIL_LIST}

The engine holds no per-session state between calls: each operation loads
the GuessSession from the repository, mutates it and saves it whole.

The main entry point is GuessEngine.
"""

import logging
import uuid
from datetime import datetime, timezone
from typing import Callable, Dict, List, Optional

from ..errors import InvalidSessionStateError, RollbackTargetUnavailableError
from ..models.config import EngineConfig, resolve_config
from ..models.item import GateChoice, Item
from ..models.question import ExploreTag, QuestionHistoryEntry, parse_grade
from ..models.session import GuessSession, RevealState, SessionPhase
from ..models.turn import RankedCandidate, RollbackResult, TurnResult
from ..services.catalog_provider import CatalogProvider
from ..services.session_repository import SessionRepository
from ..utils.randomness import (
    RandomSource,
    SystemRandomSource,
    draw_session_seed,
    question_random_source,
)
from .answer_processing import apply_answer, apply_reveal_penalty
from .candidate_pool import get_candidate_pool
from .phrasing import question_text
from .scoring import confidence, normalize, rank_items, top_candidate
from .selection import SelectionContext, select_next_question

logger = logging.getLogger(__name__)

_ANSWERABLE_PHASES = (SessionPhase.QUIZ, SessionPhase.CONFIRM)


def _new_session_id() -> str:
    return str(uuid.uuid4())


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class GuessEngine:
    """
    Orchestrates candidate pool, answer processing, scoring and question
    selection for guessing sessions.

    rng seeds each new session; the 50/50 confirm-type split then draws from
    that session seed and the question index. Inject a seeded source for
    reproducible sessions.
    """

    def __init__(
        self,
        catalog: CatalogProvider,
        repository: SessionRepository,
        config: Optional[EngineConfig] = None,
        rng: Optional[RandomSource] = None,
        id_factory: Callable[[], str] = _new_session_id,
    ):
        self._catalog = catalog
        self._repository = repository
        self._config = resolve_config(config)
        self._rng = rng if rng is not None else SystemRandomSource()
        self._id_factory = id_factory

        catalog_threshold = getattr(catalog, "derived_confidence_threshold", None)
        if catalog_threshold is not None and catalog_threshold != self._config.derived_confidence_threshold:
            logger.warning(
                "[engine] THRESHOLD_MISMATCH catalog=%s config=%s",
                catalog_threshold, self._config.derived_confidence_threshold,
            )

    @property
    def config(self) -> EngineConfig:
        return self._config

    @property
    def catalog(self) -> CatalogProvider:
        return self._catalog

    # -------------------------------------------------------------------------
    # Public operations
    # -------------------------------------------------------------------------

    def start_session(
        self,
        gate: GateChoice = GateChoice.EITHER,
        session_id: Optional[str] = None,
    ) -> TurnResult:
        """
        Create a session for gate and pick its first question.

        Raises EmptyCatalogError when no item passes the gate.
        """
        gate = GateChoice(gate)
        candidates, weights = get_candidate_pool(
            self._catalog.list_candidates(gate), gate, self._config
        )
        session = GuessSession(
            session_id=session_id or self._id_factory(),
            gate=gate,
            weights=weights,
            rng_seed=draw_session_seed(self._rng),
            created_at=_now_iso(),
        )
        session.record_snapshot(0, weights)
        items = {item.id: item for item in candidates}
        self._reveal_or_advance(session, items, normalize(session.weights))
        self._repository.create(session)
        logger.info(
            "[session] STARTED id=%s gate=%s candidates=%s phase=%s",
            session.session_id, gate.value, len(candidates), session.phase.value,
        )
        return self._turn_result(session)

    def get_session(self, session_id: str) -> GuessSession:
        """Raises SessionNotFoundError for unknown ids."""
        return self._repository.get(session_id)

    def answer(self, session_id: str, grade) -> TurnResult:
        """
        Apply grade to the pending question, then reveal, force a reveal, or
        ask the next question.
        """
        grade = parse_grade(grade)
        session = self._repository.get(session_id)
        pending = session.pending_question()
        if session.phase not in _ANSWERABLE_PHASES or pending is None:
            raise InvalidSessionStateError(session_id, session.phase.value, "answer")

        items = self._session_items(session)
        session.record_snapshot(pending.q_index, session.weights)
        session.weights = apply_answer(
            session.weights, pending.question, grade, items, self._config
        )
        pending.answer = grade
        session.question_count += 1

        probs = normalize(session.weights)
        conf = confidence(probs)
        logger.debug(
            "[session] ANSWERED id=%s q=%s grade=%s confidence=%.4f",
            session_id, pending.q_index, grade.value, conf,
        )
        self._reveal_or_advance(session, items, probs)
        self._repository.save(session)
        return self._turn_result(session, probs)

    def answer_reveal(self, session_id: str, correct: bool) -> TurnResult:
        """
        Resolve the pending reveal.

        Correct: SUCCESS and a one-time play bonus. Wrong: penalize and reject
        the item, then fail at the miss limit or continue asking.
        """
        session = self._repository.get(session_id)
        if session.phase != SessionPhase.REVEAL or session.current_reveal is None:
            raise InvalidSessionStateError(session_id, session.phase.value, "answer reveal of")
        item_id = session.current_reveal.item_id

        if correct:
            session.phase = SessionPhase.SUCCESS
            apply_bonus = not session.play_bonus_applied
            session.play_bonus_applied = True
            self._repository.save(session)
            if apply_bonus:
                self._catalog.add_play_bonus(item_id, self._config.play_bonus_on_success)
            logger.info(
                "[session] SUCCESS id=%s item=%s questions=%s misses=%s",
                session_id, item_id, session.question_count, session.reveal_miss_count,
            )
            return self._turn_result(session)

        session.weights = apply_reveal_penalty(
            session.weights, item_id, self._config.reveal_penalty
        )
        session.reject(item_id)
        session.reveal_miss_count += 1
        session.current_reveal = None
        logger.info(
            "[session] REVEAL_MISS id=%s item=%s misses=%s/%s",
            session_id, item_id, session.reveal_miss_count, self._config.max_reveal_misses,
        )

        probs = normalize(session.weights)
        if session.reveal_miss_count >= self._config.max_reveal_misses:
            self._fail(session)
        else:
            items = self._session_items(session)
            self._advance(session, items, probs, after_reveal_miss=True)
        self._repository.save(session)
        return self._turn_result(session, probs)

    def rollback_to_question(self, session_id: str, q_index: int) -> RollbackResult:
        """
        Rewind the session so question q_index is pending again.

        Uses the snapshot with the greatest index <= q_index. Rejected items
        and the miss counter are kept. Raises RollbackTargetUnavailableError
        when no such snapshot exists.
        """
        session = self._repository.get(session_id)
        if session.phase == SessionPhase.SUCCESS:
            raise InvalidSessionStateError(session_id, session.phase.value, "roll back")
        snapshot = session.snapshot_at_or_below(q_index)
        if snapshot is None:
            raise RollbackTargetUnavailableError(session_id, q_index)
        actual = snapshot.q_index
        if actual != q_index:
            logger.warning(
                "[session] ROLLBACK_SNAPPED id=%s requested=%s actual=%s",
                session_id, q_index, actual,
            )

        session.weights = dict(snapshot.weights)
        session.weight_snapshots = [s for s in session.weight_snapshots if s.q_index <= actual]
        session.question_count = max(actual - 1, 0)
        session.current_reveal = None

        kept = [e for e in session.question_history if e.q_index <= actual]
        if kept and kept[-1].q_index == actual:
            kept[-1].answer = None
            session.question_history = kept
            session.phase = self._question_phase(kept[-1])
        else:
            # Snapshot 0 precedes every question: Q1 is chosen again from the prior.
            session.question_history = [e for e in kept if e.q_index < actual]
            self._reveal_or_advance(session, self._session_items(session), normalize(session.weights))

        self._repository.save(session)
        logger.info(
            "[session] ROLLED_BACK id=%s requested=%s actual=%s phase=%s",
            session_id, q_index, actual, session.phase.value,
        )
        return RollbackResult(
            requested_q_index=q_index,
            actual_q_index=actual,
            turn=self._turn_result(session),
        )

    def fail_list(self, session_id: str, limit: Optional[int] = None) -> List[RankedCandidate]:
        """Top candidates by probability, excluding rejected items."""
        session = self._repository.get(session_id)
        return self._ranked_candidates(session, normalize(session.weights), limit)

    # -------------------------------------------------------------------------
    # Transitions
    # -------------------------------------------------------------------------

    def _reveal_or_advance(
        self,
        session: GuessSession,
        items: Dict[str, Item],
        probs: Dict[str, float],
    ) -> None:
        """Reveal the best non-rejected item once confidence clears the threshold, else ask on."""
        if confidence(probs) >= self._config.reveal_threshold:
            top_id = top_candidate(probs, session.rejected_item_ids)
            if top_id is not None:
                self._reveal(session, top_id, forced=False)
                return
        self._advance(session, items, probs)

    def _advance(
        self,
        session: GuessSession,
        items: Dict[str, Item],
        probs: Dict[str, float],
        after_reveal_miss: bool = False,
    ) -> None:
        """Ask the next question, or force a reveal when none can be asked."""
        if session.question_count >= self._config.max_questions:
            logger.info(
                "[session] MAX_QUESTIONS id=%s count=%s", session.session_id, session.question_count
            )
            self._force_reveal(session, probs)
            return

        q_index = session.question_count + 1
        ctx = SelectionContext(
            items=items,
            probs=probs,
            history=session.question_history,
            q_index=q_index,
            config=self._config,
            rng=question_random_source(session.rng_seed, q_index),
            tags={tag.tag_key: tag for tag in self._catalog.list_tags()},
            summary_groups=self._catalog.list_summary_groups(),
            rejected_ids=session.rejected_item_ids,
            after_reveal_miss=after_reveal_miss,
        )
        question = select_next_question(ctx)
        if question is None:
            self._force_reveal(session, probs)
            return

        entry = QuestionHistoryEntry(
            q_index=q_index,
            question=question,
            display_text=question_text(question, ctx.tags, ctx.summary_groups),
        )
        session.question_history.append(entry)
        # Weights do not change between asking and answering, so the
        # pre-answer snapshot can be taken now; rollback to a pending question is exact.
        session.record_snapshot(q_index, session.weights)
        session.current_reveal = None
        session.phase = self._question_phase(entry)

    def _reveal(self, session: GuessSession, item_id: str, forced: bool) -> None:
        session.current_reveal = RevealState(item_id=item_id, forced=forced)
        session.phase = SessionPhase.REVEAL
        logger.info(
            "[session] REVEAL id=%s item=%s forced=%s questions=%s",
            session.session_id, item_id, forced, session.question_count,
        )

    def _force_reveal(self, session: GuessSession, probs: Dict[str, float]) -> None:
        top_id = top_candidate(probs, session.rejected_item_ids)
        if top_id is None:
            self._fail(session)
            return
        self._reveal(session, top_id, forced=True)

    def _fail(self, session: GuessSession) -> None:
        session.phase = SessionPhase.FAIL_LIST
        session.current_reveal = None
        logger.info(
            "[session] FAIL_LIST id=%s questions=%s misses=%s",
            session.session_id, session.question_count, session.reveal_miss_count,
        )

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    @staticmethod
    def _question_phase(entry: QuestionHistoryEntry) -> SessionPhase:
        if isinstance(entry.question, ExploreTag):
            return SessionPhase.QUIZ
        return SessionPhase.CONFIRM

    def _session_items(self, session: GuessSession) -> Dict[str, Item]:
        """Catalog items still in the session's weight vector."""
        return {
            item.id: item
            for item in self._catalog.list_candidates(session.gate)
            if item.id in session.weights
        }

    def _ranked_candidates(
        self,
        session: GuessSession,
        probs: Dict[str, float],
        limit: Optional[int] = None,
    ) -> List[RankedCandidate]:
        limit = self._config.fail_list_size if limit is None else limit
        rejected = set(session.rejected_item_ids)
        ranked = []
        for item_id, p in rank_items(probs):
            if item_id in rejected:
                continue
            item = self._catalog.get_item(item_id)
            ranked.append(
                RankedCandidate(
                    item_id=item_id,
                    title=item.title if item else "",
                    author=item.author if item else "",
                    probability=p,
                )
            )
            if len(ranked) >= limit:
                break
        return ranked

    def _turn_result(
        self,
        session: GuessSession,
        probs: Optional[Dict[str, float]] = None,
    ) -> TurnResult:
        if probs is None:
            probs = normalize(session.weights)
        reveal_item = None
        if session.current_reveal is not None:
            reveal_item = self._catalog.get_item(session.current_reveal.item_id)
        fail_list = []
        if session.phase == SessionPhase.FAIL_LIST:
            fail_list = self._ranked_candidates(session, probs)
        return TurnResult(
            session_id=session.session_id,
            phase=session.phase,
            question=session.pending_question(),
            reveal=session.current_reveal,
            reveal_item=reveal_item,
            confidence=confidence(probs),
            question_count=session.question_count,
            reveal_miss_count=session.reveal_miss_count,
            fail_list=fail_list,
        )
