"""
Session State Machine Tests

Runs full sessions through GuessEngine with in-memory adapters.

Datasets Used:
--------------
- three_bit catalog: 8 items, each pinned down by fantasy/romance/school
- skewed catalog: popularity [0, 0, 100], no tags
- split catalog: three_bit plus derived tags; Q2 goes to the 50/50 confirm split

Expected Flows:
---------------
three_bit, target "d" (fantasy + romance):
- Q1 fantasy (YES) -> Q2 romance (YES) -> confidence 0.4802 (in confirm band)
- Q3 hard confirm "Del" (YES) -> REVEAL d -> SUCCESS

skewed:
- start: confidence 100.5 / 101.5 >= 0.85 -> REVEAL i3 before any question
- wrong -> i3 x0.1, hard confirm about i1 ("Alp")
- NO -> REVEAL i2 -> wrong -> nothing left to ask -> forced REVEAL i1
- wrong -> third miss -> FAIL_LIST

Run:
----
    pytest tests/test_state_machine.py -v
"""

import pytest

from conftest import build_engine
from guess_engine import (
    AnswerGrade,
    EmptyCatalogError,
    EngineConfig,
    ExploreTag,
    GateChoice,
    HardConfirm,
    HardConfirmType,
    InvalidSessionStateError,
    SessionNotFoundError,
    SessionPhase,
)


class TestThreeBitFlow:
    """Explore, confirm, reveal on a catalog the engine can fully separate."""

    def test_start_asks_first_tag(self, three_bit_engine):
        turn = three_bit_engine.start_session()
        assert turn.phase == SessionPhase.QUIZ
        assert turn.question.q_index == 1
        assert turn.question.question == ExploreTag(tag_key="fantasy")
        assert turn.question.display_text == "Does it feature Fantasy?"
        assert turn.confidence == pytest.approx(0.125)
        assert turn.question_count == 0

    def test_first_answer_updates_probabilities(self, three_bit_engine):
        turn = three_bit_engine.start_session()
        turn = three_bit_engine.answer(turn.session_id, AnswerGrade.YES)
        assert turn.question.question == ExploreTag(tag_key="romance")
        assert turn.confidence == pytest.approx(0.245)
        assert turn.question_count == 1

        ranked = three_bit_engine.fail_list(turn.session_id, limit=8)
        by_id = {c.item_id: c.probability for c in ranked}
        for item_id in "bdfh":
            assert by_id[item_id] == pytest.approx(0.245)
        for item_id in "aceg":
            assert by_id[item_id] == pytest.approx(0.005)

    def test_confirm_then_reveal(self, three_bit_engine):
        turn = three_bit_engine.start_session()
        turn = three_bit_engine.answer(turn.session_id, AnswerGrade.YES)
        turn = three_bit_engine.answer(turn.session_id, AnswerGrade.YES)

        assert turn.phase == SessionPhase.CONFIRM
        assert turn.confidence == pytest.approx(0.4802)
        assert turn.question.question == HardConfirm(
            confirm_type=HardConfirmType.TITLE_INITIAL, value="Del"
        )
        assert turn.question.display_text == 'Does the title start with "Del"?'

        turn = three_bit_engine.answer(turn.session_id, AnswerGrade.YES)
        assert turn.phase == SessionPhase.REVEAL
        assert turn.reveal.item_id == "d"
        assert turn.reveal.forced is False
        assert turn.reveal_item.title == "Delta Force"
        assert turn.question is None

        turn = three_bit_engine.answer_reveal(turn.session_id, True)
        assert turn.phase == SessionPhase.SUCCESS
        assert turn.question_count == 3

    def test_confirm_no_reveals_the_runner_up(self, three_bit_engine):
        turn = three_bit_engine.start_session()
        turn = three_bit_engine.answer(turn.session_id, AnswerGrade.YES)
        turn = three_bit_engine.answer(turn.session_id, AnswerGrade.YES)
        turn = three_bit_engine.answer(turn.session_id, AnswerGrade.NO)
        assert turn.phase == SessionPhase.REVEAL
        assert turn.reveal.item_id == "h"

    def test_max_questions_forces_reveal(self, three_bit_catalog):
        engine = build_engine(three_bit_catalog, EngineConfig(max_questions=2))
        turn = engine.start_session()
        turn = engine.answer(turn.session_id, AnswerGrade.DONT_CARE)
        turn = engine.answer(turn.session_id, AnswerGrade.DONT_CARE)
        assert turn.phase == SessionPhase.REVEAL
        assert turn.reveal.forced is True
        assert turn.reveal.item_id == "a"
        assert turn.question_count == 2

    def test_history_and_snapshots_recorded(self, three_bit_engine):
        turn = three_bit_engine.start_session()
        turn = three_bit_engine.answer(turn.session_id, "YES")
        session = three_bit_engine.get_session(turn.session_id)
        assert [e.q_index for e in session.question_history] == [1, 2]
        assert session.question_history[0].answer == AnswerGrade.YES
        assert session.question_history[1].answer is None
        assert [s.q_index for s in session.weight_snapshots] == [0, 1, 2]


class TestSkewedFlow:
    """Reveal misses, the hard confirm that follows, and the fail list."""

    def test_reveals_before_any_question(self, skewed_engine):
        turn = skewed_engine.start_session()
        assert turn.phase == SessionPhase.REVEAL
        assert turn.reveal.item_id == "i3"
        assert turn.reveal.forced is False
        assert turn.confidence == pytest.approx(100.5 / 101.5)
        assert turn.question_count == 0

    def test_miss_penalizes_and_asks_hard_confirm(self, skewed_engine):
        turn = skewed_engine.start_session()
        turn = skewed_engine.answer_reveal(turn.session_id, False)

        assert turn.phase == SessionPhase.CONFIRM
        assert turn.reveal_miss_count == 1
        assert turn.question.question == HardConfirm(
            confirm_type=HardConfirmType.TITLE_INITIAL, value="Alp"
        )
        session = skewed_engine.get_session(turn.session_id)
        assert session.weights == pytest.approx({"i1": 0.5, "i2": 0.5, "i3": 10.05})
        assert session.rejected_item_ids == ["i3"]

    def test_rejected_item_never_revealed_again(self, skewed_engine):
        turn = skewed_engine.start_session()
        turn = skewed_engine.answer_reveal(turn.session_id, False)
        turn = skewed_engine.answer(turn.session_id, AnswerGrade.NO)
        # i3 still holds most of the mass, but it was rejected.
        assert turn.confidence == pytest.approx(9.849 / 10.349)
        assert turn.phase == SessionPhase.REVEAL
        assert turn.reveal.item_id == "i2"

    def test_three_misses_end_in_fail_list(self, skewed_engine):
        turn = skewed_engine.start_session()
        turn = skewed_engine.answer_reveal(turn.session_id, False)
        turn = skewed_engine.answer(turn.session_id, AnswerGrade.NO)
        turn = skewed_engine.answer_reveal(turn.session_id, False)

        assert turn.phase == SessionPhase.REVEAL
        assert turn.reveal.item_id == "i1"
        assert turn.reveal.forced is True
        assert turn.reveal_miss_count == 2

        turn = skewed_engine.answer_reveal(turn.session_id, False)
        assert turn.phase == SessionPhase.FAIL_LIST
        assert turn.reveal_miss_count == 3
        assert turn.fail_list == []
        session = skewed_engine.get_session(turn.session_id)
        assert session.rejected_item_ids == ["i3", "i2", "i1"]
        assert session.is_terminal

    def test_fail_list_excludes_rejected(self, skewed_catalog, skewed_config):
        config = skewed_config.model_copy(update={"max_reveal_misses": 1})
        engine = build_engine(skewed_catalog, config)
        turn = engine.start_session()
        turn = engine.answer_reveal(turn.session_id, False)
        assert turn.phase == SessionPhase.FAIL_LIST
        assert [c.item_id for c in turn.fail_list] == ["i1", "i2"]
        assert turn.fail_list[0].title == "Alpha"


class TestPlayBonus:
    """Correct reveals raise the item's popularity once."""

    def test_bonus_applied_once(self, skewed_engine, skewed_catalog):
        turn = skewed_engine.start_session()
        turn = skewed_engine.answer_reveal(turn.session_id, True)
        assert turn.phase == SessionPhase.SUCCESS
        assert skewed_catalog.get_item("i3").popularity_play_bonus == pytest.approx(1.0)

        with pytest.raises(InvalidSessionStateError):
            skewed_engine.answer_reveal(turn.session_id, True)
        assert skewed_catalog.get_item("i3").popularity_play_bonus == pytest.approx(1.0)
        assert skewed_engine.get_session(turn.session_id).play_bonus_applied

    def test_bonus_raises_next_session_prior(self, skewed_engine):
        first = skewed_engine.start_session()
        skewed_engine.answer_reveal(first.session_id, True)
        second = skewed_engine.start_session()
        assert second.confidence == pytest.approx(101.5 / 102.5)


class TestContract:
    """Operations outside their phase, unknown sessions, empty pools."""

    def test_answer_during_reveal(self, skewed_engine):
        turn = skewed_engine.start_session()
        with pytest.raises(InvalidSessionStateError):
            skewed_engine.answer(turn.session_id, AnswerGrade.YES)

    def test_answer_reveal_during_quiz(self, three_bit_engine):
        turn = three_bit_engine.start_session()
        with pytest.raises(InvalidSessionStateError):
            three_bit_engine.answer_reveal(turn.session_id, True)

    def test_unknown_session(self, three_bit_engine):
        with pytest.raises(SessionNotFoundError):
            three_bit_engine.answer("missing", AnswerGrade.YES)

    def test_gate_with_no_items(self, three_bit_engine):
        with pytest.raises(EmptyCatalogError):
            three_bit_engine.start_session(GateChoice.INCLUDE)

    def test_explicit_session_id(self, three_bit_engine):
        turn = three_bit_engine.start_session(session_id="fixed")
        assert turn.session_id == "fixed"
        assert three_bit_engine.get_session("fixed").gate == GateChoice.EITHER


class TestDeterminism:
    """Same seed, same catalog, same answers -> same session."""

    def test_seeded_engines_agree(self, three_bit_catalog):
        sessions = []
        for _ in range(2):
            engine = build_engine(three_bit_catalog, seed=11)
            turn = engine.start_session()
            for grade in (AnswerGrade.NO, AnswerGrade.PROBABLY_YES, AnswerGrade.NO):
                if turn.phase not in (SessionPhase.QUIZ, SessionPhase.CONFIRM):
                    break
                turn = engine.answer(turn.session_id, grade)
            sessions.append(engine.get_session(turn.session_id))
        first, second = sessions
        assert first.weights == second.weights
        assert [e.question for e in first.question_history] == [
            e.question for e in second.question_history
        ]

    def test_other_sessions_do_not_shift_split(self, split_catalog, split_config):
        engine = build_engine(split_catalog, split_config, seed=3)
        alone = engine.start_session()
        expected = engine.answer(alone.session_id, AnswerGrade.UNKNOWN).question.question

        engine = build_engine(split_catalog, split_config, seed=3)
        watched = engine.start_session()
        other = engine.start_session()
        for _ in range(5):
            engine.answer(other.session_id, AnswerGrade.UNKNOWN)
            engine.rollback_to_question(other.session_id, 1)
        turn = engine.answer(watched.session_id, AnswerGrade.UNKNOWN)
        assert turn.question.question == expected

    def test_session_seed_survives_rollback(self, split_catalog, split_config):
        engine = build_engine(split_catalog, split_config, seed=3)
        turn = engine.start_session()
        seed = engine.get_session(turn.session_id).rng_seed
        engine.answer(turn.session_id, AnswerGrade.UNKNOWN)
        engine.rollback_to_question(turn.session_id, 0)
        assert engine.get_session(turn.session_id).rng_seed == seed
