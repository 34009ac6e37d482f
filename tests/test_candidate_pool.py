"""
Candidate Pool Tests

Tests the classification gate filter and popularity-based initial weights.

Test Scenarios:
---------------
1. INCLUDE keeps GENERATED, EXCLUDE keeps MANUAL, EITHER keeps all
2. UNKNOWN classification only survives EITHER
3. weight = (popularity + epsilon) ** alpha, strictly positive for zero popularity
4. Empty pool raises EmptyCatalogError
5. use_play_bonus=False ignores the accumulated play bonus

Run:
----
    pytest tests/test_candidate_pool.py -v
"""

import pytest

from conftest import make_item
from guess_engine import EmptyCatalogError, EngineConfig, GateChoice
from guess_engine.stages.candidate_pool import (
    filter_by_gate,
    get_candidate_pool,
    initialize_weights,
)


@pytest.fixture
def mixed_items():
    return [
        make_item("gen", classification="GENERATED"),
        make_item("man", classification="MANUAL"),
        make_item("unk", classification="UNKNOWN"),
    ]


class TestGateFilter:
    """filter_by_gate keeps the classification the gate asks for."""

    def test_include_keeps_generated(self, mixed_items):
        assert [i.id for i in filter_by_gate(mixed_items, GateChoice.INCLUDE)] == ["gen"]

    def test_exclude_keeps_manual(self, mixed_items):
        assert [i.id for i in filter_by_gate(mixed_items, GateChoice.EXCLUDE)] == ["man"]

    def test_either_keeps_all(self, mixed_items):
        assert [i.id for i in filter_by_gate(mixed_items, GateChoice.EITHER)] == ["gen", "man", "unk"]

    def test_accepts_string_gate(self, mixed_items):
        assert [i.id for i in filter_by_gate(mixed_items, "INCLUDE")] == ["gen"]


class TestInitialWeights:
    """(popularity + epsilon) ** alpha."""

    def test_formula(self):
        items = [make_item("a", popularity=0), make_item("b", popularity=100)]
        weights = initialize_weights(items, alpha=1.0, epsilon=0.5)
        assert weights == {"a": 0.5, "b": 100.5}

    def test_sqrt_smoothing(self):
        items = [make_item("a", popularity=3.5)]
        weights = initialize_weights(items, alpha=0.5, epsilon=0.5)
        assert weights["a"] == pytest.approx(2.0)

    def test_zero_popularity_is_positive(self):
        weights = initialize_weights([make_item("a")], alpha=0.5, epsilon=0.5)
        assert weights["a"] > 0

    def test_empty_raises(self):
        with pytest.raises(EmptyCatalogError):
            initialize_weights([], alpha=1.0, epsilon=0.5)

    def test_play_bonus_counts_by_default(self):
        item = make_item("a", popularity=1.0)
        item.popularity_play_bonus = 2.0
        weights = initialize_weights([item], alpha=1.0, epsilon=0.0)
        assert weights["a"] == pytest.approx(3.0)

    def test_play_bonus_ignored_when_disabled(self):
        item = make_item("a", popularity=1.0)
        item.popularity_play_bonus = 2.0
        weights = initialize_weights([item], alpha=1.0, epsilon=0.0, use_play_bonus=False)
        assert weights["a"] == pytest.approx(1.0)


class TestCandidatePool:
    """get_candidate_pool combines the filter and the weights."""

    def test_returns_filtered_candidates_and_weights(self, mixed_items):
        config = EngineConfig(alpha=1.0, popularity_epsilon=1.0)
        candidates, weights = get_candidate_pool(mixed_items, GateChoice.EXCLUDE, config)
        assert [c.id for c in candidates] == ["man"]
        assert weights == {"man": 1.0}

    def test_gate_with_no_match_raises(self):
        items = [make_item("unk", classification="UNKNOWN")]
        with pytest.raises(EmptyCatalogError):
            get_candidate_pool(items, GateChoice.INCLUDE)
