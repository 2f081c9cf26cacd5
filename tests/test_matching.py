"""Tests for slidemorph.matching — similarity scoring and pairing strategies."""

from __future__ import annotations

import pytest

from conftest import make_descriptor as d
from slidemorph.matching import (
    GreedyMatcher,
    MatchingStrategy,
    OptimalMatcher,
    common_prefix_length,
    similarity,
)
from slidemorph.models import Rect

MARK = {"autoAnimate": ""}


# ---------------------------------------------------------------------------
# similarity
# ---------------------------------------------------------------------------

class TestCommonPrefix:
    def test_partial(self):
        assert common_prefix_length("hello world", "hello planet") == 6

    def test_none(self):
        assert common_prefix_length("abc", "xyz") == 0

    def test_empty(self):
        assert common_prefix_length("", "abc") == 0


class TestSimilarity:
    def test_equal_identity_is_perfect(self):
        a = d(identity="x", tag="H1", text="Intro", rect=Rect(0, 0, 10, 10))
        b = d(identity="x", tag="DIV", text="Different", rect=Rect(500, 500, 90, 90))
        assert similarity(a, b) == 1.0

    def test_identity_is_case_sensitive(self):
        a = d(identity="x", tag="P")
        b = d(identity="X", tag="P")
        assert similarity(a, b) == pytest.approx(0.8 / 4)

    def test_one_sided_identity_scores_normally(self):
        assert similarity(d(identity="x", tag="P"), d(tag="P")) == pytest.approx(0.2)

    def test_opt_in_elements_with_shared_prefix_match(self):
        # Without an identity an element is only captured through the opt-in marker.
        a = d(tag="P", text="Hello World", classes=["a"], dataset=MARK)
        b = d(tag="P", text="Hello Planet", classes=["a"], dataset=MARK)
        expected = (0.8 + 0.5 + 0.7 * 6 / 11 + 0.6) / 4
        assert similarity(a, b) == pytest.approx(expected)
        assert similarity(a, b) > 0.5

    def test_without_marker_same_signals_fall_short(self):
        a = d(tag="P", text="Hello World", classes=["a"])
        b = d(tag="P", text="Hello Planet", classes=["a"])
        assert similarity(a, b) == pytest.approx((0.8 + 0.5 + 0.7 * 6 / 11) / 4)

    def test_marker_on_either_side_counts(self):
        assert similarity(d(tag="A", dataset=MARK), d(tag="B")) == pytest.approx(0.6 / 4)

    def test_class_ratio_uses_larger_set(self):
        a = d(tag="X", classes=["a", "b", "c", "d"])
        b = d(tag="Y", classes=["a"])
        assert similarity(a, b) == pytest.approx(0.5 * 1 / 4 / 4)

    def test_text_compared_trimmed_and_case_insensitive(self):
        a = d(tag="X", text="  HELLO")
        b = d(tag="Y", text="hello")
        assert similarity(a, b) == pytest.approx(0.7 / 4)

    def test_zero_denominators_contribute_nothing(self):
        score = similarity(d(tag="X", text="", classes=[]), d(tag="Y", text="abc", classes=[]))
        assert score == 0.0

    def test_clamped_to_one(self):
        a = d(tag="P", text="same", classes=["a"], dataset=MARK)
        b = d(tag="P", text="same", classes=["a"], dataset=MARK)
        assert 0.0 <= similarity(a, b) <= 1.0


# ---------------------------------------------------------------------------
# Strategies
# ---------------------------------------------------------------------------

def _tricky_sets():
    """A case where greedy order loses a match that a global assignment keeps."""
    a = d(handle=1, tag="P", text="alpha", classes=["a"], dataset=MARK)
    b = d(handle=2, tag="P", text="alpha beta gamma", classes=["b"], dataset=MARK)
    x = d(handle=3, tag="P", text="alpine", classes=["a"], dataset=MARK)
    y = d(handle=4, tag="P", text="alpha beta", classes=["a"], dataset=MARK)
    return [a, b], [x, y]


class TestGreedyMatcher:
    def test_empty_previous_reports_all_new(self):
        current = [d(handle=1, identity="a"), d(handle=2, identity="b")]
        result = GreedyMatcher().match([], current)
        assert result.matched == []
        assert result.new == current
        assert result.removed == []

    def test_empty_current_reports_all_removed(self):
        previous = [d(handle=1, identity="a")]
        result = GreedyMatcher().match(previous, [])
        assert result.removed == previous
        assert not result.matched

    def test_matches_by_identity_regardless_of_order(self):
        previous = [d(handle=1, identity="a"), d(handle=2, identity="b")]
        current = [d(handle=3, identity="b"), d(handle=4, identity="a")]
        result = GreedyMatcher().match(previous, current)
        pairs = [(m.previous.handle, m.current.handle) for m in result.matched]
        assert pairs == [(1, 4), (2, 3)]
        assert all(m.similarity == 1.0 for m in result.matched)

    def test_threshold_is_strict(self):
        # tag + classes + full text prefix: (0.8 + 0.5 + 0.7) / 4 == 0.5 exactly
        a = d(handle=1, tag="P", text="Hello", classes=["a"])
        b = d(handle=2, tag="P", text="Hello", classes=["a"])
        assert similarity(a, b) == 0.5
        result = GreedyMatcher().match([a], [b])
        assert result.matched == []
        assert result.new == [b]
        assert result.removed == [a]

    def test_each_current_consumed_once(self):
        previous = [d(handle=1, identity="a"), d(handle=2, identity="a")]
        current = [d(handle=3, identity="a")]
        result = GreedyMatcher().match(previous, current)
        assert len(result.matched) == 1
        assert result.matched[0].previous.handle == 1
        assert [r.handle for r in result.removed] == [2]

    def test_greedy_is_order_dependent(self):
        previous, current = _tricky_sets()
        result = GreedyMatcher().match(previous, current)
        assert [(m.previous.handle, m.current.handle) for m in result.matched] == [(1, 4)]
        assert [r.handle for r in result.removed] == [2]
        assert [n.handle for n in result.new] == [3]

    def test_result_truthiness(self):
        assert not GreedyMatcher().match([], [])
        assert GreedyMatcher().match([], [d()])


class TestOptimalMatcher:
    def test_finds_global_assignment(self):
        previous, current = _tricky_sets()
        result = OptimalMatcher().match(previous, current)
        assert [(m.previous.handle, m.current.handle) for m in result.matched] == [(1, 3), (2, 4)]
        assert result.new == []
        assert result.removed == []

    def test_agrees_with_greedy_on_distinct_identities(self):
        previous = [d(handle=i, identity=n) for i, n in enumerate("abcd")]
        current = [d(handle=10 + i, identity=n) for i, n in enumerate("dbca")]
        greedy = GreedyMatcher().match(previous, current)
        optimal = OptimalMatcher().match(previous, current)
        as_pairs = lambda r: sorted((m.previous.handle, m.current.handle) for m in r.matched)
        assert as_pairs(greedy) == as_pairs(optimal)

    def test_empty_inputs(self):
        current = [d(handle=1)]
        result = OptimalMatcher().match([], current)
        assert result.new == current
        assert result.matched == []

    def test_drops_pairs_below_threshold(self):
        result = OptimalMatcher().match([d(handle=1, tag="A")], [d(handle=2, tag="B")])
        assert result.matched == []
        assert len(result.new) == 1
        assert len(result.removed) == 1


class TestMatchingStrategy:
    def test_interface_not_implemented(self):
        with pytest.raises(NotImplementedError):
            MatchingStrategy().match([], [])
