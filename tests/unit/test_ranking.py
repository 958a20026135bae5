"""Unit tests for ranking and result slicing."""

import pytest

from futures_scanner.scanner.ranking import (
    NO_CANDIDATE_MESSAGE,
    build_scan_result,
    empty_result,
    rank_candidates,
)
from futures_scanner.signal.classifier import classify


@pytest.fixture
def make_evaluated(strong_bundle):
    base = classify("BASEUSDT", strong_bundle, 3.0, 100.0)

    def _make(symbol, score):
        return base.model_copy(update={"symbol": symbol, "composite_score": score})

    return _make


class TestRankCandidates:
    def test_sorted_descending(self, make_evaluated):
        items = [make_evaluated("A", 60), make_evaluated("B", 90), make_evaluated("C", 75)]
        assert [i.symbol for i in rank_candidates(items)] == ["B", "C", "A"]

    def test_floor_is_inclusive(self, make_evaluated):
        items = [make_evaluated("A", 55), make_evaluated("B", 54.99)]
        assert [i.symbol for i in rank_candidates(items)] == ["A"]

    def test_none_entries_skipped(self, make_evaluated):
        items = [None, make_evaluated("A", 80), None]
        assert [i.symbol for i in rank_candidates(items)] == ["A"]

    def test_ties_keep_input_order(self, make_evaluated):
        items = [make_evaluated("X", 70), make_evaluated("Y", 80), make_evaluated("Z", 70)]
        assert [i.symbol for i in rank_candidates(items)] == ["Y", "X", "Z"]

    def test_custom_floor(self, make_evaluated):
        items = [make_evaluated("A", 60), make_evaluated("B", 90)]
        assert [i.symbol for i in rank_candidates(items, min_score=80)] == ["B"]


class TestBuildScanResult:
    def test_views_are_prefixes(self, make_evaluated):
        items = [make_evaluated(f"S{i}", 60 + i) for i in range(8)]

        result = build_scan_result(items, timestamp=1700000000000)

        assert result.timestamp == 1700000000000
        assert [i.symbol for i in result.all] == [f"S{i}" for i in range(7, -1, -1)]
        assert result.movers == result.all[:5]
        assert result.strongest == result.all[:3]
        assert result.message is None
        assert not result.is_empty

    def test_fewer_than_view_sizes(self, make_evaluated):
        result = build_scan_result([make_evaluated("A", 70), make_evaluated("B", 65)])
        assert len(result.movers) == 2
        assert len(result.strongest) == 2
        assert len(result.all) == 2

    def test_custom_view_sizes(self, make_evaluated):
        items = [make_evaluated(f"S{i}", 60 + i) for i in range(6)]
        result = build_scan_result(items, movers_size=2, strongest_size=1)
        assert [i.symbol for i in result.movers] == ["S5", "S4"]
        assert [i.symbol for i in result.strongest] == ["S5"]

    def test_nothing_qualifies(self, make_evaluated):
        result = build_scan_result([make_evaluated("A", 40), None])
        assert result.is_empty
        assert result.movers == []
        assert result.strongest == []
        assert result.message == NO_CANDIDATE_MESSAGE

    def test_timestamp_defaults_to_now(self, make_evaluated):
        result = build_scan_result([make_evaluated("A", 70)])
        assert result.timestamp > 1_600_000_000_000


def test_empty_result():
    result = empty_result(timestamp=42)
    assert result.timestamp == 42
    assert result.all == []
    assert result.message == "NO SAFE FUTURES TRADE RIGHT NOW."
