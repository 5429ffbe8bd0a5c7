"""Zigzag pivot detection and trend helper tests."""

from __future__ import annotations

import pytest

from fund_ledger.zigzag import detect_pivots, nav_percentile, trend_since_last_pivot


def test_detects_peak_and_trough(make_series):
    series = make_series([1.00, 1.02, 1.05, 1.03, 0.98, 1.01])
    pivots = detect_pivots(series, 3)

    assert [p.unit_nav for p in pivots] == [1.00, 1.05, 0.98, 1.01]
    assert pivots[0] is series[0]
    assert pivots[-1] is series[-1]


def test_pivots_alternate_direction(make_series):
    series = make_series([1.0, 1.1, 1.0, 1.1, 1.0, 0.95, 1.02])
    navs = [p.unit_nav for p in detect_pivots(series, 5)]

    moves = [b - a for a, b in zip(navs, navs[1:])]
    assert all(m != 0 for m in moves)
    for first, second in zip(moves, moves[1:]):
        assert (first > 0) != (second > 0)


@pytest.mark.parametrize("deviation", [2, 3, 5])
def test_committed_pivots_move_at_least_the_threshold(make_series, deviation):
    series = make_series([1.00, 1.04, 1.09, 1.05, 0.99, 0.97, 1.03, 1.08, 1.12, 1.06, 1.01, 1.04, 1.10, 1.07])
    committed = [p.unit_nav for p in detect_pivots(series, deviation)][:-1]

    assert len(committed) >= 4
    for previous, current in zip(committed, committed[1:]):
        assert abs(current - previous) / previous * 100 >= deviation


@pytest.mark.parametrize(
    "navs, deviation",
    [([], 2), ([1.0], 2), ([1.0, 1.5], 0), ([1.0, 1.5], -1)],
)
def test_degenerate_inputs_have_no_pivots(make_series, navs, deviation):
    assert detect_pivots(make_series(navs), deviation) == []


def test_flat_series_keeps_only_first_point(make_series):
    assert [p.unit_nav for p in detect_pivots(make_series([1.0, 1.0, 1.0]), 2)] == [1.0]


def test_small_moves_keep_endpoints(make_series):
    pivots = detect_pivots(make_series([1.0, 1.01, 1.02]), 3)
    assert [p.unit_nav for p in pivots] == [1.0, 1.02]


def test_nav_percentile(make_series):
    assert nav_percentile(make_series([1.0, 2.0, 1.5])) == pytest.approx(50.0)
    assert nav_percentile(make_series([1.0, 2.0])) == pytest.approx(100.0)
    assert nav_percentile(make_series([1.3, 1.3])) == 50.0
    assert nav_percentile(make_series([1.3])) is None


def test_trend_since_last_pivot(make_series):
    series = make_series([1.00, 1.02, 1.05, 1.03, 0.98, 1.01])
    pivots = detect_pivots(series, 3)

    trend = trend_since_last_pivot(series, pivots, shares=100)

    assert trend is not None
    assert trend.days == 1
    assert trend.is_positive
    assert trend.change == pytest.approx(3.0612, abs=1e-4)
    assert trend.recent_profit == pytest.approx(3.0)
    assert trend.initial_market_value == pytest.approx(98.0)
    assert trend.text == "近1天, ⬆︎3.06%, 3 元"


def test_trend_needs_two_pivots(make_series):
    series = make_series([1.0, 1.0])
    assert trend_since_last_pivot(series, detect_pivots(series, 2)) is None
