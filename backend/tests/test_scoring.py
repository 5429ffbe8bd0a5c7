"""Recommendation score tests."""

from __future__ import annotations

import pytest

from app.services.analysis import recommendation_action
from fund_ledger.scoring import daily_score, score, trend_score


@pytest.mark.parametrize(
    "trend, expected_score, expected_label",
    [
        (-20.0, 100.0, "超跌"),
        (-5.0, 70.0, "超跌"),
        (-3.0, 50.0, "磨底"),
        (0.0, 50.0, "爬坡"),
        (2.25, 65.0, "爬坡"),
        (4.5, 100.0, "主升"),
        (9.0, 100.0, "主升"),
        (10.0, 90.0, "过热"),
        (25.0, 0.0, "过热"),
    ],
)
def test_trend_regimes(trend, expected_score, expected_label):
    value, label = trend_score(trend)
    assert value == pytest.approx(expected_score)
    assert label == expected_label


def test_daily_move_reads_differently_in_a_downtrend():
    assert daily_score(-1.0, -2.0) == pytest.approx(60.0)
    assert daily_score(1.0, -2.0) == pytest.approx(40.0)
    assert daily_score(1.0, 30.0) == 100.0


def test_score_blends_weighted_components():
    rising = score(20.0, 6.0, 1.0)
    assert rising.score == pytest.approx(81.0)
    assert rising.label == "主升"

    basing = score(10.0, -1.0, -2.0)
    assert basing.score == pytest.approx(72.0)
    assert basing.label == "磨底"


@pytest.mark.parametrize("percentile", [0.0, 50.0, 100.0])
@pytest.mark.parametrize("trend", [-50.0, -1.0, 3.0, 7.0, 40.0])
@pytest.mark.parametrize("daily", [-10.0, 0.0, 10.0])
def test_score_stays_in_range(percentile, trend, daily):
    assert 0.0 <= score(percentile, trend, daily).score <= 100.0


def test_recommendation_action_buckets():
    assert recommendation_action(80) == "强力买入"
    assert recommendation_action(75) == "强力买入"
    assert recommendation_action(60) == "建议买入"
    assert recommendation_action(40) == "持有/观望"
    assert recommendation_action(25) == "建议减仓"
    assert recommendation_action(24.9) == "强力卖出"
