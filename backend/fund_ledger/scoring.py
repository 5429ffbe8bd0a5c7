"""Blend NAV percentile, trend and daily move into one actionability score."""
from __future__ import annotations

from typing import Tuple

from .models import Recommendation

PERCENTILE_WEIGHT = 0.5
TREND_WEIGHT = 0.3
DAILY_WEIGHT = 0.2

OVERSOLD = "超跌"
BASING = "磨底"
CLIMBING = "爬坡"
MAIN_RALLY = "主升"
OVERHEATED = "过热"


def _clamp(value: float, low: float = 0.0, high: float = 100.0) -> float:
    return max(low, min(high, value))


def trend_score(trend_change_pct: float) -> Tuple[float, str]:
    """Map the pivot-to-latest move into a 0-100 momentum score and regime."""

    t = trend_change_pct
    if t < -3:
        return _clamp(50 + (-3 - t) * 10), OVERSOLD
    if t < 0:
        return 50.0, BASING
    if t < 4.5:
        return 50 + t / 4.5 * 30, CLIMBING
    if t <= 9:
        return 100.0, MAIN_RALLY
    return _clamp(100 - (t - 9) * 10), OVERHEATED


def daily_score(trend_change_pct: float, daily_change_pct: float) -> float:
    # A further drop inside a downtrend reads as a better entry.
    if trend_change_pct < 0:
        return _clamp(50 - daily_change_pct * 5)
    return _clamp(50 + daily_change_pct * 5)


def score(percentile: float, trend_change_pct: float, daily_change_pct: float) -> Recommendation:
    """Return the weighted score and the trend regime label."""

    base = 100 - percentile
    momentum, label = trend_score(trend_change_pct)
    daily = daily_score(trend_change_pct, daily_change_pct)
    total = PERCENTILE_WEIGHT * base + TREND_WEIGHT * momentum + DAILY_WEIGHT * daily
    return Recommendation(score=_clamp(total), label=label)


__all__ = ["daily_score", "score", "trend_score"]
