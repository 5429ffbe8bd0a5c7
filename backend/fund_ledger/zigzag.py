"""Zigzag pivot detection and trend helpers over NAV series."""
from __future__ import annotations

import math
from datetime import date
from typing import List, Optional, Protocol, Sequence, TypeVar

from .models import NavPoint, TrendInfo


class _HasNav(Protocol):
    unit_nav: float


P = TypeVar("P", bound=_HasNav)


def detect_pivots(series: Sequence[P], deviation_pct: float) -> List[P]:
    """Return the major peaks and troughs of ``series``.

    A reversal is committed once a point retraces at least ``deviation_pct``
    percent from the running extremum. The first point is always kept and the
    last point is appended when its NAV differs from the last pivot.
    """

    if len(series) < 2 or deviation_pct <= 0:
        return []

    pivots: List[P] = [series[0]]
    trend = "up"
    start = 0
    peak = 0
    trough = 0

    first_nav = series[0].unit_nav
    if first_nav != 0:
        for i in range(1, len(series)):
            change = (series[i].unit_nav - first_nav) / first_nav * 100
            if abs(change) >= deviation_pct:
                trend = "up" if change > 0 else "down"
                if trend == "up":
                    peak = i
                else:
                    trough = i
                start = i
                break

    for i in range(start + 1, len(series)):
        nav = series[i].unit_nav
        if trend == "up":
            peak_nav = series[peak].unit_nav
            if nav > peak_nav:
                peak = i
            elif peak_nav > 0 and (peak_nav - nav) / peak_nav * 100 >= deviation_pct:
                pivots.append(series[peak])
                trend = "down"
                trough = i
        else:
            trough_nav = series[trough].unit_nav
            if nav < trough_nav:
                trough = i
            elif trough_nav > 0 and (nav - trough_nav) / trough_nav * 100 >= deviation_pct:
                pivots.append(series[trough])
                trend = "up"
                peak = i

    last = series[-1]
    if pivots[-1].unit_nav != last.unit_nav:
        pivots.append(last)
    return pivots


def nav_percentile(series: Sequence[NavPoint]) -> Optional[float]:
    """Position of the latest NAV within the series range, in percent."""

    values = [p.unit_nav for p in series if not math.isnan(p.unit_nav)]
    if len(values) < 2:
        return None
    low, high = min(values), max(values)
    if high <= low:
        return 50.0
    return (values[-1] - low) / (high - low) * 100


def _parse_day(raw: str) -> date | None:
    try:
        return date.fromisoformat(raw.split(" ")[0])
    except ValueError:
        return None


def trend_since_last_pivot(
    series: Sequence[NavPoint],
    pivots: Sequence[NavPoint],
    shares: float = 0.0,
) -> Optional[TrendInfo]:
    """Measure the move from the last committed pivot to the latest point."""

    if len(pivots) < 2 or not series:
        return None
    pivot = pivots[-2]
    latest = series[-1]
    pivot_day = _parse_day(pivot.date)
    latest_day = _parse_day(latest.date)
    if pivot_day is None or latest_day is None or pivot.unit_nav == 0:
        return None

    days = (latest_day - pivot_day).days
    change = (latest.unit_nav - pivot.unit_nav) / pivot.unit_nav * 100
    is_positive = change >= 0
    arrow = "⬆︎" if is_positive else "⬇︎"
    text = f"近{days or 1}天, {arrow}{abs(change):.2f}%"

    recent_profit = 0.0
    initial_value = 0.0
    if shares > 0:
        recent_profit = round((latest.unit_nav - pivot.unit_nav) * shares, 2)
        initial_value = round(pivot.unit_nav * shares, 2)
        text += f", {recent_profit:.0f} 元"

    return TrendInfo(
        change=change,
        days=days,
        is_positive=is_positive,
        text=text,
        recent_profit=recent_profit,
        initial_market_value=initial_value,
    )


__all__ = ["detect_pivots", "nav_percentile", "trend_since_last_pivot"]
