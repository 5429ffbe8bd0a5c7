"""Per-fund derived record: replayed position, valuation, trend and score."""
from __future__ import annotations

import logging
from dataclasses import replace
from typing import Optional, Sequence

from .ledger import replay
from .models import FundAnalysis, NavPoint, Position, RealTimeEstimate
from .scoring import score
from .zigzag import detect_pivots, nav_percentile, trend_since_last_pivot

logger = logging.getLogger(__name__)


def _parse_rate(raw: Optional[str]) -> Optional[float]:
    if raw is None:
        return None
    text = str(raw).strip().rstrip("%")
    if not text:
        return None
    try:
        return float(text)
    except ValueError:
        return None


def augment_series(history: Sequence[NavPoint], estimate: Optional[RealTimeEstimate]) -> list[NavPoint]:
    """Append the intraday estimate when history has no point for its day."""

    series = list(history)
    if estimate is None or not estimate.estimated_nav or estimate.estimated_nav <= 0:
        return series
    if any(point.day == estimate.day for point in series):
        return series
    series.append(
        NavPoint(
            date=estimate.estimation_time,
            unit_nav=estimate.estimated_nav,
            daily_growth_rate=estimate.estimated_change,
            is_estimate=True,
        )
    )
    return series


def analyze_fund(
    position: Position,
    history: Sequence[NavPoint],
    estimate: Optional[RealTimeEstimate] = None,
    *,
    deviation_pct: float,
    name: str = "",
) -> FundAnalysis:
    series = augment_series(history, estimate)
    pivots = detect_pivots(series, deviation_pct)
    state = replay(position)
    current = replace(
        position,
        shares=state.shares,
        cost=state.average_cost,
        realized_profit=state.realized_profit,
    )
    shares = current.shares

    latest_nav = series[-1].unit_nav if series else 0.0
    previous_nav = series[-2].unit_nav if len(series) > 1 else 0.0

    market_value = round(shares * latest_nav, 2)
    cost_basis = round(state.total_cost, 2)
    holding_profit = round(market_value - cost_basis, 2)
    total_profit = round(holding_profit + current.realized_profit, 2)
    actual_cost = round((cost_basis - current.realized_profit) / shares, 4) if shares > 0 else 0.0

    daily_profit = 0.0
    yesterday_market_value = 0.0
    if latest_nav > 0 and previous_nav > 0:
        daily_profit = round((latest_nav - previous_nav) * shares, 2)
        yesterday_market_value = round(previous_nav * shares, 2)

    daily_change = _parse_rate(estimate.estimated_change) if estimate is not None else None
    if daily_change is None and series:
        daily_change = _parse_rate(series[-1].daily_growth_rate)

    trend = trend_since_last_pivot(series, pivots, shares)
    percentile = nav_percentile(series)
    recommendation = None
    if percentile is not None and trend is not None:
        recommendation = score(percentile, trend.change, daily_change or 0.0)
    else:
        logger.debug("No recommendation for %s: not enough history", position.code)

    return FundAnalysis(
        code=position.code,
        baseline=position,
        position=current,
        series=tuple(series),
        pivots=tuple(pivots),
        last_pivot_date=pivots[-2].date if len(pivots) >= 2 else None,
        trend=trend,
        nav_percentile=percentile,
        latest_nav=latest_nav,
        daily_change=daily_change,
        market_value=market_value,
        cost_basis=cost_basis,
        holding_profit=holding_profit,
        total_profit=total_profit,
        actual_cost=actual_cost,
        holding_profit_rate=round(holding_profit / cost_basis * 100, 2) if cost_basis > 0 else 0.0,
        total_profit_rate=round(total_profit / cost_basis * 100, 2) if cost_basis > 0 else 0.0,
        daily_profit=daily_profit,
        yesterday_market_value=yesterday_market_value,
        recommendation=recommendation,
        name=name,
    )


__all__ = ["analyze_fund", "augment_series"]
