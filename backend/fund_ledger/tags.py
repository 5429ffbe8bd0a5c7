"""Per-tag rollups of fund financials and portfolio-wide totals.

A fund contributes to every tag it carries, so a fund holding two tags is
counted in both rollups; tag rows therefore do not add up to the portfolio
totals when tags overlap.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Literal, Optional, Sequence

from .models import FundAnalysis, PortfolioTotals, TagReport, TagRollup

HOLDING = "持有"
WATCHING = "自选"
PROFIT = "盈利"
LOSS = "亏损"
SYSTEM_TAGS = (HOLDING, WATCHING, PROFIT, LOSS)

SortOrder = Literal["desc", "asc", "abs_desc", "abs_asc"]


def _rate(numerator: float, denominator: float) -> float:
    return numerator / denominator * 100 if denominator > 0 else 0.0


def _share(part: float, whole: float) -> float:
    return part / abs(whole) if whole != 0 else 0.0


@dataclass
class _TagAccumulator:
    codes: List[str] = field(default_factory=list)
    cost_basis: float = 0.0
    market_value: float = 0.0
    holding_profit: float = 0.0
    realized_profit: float = 0.0
    daily_profit: float = 0.0
    yesterday_market_value: float = 0.0
    recent_profit: float = 0.0
    initial_market_value_for_trend: float = 0.0
    daily_rates: List[float] = field(default_factory=list)
    recent_rates: List[float] = field(default_factory=list)

    def add(self, fund: FundAnalysis) -> None:
        if fund.code not in self.codes:
            self.codes.append(fund.code)
        self.realized_profit += fund.position.realized_profit
        if fund.daily_change is not None:
            self.daily_rates.append(fund.daily_change)
        if fund.trend is not None:
            self.recent_rates.append(fund.trend.change)
        if not fund.is_held:
            return
        self.cost_basis += fund.cost_basis
        self.market_value += fund.market_value
        self.holding_profit += fund.holding_profit
        self.daily_profit += fund.daily_profit
        self.yesterday_market_value += fund.yesterday_market_value
        self.recent_profit += fund.recent_profit
        self.initial_market_value_for_trend += fund.initial_market_value_for_trend


def portfolio_totals(funds: Sequence[FundAnalysis]) -> PortfolioTotals:
    """Totals over held funds; grand total profit also counts sold-out funds."""

    cost_basis = market_value = holding = daily = yesterday = recent = initial = 0.0
    grand_total = 0.0
    for fund in funds:
        grand_total += fund.total_profit
        if not fund.is_held:
            continue
        cost_basis += fund.cost_basis
        market_value += fund.market_value
        holding += fund.holding_profit
        daily += fund.daily_profit
        yesterday += fund.yesterday_market_value
        recent += fund.recent_profit
        initial += fund.initial_market_value_for_trend

    return PortfolioTotals(
        total_cost_basis=cost_basis,
        total_market_value=market_value,
        cumulative_market_value=cost_basis + grand_total,
        grand_total_profit=grand_total,
        total_holding_profit=holding,
        total_daily_profit=daily,
        total_yesterday_market_value=yesterday,
        total_recent_profit=recent,
        total_initial_market_value_for_trend=initial,
        holding_profit_rate=_rate(holding, cost_basis),
        total_profit_rate=_rate(grand_total, cost_basis),
        daily_profit_rate=_rate(daily, yesterday),
        recent_profit_rate=_rate(recent, initial),
    )


def _weighted_or_mean(numerator: float, denominator: float, fallback: Sequence[float]) -> float:
    if denominator > 0:
        return numerator / denominator * 100
    if fallback:
        return sum(fallback) / len(fallback)
    return 0.0


def _rollup(tag: str, acc: _TagAccumulator, totals: PortfolioTotals) -> TagRollup:
    grand_total = acc.holding_profit + acc.realized_profit
    value_share = acc.market_value / totals.total_market_value if totals.total_market_value > 0 else 0.0

    def efficiency(tag_profit: float, total_profit: float) -> float:
        if value_share <= 0:
            return 0.0
        return _share(tag_profit, total_profit) / value_share

    return TagRollup(
        tag=tag,
        fund_count=len(acc.codes),
        fund_codes=tuple(acc.codes),
        total_cost_basis=acc.cost_basis,
        total_market_value=acc.market_value,
        total_holding_profit=acc.holding_profit,
        total_realized_profit=acc.realized_profit,
        total_daily_profit=acc.daily_profit,
        total_yesterday_market_value=acc.yesterday_market_value,
        total_recent_profit=acc.recent_profit,
        total_initial_market_value_for_trend=acc.initial_market_value_for_trend,
        grand_total_profit=grand_total,
        cumulative_market_value=acc.cost_basis + grand_total,
        holding_profit_rate=_rate(acc.holding_profit, acc.cost_basis),
        total_profit_rate=_rate(grand_total, acc.cost_basis),
        daily_profit_rate=_weighted_or_mean(acc.daily_profit, acc.yesterday_market_value, acc.daily_rates),
        recent_profit_rate=_weighted_or_mean(
            acc.recent_profit, acc.initial_market_value_for_trend, acc.recent_rates
        ),
        holding_efficiency=efficiency(acc.holding_profit, totals.total_holding_profit),
        daily_efficiency=efficiency(acc.daily_profit, totals.total_daily_profit),
        recent_efficiency=efficiency(acc.recent_profit, totals.total_recent_profit),
    )


def aggregate_tags(funds: Sequence[FundAnalysis]) -> TagReport:
    """Roll fund metrics up into one row per custom tag, in first-seen order."""

    totals = portfolio_totals(funds)
    by_tag: Dict[str, _TagAccumulator] = {}
    for fund in funds:
        for tag in fund.position.tags:
            by_tag.setdefault(tag, _TagAccumulator()).add(fund)
    rows = [_rollup(tag, acc, totals) for tag, acc in by_tag.items()]
    return TagReport(rows=rows, totals=totals)


def sort_rollups(rows: Sequence[TagRollup], key: str = "total_daily_profit", order: SortOrder = "desc") -> List[TagRollup]:
    """Sort rollups by a numeric field; ``abs_*`` orders compare magnitudes."""

    def value(row: TagRollup) -> float:
        raw = getattr(row, key)
        if not isinstance(raw, (int, float)):
            raise ValueError(f"Cannot sort tag rollups by non-numeric field {key!r}")
        return abs(raw) if order.startswith("abs") else raw

    return sorted(rows, key=value, reverse=order in ("desc", "abs_desc"))


def system_tags(fund: FundAnalysis) -> List[str]:
    if not fund.is_held:
        return [WATCHING]
    tags = [HOLDING]
    if fund.holding_profit > 0:
        tags.append(PROFIT)
    elif fund.holding_profit < 0:
        tags.append(LOSS)
    return tags


def all_tags(funds: Sequence[FundAnalysis]) -> List[str]:
    """System tags in their fixed order, then the custom tags alphabetically."""

    present = {tag for fund in funds for tag in system_tags(fund)}
    custom = {tag for fund in funds for tag in fund.position.tags}
    return [tag for tag in SYSTEM_TAGS if tag in present] + sorted(custom)


def filter_by_tag(funds: Sequence[FundAnalysis], tag: Optional[str]) -> List[FundAnalysis]:
    if not tag:
        return list(funds)
    if tag in SYSTEM_TAGS:
        return [fund for fund in funds if tag in system_tags(fund)]
    return [fund for fund in funds if tag in fund.position.tags]


__all__ = [
    "HOLDING",
    "LOSS",
    "PROFIT",
    "SYSTEM_TAGS",
    "WATCHING",
    "aggregate_tags",
    "all_tags",
    "filter_by_tag",
    "portfolio_totals",
    "sort_rollups",
    "system_tags",
]
