"""Portfolio analysis orchestration over loaded NAV data."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from typing import Sequence

from app.providers.eastmoney import EastmoneyClient, NavProviderError
from app.services.nav_data import FundData, load_funds
from fund_ledger.analysis import analyze_fund
from fund_ledger.ledger import settle_pending, settle_trade, upsert_trade
from fund_ledger.models import FundAnalysis, PendingTrade, Position, Snapshot, SnapshotSummary, TagReport, TradeKind
from fund_ledger.snapshots import build_snapshots, summarize_snapshots
from fund_ledger.tags import aggregate_tags, all_tags, sort_rollups

logger = logging.getLogger(__name__)

STRONG_BUY = "强力买入"
BUY = "建议买入"
HOLD = "持有/观望"
REDUCE = "建议减仓"
STRONG_SELL = "强力卖出"


def recommendation_action(score: float) -> str:
    if score >= 75:
        return STRONG_BUY
    if score >= 60:
        return BUY
    if score >= 40:
        return HOLD
    if score >= 25:
        return REDUCE
    return STRONG_SELL


@dataclass
class PortfolioAnalysis:
    positions: list[Position]
    funds: list[FundAnalysis]
    snapshots: list[Snapshot]
    summary: SnapshotSummary
    tags: TagReport
    tag_names: list[str]
    failed: dict[str, str] = field(default_factory=dict)


def _settle(positions: Sequence[Position], data: dict[str, FundData]) -> list[Position]:
    settled = []
    for position in positions:
        fund = data.get(position.code)
        settled.append(settle_pending(position, fund.nav_by_date) if fund else position)
    return settled


def analyze_loaded(
    positions: Sequence[Position],
    data: dict[str, FundData],
    *,
    deviation_pct: float,
    failed: dict[str, str] | None = None,
) -> PortfolioAnalysis:
    """Analyse positions against already loaded NAV data."""

    settled = _settle(positions, data)
    funds = [
        analyze_fund(
            position,
            data[position.code].history,
            data[position.code].estimate,
            deviation_pct=deviation_pct,
            name=data[position.code].name,
        )
        for position in settled
        if position.code in data
    ]
    series_by_code = {fund.code: fund.series for fund in funds}
    valued = [position for position in settled if position.code in series_by_code]
    snapshots = build_snapshots(valued, series_by_code)
    report = aggregate_tags(funds)
    return PortfolioAnalysis(
        positions=settled,
        funds=funds,
        snapshots=snapshots,
        summary=summarize_snapshots(snapshots),
        tags=replace(report, rows=sort_rollups(report.rows)),
        tag_names=all_tags(funds),
        failed=dict(failed or {}),
    )


async def analyze_portfolio(
    positions: Sequence[Position],
    client: EastmoneyClient,
    *,
    deviation_pct: float,
    record_count: int,
) -> PortfolioAnalysis:
    data, failed = await load_funds(client, (p.code for p in positions), record_count)
    if positions and not data:
        raise NavProviderError(f"No NAV data could be loaded for {len(failed)} funds")
    return analyze_loaded(positions, data, deviation_pct=deviation_pct, failed=failed)


async def settle_positions(
    positions: Sequence[Position],
    client: EastmoneyClient,
    *,
    record_count: int,
) -> tuple[list[Position], dict[str, str]]:
    """Confirm pending trades whose dates now have a published NAV."""

    codes = [p.code for p in positions if p.pending_trades]
    if not codes:
        return list(positions), {}
    data, failed = await load_funds(client, codes, record_count)
    if not data:
        raise NavProviderError(f"No NAV data could be loaded for {len(failed)} funds")
    return _settle(positions, data), failed


def record_trade(
    positions: Sequence[Position],
    code: str,
    *,
    day: str,
    kind: TradeKind,
    value: float,
    nav: float | None = None,
) -> list[Position]:
    """Upsert a trade on ``code``; with ``nav`` it is confirmed immediately."""

    updated = list(positions)
    index = next((i for i, p in enumerate(updated) if p.code == code), None)
    if index is None:
        updated.append(Position(code=code))
        index = len(updated) - 1
    position = updated[index]

    event = PendingTrade(date=day, kind=kind, value=value)
    if nav is not None:
        others = [t for t in position.trades if t.date != day]
        event = settle_trade(position, others, event, nav)
    updated[index] = upsert_trade(position, event)
    logger.info("Recorded %s %s on %s for %s", "confirmed" if nav else "pending", kind.value, day, code)
    return updated


__all__ = [
    "PortfolioAnalysis",
    "analyze_loaded",
    "analyze_portfolio",
    "recommendation_action",
    "record_trade",
    "settle_positions",
]
