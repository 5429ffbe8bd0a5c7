"""Portfolio snapshot timeline built by replaying ledgers per trade date."""
from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Dict, Iterable, List, Mapping, Optional, Sequence

from .ledger import replay, settle_pending
from .models import (
    BASELINE_DATE,
    PENDING_DATE,
    ConfirmedTrade,
    NavPoint,
    Position,
    Snapshot,
    SnapshotSummary,
    TradeKind,
)

EPSILON = 1e-6


@dataclass
class _Quote:
    latest: float
    previous: float


@dataclass
class _DayActivity:
    """Same-day trading attribution accumulated across funds."""

    net_amount_change: float = 0.0
    buy_amount: float = 0.0
    buy_floating_profit: float = 0.0
    sell_amount: float = 0.0
    sell_opportunity_profit: float = 0.0
    sell_realized_profit: float = 0.0

    def record(self, trade: ConfirmedTrade, latest_nav: float) -> None:
        self.net_amount_change += trade.amount
        if trade.kind in (TradeKind.BUY, TradeKind.DIVIDEND_REINVEST):
            if latest_nav > 0:
                self.buy_floating_profit += (latest_nav - trade.nav) * trade.shares_change
            if trade.kind == TradeKind.BUY:
                self.buy_amount += trade.amount
        elif trade.kind == TradeKind.SELL:
            if latest_nav > 0:
                self.sell_opportunity_profit += (trade.nav - latest_nav) * abs(trade.shares_change)
            self.sell_realized_profit += trade.realized_profit_change
            self.sell_amount += abs(trade.amount)
        elif trade.kind == TradeKind.DIVIDEND_CASH:
            self.sell_realized_profit += trade.realized_profit_change


def _quotes(series_by_code: Mapping[str, Sequence[NavPoint]]) -> Dict[str, _Quote]:
    quotes: Dict[str, _Quote] = {}
    for code, series in series_by_code.items():
        if not series:
            continue
        latest = series[-1].unit_nav or 0.0
        previous = series[-2].unit_nav if len(series) > 1 else 0.0
        quotes[code] = _Quote(latest=latest, previous=previous or 0.0)
    return quotes


def _valued_snapshot(
    day: str,
    holdings: Iterable[tuple[str, float]],
    cost_basis: float,
    realized_profit: float,
    quotes: Mapping[str, _Quote],
    activity: Optional[_DayActivity] = None,
) -> Snapshot:
    market_value = 0.0
    daily_profit = 0.0
    yesterday_value = 0.0
    for code, shares in holdings:
        quote = quotes.get(code)
        if quote is None:
            continue
        if quote.latest > 0:
            market_value += shares * quote.latest
        if quote.previous > 0 and quote.latest > 0:
            daily_profit += (quote.latest - quote.previous) * shares
            yesterday_value += shares * quote.previous

    cumulative = market_value + realized_profit
    total_profit = cumulative - cost_basis
    snapshot = Snapshot(
        date=day,
        total_cost_basis=cost_basis,
        current_market_value=market_value,
        cumulative_value=cumulative,
        total_profit=total_profit,
        profit_rate=total_profit / cost_basis * 100 if cost_basis > 0 else 0.0,
        daily_profit=daily_profit,
        daily_profit_rate=daily_profit / yesterday_value * 100 if yesterday_value > 0 else 0.0,
        realized_profit=realized_profit,
    )
    if activity is None:
        return snapshot
    return replace(
        snapshot,
        net_amount_change=activity.net_amount_change,
        total_buy_amount=activity.buy_amount,
        total_buy_floating_profit=activity.buy_floating_profit,
        total_sell_amount=activity.sell_amount,
        total_sell_opportunity_profit=activity.sell_opportunity_profit,
        total_sell_realized_profit=activity.sell_realized_profit,
    )


def trade_dates(positions: Iterable[Position]) -> List[str]:
    """Distinct confirmed trade dates across all positions, ascending."""

    dates = {t.date for p in positions for t in p.trades if isinstance(t, ConfirmedTrade)}
    return sorted(dates)


def _snapshot_on(day: str, positions: Sequence[Position], quotes: Mapping[str, _Quote]) -> Snapshot:
    """Replay every position up to ``day`` and value it at the latest NAV."""

    holdings: list[tuple[str, float]] = []
    cost_basis = 0.0
    realized = 0.0
    activity = _DayActivity()
    for position in positions:
        confirmed = [t for t in position.confirmed_trades if t.date <= day]
        state = replay(position, confirmed)
        quote = quotes.get(position.code)
        latest_nav = quote.latest if quote else 0.0
        for trade in confirmed:
            if trade.date == day:
                activity.record(trade, latest_nav)
        if state.shares > 0:
            holdings.append((position.code, state.shares))
            cost_basis += state.total_cost
        realized += state.realized_profit
    return _valued_snapshot(day, holdings, cost_basis, realized, quotes, activity)


def _baseline_snapshot(positions: Sequence[Position], quotes: Mapping[str, _Quote]) -> Snapshot:
    """Value the raw baselines, ignoring every trade: the no-trading reference."""

    holdings = [(p.code, p.shares) for p in positions]
    cost_basis = sum(p.shares * p.cost for p in positions)
    realized = sum(p.realized_profit for p in positions)
    return _valued_snapshot(BASELINE_DATE, holdings, cost_basis, realized, quotes)


def _pending_snapshot(positions: Sequence[Position], quotes: Mapping[str, _Quote]) -> Optional[Snapshot]:
    """Project pending trades as if settled at the latest (estimated) NAV."""

    if not any(p.pending_trades for p in positions):
        return None

    holdings: list[tuple[str, float]] = []
    cost_basis = 0.0
    realized = 0.0
    activity = _DayActivity()
    for position in positions:
        quote = quotes.get(position.code)
        latest_nav = quote.latest if quote else 0.0
        projected = position
        pending = position.pending_trades
        if pending and latest_nav > 0:
            projected = settle_pending(position, {t.date: latest_nav for t in pending})
            pending_dates = {t.date for t in pending}
            for trade in projected.confirmed_trades:
                if trade.date in pending_dates:
                    activity.record(trade, latest_nav)
        state = replay(projected)
        if state.shares > 0:
            holdings.append((position.code, state.shares))
            cost_basis += state.total_cost
        realized += state.realized_profit
    return _valued_snapshot(PENDING_DATE, holdings, cost_basis, realized, quotes, activity)


def _with_deltas(current: Snapshot, previous: Snapshot) -> Snapshot:
    net = current.net_amount_change or 0.0
    market_value_change = current.current_market_value - previous.current_market_value
    operation_profit = market_value_change - net
    profit_caused = current.daily_profit - previous.daily_profit
    action_base = abs(current.action_base)

    profit_per_hundred = None
    profit_caused_per_hundred = None
    if action_base > EPSILON:
        profit_per_hundred = operation_profit / action_base * 100
        profit_caused_per_hundred = profit_caused / action_base * 100

    if abs(previous.daily_profit) > EPSILON:
        operation_effect = profit_caused / abs(previous.daily_profit) * 100
    else:
        operation_effect = 100.0

    return replace(
        current,
        market_value_change=market_value_change,
        operation_profit=operation_profit,
        profit_per_hundred=profit_per_hundred,
        profit_caused=profit_caused,
        profit_caused_per_hundred=profit_caused_per_hundred,
        operation_effect=operation_effect,
    )


def build_snapshots(
    positions: Sequence[Position],
    series_by_code: Mapping[str, Sequence[NavPoint]],
) -> List[Snapshot]:
    """Return the snapshot timeline, most recent first.

    Layout: optional ``pending`` snapshot, one snapshot per confirmed trade
    date (newest first), then the ``baseline`` snapshot. Every snapshot but
    the baseline carries deltas against the one that precedes it in time.
    """

    quotes = _quotes(series_by_code)
    timeline = [_snapshot_on(day, positions, quotes) for day in trade_dates(positions)]
    timeline.reverse()
    timeline.append(_baseline_snapshot(positions, quotes))

    projected = _pending_snapshot(positions, quotes)
    if projected is not None:
        timeline.insert(0, projected)

    return [
        _with_deltas(snapshot, timeline[index + 1]) if index < len(timeline) - 1 else snapshot
        for index, snapshot in enumerate(timeline)
    ]


def summarize_snapshots(snapshots: Sequence[Snapshot]) -> SnapshotSummary:
    """Sum trading attribution over all trade snapshots against the baseline."""

    if len(snapshots) < 2:
        return SnapshotSummary()
    operational = [s for s in snapshots if not s.is_baseline]
    if not operational:
        return SnapshotSummary()

    def total(field_name: str) -> float:
        return sum(getattr(s, field_name) or 0.0 for s in operational)

    net = total("net_amount_change")
    operation_profit = total("operation_profit")

    latest = snapshots[0]
    baseline = snapshots[-1]
    summary_profit_caused = None
    summary_operation_effect = None
    if baseline.is_baseline:
        summary_profit_caused = latest.daily_profit - baseline.daily_profit
        if abs(baseline.daily_profit) > EPSILON:
            summary_operation_effect = summary_profit_caused / abs(baseline.daily_profit) * 100
        else:
            summary_operation_effect = 100.0

    return SnapshotSummary(
        net_amount_change=net,
        market_value_change=total("market_value_change"),
        operation_profit=operation_profit,
        total_buy_amount=total("total_buy_amount"),
        total_buy_floating_profit=total("total_buy_floating_profit"),
        total_sell_amount=total("total_sell_amount"),
        total_sell_opportunity_profit=total("total_sell_opportunity_profit"),
        total_sell_realized_profit=total("total_sell_realized_profit"),
        profit_caused=total("profit_caused"),
        profit_per_hundred=operation_profit / abs(net) * 100 if abs(net) > EPSILON else None,
        summary_profit_caused=summary_profit_caused,
        summary_operation_effect=summary_operation_effect,
    )


__all__ = [
    "build_snapshots",
    "summarize_snapshots",
    "trade_dates",
]
