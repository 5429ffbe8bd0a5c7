"""Snapshot timeline tests."""

from __future__ import annotations

import pytest

from fund_ledger.models import ConfirmedTrade, PendingTrade, Position, SnapshotSummary, TradeKind
from fund_ledger.snapshots import build_snapshots, summarize_snapshots, trade_dates

BUY_JAN_3 = ConfirmedTrade(date="2024-01-03", kind=TradeKind.BUY, nav=1.1, shares_change=100, amount=110)


def _fund_a(*extra) -> Position:
    return Position(code="A", shares=1000, cost=1.0, tag="宽基", trades=(BUY_JAN_3, *extra))


def test_trade_date_snapshot_with_deltas_against_baseline(make_series):
    snapshots = build_snapshots([_fund_a()], {"A": make_series([1.0, 1.1, 1.2])})

    assert [s.date for s in snapshots] == ["2024-01-03", "baseline"]
    latest, baseline = snapshots

    assert latest.total_cost_basis == pytest.approx(1110)
    assert latest.current_market_value == pytest.approx(1320)
    assert latest.total_profit == pytest.approx(210)
    assert latest.profit_rate == pytest.approx(210 / 1110 * 100)
    assert latest.daily_profit == pytest.approx(110)
    assert latest.net_amount_change == pytest.approx(110)
    assert latest.total_buy_amount == pytest.approx(110)
    assert latest.total_buy_floating_profit == pytest.approx(10)

    assert latest.market_value_change == pytest.approx(120)
    assert latest.operation_profit == pytest.approx(10)
    assert latest.profit_per_hundred == pytest.approx(10 / 110 * 100)
    assert latest.profit_caused == pytest.approx(10)
    assert latest.operation_effect == pytest.approx(10)

    assert baseline.total_cost_basis == pytest.approx(1000)
    assert baseline.current_market_value == pytest.approx(1200)
    assert baseline.market_value_change is None
    assert baseline.net_amount_change is None


def test_pending_snapshot_leads_the_timeline(make_series):
    position = _fund_a(PendingTrade(date="2024-01-05", kind=TradeKind.SELL, value=100))
    snapshots = build_snapshots([position], {"A": make_series([1.0, 1.1, 1.2])})

    assert [s.date for s in snapshots] == ["pending", "2024-01-03", "baseline"]
    pending = snapshots[0]
    assert pending.is_pending
    assert pending.current_market_value == pytest.approx(1200)
    assert pending.total_cost_basis == pytest.approx(1009.09)
    assert pending.realized_profit == pytest.approx(19.09)
    assert pending.total_sell_amount == pytest.approx(120)
    assert pending.total_sell_realized_profit == pytest.approx(19.09)
    assert pending.total_sell_opportunity_profit == pytest.approx(0)
    assert pending.operation_profit == pytest.approx(0)
    assert pending.profit_caused == pytest.approx(-10)

    summary = summarize_snapshots(snapshots)
    assert summary.net_amount_change == pytest.approx(-10)
    assert summary.operation_profit == pytest.approx(10)
    assert summary.profit_per_hundred == pytest.approx(100)
    assert summary.summary_profit_caused == pytest.approx(0)
    assert summary.summary_operation_effect == pytest.approx(0)


def test_cumulative_value_is_market_value_plus_realized(make_series):
    dividend = ConfirmedTrade(
        date="2024-01-04",
        kind=TradeKind.DIVIDEND_CASH,
        nav=1.2,
        shares_change=0,
        amount=0,
        realized_profit_change=12.5,
    )
    position = _fund_a(dividend, PendingTrade(date="2024-01-05", kind=TradeKind.SELL, value=100))
    snapshots = build_snapshots([position], {"A": make_series([1.0, 1.1, 1.2])})

    for snapshot in snapshots:
        assert snapshot.cumulative_value == pytest.approx(
            snapshot.current_market_value + snapshot.realized_profit
        )


def test_degenerate_denominators(make_series):
    dividend = ConfirmedTrade(
        date="2024-01-03",
        kind=TradeKind.DIVIDEND_CASH,
        nav=1.1,
        shares_change=0,
        amount=0,
        realized_profit_change=12.5,
    )
    position = Position(code="A", shares=1000, cost=1.0, trades=(dividend,))
    latest, baseline = build_snapshots([position], {"A": make_series([1.1])})

    assert latest.realized_profit == pytest.approx(12.5)
    assert latest.cumulative_value == pytest.approx(1112.5)
    assert latest.daily_profit == 0.0
    assert latest.profit_per_hundred is None
    assert latest.profit_caused_per_hundred is None
    assert latest.operation_effect == 100.0
    assert baseline.daily_profit_rate == 0.0


def test_each_date_replays_every_fund_up_to_that_date(make_series):
    fund_b = Position(
        code="B",
        trades=(ConfirmedTrade(date="2024-01-04", kind=TradeKind.BUY, nav=1.0, shares_change=50, amount=50),),
    )
    positions = [_fund_a(), fund_b]
    series = {"A": make_series([1.0, 1.1, 1.2]), "B": make_series([1.0, 1.0, 1.0])}

    assert trade_dates(positions) == ["2024-01-03", "2024-01-04"]
    snapshots = build_snapshots(positions, series)

    assert [s.date for s in snapshots] == ["2024-01-04", "2024-01-03", "baseline"]
    assert snapshots[0].total_cost_basis == pytest.approx(1160)
    assert snapshots[1].total_cost_basis == pytest.approx(1110)
    assert snapshots[0].current_market_value == pytest.approx(1370)


def test_no_trades_yields_baseline_only(make_series):
    position = Position(code="A", shares=10, cost=1.0)
    snapshots = build_snapshots([position], {"A": make_series([1.0, 1.1])})

    assert [s.date for s in snapshots] == ["baseline"]
    assert summarize_snapshots(snapshots) == SnapshotSummary()
