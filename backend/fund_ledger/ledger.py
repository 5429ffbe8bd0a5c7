"""Average-cost ledger replay and trade settlement."""
from __future__ import annotations

import logging
from dataclasses import replace
from typing import Iterable, List, Mapping, Sequence

from .models import ConfirmedTrade, LedgerState, PendingTrade, Position, TradeEvent, TradeKind

logger = logging.getLogger(__name__)

SHARE_FLOOR = 1e-6


class LedgerError(ValueError):
    """Raised when a trade event cannot be applied to a ledger."""


def _money(value: float) -> float:
    return round(value, 2)


def sort_trades(events: Iterable[TradeEvent]) -> List[TradeEvent]:
    """Return events ordered by date; same-date order is preserved."""

    return sorted(events, key=lambda event: event.date)


def _apply(state: LedgerState, event: ConfirmedTrade) -> LedgerState:
    shares = state.shares
    total_cost = state.total_cost
    realized = state.realized_profit

    if event.kind == TradeKind.BUY:
        shares = _money(shares + event.shares_change)
        total_cost = _money(total_cost + event.amount)
    elif event.kind == TradeKind.SELL:
        cost_per_share = total_cost / shares if shares > 0 else 0.0
        total_cost = _money(total_cost - cost_per_share * abs(event.shares_change))
        shares = _money(shares + event.shares_change)
        realized = _money(realized + event.realized_profit_change)
    elif event.kind == TradeKind.DIVIDEND_CASH:
        realized = _money(realized + event.realized_profit_change)
    elif event.kind == TradeKind.DIVIDEND_REINVEST:
        shares = _money(shares + event.shares_change)
    else:
        raise LedgerError(f"Unsupported trade kind {event.kind!r} on {event.date}")

    if shares < SHARE_FLOOR:
        shares = 0.0
        total_cost = 0.0
    return LedgerState(shares=shares, total_cost=total_cost, realized_profit=realized)


def initial_state(baseline: Position) -> LedgerState:
    return LedgerState(
        shares=baseline.shares,
        total_cost=_money(baseline.shares * baseline.cost),
        realized_profit=baseline.realized_profit,
    )


def replay(baseline: Position, events: Iterable[TradeEvent] | None = None) -> LedgerState:
    """Replay confirmed ``events`` on top of ``baseline``.

    ``events`` defaults to the baseline's own trades. Pending events are
    skipped; the input is never mutated.
    """

    if events is None:
        events = baseline.trades
    state = initial_state(baseline)
    for event in sort_trades(events):
        if isinstance(event, PendingTrade):
            continue
        state = _apply(state, event)
    return state


def replay_until(baseline: Position, day: str) -> LedgerState:
    """Replay the baseline's confirmed trades dated on or before ``day``."""

    return replay(baseline, [t for t in baseline.trades if t.date <= day])


def settle_trade(
    baseline: Position,
    events: Sequence[TradeEvent],
    pending: PendingTrade,
    nav: float,
) -> ConfirmedTrade:
    """Confirm ``pending`` at ``nav`` using the average cost held before its date."""

    if nav <= 0:
        raise LedgerError(f"Cannot settle {pending.kind.value} on {pending.date} at NAV {nav}")
    value = pending.value
    if pending.kind == TradeKind.BUY:
        return ConfirmedTrade(
            date=pending.date,
            kind=TradeKind.BUY,
            nav=nav,
            shares_change=round(value / nav, 2),
            amount=value,
        )
    if pending.kind == TradeKind.SELL:
        prior = [e for e in events if e.date < pending.date]
        average_cost = replay(baseline, prior).average_cost
        return ConfirmedTrade(
            date=pending.date,
            kind=TradeKind.SELL,
            nav=nav,
            shares_change=-value,
            amount=_money(-(value * nav)),
            realized_profit_change=_money((nav - average_cost) * value),
        )
    if pending.kind == TradeKind.DIVIDEND_CASH:
        return ConfirmedTrade(
            date=pending.date,
            kind=TradeKind.DIVIDEND_CASH,
            nav=nav,
            shares_change=0.0,
            amount=0.0,
            realized_profit_change=_money(value),
        )
    if pending.kind == TradeKind.DIVIDEND_REINVEST:
        return ConfirmedTrade(
            date=pending.date,
            kind=TradeKind.DIVIDEND_REINVEST,
            nav=nav,
            shares_change=round(value / nav, 2),
            amount=0.0,
        )
    raise LedgerError(f"Unsupported trade kind {pending.kind!r} on {pending.date}")


def settle_pending(position: Position, nav_by_date: Mapping[str, float]) -> Position:
    """Confirm every pending trade whose exact date has a published NAV.

    Trades without a NAV for their date stay pending. Settlement runs in date
    order so a later sell sees the cost left by earlier settled buys.
    """

    trades = sort_trades(position.trades)
    changed = False
    for index, event in enumerate(trades):
        if not isinstance(event, PendingTrade):
            continue
        nav = nav_by_date.get(event.date)
        if not nav or nav <= 0:
            continue
        trades[index] = settle_trade(position, trades, event, nav)
        changed = True
        logger.debug("Settled %s %s on %s at %s", position.code, event.kind.value, event.date, nav)
    if not changed:
        return position
    return replace(position, trades=tuple(trades))


def upsert_trade(position: Position, event: TradeEvent) -> Position:
    """Add ``event``, replacing any trade already recorded on the same date."""

    kept = tuple(t for t in position.trades if t.date != event.date)
    return replace(position, trades=kept + (event,))


def remove_trade(position: Position, day: str) -> Position:
    return replace(position, trades=tuple(t for t in position.trades if t.date != day))


def rebase(position: Position, *, shares: float, cost: float) -> Position:
    """Replace the baseline holding; the trade history restarts from it."""

    return replace(position, shares=shares, cost=cost, trades=())


def update_details(position: Position, *, tag: str | None = None, realized_profit: float | None = None) -> Position:
    """Change non-structural fields without touching baseline shares or trades."""

    changes: dict[str, object] = {}
    if tag is not None:
        changes["tag"] = tag
    if realized_profit is not None:
        changes["realized_profit"] = realized_profit
    return replace(position, **changes) if changes else position


def current_position(baseline: Position) -> Position:
    """Return the baseline with shares, cost and realized profit replayed."""

    state = replay(baseline)
    return replace(
        baseline,
        shares=state.shares,
        cost=state.average_cost,
        realized_profit=state.realized_profit,
    )


__all__ = [
    "LedgerError",
    "SHARE_FLOOR",
    "current_position",
    "initial_state",
    "rebase",
    "remove_trade",
    "replay",
    "replay_until",
    "settle_pending",
    "settle_trade",
    "sort_trades",
    "update_details",
    "upsert_trade",
]
