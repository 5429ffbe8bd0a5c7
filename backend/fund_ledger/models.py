"""Domain models used by the fund ledger core."""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Tuple, Union

BASELINE_DATE = "baseline"
PENDING_DATE = "pending"


class TradeKind(str, Enum):
    BUY = "buy"
    SELL = "sell"
    DIVIDEND_CASH = "dividend-cash"
    DIVIDEND_REINVEST = "dividend-reinvest"


@dataclass(frozen=True)
class PendingTrade:
    """A trade submitted before its settlement NAV is known.

    ``value`` is a currency amount for buys and dividends and a share count
    for sells.
    """

    date: str
    kind: TradeKind
    value: float

    @property
    def is_pending(self) -> bool:
        return True


@dataclass(frozen=True)
class ConfirmedTrade:
    """A trade settled at the fund's published NAV for its date."""

    date: str
    kind: TradeKind
    nav: float
    shares_change: float
    amount: float
    realized_profit_change: float = 0.0

    @property
    def is_pending(self) -> bool:
        return False


TradeEvent = Union[PendingTrade, ConfirmedTrade]


def _split_tags(raw: str) -> Tuple[str, ...]:
    seen: list[str] = []
    for part in raw.split(","):
        tag = part.strip()
        if tag and tag not in seen:
            seen.append(tag)
    return tuple(seen)


@dataclass(frozen=True)
class Position:
    """Baseline holding of one fund plus its trade history."""

    code: str
    shares: float = 0.0
    cost: float = 0.0
    realized_profit: float = 0.0
    tag: str = ""
    trades: Tuple[TradeEvent, ...] = ()

    @property
    def tags(self) -> Tuple[str, ...]:
        """Return the de-duplicated custom tags in the order they were written."""

        return _split_tags(self.tag or "")

    @property
    def cost_basis(self) -> float:
        return self.shares * self.cost

    @property
    def pending_trades(self) -> Tuple[PendingTrade, ...]:
        return tuple(t for t in self.trades if isinstance(t, PendingTrade))

    @property
    def confirmed_trades(self) -> Tuple[ConfirmedTrade, ...]:
        return tuple(t for t in self.trades if isinstance(t, ConfirmedTrade))


@dataclass(frozen=True)
class NavPoint:
    """One NAV observation; ``is_estimate`` marks the unsettled intraday point."""

    date: str
    unit_nav: float
    daily_growth_rate: str = ""
    is_estimate: bool = False

    @property
    def day(self) -> str:
        return self.date.split(" ")[0]


@dataclass(frozen=True)
class RealTimeEstimate:
    estimated_nav: float
    estimated_change: str
    estimation_time: str

    @property
    def day(self) -> str:
        return self.estimation_time.split(" ")[0]


@dataclass(frozen=True)
class LedgerState:
    """Replay output for a single position."""

    shares: float
    total_cost: float
    realized_profit: float

    @property
    def average_cost(self) -> float:
        if self.shares <= 0:
            return 0.0
        return round(self.total_cost / self.shares, 4)


@dataclass(frozen=True)
class Snapshot:
    """Portfolio-wide state reconstructed as of a trade date or sentinel."""

    date: str
    total_cost_basis: float
    current_market_value: float
    cumulative_value: float
    total_profit: float
    profit_rate: float
    daily_profit: float
    daily_profit_rate: float
    realized_profit: float = 0.0
    net_amount_change: Optional[float] = None
    total_buy_amount: Optional[float] = None
    total_buy_floating_profit: Optional[float] = None
    total_sell_amount: Optional[float] = None
    total_sell_opportunity_profit: Optional[float] = None
    total_sell_realized_profit: Optional[float] = None
    market_value_change: Optional[float] = None
    operation_profit: Optional[float] = None
    profit_per_hundred: Optional[float] = None
    profit_caused: Optional[float] = None
    profit_caused_per_hundred: Optional[float] = None
    operation_effect: Optional[float] = None

    @property
    def is_baseline(self) -> bool:
        return self.date == BASELINE_DATE

    @property
    def is_pending(self) -> bool:
        return self.date == PENDING_DATE

    @property
    def action_base(self) -> float:
        return (self.total_buy_amount or 0.0) + (self.total_sell_amount or 0.0)


@dataclass(frozen=True)
class SnapshotSummary:
    net_amount_change: float = 0.0
    market_value_change: float = 0.0
    operation_profit: float = 0.0
    total_buy_amount: float = 0.0
    total_buy_floating_profit: float = 0.0
    total_sell_amount: float = 0.0
    total_sell_opportunity_profit: float = 0.0
    total_sell_realized_profit: float = 0.0
    profit_caused: float = 0.0
    profit_per_hundred: Optional[float] = None
    summary_profit_caused: Optional[float] = None
    summary_operation_effect: Optional[float] = None


@dataclass(frozen=True)
class TrendInfo:
    change: float
    days: int
    is_positive: bool
    text: str
    recent_profit: float = 0.0
    initial_market_value: float = 0.0


@dataclass(frozen=True)
class Recommendation:
    score: float
    label: str


@dataclass(frozen=True)
class FundAnalysis:
    """Per-fund derived record handed to renderers and tag aggregation."""

    code: str
    baseline: Position
    position: Position
    series: Tuple[NavPoint, ...]
    pivots: Tuple[NavPoint, ...]
    last_pivot_date: Optional[str]
    trend: Optional[TrendInfo]
    nav_percentile: Optional[float]
    latest_nav: float
    daily_change: Optional[float]
    market_value: float = 0.0
    cost_basis: float = 0.0
    holding_profit: float = 0.0
    total_profit: float = 0.0
    actual_cost: float = 0.0
    holding_profit_rate: float = 0.0
    total_profit_rate: float = 0.0
    daily_profit: float = 0.0
    yesterday_market_value: float = 0.0
    recommendation: Optional[Recommendation] = None
    name: str = ""

    @property
    def is_held(self) -> bool:
        return self.position.shares > 0

    @property
    def recent_profit(self) -> float:
        return self.trend.recent_profit if self.trend else 0.0

    @property
    def initial_market_value_for_trend(self) -> float:
        return self.trend.initial_market_value if self.trend else 0.0


@dataclass(frozen=True)
class PortfolioTotals:
    total_cost_basis: float = 0.0
    total_market_value: float = 0.0
    cumulative_market_value: float = 0.0
    grand_total_profit: float = 0.0
    total_holding_profit: float = 0.0
    total_daily_profit: float = 0.0
    total_yesterday_market_value: float = 0.0
    total_recent_profit: float = 0.0
    total_initial_market_value_for_trend: float = 0.0
    holding_profit_rate: float = 0.0
    total_profit_rate: float = 0.0
    daily_profit_rate: float = 0.0
    recent_profit_rate: float = 0.0


@dataclass(frozen=True)
class TagRollup:
    tag: str
    fund_count: int
    fund_codes: Tuple[str, ...]
    total_cost_basis: float
    total_market_value: float
    total_holding_profit: float
    total_realized_profit: float
    total_daily_profit: float
    total_yesterday_market_value: float
    total_recent_profit: float
    total_initial_market_value_for_trend: float
    grand_total_profit: float
    cumulative_market_value: float
    holding_profit_rate: float
    total_profit_rate: float
    daily_profit_rate: float
    recent_profit_rate: float
    holding_efficiency: float
    daily_efficiency: float
    recent_efficiency: float


@dataclass(frozen=True)
class TagReport:
    rows: list[TagRollup] = field(default_factory=list)
    totals: PortfolioTotals = field(default_factory=PortfolioTotals)
