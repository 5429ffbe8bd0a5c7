"""Pydantic schemas for portfolio analysis requests and responses."""

from __future__ import annotations

from dataclasses import asdict
from typing import Optional

from pydantic import Field

from app.schemas.positions import CamelModel, PositionSchema, TradeType
from fund_ledger.models import FundAnalysis, NavPoint, Snapshot, SnapshotSummary, TagRollup, PortfolioTotals


class AnalysisRequest(CamelModel):
    positions: list[PositionSchema]
    zigzag_threshold: Optional[float] = Field(default=None, gt=0, description="Pivot reversal in percent")
    record_count: Optional[int] = Field(default=None, ge=2, le=2000)


class SettleRequest(CamelModel):
    positions: list[PositionSchema]
    record_count: Optional[int] = Field(default=None, ge=2, le=2000)


class TradeRequest(CamelModel):
    positions: list[PositionSchema] = Field(default_factory=list)
    code: str = Field(..., min_length=1)
    date: str = Field(..., pattern=r"^\d{4}-\d{2}-\d{2}$")
    type: TradeType
    value: float = Field(..., gt=0, description="Amount for buys and dividends, shares for sells")
    nav: Optional[float] = Field(default=None, gt=0, description="Confirm immediately at this NAV")


class PositionsResponse(CamelModel):
    positions: list[PositionSchema]
    failed: dict[str, str] = Field(default_factory=dict)


class NavPointSchema(CamelModel):
    date: str
    unit_nav: float
    daily_growth_rate: str = ""
    is_estimate: bool = False

    @classmethod
    def from_point(cls, point: NavPoint) -> "NavPointSchema":
        return cls(**asdict(point))


class TrendSchema(CamelModel):
    change: float
    days: int
    is_positive: bool
    text: str
    recent_profit: float
    initial_market_value: float


class RecommendationSchema(CamelModel):
    score: float
    label: str
    action: str


class FundAnalysisSchema(CamelModel):
    code: str
    name: str
    shares: float
    cost: float
    realized_profit: float
    tag: str
    tags: list[str]
    system_tags: list[str]
    pending_trades: int
    latest_nav: float
    daily_change: Optional[float]
    market_value: float
    cost_basis: float
    holding_profit: float
    total_profit: float
    actual_cost: float
    holding_profit_rate: float
    total_profit_rate: float
    daily_profit: float
    yesterday_market_value: float
    nav_percentile: Optional[float]
    last_pivot_date: Optional[str]
    trend: Optional[TrendSchema]
    recommendation: Optional[RecommendationSchema]
    pivots: list[NavPointSchema]
    series: list[NavPointSchema]


class SnapshotSchema(CamelModel):
    date: str
    total_cost_basis: float
    current_market_value: float
    cumulative_value: float
    total_profit: float
    profit_rate: float
    daily_profit: float
    daily_profit_rate: float
    realized_profit: float
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

    @classmethod
    def from_snapshot(cls, snapshot: Snapshot) -> "SnapshotSchema":
        return cls(**asdict(snapshot))


class SnapshotSummarySchema(CamelModel):
    net_amount_change: float
    market_value_change: float
    operation_profit: float
    total_buy_amount: float
    total_buy_floating_profit: float
    total_sell_amount: float
    total_sell_opportunity_profit: float
    total_sell_realized_profit: float
    profit_caused: float
    profit_per_hundred: Optional[float] = None
    summary_profit_caused: Optional[float] = None
    summary_operation_effect: Optional[float] = None

    @classmethod
    def from_summary(cls, summary: SnapshotSummary) -> "SnapshotSummarySchema":
        return cls(**asdict(summary))


class PortfolioTotalsSchema(CamelModel):
    total_cost_basis: float
    total_market_value: float
    cumulative_market_value: float
    grand_total_profit: float
    total_holding_profit: float
    total_daily_profit: float
    total_yesterday_market_value: float
    total_recent_profit: float
    total_initial_market_value_for_trend: float
    holding_profit_rate: float
    total_profit_rate: float
    daily_profit_rate: float
    recent_profit_rate: float

    @classmethod
    def from_totals(cls, totals: PortfolioTotals) -> "PortfolioTotalsSchema":
        return cls(**asdict(totals))


class TagRollupSchema(CamelModel):
    tag: str
    fund_count: int
    fund_codes: list[str]
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

    @classmethod
    def from_rollup(cls, rollup: TagRollup) -> "TagRollupSchema":
        return cls(**asdict(rollup))


class AnalysisResponse(CamelModel):
    positions: list[PositionSchema]
    funds: list[FundAnalysisSchema]
    snapshots: list[SnapshotSchema]
    snapshot_summary: SnapshotSummarySchema
    tags: list[TagRollupSchema]
    totals: PortfolioTotalsSchema
    tag_names: list[str]
    failed: dict[str, str] = Field(default_factory=dict)


def fund_to_schema(fund: FundAnalysis, *, system_tags: list[str], action: Optional[str]) -> FundAnalysisSchema:
    recommendation = None
    if fund.recommendation is not None:
        recommendation = RecommendationSchema(
            score=fund.recommendation.score,
            label=fund.recommendation.label,
            action=action or "",
        )
    return FundAnalysisSchema(
        code=fund.code,
        name=fund.name,
        shares=fund.position.shares,
        cost=fund.position.cost,
        realized_profit=fund.position.realized_profit,
        tag=fund.position.tag,
        tags=list(fund.position.tags),
        system_tags=system_tags,
        pending_trades=len(fund.position.pending_trades),
        latest_nav=fund.latest_nav,
        daily_change=fund.daily_change,
        market_value=fund.market_value,
        cost_basis=fund.cost_basis,
        holding_profit=fund.holding_profit,
        total_profit=fund.total_profit,
        actual_cost=fund.actual_cost,
        holding_profit_rate=fund.holding_profit_rate,
        total_profit_rate=fund.total_profit_rate,
        daily_profit=fund.daily_profit,
        yesterday_market_value=fund.yesterday_market_value,
        nav_percentile=fund.nav_percentile,
        last_pivot_date=fund.last_pivot_date,
        trend=TrendSchema(**asdict(fund.trend)) if fund.trend else None,
        recommendation=recommendation,
        pivots=[NavPointSchema.from_point(p) for p in fund.pivots],
        series=[NavPointSchema.from_point(p) for p in fund.series],
    )


__all__ = [
    "AnalysisRequest",
    "AnalysisResponse",
    "FundAnalysisSchema",
    "NavPointSchema",
    "PortfolioTotalsSchema",
    "PositionsResponse",
    "SettleRequest",
    "SnapshotSchema",
    "SnapshotSummarySchema",
    "TagRollupSchema",
    "TradeRequest",
    "TrendSchema",
    "fund_to_schema",
]
