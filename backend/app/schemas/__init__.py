"""Pydantic schema exports."""

from .analysis import (
    AnalysisRequest,
    AnalysisResponse,
    FundAnalysisSchema,
    NavPointSchema,
    PortfolioTotalsSchema,
    PositionsResponse,
    SettleRequest,
    SnapshotSchema,
    SnapshotSummarySchema,
    TagRollupSchema,
    TradeRequest,
    TrendSchema,
)
from .positions import PositionSchema, TradeRecordSchema

__all__ = [
    "AnalysisRequest",
    "AnalysisResponse",
    "FundAnalysisSchema",
    "NavPointSchema",
    "PortfolioTotalsSchema",
    "PositionSchema",
    "PositionsResponse",
    "SettleRequest",
    "SnapshotSchema",
    "SnapshotSummarySchema",
    "TagRollupSchema",
    "TradeRecordSchema",
    "TradeRequest",
    "TrendSchema",
]
