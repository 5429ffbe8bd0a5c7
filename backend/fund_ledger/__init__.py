"""Core package for the fund ledger analytics pipeline."""

from .analysis import analyze_fund, augment_series
from .ledger import LedgerError, replay, settle_pending
from .models import ConfirmedTrade, FundAnalysis, NavPoint, PendingTrade, Position, Snapshot, TradeKind
from .snapshots import build_snapshots, summarize_snapshots
from .tags import aggregate_tags
from .zigzag import detect_pivots

__all__ = [
    "ConfirmedTrade",
    "FundAnalysis",
    "LedgerError",
    "NavPoint",
    "PendingTrade",
    "Position",
    "Snapshot",
    "TradeKind",
    "aggregate_tags",
    "analyze_fund",
    "augment_series",
    "build_snapshots",
    "detect_pivots",
    "replay",
    "settle_pending",
    "summarize_snapshots",
]
