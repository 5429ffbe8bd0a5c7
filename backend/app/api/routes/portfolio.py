"""Portfolio analysis, settlement and trade-entry endpoints."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, status

from app.api.dependencies.providers import get_nav_client
from app.config import get_settings
from app.providers.eastmoney import EastmoneyClient, NavProviderError
from app.schemas.analysis import (
    AnalysisRequest,
    AnalysisResponse,
    PortfolioTotalsSchema,
    PositionsResponse,
    SettleRequest,
    SnapshotSchema,
    SnapshotSummarySchema,
    TagRollupSchema,
    TradeRequest,
    fund_to_schema,
)
from app.schemas.positions import PositionSchema
from app.services import analysis as analysis_service
from app.services.portfolio import PortfolioImportError, dump_positions, positions_from_schemas
from fund_ledger.ledger import LedgerError
from fund_ledger.models import Position, TradeKind
from fund_ledger.tags import system_tags

logger = logging.getLogger(__name__)

router = APIRouter()


def _positions(schemas: list[PositionSchema]) -> list[Position]:
    try:
        return positions_from_schemas(schemas)
    except PortfolioImportError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc


def _dumped(positions: list[Position]) -> list[PositionSchema]:
    return [PositionSchema.model_validate(item) for item in dump_positions(positions)]


@router.post("/analysis", response_model=AnalysisResponse)
async def post_analysis(
    payload: AnalysisRequest,
    client: EastmoneyClient = Depends(get_nav_client),
) -> AnalysisResponse:
    settings = get_settings()
    positions = _positions(payload.positions)
    try:
        result = await analysis_service.analyze_portfolio(
            positions,
            client,
            deviation_pct=payload.zigzag_threshold or settings.zigzag_threshold,
            record_count=payload.record_count or settings.record_count,
        )
    except NavProviderError as exc:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(exc)) from exc

    funds = [
        fund_to_schema(
            fund,
            system_tags=system_tags(fund),
            action=(
                analysis_service.recommendation_action(fund.recommendation.score)
                if fund.recommendation
                else None
            ),
        )
        for fund in result.funds
    ]
    return AnalysisResponse(
        positions=_dumped(result.positions),
        funds=funds,
        snapshots=[SnapshotSchema.from_snapshot(s) for s in result.snapshots],
        snapshot_summary=SnapshotSummarySchema.from_summary(result.summary),
        tags=[TagRollupSchema.from_rollup(row) for row in result.tags.rows],
        totals=PortfolioTotalsSchema.from_totals(result.tags.totals),
        tag_names=result.tag_names,
        failed=result.failed,
    )


@router.post("/settle", response_model=PositionsResponse, response_model_exclude_none=True)
async def post_settle(
    payload: SettleRequest,
    client: EastmoneyClient = Depends(get_nav_client),
) -> PositionsResponse:
    settings = get_settings()
    positions = _positions(payload.positions)
    try:
        settled, failed = await analysis_service.settle_positions(
            positions,
            client,
            record_count=payload.record_count or settings.record_count,
        )
    except NavProviderError as exc:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(exc)) from exc
    return PositionsResponse(positions=_dumped(settled), failed=failed)


@router.post("/trades", response_model=PositionsResponse, response_model_exclude_none=True)
async def post_trade(payload: TradeRequest) -> PositionsResponse:
    positions = _positions(payload.positions)
    try:
        updated = analysis_service.record_trade(
            positions,
            payload.code.strip(),
            day=payload.date,
            kind=TradeKind(payload.type),
            value=payload.value,
            nav=payload.nav,
        )
    except LedgerError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    return PositionsResponse(positions=_dumped(updated))


__all__ = ["router"]
