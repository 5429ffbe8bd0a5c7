"""Conversion between the persisted position array and ledger models."""

from __future__ import annotations

import json
import logging
from typing import Any, Iterable

from pydantic import TypeAdapter, ValidationError

from app.schemas.positions import PositionSchema, TradeRecordSchema
from fund_ledger.models import ConfirmedTrade, PendingTrade, Position, TradeEvent, TradeKind

logger = logging.getLogger(__name__)

_POSITIONS = TypeAdapter(list[PositionSchema])


class PortfolioImportError(ValueError):
    """Raised when an imported position array is malformed."""


def _describe(exc: ValidationError) -> str:
    parts = []
    for error in exc.errors()[:5]:
        location = ".".join(str(item) for item in error.get("loc", ()))
        parts.append(f"{location}: {error.get('msg')}" if location else str(error.get("msg")))
    return "; ".join(parts)


def trade_from_schema(record: TradeRecordSchema) -> TradeEvent:
    kind = TradeKind(record.type)
    if record.is_pending:
        return PendingTrade(date=record.date, kind=kind, value=float(record.value))
    return ConfirmedTrade(
        date=record.date,
        kind=kind,
        nav=float(record.nav),
        shares_change=float(record.shares_change),
        amount=float(record.amount),
        realized_profit_change=float(record.realized_profit_change or 0.0),
    )


def position_from_schema(schema: PositionSchema) -> Position:
    return Position(
        code=schema.code.strip(),
        shares=schema.shares,
        cost=schema.cost,
        realized_profit=schema.realized_profit,
        tag=schema.tag,
        trades=tuple(trade_from_schema(record) for record in schema.trading_records),
    )


def positions_from_schemas(schemas: Iterable[PositionSchema]) -> list[Position]:
    """Convert validated schemas, rejecting a code that appears twice."""

    positions = [position_from_schema(schema) for schema in schemas]
    codes = [p.code for p in positions]
    duplicates = sorted({code for code in codes if codes.count(code) > 1})
    if duplicates:
        raise PortfolioImportError(f"Duplicate fund codes: {', '.join(duplicates)}")
    return positions


def parse_positions(payload: Any) -> list[Position]:
    """Validate a position array (JSON text or decoded list) into ledger positions."""

    if isinstance(payload, (str, bytes)):
        try:
            payload = json.loads(payload)
        except ValueError as exc:
            raise PortfolioImportError(f"Invalid JSON: {exc}") from exc
    if not isinstance(payload, list):
        raise PortfolioImportError("Expected an array of fund positions")
    try:
        schemas = _POSITIONS.validate_python(payload)
    except ValidationError as exc:
        raise PortfolioImportError(f"Invalid position data: {_describe(exc)}") from exc

    positions = positions_from_schemas(schemas)
    logger.debug("Parsed %s positions", len(positions))
    return positions


def trade_to_dict(event: TradeEvent) -> dict[str, Any]:
    if isinstance(event, PendingTrade):
        return {"date": event.date, "type": event.kind.value, "value": event.value}
    record: dict[str, Any] = {
        "date": event.date,
        "type": event.kind.value,
        "nav": event.nav,
        "sharesChange": event.shares_change,
        "amount": event.amount,
    }
    if event.realized_profit_change:
        record["realizedProfitChange"] = event.realized_profit_change
    return record


def dump_positions(positions: Iterable[Position]) -> list[dict[str, Any]]:
    """Serialise positions back to the persisted camelCase schema."""

    return [
        {
            "code": position.code,
            "shares": position.shares,
            "cost": position.cost,
            "realizedProfit": position.realized_profit,
            "tag": position.tag,
            "tradingRecords": [trade_to_dict(event) for event in position.trades],
        }
        for position in positions
    ]


__all__ = [
    "PortfolioImportError",
    "dump_positions",
    "parse_positions",
    "position_from_schema",
    "positions_from_schemas",
    "trade_from_schema",
    "trade_to_dict",
]
