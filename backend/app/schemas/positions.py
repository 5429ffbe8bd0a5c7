"""Pydantic schemas for the persisted position array."""

from __future__ import annotations

from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

TradeType = Literal["buy", "sell", "dividend-cash", "dividend-reinvest"]


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class TradeRecordSchema(CamelModel):
    """One trading record: pending with ``value`` or confirmed with ``nav``."""

    date: str = Field(..., pattern=r"^\d{4}-\d{2}-\d{2}$", examples=["2024-03-01"])
    type: TradeType
    value: Optional[float] = Field(default=None, description="Amount for buys and dividends, shares for sells")
    nav: Optional[float] = Field(default=None, gt=0)
    shares_change: Optional[float] = None
    amount: Optional[float] = None
    realized_profit_change: Optional[float] = None

    @model_validator(mode="after")
    def _pending_or_confirmed(self) -> "TradeRecordSchema":
        if self.nav is not None:
            if self.shares_change is None or self.amount is None:
                raise ValueError(
                    f"Confirmed record on {self.date} needs nav, sharesChange and amount"
                )
        elif self.value is None:
            raise ValueError(f"Record on {self.date} is neither pending (value) nor confirmed (nav)")
        return self

    @property
    def is_pending(self) -> bool:
        return self.nav is None


class PositionSchema(CamelModel):
    code: str = Field(..., min_length=1, examples=["161725"])
    shares: float = Field(..., ge=0)
    cost: float = Field(..., ge=0)
    realized_profit: float
    tag: str = ""
    trading_records: list[TradeRecordSchema] = Field(default_factory=list)

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        json_schema_extra={
            "example": {
                "code": "161725",
                "shares": 1000,
                "cost": 1.0,
                "realizedProfit": 0,
                "tag": "白酒,消费",
                "tradingRecords": [
                    {"date": "2024-03-01", "type": "buy", "nav": 1.2, "sharesChange": 100, "amount": 120},
                    {"date": "2024-03-05", "type": "sell", "value": 50},
                ],
            }
        },
    )


__all__ = ["CamelModel", "PositionSchema", "TradeRecordSchema", "TradeType"]
