"""Concurrent NAV loading for every fund in a portfolio."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Iterable, Optional

from app.providers.eastmoney import EastmoneyClient, NavProviderError
from fund_ledger.models import NavPoint, RealTimeEstimate

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FundData:
    code: str
    name: str
    history: list[NavPoint]
    estimate: Optional[RealTimeEstimate] = None

    @property
    def nav_by_date(self) -> dict[str, float]:
        return {point.day: point.unit_nav for point in self.history}


async def load_fund(client: EastmoneyClient, code: str, record_count: int) -> FundData:
    """Fetch history and estimate together; only a history failure is fatal."""

    history, quote = await asyncio.gather(
        client.fetch_history(code, record_count),
        client.fetch_estimate(code),
        return_exceptions=True,
    )
    if isinstance(history, BaseException):
        raise history
    if isinstance(quote, NavProviderError):
        logger.warning("No intraday estimate for %s: %s", code, quote)
        return FundData(code=code, name=code, history=history)
    if isinstance(quote, BaseException):
        raise quote
    return FundData(code=code, name=quote.name, history=history, estimate=quote.estimate)


async def load_funds(
    client: EastmoneyClient,
    codes: Iterable[str],
    record_count: int,
) -> tuple[dict[str, FundData], dict[str, str]]:
    """Load every fund concurrently, keeping partial results.

    Returns the loaded funds by code and an error message per failed code.
    """

    unique = list(dict.fromkeys(codes))
    results = await asyncio.gather(
        *(load_fund(client, code, record_count) for code in unique),
        return_exceptions=True,
    )
    loaded: dict[str, FundData] = {}
    failed: dict[str, str] = {}
    for code, result in zip(unique, results):
        if isinstance(result, NavProviderError):
            logger.warning("Failed to load NAV data for %s: %s", code, result)
            failed[code] = str(result)
        elif isinstance(result, BaseException):
            raise result
        else:
            loaded[code] = result
    logger.info("Loaded NAV data for %s of %s funds", len(loaded), len(unique))
    return loaded, failed


__all__ = ["FundData", "load_fund", "load_funds"]
