"""Eastmoney client for fund NAV history and intraday estimates."""

from __future__ import annotations

import json
import logging
import math
import re
import time
from dataclasses import dataclass
from typing import Any, Optional

import httpx
import pandas as pd

from app.config import get_settings
from fund_ledger.models import NavPoint, RealTimeEstimate

logger = logging.getLogger(__name__)

_TABLE_RE = re.compile(r"<table class='w782 comm lsjz'>.*?<tbody>(.*?)</tbody>.*?</table>", re.S)
_ROW_RE = re.compile(r"<tr>(.*?)</tr>", re.S)
_CELL_RE = re.compile(r"<td.*?>(.*?)</td>", re.S)
_TAG_RE = re.compile(r"<[^>]*>")
_JSONP_RE = re.compile(r"jsonpgz\((.*)\)\s*;?", re.S)

NAV_COLUMNS = ["date", "unit_nav", "cumulative_nav", "daily_growth_rate"]


class NavProviderError(RuntimeError):
    """Raised when NAV data cannot be fetched or parsed."""


@dataclass(frozen=True)
class FundQuote:
    """Fund display name plus the intraday estimate when one is published."""

    name: str
    estimate: Optional[RealTimeEstimate] = None


def parse_history_page(text: str) -> list[dict[str, Any]]:
    """Extract NAV rows from one ``apidata`` page, newest first.

    Rows with a missing, non-numeric or zero unit NAV are skipped.
    """

    table = _TABLE_RE.search(text)
    if not table:
        return []
    rows: list[dict[str, Any]] = []
    for row in _ROW_RE.findall(table.group(1)):
        cells = [_TAG_RE.sub("", cell).strip() for cell in _CELL_RE.findall(row)]
        if len(cells) < 4:
            continue
        try:
            unit_nav = float(cells[1])
        except ValueError:
            continue
        if math.isnan(unit_nav) or unit_nav == 0:
            continue
        try:
            cumulative_nav = float(cells[2])
        except ValueError:
            cumulative_nav = float("nan")
        rows.append(
            {
                "date": cells[0],
                "unit_nav": unit_nav,
                "cumulative_nav": cumulative_nav,
                "daily_growth_rate": cells[3],
            }
        )
    return rows


def rows_to_frame(rows: list[dict[str, Any]]) -> pd.DataFrame:
    """Return an ascending, date-unique NAV frame indexed by trading day."""

    if not rows:
        return pd.DataFrame(columns=NAV_COLUMNS[1:])
    df = pd.DataFrame(rows, columns=NAV_COLUMNS)
    df["date"] = pd.to_datetime(df["date"], errors="coerce")
    df = df.dropna(subset=["date"])
    df = df.drop_duplicates(subset="date", keep="first").set_index("date").sort_index()
    return df


def frame_to_points(df: pd.DataFrame) -> list[NavPoint]:
    return [
        NavPoint(
            date=day.strftime("%Y-%m-%d"),
            unit_nav=float(row.unit_nav),
            daily_growth_rate=str(row.daily_growth_rate or ""),
        )
        for day, row in df.iterrows()
    ]


def parse_estimate(text: str) -> FundQuote:
    """Parse a ``jsonpgz({...});`` payload into a :class:`FundQuote`."""

    match = _JSONP_RE.search(text or "")
    if not match or not match.group(1).strip():
        raise NavProviderError("Estimate payload is empty")
    try:
        payload = json.loads(match.group(1))
    except ValueError as exc:
        raise NavProviderError("Estimate payload is not valid JSON") from exc
    if not isinstance(payload, dict) or not payload.get("name"):
        raise NavProviderError("Estimate payload carries no fund details")

    estimate = None
    try:
        estimated_nav = float(payload.get("gsz"))
    except (TypeError, ValueError):
        estimated_nav = float("nan")
    if not math.isnan(estimated_nav):
        estimate = RealTimeEstimate(
            estimated_nav=estimated_nav,
            estimated_change=str(payload.get("gszzl") or ""),
            estimation_time=str(payload.get("gztime") or ""),
        )
    return FundQuote(name=str(payload["name"]), estimate=estimate)


class EastmoneyClient:
    """Async Eastmoney client; pass ``client`` to reuse or stub the transport."""

    def __init__(
        self,
        *,
        client: Any | None = None,
        history_url: str | None = None,
        estimate_url: str | None = None,
        timeout_seconds: float | None = None,
        max_retries: int | None = None,
        records_per_page: int | None = None,
    ) -> None:
        settings = get_settings()
        self.history_url = history_url or settings.history_url
        self.estimate_url = (estimate_url or settings.estimate_url).rstrip("/")
        self.timeout_seconds = timeout_seconds or settings.request_timeout_seconds
        self.max_retries = max_retries or settings.max_page_retries
        self.records_per_page = records_per_page or settings.records_per_page
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=self.timeout_seconds)

    async def __aenter__(self) -> "EastmoneyClient":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def _get_text(self, url: str, params: dict[str, Any]) -> str:
        try:
            response = await self._client.get(url, params=params, timeout=self.timeout_seconds)
        except httpx.HTTPError as exc:
            raise NavProviderError(f"Failed to reach {url}: {exc}") from exc
        if response.status_code >= 400:
            raise NavProviderError(f"{url} returned HTTP {response.status_code}")
        return response.text

    async def _fetch_page(self, code: str, page: int) -> list[dict[str, Any]]:
        params = {
            "type": "lsjz",
            "code": code,
            "page": page,
            "per": self.records_per_page,
            "_": int(time.time() * 1000),
        }
        last_error: NavProviderError | None = None
        for attempt in range(1, self.max_retries + 1):
            try:
                text = await self._get_text(self.history_url, params)
            except NavProviderError as exc:
                last_error = exc
                logger.debug("Page %s of %s failed (attempt %s): %s", page, code, attempt, exc)
                continue
            return parse_history_page(text)
        raise NavProviderError(
            f"Page {page} of {code} failed after {self.max_retries} attempts: {last_error}"
        )

    async def fetch_history_frame(self, code: str, record_count: int) -> pd.DataFrame:
        pages = max(1, math.ceil(record_count / self.records_per_page))
        rows: list[dict[str, Any]] = []
        for page in range(1, pages + 1):
            try:
                page_rows = await self._fetch_page(code, page)
            except NavProviderError as exc:
                if not rows:
                    raise
                logger.warning("Keeping %s rows already loaded for %s: %s", len(rows), code, exc)
                break
            rows.extend(page_rows)
            if len(page_rows) < self.records_per_page:
                break

        df = rows_to_frame(rows[:record_count])
        if df.empty:
            raise NavProviderError(f"No NAV history returned for {code}")
        return df

    async def fetch_history(self, code: str, record_count: int) -> list[NavPoint]:
        """Return the newest ``record_count`` NAV points in ascending date order."""

        return frame_to_points(await self.fetch_history_frame(code, record_count))

    async def fetch_estimate(self, code: str) -> FundQuote:
        url = f"{self.estimate_url}/{code}.js"
        text = await self._get_text(url, {"rt": int(time.time() * 1000)})
        return parse_estimate(text)


__all__ = [
    "EastmoneyClient",
    "FundQuote",
    "NavProviderError",
    "frame_to_points",
    "parse_estimate",
    "parse_history_page",
    "rows_to_frame",
]
