"""Eastmoney client tests."""

from __future__ import annotations

import httpx
import pytest

from app.providers.eastmoney import (
    EastmoneyClient,
    NavProviderError,
    parse_estimate,
    parse_history_page,
)


def _page(rows: list[tuple[str, str, str]]) -> str:
    body = "".join(
        f"<tr><td>{day}</td><td class='tor bold'>{nav}</td><td class='tor bold'>{nav}</td>"
        f"<td class='tor bold red'>{rate}</td><td>开放申购</td><td>开放赎回</td><td class='red unbold'></td></tr>"
        for day, nav, rate in rows
    )
    table = (
        "<table class='w782 comm lsjz'><thead><tr><th>净值日期</th></tr></thead>"
        f"<tbody>{body}</tbody></table>"
    )
    return f'var apidata={{ content:"{table}",records:120,pages:3,curpage:1}};'


class StubResponse:
    def __init__(self, text: str, status_code: int = 200) -> None:
        self.text = text
        self.status_code = status_code


class StubClient:
    def __init__(self, pages: dict[int, str], failures: int = 0) -> None:
        self.pages = pages
        self.failures = failures
        self.calls: list[dict[str, object]] = []

    async def get(self, url: str, params: dict[str, object], timeout: float) -> StubResponse:
        self.calls.append(params)
        if self.failures:
            self.failures -= 1
            raise httpx.ConnectError("connection reset")
        page = params.get("page")
        if page not in self.pages:
            return StubResponse("Service Unavailable", status_code=503)
        return StubResponse(self.pages[page])

    async def aclose(self) -> None:  # pragma: no cover - included for interface completeness
        return None


def _client(stub: StubClient, **kwargs) -> EastmoneyClient:
    options = {"max_retries": 3, "records_per_page": 2}
    options.update(kwargs)
    return EastmoneyClient(client=stub, **options)


def test_parse_history_page_skips_unusable_rows():
    text = _page([("2024-01-05", "1.2000", "1.69%"), ("2024-01-04", "0.0000", ""), ("2024-01-03", "--", "")])
    rows = parse_history_page(text)

    assert rows == [
        {"date": "2024-01-05", "unit_nav": 1.2, "cumulative_nav": 1.2, "daily_growth_rate": "1.69%"}
    ]
    assert parse_history_page("var apidata={ content:\"暂无数据\"};") == []


async def test_fetch_history_pages_newest_first_and_returns_ascending():
    stub = StubClient(
        {
            1: _page([("2024-01-05", "1.20", "1.69%"), ("2024-01-04", "1.18", "0.85%")]),
            2: _page([("2024-01-03", "1.17", "-0.85%"), ("2024-01-02", "1.18", "0.00%")]),
        }
    )
    points = await _client(stub).fetch_history("161725", 3)

    assert [p.date for p in points] == ["2024-01-03", "2024-01-04", "2024-01-05"]
    assert points[-1].unit_nav == pytest.approx(1.2)
    assert points[-1].daily_growth_rate == "1.69%"
    assert [call["page"] for call in stub.calls] == [1, 2]
    assert stub.calls[0]["per"] == 2


async def test_fetch_history_stops_on_short_page():
    stub = StubClient({1: _page([("2024-01-05", "1.20", "1.69%")])})
    points = await _client(stub).fetch_history("161725", 10)

    assert len(points) == 1
    assert len(stub.calls) == 1


async def test_fetch_history_retries_transient_failures():
    stub = StubClient({1: _page([("2024-01-05", "1.20", "1.69%")])}, failures=2)
    points = await _client(stub).fetch_history("161725", 2)

    assert len(points) == 1
    assert len(stub.calls) == 3


async def test_failed_later_page_keeps_loaded_rows():
    stub = StubClient({1: _page([("2024-01-05", "1.20", "1.69%"), ("2024-01-04", "1.18", "0.85%")])})
    points = await _client(stub).fetch_history("161725", 6)

    assert [p.date for p in points] == ["2024-01-04", "2024-01-05"]
    assert len(stub.calls) == 1 + 3


async def test_failed_first_page_raises():
    stub = StubClient({})
    with pytest.raises(NavProviderError):
        await _client(stub).fetch_history("161725", 2)


def test_parse_estimate():
    quote = parse_estimate(
        'jsonpgz({"fundcode":"161725","name":"招商中证白酒指数(LOF)A","jzrq":"2024-01-04",'
        '"dwjz":"1.1800","gsz":"1.1923","gszzl":"1.04","gztime":"2024-01-05 15:00"});'
    )

    assert quote.name == "招商中证白酒指数(LOF)A"
    assert quote.estimate is not None
    assert quote.estimate.estimated_nav == pytest.approx(1.1923)
    assert quote.estimate.estimated_change == "1.04"
    assert quote.estimate.day == "2024-01-05"


def test_parse_estimate_without_numeric_estimate():
    quote = parse_estimate('jsonpgz({"fundcode":"000001","name":"华夏成长","gsz":"","gszzl":"","gztime":""});')
    assert quote.name == "华夏成长"
    assert quote.estimate is None


@pytest.mark.parametrize("text", ["jsonpgz();", "", 'jsonpgz({"fundcode":"000001"});', "jsonpgz({bad});"])
def test_parse_estimate_rejects_empty_payloads(text):
    with pytest.raises(NavProviderError):
        parse_estimate(text)


async def test_fetch_estimate_requests_code_script():
    class EstimateClient(StubClient):
        async def get(self, url: str, params: dict[str, object], timeout: float) -> StubResponse:
            self.calls.append({"url": url, **params})
            return StubResponse('jsonpgz({"fundcode":"161725","name":"白酒","gsz":"1.1","gszzl":"0.5","gztime":"2024-01-05 14:00"});')

    stub = EstimateClient({})
    quote = await _client(stub, estimate_url="https://fundgz.example/js/").fetch_estimate("161725")

    assert stub.calls[0]["url"] == "https://fundgz.example/js/161725.js"
    assert "rt" in stub.calls[0]
    assert quote.estimate is not None and quote.estimate.estimated_nav == pytest.approx(1.1)
