import asyncio
import inspect
import pathlib
import sys
from datetime import date, timedelta

import pytest

ROOT = pathlib.Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from fund_ledger.models import NavPoint  # noqa: E402


def pytest_configure(config: pytest.Config) -> None:
    """Register custom markers used in the suite."""

    config.addinivalue_line("markers", "asyncio: mark test as running in an asyncio event loop")


@pytest.hookimpl(tryfirst=True)
def pytest_pyfunc_call(pyfuncitem: pytest.Function) -> bool | None:
    """Execute async test functions without requiring pytest-asyncio."""

    test_function = pyfuncitem.obj
    if inspect.iscoroutinefunction(test_function):
        loop = asyncio.new_event_loop()
        try:
            asyncio.set_event_loop(loop)
            loop.run_until_complete(test_function(**pyfuncitem.funcargs))
        finally:
            asyncio.set_event_loop(None)
            loop.close()
        return True
    return None


def build_series(navs, start: date = date(2024, 1, 2)) -> list[NavPoint]:
    """Daily NAV points on consecutive calendar days starting at ``start``."""

    return [
        NavPoint(date=(start + timedelta(days=offset)).isoformat(), unit_nav=nav)
        for offset, nav in enumerate(navs)
    ]


@pytest.fixture
def make_series():
    return build_series
