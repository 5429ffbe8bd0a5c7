"""Provider dependencies for API routes."""

from __future__ import annotations

from typing import AsyncIterator

from app.providers.eastmoney import EastmoneyClient


async def get_nav_client() -> AsyncIterator[EastmoneyClient]:
    async with EastmoneyClient() as client:
        yield client
