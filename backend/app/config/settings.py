"""Application configuration and environment helpers."""

from __future__ import annotations

from functools import lru_cache
from typing import Any

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_TIMEZONE = "Asia/Shanghai"
DEFAULT_ZIGZAG_THRESHOLD = 2.0
DEFAULT_RECORD_COUNT = 100


class AppSettings(BaseSettings):
    """Configuration options for the fund ledger service."""

    model_config = SettingsConfigDict(
        env_prefix="FUND_LEDGER_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    app_name: str = Field(default="Fund Ledger")
    timezone: str = Field(default=DEFAULT_TIMEZONE)

    zigzag_threshold: float = Field(
        default=DEFAULT_ZIGZAG_THRESHOLD,
        gt=0,
        description="Minimum reversal, in percent, for a zigzag pivot.",
    )
    record_count: int = Field(
        default=DEFAULT_RECORD_COUNT,
        ge=2,
        description="Number of most recent NAV points loaded per fund.",
    )

    history_url: str = Field(default="https://fund.eastmoney.com/f10/F10DataApi.aspx")
    estimate_url: str = Field(default="https://fundgz.1234567.com.cn/js")
    request_timeout_seconds: float = Field(default=15.0, gt=0)
    max_page_retries: int = Field(default=10, ge=1)
    records_per_page: int = Field(default=49, ge=1)

    cors_origins: list[str] = Field(
        default_factory=lambda: [
            "http://localhost:4200",
            "http://127.0.0.1:4200",
            "http://localhost",
            "http://127.0.0.1",
        ]
    )

    telemetry_enabled: bool = Field(default=False)
    telemetry_service_name: str = Field(default="fund-ledger")
    telemetry_otlp_endpoint: str | None = Field(default=None)
    telemetry_otlp_insecure: bool = Field(default=True)
    telemetry_sample_ratio: float = Field(default=1.0, ge=0.0, le=1.0)

    def dict_for_logging(self) -> dict[str, Any]:
        """Return a sanitized dict for logging purposes."""

        hidden = {"telemetry_otlp_endpoint"}
        return {k: ("***" if k in hidden and v else v) for k, v in self.model_dump().items()}


@lru_cache(maxsize=1)
def get_settings(**overrides: Any) -> AppSettings:
    """Return cached application settings with optional overrides."""

    if overrides:
        return AppSettings(**overrides)
    return AppSettings()


__all__ = [
    "AppSettings",
    "DEFAULT_RECORD_COUNT",
    "DEFAULT_TIMEZONE",
    "DEFAULT_ZIGZAG_THRESHOLD",
    "get_settings",
]
