"""Settings tests."""

from __future__ import annotations

from app.config.settings import AppSettings


def test_defaults():
    settings = AppSettings(_env_file=None)

    assert settings.zigzag_threshold == 2.0
    assert settings.record_count == 100
    assert settings.records_per_page == 49
    assert settings.max_page_retries == 10
    assert settings.telemetry_enabled is False


def test_environment_overrides_use_prefix(monkeypatch):
    monkeypatch.setenv("FUND_LEDGER_ZIGZAG_THRESHOLD", "3.5")
    monkeypatch.setenv("FUND_LEDGER_CORS_ORIGINS", '["https://ledger.example"]')

    settings = AppSettings(_env_file=None)

    assert settings.zigzag_threshold == 3.5
    assert settings.cors_origins == ["https://ledger.example"]
    assert settings.dict_for_logging()["app_name"] == "Fund Ledger"
