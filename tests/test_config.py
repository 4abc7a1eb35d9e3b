"""Tests for settings and logging setup."""

import logging

import pytest

from mygoprofile.app_logging import configure_logging
from mygoprofile.config import Settings, parse_origins


def test_settings_read_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("BUSINESS_DATA_SOURCE", "google")
    monkeypatch.setenv("SECRET_KEY", "from-env")
    monkeypatch.setenv("LOCATION_FETCH_CONCURRENCY", "8")

    settings = Settings()

    assert settings.business_data_source == "google"
    assert settings.secret_key == "from-env"
    assert settings.location_fetch_concurrency == 8
    assert "business.manage" in settings.google_oauth_scopes


def test_settings_reject_unknown_data_source(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("BUSINESS_DATA_SOURCE", "sqlite")

    with pytest.raises(ValueError):
        Settings()


def test_parse_origins() -> None:
    assert parse_origins("http://localhost:3000/, https://mygoprofile.app,,") == [
        "http://localhost:3000",
        "https://mygoprofile.app",
    ]
    assert parse_origins("") == []


def test_configure_logging_is_idempotent() -> None:
    configure_logging("debug")
    configure_logging("info")

    logger = logging.getLogger("mygoprofile")
    assert len(logger.handlers) == 1
    assert logger.level == logging.INFO
