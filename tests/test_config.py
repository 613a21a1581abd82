"""Tests for configuration module."""

from __future__ import annotations

import pytest

from coaching.config import Settings, _ENV_PROFILES, get_database_url, get_settings


@pytest.fixture(autouse=True)
def _fresh_settings():
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


def test_settings_defaults():
    s = Settings(database_url="sqlite://")
    assert s.app_env == "dev"
    assert s.training_days_per_week == 6
    assert s.revision_window_hours == 24
    assert s.weekly_visible_days == 3
    assert s.default_program_weeks == 4
    assert s.ending_soon_days == 7


def test_settings_frozen():
    s = Settings(database_url="x")
    with pytest.raises(AttributeError):
        s.database_url = "y"


def test_settings_environment_flags():
    assert Settings(database_url="x", app_env="production").is_production is True
    assert Settings(database_url="x", app_env="dev").is_dev is True


def test_get_database_url_from_env(monkeypatch):
    monkeypatch.setenv("DATABASE_URL", "postgresql+psycopg2://from-env/db")
    assert get_database_url() == "postgresql+psycopg2://from-env/db"


def test_get_database_url_default(monkeypatch):
    monkeypatch.delenv("DATABASE_URL", raising=False)
    assert get_database_url().startswith("sqlite")


def test_get_settings_uses_env(monkeypatch):
    monkeypatch.setenv("APP_ENV", "staging")
    monkeypatch.setenv("TRAINING_DAYS_PER_WEEK", "5")
    monkeypatch.setenv("CORS_ORIGINS", "https://a.example, https://b.example")
    s = get_settings()
    assert s.app_env == "staging"
    assert s.training_days_per_week == 5
    assert s.cors_origins == ("https://a.example", "https://b.example")


def test_profiles_drive_defaults(monkeypatch):
    monkeypatch.setenv("APP_ENV", "production")
    monkeypatch.delenv("LOG_LEVEL", raising=False)
    monkeypatch.delenv("RATE_LIMIT_MAX_REQUESTS", raising=False)
    s = get_settings()
    assert s.log_level == _ENV_PROFILES["production"]["log_level"]
    assert s.rate_limit_max_requests == 20


def test_rate_limit_toggle_env(monkeypatch):
    monkeypatch.setenv("APP_ENV", "production")
    monkeypatch.setenv("RATE_LIMIT_ENABLED", "off")
    assert get_settings().rate_limit_enabled is False


def test_unknown_env_falls_back_to_dev_profile(monkeypatch):
    monkeypatch.setenv("APP_ENV", "mystery")
    monkeypatch.delenv("LOG_LEVEL", raising=False)
    assert get_settings().log_level == "DEBUG"
