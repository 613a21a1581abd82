"""Application configuration with environment-specific profiles.

Supports dev, staging, test and production environments via APP_ENV.
All values can be overridden by environment variables.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from functools import lru_cache


@dataclass(frozen=True)
class Settings:
    """Immutable application settings resolved from environment."""

    database_url: str
    app_env: str = "dev"
    log_level: str = "INFO"

    # Scheduling
    training_days_per_week: int = 6
    revision_window_hours: int = 24
    weekly_visible_days: int = 3
    default_program_weeks: int = 4
    ending_soon_days: int = 7

    # HTTP surface
    api_title: str = "Lift Academy Coaching API"
    request_id_header_name: str = "X-Request-ID"
    cors_origins: tuple[str, ...] = field(default_factory=lambda: ("http://localhost:5173",))
    rate_limit_enabled: bool = True
    rate_limit_max_requests: int = 30
    rate_limit_window_seconds: int = 60

    @property
    def is_production(self) -> bool:
        return self.app_env == "production"

    @property
    def is_dev(self) -> bool:
        return self.app_env == "dev"


# -- Environment profiles --

_ENV_PROFILES: dict[str, dict] = {
    "dev": {
        "log_level": "DEBUG",
        "rate_limit_enabled": False,
    },
    "staging": {
        "log_level": "INFO",
        "rate_limit_enabled": True,
    },
    "production": {
        "log_level": "WARNING",
        "rate_limit_enabled": True,
        "rate_limit_max_requests": 20,
    },
    "test": {
        "log_level": "WARNING",
        "rate_limit_enabled": False,
    },
}


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def get_database_url() -> str:
    """Resolve database URL from env var or local default."""
    env_url = os.getenv("DATABASE_URL")
    if env_url:
        return env_url
    return "sqlite+pysqlite:///./liftacademy.db"


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Build Settings by merging environment profile with env-var overrides."""
    app_env = os.getenv("APP_ENV", "dev")
    profile = _ENV_PROFILES.get(app_env, _ENV_PROFILES["dev"])
    origins = os.getenv("CORS_ORIGINS", "http://localhost:5173")

    return Settings(
        database_url=get_database_url(),
        app_env=app_env,
        log_level=os.getenv("LOG_LEVEL", profile.get("log_level", "INFO")),
        training_days_per_week=int(os.getenv("TRAINING_DAYS_PER_WEEK", "6")),
        revision_window_hours=int(os.getenv("REVISION_WINDOW_HOURS", "24")),
        weekly_visible_days=int(os.getenv("WEEKLY_VISIBLE_DAYS", "3")),
        default_program_weeks=int(os.getenv("DEFAULT_PROGRAM_WEEKS", "4")),
        ending_soon_days=int(os.getenv("ENDING_SOON_DAYS", "7")),
        request_id_header_name=os.getenv("REQUEST_ID_HEADER_NAME", "X-Request-ID"),
        cors_origins=tuple(o.strip() for o in origins.split(",") if o.strip()),
        rate_limit_enabled=_env_bool("RATE_LIMIT_ENABLED", profile.get("rate_limit_enabled", True)),
        rate_limit_max_requests=int(
            os.getenv("RATE_LIMIT_MAX_REQUESTS", str(profile.get("rate_limit_max_requests", 30)))
        ),
        rate_limit_window_seconds=int(os.getenv("RATE_LIMIT_WINDOW_SECONDS", "60")),
    )
