"""Environment-driven settings."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv

DEFAULT_CACHE_DIR = Path.home() / ".cache" / "gymbaazi" / "GymBaaziCache"
DEFAULT_SNAPSHOT_PATH = Path.home() / ".local" / "share" / "gymbaazi" / "active_session.json"


@dataclass(frozen=True)
class Settings:
    """Runtime settings for the cache, limiter, timers and session snapshots."""

    app_name: str = "gymbaazi-resilience"
    app_version: str = "1.0.0"
    cache_dir: Path = field(default=DEFAULT_CACHE_DIR)
    cache_ttl_exercise_seconds: int = 3600
    cache_ttl_lists_seconds: int = 86400
    rate_limit_max_requests: int = 100
    rate_limit_window_seconds: float = 60.0
    rate_limit_poll_seconds: float = 0.5
    snapshot_path: Path = field(default=DEFAULT_SNAPSHOT_PATH)
    session_staleness_seconds: int = 4 * 60 * 60
    autosave_interval_seconds: float = 30.0
    default_rest_seconds: int = 90
    exercise_api_base_url: str = "https://www.exercisedb.dev/api/v1"
    request_timeout_seconds: float = 30.0


def _as_int(value: str | None, default: int) -> int:
    if value is None or value == "":
        return default
    try:
        return int(value)
    except ValueError:
        return default


def _as_float(value: str | None, default: float) -> float:
    if value is None or value == "":
        return default
    try:
        return float(value)
    except ValueError:
        return default


def _as_path(value: str | None, default: Path) -> Path:
    if value is None or value.strip() == "":
        return default
    return Path(value).expanduser()


def get_settings() -> Settings:
    """Load runtime settings from environment variables."""
    load_dotenv()

    return Settings(
        cache_dir=_as_path(os.getenv("GYM_CACHE_DIR"), DEFAULT_CACHE_DIR),
        cache_ttl_exercise_seconds=_as_int(os.getenv("CACHE_TTL_EXERCISE_SECONDS"), 3600),
        cache_ttl_lists_seconds=_as_int(os.getenv("CACHE_TTL_LISTS_SECONDS"), 86400),
        rate_limit_max_requests=_as_int(os.getenv("RATE_LIMIT_MAX_REQUESTS"), 100),
        rate_limit_window_seconds=_as_float(os.getenv("RATE_LIMIT_WINDOW_SECONDS"), 60.0),
        rate_limit_poll_seconds=_as_float(os.getenv("RATE_LIMIT_POLL_SECONDS"), 0.5),
        snapshot_path=_as_path(os.getenv("GYM_SNAPSHOT_PATH"), DEFAULT_SNAPSHOT_PATH),
        session_staleness_seconds=_as_int(os.getenv("SESSION_STALENESS_SECONDS"), 4 * 60 * 60),
        autosave_interval_seconds=_as_float(os.getenv("AUTOSAVE_INTERVAL_SECONDS"), 30.0),
        default_rest_seconds=_as_int(os.getenv("DEFAULT_REST_SECONDS"), 90),
        exercise_api_base_url=os.getenv("EXERCISE_API_BASE_URL", "https://www.exercisedb.dev/api/v1").rstrip("/"),
        request_timeout_seconds=_as_float(os.getenv("REQUEST_TIMEOUT_SECONDS"), 30.0),
    )
