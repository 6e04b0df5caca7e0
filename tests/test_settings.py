from pathlib import Path

from gym_resilience.config.settings import Settings, get_settings


def test_defaults_match_app_constants(monkeypatch) -> None:
    for name in ("RATE_LIMIT_MAX_REQUESTS", "SESSION_STALENESS_SECONDS", "GYM_CACHE_DIR", "DEFAULT_REST_SECONDS"):
        monkeypatch.delenv(name, raising=False)
    settings = get_settings()
    assert settings.rate_limit_max_requests == 100
    assert settings.rate_limit_window_seconds == 60.0
    assert settings.session_staleness_seconds == 4 * 60 * 60
    assert settings.default_rest_seconds == 90
    assert settings.cache_dir.name == "GymBaaziCache"


def test_environment_overrides(monkeypatch, tmp_path) -> None:
    monkeypatch.setenv("GYM_CACHE_DIR", str(tmp_path / "c"))
    monkeypatch.setenv("RATE_LIMIT_MAX_REQUESTS", "5")
    monkeypatch.setenv("RATE_LIMIT_POLL_SECONDS", "0.25")
    monkeypatch.setenv("EXERCISE_API_BASE_URL", "https://example.test/api/")
    settings = get_settings()
    assert settings.cache_dir == Path(tmp_path / "c")
    assert settings.rate_limit_max_requests == 5
    assert settings.rate_limit_poll_seconds == 0.25
    assert settings.exercise_api_base_url == "https://example.test/api"


def test_malformed_values_fall_back_to_defaults(monkeypatch) -> None:
    monkeypatch.setenv("RATE_LIMIT_MAX_REQUESTS", "lots")
    monkeypatch.setenv("AUTOSAVE_INTERVAL_SECONDS", "")
    settings = get_settings()
    assert settings.rate_limit_max_requests == Settings().rate_limit_max_requests
    assert settings.autosave_interval_seconds == 30.0
