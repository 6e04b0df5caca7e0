import asyncio

import pytest
import requests

from gym_resilience.cache.keys import CacheKeys
from gym_resilience.cache.ttl_cache import TTLCache
from gym_resilience.providers import http
from gym_resilience.providers.http import FetchError, FetchGateway
from gym_resilience.utils.rate_limit import RateLimiter


class FakeResponse:
    def __init__(self, status_code: int = 200, text: str = "") -> None:
        self.status_code = status_code
        self.text = text

    @property
    def ok(self) -> bool:
        return self.status_code < 400


def _gateway(tmp_path, clock) -> FetchGateway:
    cache = TTLCache(tmp_path / "cache", clock=clock)
    limiter = RateLimiter(max_requests=5, window_seconds=60, clock=clock, sleep=clock.sleep)
    return FetchGateway("https://api.example.test/v1/", cache=cache, limiter=limiter, sleep=clock.sleep)


def test_miss_fetches_and_writes_through_cache(tmp_path, clock, monkeypatch) -> None:
    calls: list[str] = []

    def fake_get(url, params=None, timeout=None):
        calls.append(url)
        return FakeResponse(200, '{"data": ["biceps", "triceps"]}')

    monkeypatch.setattr(http._SESSION, "get", fake_get)
    gateway = _gateway(tmp_path, clock)
    first = asyncio.run(gateway.get_json("/muscles", cache_key=CacheKeys.muscles, ttl_seconds=86400))
    second = asyncio.run(gateway.get_json("/muscles", cache_key=CacheKeys.muscles, ttl_seconds=86400))
    assert first == second == {"data": ["biceps", "triceps"]}
    assert calls == ["https://api.example.test/v1/muscles"]
    assert gateway.limiter.remaining_requests == 4


def test_not_found_is_not_retried(tmp_path, clock, monkeypatch) -> None:
    calls = {"count": 0}

    def fake_get(url, params=None, timeout=None):
        calls["count"] += 1
        return FakeResponse(404, "{}")

    monkeypatch.setattr(http._SESSION, "get", fake_get)
    with pytest.raises(FetchError) as error:
        asyncio.run(_gateway(tmp_path, clock).get_json("exercises/missing"))
    assert error.value.code == "NOT_FOUND"
    assert error.value.retriable is False
    assert calls["count"] == 1


def test_transient_errors_retry_through_limiter(tmp_path, clock, monkeypatch) -> None:
    responses = [FakeResponse(503, ""), FakeResponse(200, '{"ok": true}')]
    monkeypatch.setattr(http._SESSION, "get", lambda url, params=None, timeout=None: responses.pop(0))
    gateway = _gateway(tmp_path, clock)
    assert asyncio.run(gateway.get_json("bodyparts")) == {"ok": True}
    assert gateway.limiter.remaining_requests == 3


def test_network_error_maps_to_fetch_error(tmp_path, clock, monkeypatch) -> None:
    def fake_get(url, params=None, timeout=None):
        raise requests.ConnectionError("offline")

    monkeypatch.setattr(http._SESSION, "get", fake_get)
    with pytest.raises(FetchError) as error:
        asyncio.run(_gateway(tmp_path, clock).get_json("bodyparts"))
    assert error.value.code == "NETWORK"


def test_non_json_body_is_bad_response(tmp_path, clock, monkeypatch) -> None:
    monkeypatch.setattr(http._SESSION, "get", lambda url, params=None, timeout=None: FakeResponse(200, "<html>"))
    with pytest.raises(FetchError) as error:
        asyncio.run(_gateway(tmp_path, clock).get_json("bodyparts", cache_key="bodyparts_list"))
    assert error.value.code == "BAD_RESPONSE"
    assert _gateway(tmp_path, clock).cache.get("bodyparts_list") is None


def test_clear_catalog_cache_keeps_exercise_entries(tmp_path, clock) -> None:
    gateway = _gateway(tmp_path, clock)
    gateway.cache.set(CacheKeys.body_part_exercises("Chest"), [1])
    gateway.cache.set(CacheKeys.search("squat"), [2])
    gateway.cache.set(CacheKeys.muscles, [3])
    gateway.cache.set(CacheKeys.exercise("0001"), {"id": "0001"})
    gateway.clear_catalog_cache()
    assert gateway.cache.stats().file_count == 1
    assert gateway.cache.get(CacheKeys.exercise("0001")) == {"id": "0001"}


def test_default_ttl_depends_on_key_category(tmp_path, clock, monkeypatch) -> None:
    monkeypatch.setattr(http._SESSION, "get", lambda url, params=None, timeout=None: FakeResponse(200, '["x"]'))
    gateway = _gateway(tmp_path, clock)
    asyncio.run(gateway.get_json("muscles", cache_key=CacheKeys.muscles))
    asyncio.run(gateway.get_json("exercises/exercise/0001", cache_key=CacheKeys.exercise("0001")))
    clock.advance(2 * 60 * 60)
    assert gateway.cache.get(CacheKeys.muscles) == ["x"]
    assert gateway.cache.get(CacheKeys.exercise("0001")) is None
