"""Cached, rate-limited JSON fetches for remote exercise catalog data."""

from __future__ import annotations

import asyncio
import json
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Literal

import requests
from requests.adapters import HTTPAdapter

from gym_resilience.cache.keys import (
    BODY_PART_PREFIX,
    EXERCISE_TTL_SECONDS,
    LISTS_TTL_SECONDS,
    SEARCH_PREFIX,
    CacheKeys,
)
from gym_resilience.cache.ttl_cache import TTLCache
from gym_resilience.utils.rate_limit import RateLimiter

LOGGER = logging.getLogger(__name__)
FetchErrorCode = Literal["RATE_LIMIT", "NOT_FOUND", "UPSTREAM", "NETWORK", "BAD_RESPONSE"]
TRANSIENT_CODES = {408, 425, 429, 500, 502, 503, 504}

_SESSION = requests.Session()
_SESSION.mount("https://", HTTPAdapter(pool_connections=10, pool_maxsize=20))
_SESSION.mount("http://", HTTPAdapter(pool_connections=10, pool_maxsize=20))


@dataclass
class FetchError(Exception):
    code: FetchErrorCode
    message: str
    status: int | None = None

    def __str__(self) -> str:
        return self.message

    @property
    def retriable(self) -> bool:
        return self.code in {"RATE_LIMIT", "NETWORK", "UPSTREAM", "BAD_RESPONSE"}


def map_status_to_code(status: int) -> FetchErrorCode:
    if status == 404:
        return "NOT_FOUND"
    if status == 429:
        return "RATE_LIMIT"
    return "UPSTREAM"


class FetchGateway:
    """Serves cache hits locally and sends misses through the rate limiter."""

    def __init__(
        self,
        base_url: str,
        cache: TTLCache,
        limiter: RateLimiter,
        timeout_seconds: float = 30.0,
        max_retries: int = 3,
        exercise_ttl_seconds: float = EXERCISE_TTL_SECONDS,
        lists_ttl_seconds: float = LISTS_TTL_SECONDS,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.cache = cache
        self.limiter = limiter
        self.timeout_seconds = timeout_seconds
        self.max_retries = max(1, max_retries)
        self.exercise_ttl_seconds = exercise_ttl_seconds
        self.lists_ttl_seconds = lists_ttl_seconds
        self._sleep = sleep

    async def get_json(
        self,
        path: str,
        params: dict[str, Any] | None = None,
        cache_key: str | None = None,
        ttl_seconds: float | None = None,
        use_cache: bool = True,
    ) -> Any:
        if cache_key and use_cache:
            cached = self.cache.get(cache_key)
            if cached is not None:
                return cached

        payload = await self._fetch(f"{self.base_url}/{path.lstrip('/')}", params)
        if cache_key:
            if ttl_seconds is None:
                ttl_seconds = CacheKeys.ttl_for(cache_key, self.exercise_ttl_seconds, self.lists_ttl_seconds)
            self.cache.set(cache_key, payload, ttl_seconds=ttl_seconds)
        return payload

    def clear_catalog_cache(self) -> None:
        self.cache.invalidate_prefix(BODY_PART_PREFIX)
        self.cache.invalidate_prefix(SEARCH_PREFIX)
        for key in CacheKeys.list_keys():
            self.cache.invalidate(key)
        LOGGER.info("exercise catalog cache cleared")

    async def _fetch(self, url: str, params: dict[str, Any] | None) -> Any:
        last_error: FetchError | None = None
        for attempt in range(1, self.max_retries + 1):
            await self.limiter.wait_and_record()
            try:
                response = await asyncio.to_thread(_SESSION.get, url, params=params, timeout=self.timeout_seconds)
            except requests.RequestException as error:
                last_error = FetchError("NETWORK", "Request failed due to network error.")
                if attempt < self.max_retries:
                    await self._backoff(attempt)
                    continue
                raise last_error from error

            if not response.ok:
                last_error = FetchError(
                    map_status_to_code(response.status_code),
                    f"Request failed with status {response.status_code}.",
                    response.status_code,
                )
                if response.status_code in TRANSIENT_CODES and attempt < self.max_retries:
                    await self._backoff(attempt)
                    continue
                raise last_error

            raw = response.text or ""
            if not raw:
                return {}
            try:
                return json.loads(raw)
            except json.JSONDecodeError as error:
                raise FetchError("BAD_RESPONSE", "Response was not valid JSON.", response.status_code) from error

        if last_error:
            raise last_error
        raise FetchError("UPSTREAM", "Request failed.")

    async def _backoff(self, attempt: int) -> None:
        delay = 0.25 * (2 ** (attempt - 1))
        LOGGER.info("retrying request: attempt=%s delay_s=%.2f", attempt, delay)
        await self._sleep(delay)
