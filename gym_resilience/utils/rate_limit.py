"""Sliding-window request limiter for outbound API calls."""

from __future__ import annotations

import asyncio
import logging
import threading
import time
from collections import deque
from typing import Awaitable, Callable

from gym_resilience.runtime.monitoring import LayerMetrics

LOGGER = logging.getLogger(__name__)


class RateLimiter:
    """Admits at most ``max_requests`` within any trailing ``window_seconds``.

    Timestamps are pruned lazily on every read, so the history never holds
    more than ``max_requests`` live entries. ``record_request`` is the only
    mutator and must be called once per request that actually goes out.
    """

    def __init__(
        self,
        max_requests: int = 100,
        window_seconds: float = 60.0,
        poll_interval_seconds: float = 0.5,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        metrics: LayerMetrics | None = None,
    ) -> None:
        self.max_requests = max(1, max_requests)
        self.window_seconds = max(0.001, window_seconds)
        self.poll_interval_seconds = max(0.001, poll_interval_seconds)
        self._clock = clock
        self._sleep = sleep
        self._metrics = metrics
        self._lock = threading.Lock()
        self._timestamps: deque[float] = deque()

    @property
    def can_proceed(self) -> bool:
        with self._lock:
            self._prune(self._clock())
            return len(self._timestamps) < self.max_requests

    @property
    def remaining_requests(self) -> int:
        with self._lock:
            self._prune(self._clock())
            return max(0, self.max_requests - len(self._timestamps))

    @property
    def time_until_next_slot(self) -> float | None:
        """Seconds until the oldest request leaves the window, or None if not blocked."""
        with self._lock:
            now = self._clock()
            self._prune(now)
            if len(self._timestamps) < self.max_requests:
                return None
            return self.window_seconds - (now - self._timestamps[0])

    def record_request(self) -> None:
        with self._lock:
            now = self._clock()
            self._prune(now)
            self._timestamps.append(now)
            remaining = max(0, self.max_requests - len(self._timestamps))
        LOGGER.debug("rate limiter: %s/%s requests remaining", remaining, self.max_requests)

    async def wait_and_record(self) -> None:
        """Wait until a slot is free, then record a request in the same locked step.

        Sleeps in increments of at most ``poll_interval_seconds`` so that task
        cancellation is observed promptly. A cancelled wait records nothing.
        """
        waited = False
        try:
            while True:
                with self._lock:
                    now = self._clock()
                    self._prune(now)
                    if len(self._timestamps) < self.max_requests:
                        self._timestamps.append(now)
                        return
                    wait_seconds = self.window_seconds - (now - self._timestamps[0])
                if not waited:
                    waited = True
                    LOGGER.debug("rate limiter: waiting %.1fs for a free slot", wait_seconds)
                    if self._metrics:
                        self._metrics.record_rate_limit_wait()
                await self._sleep(min(max(0.0, wait_seconds), self.poll_interval_seconds))
        except asyncio.CancelledError:
            LOGGER.info("rate limiter wait cancelled before a slot was recorded")
            if self._metrics:
                self._metrics.record_rate_limit_cancellation()
            raise

    def reset(self) -> None:
        with self._lock:
            self._timestamps.clear()

    def _prune(self, now: float) -> None:
        cutoff = now - self.window_seconds
        while self._timestamps and self._timestamps[0] <= cutoff:
            self._timestamps.popleft()
