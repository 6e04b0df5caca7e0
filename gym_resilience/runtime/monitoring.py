"""Structured lifecycle logging and resilience-layer counters."""

from __future__ import annotations

import json
import threading
import time
from dataclasses import dataclass
from typing import Any


@dataclass
class MetricsSnapshot:
    uptime_seconds: float
    cache_hits: int
    cache_misses: int
    cache_corrupt_entries: int
    cache_write_failures: int
    rate_limit_waits: int
    rate_limit_cancellations: int

    @property
    def cache_hit_rate(self) -> float:
        lookups = self.cache_hits + self.cache_misses
        return (self.cache_hits / lookups) if lookups else 0.0


class LayerMetrics:
    def __init__(self, started_at: float | None = None) -> None:
        self.started_at = started_at or time.time()
        self._lock = threading.Lock()
        self.cache_hits = 0
        self.cache_misses = 0
        self.cache_corrupt_entries = 0
        self.cache_write_failures = 0
        self.rate_limit_waits = 0
        self.rate_limit_cancellations = 0

    def record_cache_lookup(self, hit: bool) -> None:
        with self._lock:
            if hit:
                self.cache_hits += 1
            else:
                self.cache_misses += 1

    def record_cache_corruption(self) -> None:
        with self._lock:
            self.cache_corrupt_entries += 1

    def record_cache_write_failure(self) -> None:
        with self._lock:
            self.cache_write_failures += 1

    def record_rate_limit_wait(self) -> None:
        with self._lock:
            self.rate_limit_waits += 1

    def record_rate_limit_cancellation(self) -> None:
        with self._lock:
            self.rate_limit_cancellations += 1

    def snapshot(self) -> MetricsSnapshot:
        with self._lock:
            return MetricsSnapshot(
                uptime_seconds=max(0.0, time.time() - self.started_at),
                cache_hits=self.cache_hits,
                cache_misses=self.cache_misses,
                cache_corrupt_entries=self.cache_corrupt_entries,
                cache_write_failures=self.cache_write_failures,
                rate_limit_waits=self.rate_limit_waits,
                rate_limit_cancellations=self.rate_limit_cancellations,
            )


def log_lifecycle_event(event: str, **fields: Any) -> None:
    payload: dict[str, Any] = {
        "event": event,
        "timestamp": int(time.time()),
    }
    for key, value in fields.items():
        if value is not None:
            payload[key] = value
    print(json.dumps(payload, ensure_ascii=True, default=str))
