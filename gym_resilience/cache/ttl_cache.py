"""Disk-backed TTL cache that survives process restarts.

Each key maps to one ``<sanitized-key>.cache`` file holding a JSON encoded
entry (value, stored_at, ttl). The cache is strictly best-effort: reads that
fail for any reason are misses and writes that fail are dropped, so callers
must always be ready to fetch the value themselves.
"""

from __future__ import annotations

import hashlib
import json
import logging
import re
import shutil
import threading
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Literal

from gym_resilience.lib.formatters import format_bytes
from gym_resilience.runtime.monitoring import LayerMetrics

LOGGER = logging.getLogger(__name__)
CACHE_SUFFIX = ".cache"
MAX_TOKEN_LENGTH = 150
_UNSAFE_KEY_CHARS = re.compile(r"[\s/\\\x00]")

ReadError = Literal["missing", "unreadable", "corrupt"]


def sanitize_key(key: str) -> str:
    """Map an arbitrary key to a filesystem-safe file name token."""
    token = _UNSAFE_KEY_CHARS.sub("_", key) or "_"
    if len(token) > MAX_TOKEN_LENGTH:
        digest = hashlib.sha1(key.encode("utf-8")).hexdigest()
        token = f"{token[:MAX_TOKEN_LENGTH]}_{digest}"
    return token


def _as_number(value: Any, field_name: str) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(f"{field_name} must be a number")
    return float(value)


@dataclass
class CacheEntry:
    value: Any
    stored_at: float
    ttl: float

    def age(self, now: float) -> float:
        return now - self.stored_at

    def is_valid(self, now: float) -> bool:
        return self.age(now) < self.ttl

    def to_dict(self) -> dict[str, Any]:
        return {"value": self.value, "stored_at": self.stored_at, "ttl": self.ttl}

    @classmethod
    def from_dict(cls, payload: Any) -> "CacheEntry":
        if not isinstance(payload, dict):
            raise ValueError("cache entry must be a JSON object")
        return cls(
            value=payload["value"],
            stored_at=_as_number(payload["stored_at"], "stored_at"),
            ttl=_as_number(payload["ttl"], "ttl"),
        )


@dataclass(frozen=True)
class _ReadResult:
    entry: CacheEntry | None = None
    error: ReadError | None = None
    detail: str | None = None


@dataclass(frozen=True)
class CacheStats:
    file_count: int
    total_size: int

    @property
    def formatted_size(self) -> str:
        return format_bytes(self.total_size)


class TTLCache:
    """Thread-safe, file-per-key TTL cache rooted at a dedicated directory."""

    def __init__(
        self,
        directory: str | Path,
        default_ttl_seconds: float = 3600,
        clock: Callable[[], float] = time.time,
        metrics: LayerMetrics | None = None,
    ) -> None:
        self.directory = Path(directory)
        self.default_ttl_seconds = max(1.0, float(default_ttl_seconds))
        self._clock = clock
        self._metrics = metrics
        self._lock = threading.Lock()
        self._ensure_directory()

    def get(self, key: str) -> Any | None:
        """Return the cached value for ``key`` or ``None`` on any kind of miss."""
        path = self.path_for(key)
        with self._lock:
            result = self._read_entry(path)
            entry = result.entry
            if entry is None:
                if result.error == "corrupt":
                    LOGGER.warning("cache entry corrupt, removing: key=%s error=%s", key, result.detail)
                    if self._metrics:
                        self._metrics.record_cache_corruption()
                    # Result ignored: a file that survives removal is re-checked on the next read.
                    self._remove(path)
                elif result.error == "unreadable":
                    LOGGER.info("cache entry unreadable: key=%s error=%s", key, result.detail)
                self._record_lookup(False)
                return None

            now = self._clock()
            if not entry.is_valid(now):
                LOGGER.debug("cache expired: key=%s age_s=%d ttl_s=%d", key, entry.age(now), entry.ttl)
                self._remove(path)
                self._record_lookup(False)
                return None

        LOGGER.debug("cache hit: key=%s age_s=%d", key, entry.age(now))
        self._record_lookup(True)
        return entry.value

    def set(self, key: str, value: Any, ttl_seconds: float | None = None) -> None:
        """Store ``value`` under ``key``; failures are logged and dropped."""
        ttl = self.default_ttl_seconds if ttl_seconds is None else max(0.0, float(ttl_seconds))
        entry = CacheEntry(value=value, stored_at=self._clock(), ttl=ttl)
        try:
            payload = json.dumps(entry.to_dict(), ensure_ascii=True)
        except (TypeError, ValueError) as error:
            self._record_write_failure(key, error)
            return

        path = self.path_for(key)
        with self._lock:
            try:
                self._ensure_directory()
                path.write_text(payload, encoding="utf-8")
            except OSError as error:
                self._record_write_failure(key, error)
                return
        LOGGER.debug("cache set: key=%s ttl_s=%d", key, ttl)

    def invalidate(self, key: str) -> None:
        with self._lock:
            self._remove(self.path_for(key))
        LOGGER.debug("cache invalidate: key=%s", key)

    def invalidate_prefix(self, prefix: str) -> int:
        """Remove every entry whose key starts with ``prefix``.

        Long keys keep only their first ``MAX_TOKEN_LENGTH`` characters on
        disk, so a longer prefix matches on that truncated head.
        """
        token = _UNSAFE_KEY_CHARS.sub("_", prefix)[:MAX_TOKEN_LENGTH]
        removed = 0
        with self._lock:
            for path in self._entry_files():
                if path.name.startswith(token) and self._remove(path):
                    removed += 1
        LOGGER.debug("cache invalidate prefix: prefix=%s removed=%s", prefix, removed)
        return removed

    def invalidate_all(self) -> None:
        with self._lock:
            shutil.rmtree(self.directory, ignore_errors=True)
            self._ensure_directory()
        LOGGER.debug("cache cleared: directory=%s", self.directory)

    def sweep_expired(self) -> int:
        """Delete entries past their TTL and return how many were removed."""
        removed = 0
        with self._lock:
            now = self._clock()
            for path in self._entry_files():
                entry = self._read_entry(path).entry
                if entry is None:
                    continue
                if entry.age(now) > entry.ttl and self._remove(path):
                    removed += 1
        if removed:
            LOGGER.info("cache sweep removed expired entries: count=%s", removed)
        return removed

    def stats(self) -> CacheStats:
        total_size = 0
        with self._lock:
            files = self._entry_files()
            for path in files:
                try:
                    total_size += path.stat().st_size
                except OSError:
                    continue
        return CacheStats(file_count=len(files), total_size=total_size)

    def path_for(self, key: str) -> Path:
        return self.directory / f"{sanitize_key(key)}{CACHE_SUFFIX}"

    def _read_entry(self, path: Path) -> _ReadResult:
        try:
            raw = path.read_bytes()
        except FileNotFoundError:
            return _ReadResult(error="missing")
        except OSError as error:
            return _ReadResult(error="unreadable", detail=str(error))
        try:
            return _ReadResult(entry=CacheEntry.from_dict(json.loads(raw)))
        except (ValueError, KeyError, TypeError) as error:
            return _ReadResult(error="corrupt", detail=str(error))

    def _entry_files(self) -> list[Path]:
        try:
            return sorted(
                path for path in self.directory.iterdir() if path.name.endswith(CACHE_SUFFIX) and path.is_file()
            )
        except OSError:
            return []

    def _remove(self, path: Path) -> bool:
        try:
            path.unlink()
        except FileNotFoundError:
            return False
        except OSError as error:
            LOGGER.info("cache entry removal failed: path=%s error=%s", path.name, error)
            return False
        return True

    def _ensure_directory(self) -> None:
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
        except OSError as error:
            LOGGER.warning("cache directory unavailable: directory=%s error=%s", self.directory, error)

    def _record_lookup(self, hit: bool) -> None:
        if self._metrics:
            self._metrics.record_cache_lookup(hit)

    def _record_write_failure(self, key: str, error: Exception) -> None:
        LOGGER.warning("cache write dropped: key=%s error=%s", key, error)
        if self._metrics:
            self._metrics.record_cache_write_failure()
