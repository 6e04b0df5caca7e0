"""Application runtime wiring and diagnostics entrypoint."""

from __future__ import annotations

import asyncio
import json
import logging
from dataclasses import asdict, dataclass, field
from typing import Any, Awaitable, Callable

from gym_resilience.cache.ttl_cache import TTLCache
from gym_resilience.config.settings import Settings, get_settings
from gym_resilience.providers.http import FetchGateway
from gym_resilience.runtime.monitoring import LayerMetrics, log_lifecycle_event
from gym_resilience.session.snapshot import SessionSnapshotStore
from gym_resilience.session.tracker import WorkoutSessionTracker, run_autosave
from gym_resilience.timing.rest_countdown import NotificationScheduler, RestCountdown
from gym_resilience.utils.rate_limit import RateLimiter

LOGGER = logging.getLogger(__name__)


@dataclass
class ResilienceRuntime:
    """One explicitly constructed instance of each resilience component."""

    settings: Settings
    cache: TTLCache
    limiter: RateLimiter
    snapshots: SessionSnapshotStore
    tracker: WorkoutSessionTracker
    gateway: FetchGateway
    metrics: LayerMetrics = field(default_factory=LayerMetrics)

    def on_launch(self) -> dict[str, Any]:
        """Sweep expired cache files and recover an interrupted workout, if any."""
        swept = self.cache.sweep_expired()
        recovered = self.tracker.recover()
        log_lifecycle_event(
            "launch",
            swept_cache_entries=swept,
            recovered_workout=recovered,
            elapsed_seconds=self.tracker.elapsed_seconds if recovered else None,
        )
        return {"swept_cache_entries": swept, "recovered_workout": recovered}

    def on_enter_background(self) -> bool:
        saved = self.tracker.enter_background()
        log_lifecycle_event("background", snapshot_saved=saved)
        return saved

    def on_become_active(self) -> int:
        elapsed = self.tracker.become_active()
        log_lifecycle_event(
            "active",
            workout_active=self.tracker.is_active,
            elapsed_seconds=elapsed if self.tracker.is_active else None,
        )
        return elapsed

    async def run_autosave(self, sleep: Callable[[float], Awaitable[None]] = asyncio.sleep) -> None:
        """Save the active session every ``autosave_interval_seconds`` until cancelled."""
        await run_autosave(self.tracker, self.settings.autosave_interval_seconds, sleep=sleep)

    def start_autosave(self) -> asyncio.Task[None]:
        """Schedule the autosave loop on the running event loop."""
        return asyncio.create_task(self.run_autosave())

    def new_rest_countdown(
        self,
        duration_seconds: float | None = None,
        notifier: NotificationScheduler | None = None,
        set_number: int = 1,
        exercise_name: str = "",
        next_info: str = "",
    ) -> RestCountdown:
        return RestCountdown(
            duration_seconds=self.settings.default_rest_seconds if duration_seconds is None else duration_seconds,
            notifier=notifier,
            set_number=set_number,
            exercise_name=exercise_name,
            next_info=next_info,
        )

    def diagnostics(self) -> dict[str, Any]:
        stats = self.cache.stats()
        return {
            "app": self.settings.app_name,
            "version": self.settings.app_version,
            "cache": {
                "directory": str(self.cache.directory),
                "file_count": stats.file_count,
                "total_size": stats.total_size,
                "formatted_size": stats.formatted_size,
            },
            "rate_limit": {
                "max_requests": self.limiter.max_requests,
                "window_seconds": self.limiter.window_seconds,
                "remaining_requests": self.limiter.remaining_requests,
            },
            "session": {
                "active": self.tracker.is_active,
                "paused": self.tracker.is_paused,
                "elapsed": self.tracker.formatted_elapsed,
                "snapshot_present": self.snapshots.exists(),
            },
            "metrics": asdict(self.metrics.snapshot()),
        }


def build_runtime(settings: Settings | None = None) -> ResilienceRuntime:
    settings = settings or get_settings()
    metrics = LayerMetrics()
    cache = TTLCache(
        settings.cache_dir,
        default_ttl_seconds=settings.cache_ttl_exercise_seconds,
        metrics=metrics,
    )
    limiter = RateLimiter(
        max_requests=settings.rate_limit_max_requests,
        window_seconds=settings.rate_limit_window_seconds,
        poll_interval_seconds=settings.rate_limit_poll_seconds,
        metrics=metrics,
    )
    snapshots = SessionSnapshotStore(
        settings.snapshot_path,
        staleness_cutoff_seconds=settings.session_staleness_seconds,
    )
    return ResilienceRuntime(
        settings=settings,
        cache=cache,
        limiter=limiter,
        snapshots=snapshots,
        tracker=WorkoutSessionTracker(snapshots),
        gateway=FetchGateway(
            settings.exercise_api_base_url,
            cache=cache,
            limiter=limiter,
            timeout_seconds=settings.request_timeout_seconds,
            exercise_ttl_seconds=settings.cache_ttl_exercise_seconds,
            lists_ttl_seconds=settings.cache_ttl_lists_seconds,
        ),
        metrics=metrics,
    )


def main() -> None:
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    runtime = build_runtime()
    runtime.on_launch()
    print(json.dumps(runtime.diagnostics(), indent=2, ensure_ascii=True))


if __name__ == "__main__":
    main()
