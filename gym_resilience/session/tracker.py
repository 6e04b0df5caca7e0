"""In-progress workout tracking with snapshot saves at lifecycle transitions."""

from __future__ import annotations

import asyncio
import logging
import threading
import time
from typing import Awaitable, Callable

from gym_resilience.lib.formatters import format_clock
from gym_resilience.session.models import ActiveSessionState, SetRecord, WorkoutSummary, WorkoutType
from gym_resilience.session.snapshot import SessionSnapshotStore
from gym_resilience.timing.clock import LifecycleClock

LOGGER = logging.getLogger(__name__)


class WorkoutSessionTracker:
    """Owns the active workout: elapsed clock, completed sets and snapshot saves.

    Every meaningful mutation saves a snapshot, since the process may be killed
    without a clean shutdown. A recovered session always comes back paused.
    """

    def __init__(self, store: SessionSnapshotStore, clock: Callable[[], float] = time.time) -> None:
        self._store = store
        self._clock = clock
        self._timer = LifecycleClock.elapsed(clock=clock)
        self._lock = threading.Lock()
        self.workout_kind: WorkoutType | None = None
        self.started_at: float | None = None
        self.sets: list[SetRecord] = []

    @property
    def is_active(self) -> bool:
        return self.workout_kind is not None

    @property
    def is_paused(self) -> bool:
        return self._timer.is_paused

    @property
    def elapsed_seconds(self) -> int:
        return int(self._timer.current_value()) if self.is_active else 0

    @property
    def formatted_elapsed(self) -> str:
        return format_clock(self.elapsed_seconds, pad_minutes=True)

    def start(self, workout_kind: WorkoutType) -> bool:
        with self._lock:
            if self.is_active:
                return False
            self.workout_kind = WorkoutType(workout_kind)
            self.started_at = self._clock()
            self.sets = []
            self._timer.start()
            self._save_locked()
        LOGGER.info("workout started: kind=%s", self.workout_kind.value)
        return True

    def pause(self) -> int:
        with self._lock:
            if not self.is_active:
                return 0
            elapsed = int(self._timer.pause())
            self._save_locked()
        return elapsed

    def resume(self) -> int:
        with self._lock:
            if not self.is_active:
                return 0
            elapsed = int(self._timer.resume())
            self._save_locked()
        return elapsed

    def complete_set(self, record: SetRecord) -> None:
        with self._lock:
            if not self.is_active:
                return
            record.completed = True
            self.sets = [existing for existing in self.sets if existing.id != record.id]
            self.sets.append(record)
            self._save_locked()

    def enter_background(self) -> bool:
        with self._lock:
            if not self.is_active:
                return False
            return self._save_locked()

    def become_active(self) -> int:
        """Re-read elapsed time after returning to the foreground."""
        return self.elapsed_seconds

    def save(self) -> bool:
        with self._lock:
            if not self.is_active:
                return False
            return self._save_locked()

    def recover(self) -> bool:
        """Restore a fresh snapshot after relaunch, paused, with time spent away included."""
        state = self._store.restore()
        if state is None:
            return False
        elapsed = float(state.elapsed_seconds)
        if not state.paused:
            elapsed += max(0.0, state.age(self._clock()))
        with self._lock:
            self.workout_kind = state.workout_kind
            self.started_at = state.started_at
            self.sets = list(state.completed_sets)
            self._timer.restore_value(elapsed, paused=True)
        LOGGER.info(
            "workout recovered: kind=%s elapsed_s=%d sets=%s",
            state.workout_kind.value,
            elapsed,
            len(state.completed_sets),
        )
        return True

    def finish(self) -> WorkoutSummary | None:
        with self._lock:
            if self.workout_kind is None or self.started_at is None:
                return None
            summary = WorkoutSummary(
                workout_kind=self.workout_kind,
                started_at=self.started_at,
                duration_seconds=int(self._timer.current_value()),
                sets=list(self.sets),
            )
            self._reset_locked()
        LOGGER.info(
            "workout finished: kind=%s duration_s=%s completed_sets=%s",
            summary.workout_kind.value,
            summary.duration_seconds,
            summary.completed_sets_count,
        )
        return summary

    def cancel(self) -> None:
        with self._lock:
            self._reset_locked()

    def snapshot_state(self) -> ActiveSessionState | None:
        with self._lock:
            return self._state_locked()

    def _state_locked(self) -> ActiveSessionState | None:
        if self.workout_kind is None or self.started_at is None:
            return None
        return ActiveSessionState(
            workout_kind=self.workout_kind,
            started_at=self.started_at,
            elapsed_seconds=int(self._timer.current_value()),
            completed_sets=list(self.sets),
            paused=self._timer.is_paused,
        )

    def _save_locked(self) -> bool:
        state = self._state_locked()
        if state is None:
            return False
        return self._store.save(state)

    def _reset_locked(self) -> None:
        self._timer.stop()
        self.workout_kind = None
        self.started_at = None
        self.sets = []
        self._store.clear()


async def run_autosave(
    tracker: WorkoutSessionTracker,
    interval_seconds: float = 30.0,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> None:
    """Save the active session every interval until the task is cancelled."""
    interval = max(1.0, interval_seconds)
    while True:
        await sleep(interval)
        if tracker.save():
            LOGGER.debug("workout autosaved: elapsed_s=%s", tracker.elapsed_seconds)
