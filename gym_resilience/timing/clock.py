"""Timestamp-anchored elapsed and countdown clocks.

The clocks store absolute anchors (``started_at`` / ``end_at``) instead of
tick counters, so the value read after the process was suspended for an
arbitrary time is still exact. Pausing freezes the current value and resuming
re-derives the anchor from it.
"""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass, replace
from enum import Enum
from typing import Callable, Union


class ClockMode(str, Enum):
    ELAPSED = "elapsed"
    COUNTDOWN = "countdown"


@dataclass(frozen=True)
class ElapsedState:
    started_at: float
    paused: bool = False
    elapsed_at_pause: float = 0.0

    def value(self, now: float) -> float:
        if self.paused:
            return self.elapsed_at_pause
        return max(0.0, now - self.started_at)


@dataclass(frozen=True)
class CountdownState:
    duration_total: float
    end_at: float
    paused: bool = False
    remaining_at_pause: float = 0.0

    def value(self, now: float) -> float:
        if self.paused:
            return self.remaining_at_pause
        return max(0.0, self.end_at - now)


ClockState = Union[ElapsedState, CountdownState]


def _freeze(state: ClockState, value: float) -> ClockState:
    if isinstance(state, CountdownState):
        return replace(state, paused=True, remaining_at_pause=value)
    return replace(state, paused=True, elapsed_at_pause=value)


class LifecycleClock:
    """Elapsed-time or countdown clock computed from wall-clock anchors."""

    def __init__(
        self,
        mode: ClockMode = ClockMode.ELAPSED,
        duration_seconds: float = 0.0,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.mode = ClockMode(mode)
        self.duration_seconds = max(0.0, float(duration_seconds))
        self._clock = clock
        self._lock = threading.Lock()
        self._state: ClockState | None = None

    @classmethod
    def elapsed(cls, clock: Callable[[], float] = time.time) -> "LifecycleClock":
        return cls(ClockMode.ELAPSED, clock=clock)

    @classmethod
    def countdown(cls, duration_seconds: float, clock: Callable[[], float] = time.time) -> "LifecycleClock":
        return cls(ClockMode.COUNTDOWN, duration_seconds=duration_seconds, clock=clock)

    @property
    def state(self) -> ClockState | None:
        with self._lock:
            return self._state

    @property
    def is_started(self) -> bool:
        return self.state is not None

    @property
    def is_paused(self) -> bool:
        state = self.state
        return state is not None and state.paused

    @property
    def is_finished(self) -> bool:
        return self.mode is ClockMode.COUNTDOWN and self.is_started and self.current_value() <= 0.0

    @property
    def progress(self) -> float:
        """Fraction of the countdown already spent, in ``[0, 1]``."""
        if self.mode is not ClockMode.COUNTDOWN or self.duration_seconds <= 0:
            return 0.0
        spent = self.duration_seconds - self.current_value()
        return min(1.0, max(0.0, spent / self.duration_seconds))

    def start(self, duration_seconds: float | None = None) -> float:
        with self._lock:
            if duration_seconds is not None:
                self.duration_seconds = max(0.0, float(duration_seconds))
            self._state = self._anchor(self.duration_seconds if self.mode is ClockMode.COUNTDOWN else 0.0)
            return self._state.value(self._clock())

    def current_value(self) -> float:
        """Seconds elapsed (elapsed mode) or remaining (countdown mode), read fresh."""
        with self._lock:
            if self._state is None:
                return self.duration_seconds if self.mode is ClockMode.COUNTDOWN else 0.0
            return self._state.value(self._clock())

    def pause(self) -> float:
        with self._lock:
            if self._state is None or self._state.paused:
                return self._value_locked()
            frozen = self._state.value(self._clock())
            self._state = _freeze(self._state, frozen)
            return frozen

    def resume(self) -> float:
        with self._lock:
            if self._state is None or not self._state.paused:
                return self._value_locked()
            self._state = self._anchor(self._state.value(self._clock()))
            return self._state.value(self._clock())

    def reset(self, new_duration: float | None = None) -> float:
        """Re-anchor to now, discarding prior state. Countdowns restart at full duration."""
        return self.start(new_duration)

    def restore_value(self, value: float, paused: bool = False) -> None:
        """Anchor the clock so that ``current_value()`` reads ``value`` right now."""
        value = max(0.0, float(value))
        with self._lock:
            self._state = self._anchor(value)
            if paused:
                self._state = _freeze(self._state, value)

    def stop(self) -> None:
        with self._lock:
            self._state = None

    def _anchor(self, value: float) -> ClockState:
        now = self._clock()
        if self.mode is ClockMode.COUNTDOWN:
            return CountdownState(duration_total=self.duration_seconds, end_at=now + value)
        return ElapsedState(started_at=now - value)

    def _value_locked(self) -> float:
        if self._state is None:
            return self.duration_seconds if self.mode is ClockMode.COUNTDOWN else 0.0
        return self._state.value(self._clock())
