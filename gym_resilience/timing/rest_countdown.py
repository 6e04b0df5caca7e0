"""Rest-period countdown backed by a one-shot local notification."""

from __future__ import annotations

import itertools
import logging
import threading
import time
import uuid
from typing import Callable, Protocol

from gym_resilience.lib.formatters import format_clock
from gym_resilience.timing.clock import ClockMode, LifecycleClock

LOGGER = logging.getLogger(__name__)
NOTIFICATION_TITLE = "Rest Complete"


class NotificationScheduler(Protocol):
    def schedule(self, notification_id: str, fire_after_seconds: float, title: str, body: str) -> None: ...

    def cancel(self, notification_id: str) -> None: ...


class LoggingNotificationScheduler:
    """Scheduler that only records and logs requests; used when no platform channel is wired."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self.pending: dict[str, float] = {}

    def schedule(self, notification_id: str, fire_after_seconds: float, title: str, body: str) -> None:
        with self._lock:
            self.pending[notification_id] = fire_after_seconds
        LOGGER.info(
            "notification scheduled: id=%s fire_after_s=%.1f title=%s body=%s",
            notification_id,
            fire_after_seconds,
            title,
            body,
        )

    def cancel(self, notification_id: str) -> None:
        with self._lock:
            self.pending.pop(notification_id, None)
        LOGGER.info("notification cancelled: id=%s", notification_id)


class RestCountdown(LifecycleClock):
    """Countdown that keeps exactly one backstop notification pending while it runs.

    The countdown's own state is always the source of truth; the notification
    only approximates completion while the app is suspended, so scheduling
    failures are logged and otherwise ignored.
    """

    def __init__(
        self,
        duration_seconds: float = 90,
        notifier: NotificationScheduler | None = None,
        set_number: int = 1,
        exercise_name: str = "",
        next_info: str = "",
        clock: Callable[[], float] = time.time,
    ) -> None:
        super().__init__(ClockMode.COUNTDOWN, duration_seconds=duration_seconds, clock=clock)
        self.set_number = set_number
        self.exercise_name = exercise_name
        self.next_info = next_info
        self._notifier: NotificationScheduler = notifier or LoggingNotificationScheduler()
        self._notify_lock = threading.Lock()
        self._pending_id: str | None = None
        self._completed = False
        self._id_prefix = f"rest-timer-{uuid.uuid4().hex[:12]}"
        self._sequence = itertools.count(1)

    @property
    def pending_notification_id(self) -> str | None:
        with self._notify_lock:
            return self._pending_id

    @property
    def completed(self) -> bool:
        return self._completed

    @property
    def notification_body(self) -> str:
        if self.next_info:
            return f"Time's up! Next: {self.next_info}"
        return "Time's up! Ready for your next set."

    @property
    def display_time(self) -> str:
        return format_clock(self.current_value())

    def start(self, duration_seconds: float | None = None) -> float:
        with self._notify_lock:
            remaining = super().start(duration_seconds)
            self._completed = False
            self._schedule_locked(remaining)
        return remaining

    def pause(self) -> float:
        with self._notify_lock:
            remaining = super().pause()
            self._cancel_locked()
        return remaining

    def resume(self) -> float:
        # A running countdown always has its backstop pending.
        with self._notify_lock:
            was_paused = self.is_paused
            remaining = super().resume()
            if was_paused:
                self._schedule_locked(remaining)
        return remaining

    def dismiss(self) -> None:
        with self._notify_lock:
            self._cancel_locked()
            self.stop()

    def finish_if_elapsed(self) -> bool:
        """Return True exactly once, the first time the countdown is seen at zero."""
        with self._notify_lock:
            if self._completed or not self.is_started or self.is_paused:
                return False
            if self.current_value() > 0.0:
                return False
            self._completed = True
            self._cancel_locked()
        LOGGER.debug("rest countdown complete: set=%s exercise=%s", self.set_number, self.exercise_name)
        return True

    def _schedule_locked(self, remaining: float) -> None:
        self._cancel_locked()
        if remaining <= 0.0:
            return
        notification_id = f"{self._id_prefix}-{next(self._sequence)}"
        try:
            self._notifier.schedule(notification_id, remaining, NOTIFICATION_TITLE, self.notification_body)
        except Exception as error:
            LOGGER.warning("backstop notification not scheduled: id=%s error=%s", notification_id, error)
            return
        self._pending_id = notification_id

    def _cancel_locked(self) -> None:
        notification_id, self._pending_id = self._pending_id, None
        if notification_id is None:
            return
        try:
            self._notifier.cancel(notification_id)
        except Exception as error:
            LOGGER.warning("backstop notification not cancelled: id=%s error=%s", notification_id, error)
