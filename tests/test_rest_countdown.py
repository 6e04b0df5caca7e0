import threading

import pytest

from gym_resilience.timing.rest_countdown import LoggingNotificationScheduler, RestCountdown


class RecordingNotifier:
    def __init__(self, fail_schedule: bool = False) -> None:
        self.fail_schedule = fail_schedule
        self.scheduled: list[tuple[str, float, str, str]] = []
        self.cancelled: list[str] = []

    def schedule(self, notification_id: str, fire_after_seconds: float, title: str, body: str) -> None:
        if self.fail_schedule:
            raise RuntimeError("notifications not authorized")
        self.scheduled.append((notification_id, fire_after_seconds, title, body))

    def cancel(self, notification_id: str) -> None:
        self.cancelled.append(notification_id)

    @property
    def pending(self) -> set[str]:
        return {item[0] for item in self.scheduled} - set(self.cancelled)


def test_start_schedules_backstop_for_remaining_time(clock) -> None:
    notifier = RecordingNotifier()
    countdown = RestCountdown(90, notifier=notifier, next_info="Lat Pulldown", clock=clock)
    countdown.start()
    assert len(notifier.scheduled) == 1
    notification_id, fire_after, title, body = notifier.scheduled[0]
    assert fire_after == pytest.approx(90)
    assert title == "Rest Complete"
    assert "Lat Pulldown" in body
    assert countdown.pending_notification_id == notification_id


def test_pause_cancels_and_resume_reschedules(clock) -> None:
    notifier = RecordingNotifier()
    countdown = RestCountdown(90, notifier=notifier, clock=clock)
    countdown.start()
    clock.advance(30)
    countdown.pause()
    assert notifier.pending == set()
    assert countdown.pending_notification_id is None
    clock.advance(5)
    assert countdown.resume() == pytest.approx(60)
    assert notifier.scheduled[-1][1] == pytest.approx(60)
    assert len(notifier.pending) == 1


def test_only_one_notification_pending_at_a_time(clock) -> None:
    notifier = RecordingNotifier()
    countdown = RestCountdown(60, notifier=notifier, clock=clock)
    countdown.start()
    countdown.reset(45)
    countdown.start()
    assert len(notifier.pending) == 1
    assert len({item[0] for item in notifier.scheduled}) == 3


def test_resume_when_running_does_not_reschedule(clock) -> None:
    notifier = RecordingNotifier()
    countdown = RestCountdown(60, notifier=notifier, clock=clock)
    countdown.start()
    countdown.resume()
    assert len(notifier.scheduled) == 1


def test_dismiss_cancels_pending_notification(clock) -> None:
    notifier = RecordingNotifier()
    countdown = RestCountdown(60, notifier=notifier, clock=clock)
    countdown.start()
    countdown.dismiss()
    assert notifier.pending == set()
    assert countdown.is_started is False


def test_finish_if_elapsed_fires_once(clock) -> None:
    notifier = RecordingNotifier()
    countdown = RestCountdown(10, notifier=notifier, clock=clock)
    countdown.start()
    clock.advance(5)
    assert countdown.finish_if_elapsed() is False
    clock.advance(5)
    assert countdown.finish_if_elapsed() is True
    assert countdown.finish_if_elapsed() is False
    assert countdown.completed is True
    assert notifier.pending == set()


def test_schedule_failure_does_not_break_countdown(clock) -> None:
    countdown = RestCountdown(30, notifier=RecordingNotifier(fail_schedule=True), clock=clock)
    assert countdown.start() == pytest.approx(30)
    assert countdown.pending_notification_id is None
    clock.advance(10)
    assert countdown.current_value() == pytest.approx(20)
    assert countdown.display_time == "0:20"


def test_zero_duration_schedules_nothing(clock) -> None:
    notifier = RecordingNotifier()
    countdown = RestCountdown(0, notifier=notifier, clock=clock)
    countdown.start()
    assert notifier.scheduled == []
    assert countdown.finish_if_elapsed() is True


def test_logging_scheduler_tracks_pending(clock) -> None:
    scheduler = LoggingNotificationScheduler()
    countdown = RestCountdown(60, notifier=scheduler, clock=clock)
    countdown.start()
    assert list(scheduler.pending.values()) == [pytest.approx(60)]
    countdown.pause()
    assert scheduler.pending == {}


def test_concurrent_pause_and_resume_leave_one_backstop_while_running(clock) -> None:
    notifier = RecordingNotifier()
    countdown = RestCountdown(60, notifier=notifier, clock=clock)
    countdown.start()

    def _toggle() -> None:
        for _ in range(200):
            countdown.pause()
            countdown.resume()

    workers = [threading.Thread(target=_toggle) for _ in range(4)]
    for worker in workers:
        worker.start()
    for worker in workers:
        worker.join()

    assert countdown.is_paused is False
    assert len(notifier.pending) == 1
    assert countdown.pending_notification_id in notifier.pending
