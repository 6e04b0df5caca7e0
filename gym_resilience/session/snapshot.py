"""Single-slot persisted snapshot of the active workout session."""

from __future__ import annotations

import json
import logging
import os
import threading
import time
from dataclasses import replace
from pathlib import Path
from typing import Callable

from gym_resilience.session.models import ActiveSessionState

LOGGER = logging.getLogger(__name__)
DEFAULT_STALENESS_SECONDS = 4 * 60 * 60


class SessionSnapshotStore:
    """Persists the most recent ActiveSessionState to one JSON file.

    Snapshots older than ``staleness_cutoff_seconds`` are never restored, so a
    relaunch days later does not silently resume an abandoned workout.
    """

    def __init__(
        self,
        path: str | Path,
        staleness_cutoff_seconds: float = DEFAULT_STALENESS_SECONDS,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.path = Path(path)
        self.staleness_cutoff_seconds = max(1.0, float(staleness_cutoff_seconds))
        self._clock = clock
        self._lock = threading.Lock()

    def save(self, state: ActiveSessionState) -> bool:
        """Overwrite the snapshot with ``state`` stamped ``saved_at = now``.

        Encoding and I/O failures are logged and reported as ``False``.
        """
        stamped = replace(state, saved_at=self._clock())
        try:
            payload = json.dumps(stamped.to_dict(), ensure_ascii=True, allow_nan=False)
        except (TypeError, ValueError, AttributeError) as error:
            LOGGER.warning("session snapshot not encoded: error=%s", error)
            return False

        tmp_path = self.path.with_name(f"{self.path.name}.tmp")
        with self._lock:
            try:
                self.path.parent.mkdir(parents=True, exist_ok=True)
                tmp_path.write_text(payload, encoding="utf-8")
                os.replace(tmp_path, self.path)
            except OSError as error:
                LOGGER.warning("session snapshot not saved: path=%s error=%s", self.path, error)
                self._discard(tmp_path)
                return False
        LOGGER.debug(
            "session snapshot saved: elapsed_s=%s sets=%s",
            stamped.elapsed_seconds,
            len(stamped.completed_sets),
        )
        return True

    def restore(self) -> ActiveSessionState | None:
        """Return the snapshot if it is fresh; stale or unreadable snapshots are discarded."""
        with self._lock:
            try:
                raw = self.path.read_bytes()
            except FileNotFoundError:
                return None
            except OSError as error:
                LOGGER.warning("session snapshot unreadable: path=%s error=%s", self.path, error)
                return None

            try:
                state = ActiveSessionState.from_dict(json.loads(raw.decode("utf-8")))
            except (ValueError, KeyError, TypeError, ArithmeticError) as error:
                LOGGER.warning("session snapshot corrupt, discarding: error=%s", error)
                self._discard(self.path)
                return None

            now = self._clock()
            if not state.is_fresh(now, self.staleness_cutoff_seconds):
                LOGGER.info(
                    "session snapshot stale, discarding: age_s=%.0f cutoff_s=%.0f",
                    state.age(now),
                    self.staleness_cutoff_seconds,
                )
                self._discard(self.path)
                return None
        return state

    def clear(self) -> None:
        with self._lock:
            self._discard(self.path)

    def exists(self) -> bool:
        return self.path.is_file()

    def _discard(self, path: Path) -> None:
        try:
            path.unlink()
        except FileNotFoundError:
            return
        except OSError as error:
            LOGGER.warning("session snapshot file not removed: path=%s error=%s", path, error)
