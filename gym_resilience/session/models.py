"""Typed workout session models."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class WorkoutType(str, Enum):
    PUSH = "PUSH"
    PULL = "PULL"
    LEGS = "LEGS"
    REST = "REST"

    @property
    def display_name(self) -> str:
        return {
            WorkoutType.PUSH: "Push Day",
            WorkoutType.PULL: "Pull Day",
            WorkoutType.LEGS: "Leg Day",
            WorkoutType.REST: "Rest Day",
        }[self]


@dataclass
class SetRecord:
    exercise_id: str
    exercise_name: str
    set_number: int
    reps: int = 0
    weight: float = 0.0
    completed: bool = False
    id: str = field(default_factory=lambda: str(uuid.uuid4()))

    @property
    def volume(self) -> float:
        return self.weight * self.reps

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "exercise_id": self.exercise_id,
            "exercise_name": self.exercise_name,
            "set_number": self.set_number,
            "reps": self.reps,
            "weight": self.weight,
            "completed": self.completed,
        }

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> "SetRecord":
        return cls(
            id=str(payload["id"]),
            exercise_id=str(payload["exercise_id"]),
            exercise_name=str(payload["exercise_name"]),
            set_number=int(payload["set_number"]),
            reps=int(payload.get("reps", 0)),
            weight=float(payload.get("weight", 0.0)),
            completed=bool(payload.get("completed", False)),
        )


@dataclass
class ActiveSessionState:
    """Snapshot of an in-progress workout, persisted for recovery after process death."""

    workout_kind: WorkoutType
    started_at: float
    elapsed_seconds: int
    completed_sets: list[SetRecord] = field(default_factory=list)
    saved_at: float = 0.0
    paused: bool = False

    def age(self, now: float) -> float:
        return now - self.saved_at

    def is_fresh(self, now: float, staleness_cutoff_seconds: float) -> bool:
        return self.age(now) < staleness_cutoff_seconds

    def to_dict(self) -> dict[str, Any]:
        return {
            "workout_kind": WorkoutType(self.workout_kind).value,
            "started_at": self.started_at,
            "elapsed_seconds": self.elapsed_seconds,
            "completed_sets": [record.to_dict() for record in self.completed_sets],
            "saved_at": self.saved_at,
            "paused": self.paused,
        }

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> "ActiveSessionState":
        if not isinstance(payload, dict):
            raise ValueError("session snapshot must be a JSON object")
        return cls(
            workout_kind=WorkoutType(payload["workout_kind"]),
            started_at=float(payload["started_at"]),
            elapsed_seconds=int(payload["elapsed_seconds"]),
            completed_sets=[SetRecord.from_dict(item) for item in payload.get("completed_sets", [])],
            saved_at=float(payload["saved_at"]),
            paused=bool(payload.get("paused", False)),
        )


@dataclass
class WorkoutSummary:
    workout_kind: WorkoutType
    started_at: float
    duration_seconds: int
    sets: list[SetRecord]

    @property
    def completed_sets_count(self) -> int:
        return sum(1 for record in self.sets if record.completed)

    @property
    def total_volume(self) -> float:
        return sum(record.volume for record in self.sets if record.completed)
