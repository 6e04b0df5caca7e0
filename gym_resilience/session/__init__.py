"""Active workout session persistence package."""

from gym_resilience.session.models import ActiveSessionState, SetRecord, WorkoutType
from gym_resilience.session.snapshot import SessionSnapshotStore
from gym_resilience.session.tracker import WorkoutSessionTracker

__all__ = ["ActiveSessionState", "SessionSnapshotStore", "SetRecord", "WorkoutSessionTracker", "WorkoutType"]
