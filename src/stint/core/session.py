"""WorkSession dataclass and controller state for stint."""

import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum

from stint.core.clock import ZERO, elapsed_between


class SessionStatus(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    PAUSED = "paused"
    COMPLETED = "completed"


# States that carry a session the controller still owns.
ACTIVE_STATES = {SessionStatus.RUNNING, SessionStatus.PAUSED}


@dataclass(frozen=True)
class WorkSession:
    """One timed work interval bound to a task.

    Attributes:
        id: Opaque unique token (uuid4 hex).
        task_id: Opaque reference to the task being worked on.
        planned_duration: Countdown length, always positive.
        accumulated_worked: Committed work time, excluding the in-flight
            interval since started_at while running.
        started_at: Anchor of the current running interval. Set on start and
            on every resume.
        paused_at: When the session was last paused, None while running.
        completed_at: When the session finished, None until then.
    """

    id: str
    task_id: str
    planned_duration: timedelta
    accumulated_worked: timedelta
    started_at: datetime
    paused_at: datetime | None = None
    completed_at: datetime | None = None

    def __post_init__(self) -> None:
        """Validate durations."""
        if self.planned_duration <= ZERO:
            raise ValueError(
                f"Invalid planned duration: {self.planned_duration}. Must be positive"
            )
        if self.accumulated_worked < ZERO:
            raise ValueError(
                f"Invalid accumulated work: {self.accumulated_worked}. Must be >= 0"
            )

    @classmethod
    def new(cls, task_id: str, planned_duration: timedelta, now: datetime) -> "WorkSession":
        """Create a fresh session anchored at now."""
        return cls(
            id=uuid.uuid4().hex,
            task_id=task_id,
            planned_duration=planned_duration,
            accumulated_worked=ZERO,
            started_at=now,
        )

    def worked(self, status: SessionStatus, now: datetime) -> timedelta:
        """Total work time including the in-flight interval, capped at planned."""
        worked = self.accumulated_worked
        if status == SessionStatus.RUNNING:
            worked += elapsed_between(self.started_at, now)
        return min(worked, self.planned_duration)

    def remaining(self, status: SessionStatus, now: datetime) -> timedelta:
        """Planned duration minus all work so far, floored at zero."""
        return max(ZERO, self.planned_duration - self.worked(status, now))

    def expires_at(self) -> datetime:
        """Instant a running session reaches zero remaining."""
        return self.started_at + (self.planned_duration - self.accumulated_worked)

    @property
    def is_full(self) -> bool:
        """True when the whole planned duration was worked."""
        return self.accumulated_worked >= self.planned_duration


@dataclass(frozen=True)
class ControllerState:
    """The controller's tagged state: a status and, unless idle, its session."""

    status: SessionStatus
    session: WorkSession | None = None

    def __post_init__(self) -> None:
        """Idle carries no session; every other status carries one."""
        if (self.status == SessionStatus.IDLE) != (self.session is None):
            raise ValueError(f"Invalid state: {self.status.value} with session={self.session}")


IDLE = ControllerState(SessionStatus.IDLE)
