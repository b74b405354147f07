"""Archive of finished sessions.

Each finished session is appended to history.jsonl as one JSON object, so the
per-task totals survive the snapshot being cleared on reset.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from pathlib import Path

import orjson

from stint.core.clock import ZERO
from stint.core.session import WorkSession

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ArchivedSession:
    """A finished session as stored in the archive."""

    session_id: str
    task_id: str
    planned_duration: timedelta
    worked: timedelta
    completed_at: datetime

    @property
    def is_full(self) -> bool:
        """True when the whole planned duration was worked."""
        return self.worked >= self.planned_duration

    @classmethod
    def from_session(cls, session: WorkSession) -> "ArchivedSession":
        if session.completed_at is None:
            raise ValueError(f"Session {session.id} has not finished")
        return cls(
            session_id=session.id,
            task_id=session.task_id,
            planned_duration=session.planned_duration,
            worked=session.accumulated_worked,
            completed_at=session.completed_at,
        )

    def to_dict(self) -> dict:
        return {
            "session_id": self.session_id,
            "task_id": self.task_id,
            "planned_duration": self.planned_duration.total_seconds(),
            "worked": self.worked.total_seconds(),
            "completed_at": self.completed_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "ArchivedSession":
        return cls(
            session_id=str(data["session_id"]),
            task_id=str(data["task_id"]),
            planned_duration=timedelta(seconds=float(data["planned_duration"])),
            worked=timedelta(seconds=float(data["worked"])),
            completed_at=datetime.fromisoformat(data["completed_at"]),
        )


@dataclass(frozen=True)
class SessionTotals:
    """Aggregates over archived sessions.

    Early-ended sessions add their worked time to focus_time but do not count
    as full sessions.
    """

    sessions: int
    full_sessions: int
    focus_time: timedelta


class SessionArchive:
    """Append-only JSON-lines archive of finished sessions."""

    def __init__(self, path: Path) -> None:
        self.path = path

    def append(self, session: WorkSession) -> ArchivedSession:
        """Archive a finished session.

        Args:
            session: A session with completed_at set.

        Returns:
            The archived record.
        """
        record = ArchivedSession.from_session(session)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, "ab") as f:
            f.write(orjson.dumps(record.to_dict()) + b"\n")
        logger.info(
            "Archived session %s for task %s (%s worked)",
            record.session_id,
            record.task_id,
            record.worked,
        )
        return record

    def load(self, task_id: str | None = None) -> list[ArchivedSession]:
        """Read archived sessions, oldest first.

        Malformed lines are skipped.

        Args:
            task_id: If given, only sessions for this task.
        """
        if not self.path.exists():
            return []

        records = []
        for lineno, line in enumerate(self.path.read_bytes().splitlines(), start=1):
            if not line.strip():
                continue
            try:
                record = ArchivedSession.from_dict(orjson.loads(line))
            except (orjson.JSONDecodeError, KeyError, TypeError, ValueError):
                logger.warning("Skipping malformed history line %d in %s", lineno, self.path)
                continue
            if task_id is None or record.task_id == task_id:
                records.append(record)
        return records


def summarize(records: list[ArchivedSession]) -> SessionTotals:
    """Aggregate archived sessions into totals."""
    return SessionTotals(
        sessions=len(records),
        full_sessions=sum(1 for r in records if r.is_full),
        focus_time=sum((r.worked for r in records), ZERO),
    )
