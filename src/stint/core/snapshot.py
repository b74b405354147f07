"""SessionSnapshot codec for stint.

The snapshot is the persisted projection of the controller state, written on
every transition and read once on cold start. Layout (JSON object):
- schema_version: Monotonic integer, currently 1
- state: idle, running, paused or completed
- session_id, task_id: Opaque strings
- planned_duration, accumulated_worked: Seconds as floats
- started_at, paused_at, completed_at: ISO-8601 timestamps or null

Unknown fields are ignored. Anything else out of place raises SnapshotError.
"""

from datetime import datetime, timedelta
from typing import Any

import orjson

from stint.core.errors import SnapshotError
from stint.core.session import IDLE, ControllerState, SessionStatus, WorkSession

SCHEMA_VERSION = 1


def _timestamp(value: datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


def encode_snapshot(state: ControllerState) -> bytes:
    """Serialize controller state to snapshot bytes."""
    payload: dict[str, Any] = {
        "schema_version": SCHEMA_VERSION,
        "state": state.status.value,
    }
    session = state.session
    if session is not None:
        payload.update(
            {
                "session_id": session.id,
                "task_id": session.task_id,
                "planned_duration": session.planned_duration.total_seconds(),
                "accumulated_worked": session.accumulated_worked.total_seconds(),
                "started_at": _timestamp(session.started_at),
                "paused_at": _timestamp(session.paused_at),
                "completed_at": _timestamp(session.completed_at),
            }
        )
    return orjson.dumps(payload)


def _require(payload: dict, key: str, kind: type) -> Any:
    value = payload.get(key)
    if not isinstance(value, kind) or isinstance(value, bool):
        raise SnapshotError(f"Snapshot field {key!r} missing or not {kind.__name__}")
    return value


def _seconds(payload: dict, key: str) -> timedelta:
    value = payload.get(key)
    if not isinstance(value, (int, float)) or isinstance(value, bool):
        raise SnapshotError(f"Snapshot field {key!r} missing or not a number")
    return timedelta(seconds=value)


def _parse_timestamp(payload: dict, key: str, required: bool = False) -> datetime | None:
    value = payload.get(key)
    if value is None:
        if required:
            raise SnapshotError(f"Snapshot field {key!r} is required")
        return None
    if not isinstance(value, str):
        raise SnapshotError(f"Snapshot field {key!r} is not a timestamp")
    try:
        parsed = datetime.fromisoformat(value)
    except ValueError as e:
        raise SnapshotError(f"Snapshot field {key!r} is not a timestamp: {e}") from e
    if parsed.tzinfo is None:
        raise SnapshotError(f"Snapshot field {key!r} has no timezone")
    return parsed


def decode_snapshot(blob: bytes) -> ControllerState:
    """Parse snapshot bytes back into controller state.

    Args:
        blob: Bytes previously produced by encode_snapshot.

    Returns:
        The stored ControllerState.

    Raises:
        SnapshotError: If the blob is not a valid snapshot of a known schema.
    """
    try:
        payload = orjson.loads(blob)
    except orjson.JSONDecodeError as e:
        raise SnapshotError(f"Snapshot is not valid JSON: {e}") from e
    if not isinstance(payload, dict):
        raise SnapshotError("Snapshot is not a JSON object")

    version = _require(payload, "schema_version", int)
    if version < 1 or version > SCHEMA_VERSION:
        raise SnapshotError(f"Unsupported snapshot schema version {version}")

    try:
        status = SessionStatus(payload.get("state"))
    except ValueError as e:
        raise SnapshotError(f"Unknown snapshot state {payload.get('state')!r}") from e

    if status == SessionStatus.IDLE:
        return IDLE

    try:
        session = WorkSession(
            id=_require(payload, "session_id", str),
            task_id=_require(payload, "task_id", str),
            planned_duration=_seconds(payload, "planned_duration"),
            accumulated_worked=_seconds(payload, "accumulated_worked"),
            started_at=_parse_timestamp(payload, "started_at", required=True),
            paused_at=_parse_timestamp(payload, "paused_at"),
            completed_at=_parse_timestamp(payload, "completed_at"),
        )
    except (ValueError, OverflowError) as e:
        raise SnapshotError(f"Snapshot session is invalid: {e}") from e

    if status == SessionStatus.PAUSED and session.paused_at is None:
        raise SnapshotError("Paused snapshot has no paused_at")
    if status == SessionStatus.COMPLETED and session.completed_at is None:
        raise SnapshotError("Completed snapshot has no completed_at")

    return ControllerState(status, session)
