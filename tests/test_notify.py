"""Tests for completion alert scheduling."""

import time
from datetime import timedelta
from pathlib import Path

import orjson
import pytest

from stint.core.errors import SchedulingError
from stint.core.notify import (
    COMPLETION_ALERT_ID,
    DEFAULT_NOTIFY_COMMAND,
    Notification,
    NullScheduler,
    ProcessScheduler,
)


def _alive(pid: int) -> bool:
    """True if pid is running and not a zombie (Linux /proc)."""
    try:
        stat = Path(f"/proc/{pid}/stat").read_text()
    except FileNotFoundError:
        return False
    return stat.rsplit(")", 1)[1].split()[0] != "Z"


def test_default_payload():
    """Test the default alert text."""
    payload = Notification()

    assert payload.title == "Timer Complete!"
    assert payload.body == "Your work session has finished."


def test_build_script_quotes_payload(tmp_path):
    """Test the notify command is shell-quoted after substitution."""
    scheduler = ProcessScheduler(tmp_path)

    script = scheduler.build_script(
        timedelta(seconds=90), Notification(title="Done!", body="It's over")
    )

    assert script.startswith("sleep 90.000 && exec notify-send ")
    assert "'Done!'" in script
    assert "'It'\"'\"'s over'" in script


def test_build_script_negative_delay(tmp_path):
    """Test a negative delay fires immediately."""
    scheduler = ProcessScheduler(tmp_path)

    assert scheduler.build_script(timedelta(seconds=-5), Notification()).startswith("sleep 0.000 ")


def test_default_command(tmp_path):
    """Test the scheduler falls back to notify-send."""
    assert ProcessScheduler(tmp_path).command == DEFAULT_NOTIFY_COMMAND
    assert ProcessScheduler(tmp_path, ["true"]).command == ["true"]


def test_schedule_records_pid(tmp_path):
    """Test scheduling starts a background process and records it."""
    scheduler = ProcessScheduler(tmp_path, ["true"])

    scheduler.schedule(COMPLETION_ALERT_ID, timedelta(seconds=60), Notification())
    try:
        record = orjson.loads((tmp_path / f"{COMPLETION_ALERT_ID}.pid").read_bytes())
        assert _alive(record["pid"])
        assert record["fires_at"] == pytest.approx(time.time() + 60, abs=5)
    finally:
        scheduler.cancel(COMPLETION_ALERT_ID)


def test_cancel_kills_pending_alert(tmp_path):
    """Test cancel stops the pending alert and removes its record."""
    scheduler = ProcessScheduler(tmp_path, ["true"])
    scheduler.schedule(COMPLETION_ALERT_ID, timedelta(seconds=60), Notification())
    pid = orjson.loads((tmp_path / f"{COMPLETION_ALERT_ID}.pid").read_bytes())["pid"]

    scheduler.cancel(COMPLETION_ALERT_ID)

    deadline = time.time() + 5
    while _alive(pid) and time.time() < deadline:
        time.sleep(0.05)
    assert not _alive(pid)
    assert not (tmp_path / f"{COMPLETION_ALERT_ID}.pid").exists()


def test_schedule_replaces_pending_alert(tmp_path):
    """Test scheduling the same id again cancels the earlier alert."""
    scheduler = ProcessScheduler(tmp_path, ["true"])
    pid_path = tmp_path / f"{COMPLETION_ALERT_ID}.pid"
    scheduler.schedule(COMPLETION_ALERT_ID, timedelta(seconds=60), Notification())
    first = orjson.loads(pid_path.read_bytes())["pid"]

    scheduler.schedule(COMPLETION_ALERT_ID, timedelta(seconds=30), Notification())
    try:
        second = orjson.loads(pid_path.read_bytes())["pid"]
        assert second != first
    finally:
        scheduler.cancel(COMPLETION_ALERT_ID)


def test_cancel_is_idempotent(tmp_path):
    """Test cancelling with nothing pending is a no-op."""
    scheduler = ProcessScheduler(tmp_path)

    scheduler.cancel(COMPLETION_ALERT_ID)
    scheduler.cancel(COMPLETION_ALERT_ID)


def test_cancel_past_deadline_does_not_kill(tmp_path, monkeypatch):
    """Test a fired alert's pid is never signalled, since it may be reused."""
    (tmp_path / f"{COMPLETION_ALERT_ID}.pid").write_bytes(
        orjson.dumps({"pid": 1, "fires_at": time.time() - 10})
    )
    killed = []
    monkeypatch.setattr("stint.core.notify.os.killpg", lambda pid, sig: killed.append(pid))

    ProcessScheduler(tmp_path).cancel(COMPLETION_ALERT_ID)

    assert killed == []
    assert not (tmp_path / f"{COMPLETION_ALERT_ID}.pid").exists()


def test_cancel_discards_unreadable_record(tmp_path):
    """Test a corrupt pid file is removed rather than raising."""
    pid_path = tmp_path / f"{COMPLETION_ALERT_ID}.pid"
    pid_path.write_text("garbage")

    ProcessScheduler(tmp_path).cancel(COMPLETION_ALERT_ID)

    assert not pid_path.exists()


def test_schedule_failure_raises_scheduling_error(tmp_path, monkeypatch):
    """Test a failure to spawn the alert process raises SchedulingError."""

    def fail(*args, **kwargs):
        raise FileNotFoundError("sh")

    monkeypatch.setattr("stint.core.notify.subprocess.Popen", fail)

    with pytest.raises(SchedulingError, match="Failed to schedule"):
        ProcessScheduler(tmp_path).schedule(COMPLETION_ALERT_ID, timedelta(seconds=1), Notification())


def test_cancel_permission_denied(tmp_path, monkeypatch):
    """Test an alert that cannot be killed raises SchedulingError."""
    (tmp_path / f"{COMPLETION_ALERT_ID}.pid").write_bytes(
        orjson.dumps({"pid": 12345, "fires_at": time.time() + 60})
    )

    def deny(pid, sig):
        raise PermissionError("not yours")

    monkeypatch.setattr("stint.core.notify.os.killpg", deny)

    with pytest.raises(SchedulingError, match="Failed to cancel"):
        ProcessScheduler(tmp_path).cancel(COMPLETION_ALERT_ID)


def test_null_scheduler():
    """Test the null scheduler accepts calls and does nothing."""
    scheduler = NullScheduler()

    scheduler.schedule(COMPLETION_ALERT_ID, timedelta(seconds=1), Notification())
    scheduler.cancel(COMPLETION_ALERT_ID)
