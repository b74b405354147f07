"""Completion notifications for stint.

An alert is scheduled in absolute OS time when a session starts or resumes,
so it fires even if no stint process is running at that moment. Each pending
alert is a detached `sleep N && notify-send ...` process whose pid is recorded
in alerts/<id>.pid so a later process can cancel it.
"""

import logging
import os
import shlex
import signal
import subprocess
import time
from dataclasses import dataclass
from datetime import timedelta
from pathlib import Path
from typing import Protocol

import orjson

from stint.core.errors import SchedulingError

logger = logging.getLogger(__name__)

# Only one session is ever active, so one alert id is enough.
COMPLETION_ALERT_ID = "session-complete"

DEFAULT_NOTIFY_COMMAND = ["notify-send", "{title}", "{body}"]


@dataclass(frozen=True)
class Notification:
    """User-facing alert content."""

    title: str = "Timer Complete!"
    body: str = "Your work session has finished."


class NotificationScheduler(Protocol):
    """Schedules and cancels one-shot alerts."""

    def schedule(self, alert_id: str, fire_after: timedelta, payload: Notification) -> None: ...

    def cancel(self, alert_id: str) -> None: ...


class NullScheduler:
    """Scheduler used when notifications are disabled."""

    def schedule(self, alert_id: str, fire_after: timedelta, payload: Notification) -> None:
        logger.debug("Notifications disabled; not scheduling %s", alert_id)

    def cancel(self, alert_id: str) -> None:
        pass


class ProcessScheduler:
    """Schedules alerts as detached background processes.

    Args:
        alerts_dir: Directory holding one pid file per pending alert.
        command: Notify command argv; "{title}" and "{body}" are substituted.
    """

    def __init__(self, alerts_dir: Path, command: list[str] | None = None) -> None:
        self.alerts_dir = alerts_dir
        self.command = list(command) if command else list(DEFAULT_NOTIFY_COMMAND)

    def _pid_path(self, alert_id: str) -> Path:
        return self.alerts_dir / f"{alert_id}.pid"

    def build_script(self, fire_after: timedelta, payload: Notification) -> str:
        """Build the shell script that waits and then notifies."""
        delay = max(0.0, fire_after.total_seconds())
        argv = [part.format(title=payload.title, body=payload.body) for part in self.command]
        return f"sleep {delay:.3f} && exec {shlex.join(argv)}"

    def schedule(self, alert_id: str, fire_after: timedelta, payload: Notification) -> None:
        """Schedule an alert, replacing any pending alert with the same id.

        Raises:
            SchedulingError: If the background process cannot be started.
        """
        self.cancel(alert_id)
        script = self.build_script(fire_after, payload)
        try:
            self.alerts_dir.mkdir(parents=True, exist_ok=True)
            proc = subprocess.Popen(
                ["sh", "-c", script],
                stdin=subprocess.DEVNULL,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
                start_new_session=True,
            )
        except OSError as e:
            raise SchedulingError(f"Failed to schedule alert {alert_id}: {e}") from e

        record = {"pid": proc.pid, "fires_at": time.time() + fire_after.total_seconds()}
        try:
            self._pid_path(alert_id).write_bytes(orjson.dumps(record))
        except OSError as e:
            _terminate(proc.pid)
            raise SchedulingError(f"Failed to record alert {alert_id}: {e}") from e
        logger.debug("Scheduled alert %s in %.1fs (pid %s)", alert_id, fire_after.total_seconds(), proc.pid)

    def cancel(self, alert_id: str) -> None:
        """Cancel a pending alert. Safe to call when nothing is pending.

        Raises:
            SchedulingError: If the alert process exists but cannot be killed.
        """
        pid_path = self._pid_path(alert_id)
        try:
            record = orjson.loads(pid_path.read_bytes())
            pid = int(record["pid"])
            fires_at = float(record["fires_at"])
        except FileNotFoundError:
            return
        except (OSError, orjson.JSONDecodeError, KeyError, TypeError, ValueError):
            logger.warning("Discarding unreadable alert record %s", pid_path)
            pid_path.unlink(missing_ok=True)
            return

        # Past its deadline the alert has fired and the pid may be reused.
        if fires_at > time.time():
            try:
                _terminate(pid)
            except PermissionError as e:
                raise SchedulingError(f"Failed to cancel alert {alert_id}: {e}") from e
            logger.debug("Cancelled alert %s (pid %s)", alert_id, pid)
        pid_path.unlink(missing_ok=True)


def _terminate(pid: int) -> None:
    """Kill a detached alert process group if it is still alive."""
    try:
        os.killpg(pid, signal.SIGTERM)
    except ProcessLookupError:
        pass
