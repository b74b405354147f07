"""Wait command for stint.

Blocks until the active session completes.
"""

from datetime import timedelta
from pathlib import Path

import click
import orjson
from watchfiles import Change, watch

from stint.commands.status import session_summary
from stint.core.clock import ZERO
from stint.core.runtime import open_controller
from stint.core.session import SessionStatus
from stint.core.store import get_stint_base

# Slack so the countdown has surely run out when we reconcile after a timeout.
EXPIRY_MARGIN_MS = 50

# A paused session has no deadline; re-read it this often in case a change
# landed before the watcher started.
PAUSED_RECHECK = timedelta(seconds=5)


def _is_snapshot(change: Change, path: str) -> bool:
    return Path(path).name == "snapshot.json"


def wait_for_snapshot_change(base: Path, timeout: timedelta) -> None:
    """Block until the snapshot changes on disk or timeout passes.

    Args:
        base: The stint directory.
        timeout: Longest time to block.
    """
    rust_timeout = int(timeout.total_seconds() * 1000) + EXPIRY_MARGIN_MS
    for _ in watch(
        base,
        watch_filter=_is_snapshot,
        debounce=50,
        rust_timeout=rust_timeout,
        yield_on_timeout=True,
        recursive=False,
    ):
        return


@click.command()
def wait() -> None:
    """Wait for the active session to complete.

    Blocks until the session runs out or is ended. Pauses and resumes made
    from another terminal are picked up while waiting. Prints the final
    status as JSON. Exit code indicates status:
    0 = completed, 1 = no active session or a failed save, 2 = reset or
    replaced.

    Examples:

        stint wait && notify-send "Break time"
    """
    controller = open_controller()
    if controller.session is None:
        click.echo("No active session", err=True)
        raise SystemExit(1)

    session_id = controller.session.id
    base = get_stint_base()

    while True:
        session = controller.session
        if session is None or session.id != session_id:
            click.echo("Session was reset", err=True)
            raise SystemExit(2)
        if controller.status == SessionStatus.COMPLETED:
            click.echo(orjson.dumps(session_summary(controller)).decode())
            return

        if controller.status == SessionStatus.PAUSED:
            timeout = PAUSED_RECHECK
        elif controller.time_remaining > ZERO:
            timeout = controller.time_remaining
        else:
            click.echo("Error: Session ran out but its completion could not be saved", err=True)
            raise SystemExit(1)
        wait_for_snapshot_change(base, timeout)
        controller = open_controller()
