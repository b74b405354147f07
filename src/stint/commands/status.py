"""Status command for stint.

Returns the active session as JSON.
"""

import click
import orjson

from stint.core.controller import SessionController
from stint.core.formatting import format_clock
from stint.core.runtime import open_controller


def session_summary(controller: SessionController) -> dict:
    """Describe the controller state as a JSON-ready dict."""
    result: dict = {"state": controller.status.value}
    session = controller.session
    if session is None:
        return result

    result.update(
        {
            "session_id": session.id,
            "task": session.task_id,
            "planned": session.planned_duration.total_seconds(),
            "remaining": controller.time_remaining.total_seconds(),
            "clock": format_clock(controller.time_remaining),
            "progress": round(controller.progress, 4),
        }
    )
    if session.completed_at is not None:
        result["worked"] = session.accumulated_worked.total_seconds()
        result["completed_at"] = session.completed_at.isoformat()
    return result


@click.command()
def status() -> None:
    """Show the active session as JSON.

    Reconciles first, so a session that ran out while nothing was running
    reports as completed.

    Examples:

        stint status
    """
    controller = open_controller()
    click.echo(orjson.dumps(session_summary(controller)).decode())
