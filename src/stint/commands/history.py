"""History command for stint.

Lists archived sessions and their totals.
"""

import click

from stint.core.formatting import format_duration
from stint.core.history import summarize
from stint.core.runtime import get_archive


@click.command()
@click.option("--task", "task_id", help="Only show sessions for this task")
@click.option("-n", "--limit", type=int, default=20, show_default=True, help="Most recent sessions to list")
def history(task_id: str | None, limit: int) -> None:
    """Show archived sessions, newest first, with totals.

    Early-ended sessions add their worked time to the total but are listed
    as Incomplete.

    Examples:

        stint history

        stint history --task write-report
    """
    records = get_archive().load(task_id=task_id)
    if not records:
        click.echo("No sessions")
        return

    for record in reversed(records[-limit:] if limit > 0 else records):
        label = "Completed" if record.is_full else "Incomplete"
        click.echo(
            f"{record.completed_at.astimezone():%Y-%m-%d %H:%M}  {record.task_id}  "
            f"planned {format_duration(record.planned_duration)}  "
            f"worked {format_duration(record.worked)}  {label}"
        )

    totals = summarize(records)
    click.echo(
        f"Total: {format_duration(totals.focus_time)} over {totals.sessions} sessions "
        f"({totals.full_sessions} completed)"
    )
