"""Start command for stint."""

from datetime import timedelta

import click

from stint.core.config import get_default_duration
from stint.core.errors import PersistenceError
from stint.core.feedback import BellFeedback
from stint.core.formatting import format_clock, parse_duration
from stint.core.runtime import open_controller


def _duration(ctx: click.Context, param: click.Parameter, value: str | None) -> timedelta | None:
    if value is None:
        return None
    try:
        return parse_duration(value)
    except ValueError as e:
        raise click.BadParameter(str(e)) from e


@click.command()
@click.argument("task")
@click.option(
    "-d",
    "--duration",
    callback=_duration,
    help="Planned duration, e.g. 25, 25m, 1h30m, 90s (default: 25m)",
)
def start(task: str, duration: timedelta | None) -> None:
    """Start a work session on TASK.

    Any running or paused session is ended and archived first.

    Examples:

        stint start write-report

        stint start review --duration 50m
    """
    if duration is None:
        duration = timedelta(seconds=get_default_duration())

    controller = open_controller(feedback=BellFeedback())
    try:
        controller.start(task, duration)
    except PersistenceError as e:
        click.echo(f"Error: {e}", err=True)
        raise SystemExit(1)

    click.echo(f"Started {task}: {format_clock(controller.time_remaining)} remaining")
