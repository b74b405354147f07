"""Pause, resume, end, reset and ack commands for stint."""

from typing import Any

import click

from stint.core.controller import SessionController
from stint.core.errors import InvalidTransition, PersistenceError
from stint.core.feedback import BellFeedback
from stint.core.formatting import format_clock, format_duration
from stint.core.runtime import open_controller
from stint.core.session import SessionStatus


def _run(operation: str) -> tuple[SessionController, Any]:
    """Open the controller and apply one operation, exiting 1 on failure.

    Returns:
        The controller and whatever the operation returned.
    """
    controller = open_controller(feedback=BellFeedback())
    try:
        result = getattr(controller, operation)()
    except (InvalidTransition, PersistenceError) as e:
        click.echo(f"Error: {e}", err=True)
        raise SystemExit(1)
    return controller, result


@click.command()
def pause() -> None:
    """Pause the running session."""
    controller, session = _run("pause")
    if controller.status == SessionStatus.COMPLETED:
        click.echo(f"{session.task_id} already ran out; worked {format_duration(session.accumulated_worked)}")
        return
    click.echo(f"Paused {session.task_id}: {format_clock(controller.time_remaining)} remaining")


@click.command()
def resume() -> None:
    """Resume the paused session."""
    controller, session = _run("resume")
    click.echo(f"Resumed {session.task_id}: {format_clock(controller.time_remaining)} remaining")


@click.command()
def end() -> None:
    """End the active session now, keeping the time worked so far."""
    _, session = _run("end")
    click.echo(f"Ended {session.task_id} after {format_duration(session.accumulated_worked)}")


@click.command()
def ack() -> None:
    """Acknowledge a completed session and archive it.

    Examples:

        stint ack
    """
    _, session = _run("acknowledge")
    label = "Completed" if session.is_full else "Incomplete"
    click.echo(f"Archived {session.task_id}: {format_duration(session.accumulated_worked)} ({label})")


@click.command()
def reset() -> None:
    """Discard the current session without archiving it."""
    _run("reset")
    click.echo("Reset")
