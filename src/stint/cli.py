"""CLI entry point for stint.

Usage:
    stint                       # Launch TUI
    stint start "task" -d 25m   # Start a work session
    stint pause / resume / end  # Control the active session
    stint status                # Active session as JSON
    stint wait                  # Block until the session completes
"""

import logging

import click

from stint.commands.config import config_command
from stint.commands.control import ack, end, pause, reset, resume
from stint.commands.history import history
from stint.commands.start import start
from stint.commands.status import status
from stint.commands.top import top
from stint.commands.wait import wait
from stint.core.store import ensure_stint_dir
from stint.logging_setup import setup_logging


@click.group(invoke_without_command=True)
@click.option("-v", "--verbose", is_flag=True, help="Log session transitions to stderr")
@click.version_option(package_name="stint")
@click.pass_context
def main(ctx: click.Context, verbose: bool) -> None:
    """Stint - a pausable work-session timer.

    One countdown at a time, bound to a task. The session keeps counting
    while no stint process is running, and a desktop notification fires
    when it runs out.

    Running 'stint' without a subcommand launches the TUI.
    """
    setup_logging(
        log_dir=ensure_stint_dir(),
        console_level=logging.INFO if verbose else logging.WARNING,
    )

    if ctx.invoked_subcommand is not None:
        return

    ctx.invoke(top)


# Register commands
main.add_command(start)
main.add_command(pause)
main.add_command(resume)
main.add_command(end)
main.add_command(ack)
main.add_command(reset)
main.add_command(status)
main.add_command(wait)
main.add_command(history)
main.add_command(config_command)
main.add_command(top)
