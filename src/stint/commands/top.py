"""Top command - launch the stint TUI."""

import click


@click.command()
def top() -> None:
    """Launch the stint TUI.

    Shows the active session with a live countdown.
    """
    from stint.tui.app import StintApp

    app = StintApp()
    app.run()
