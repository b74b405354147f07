"""Countdown panel widget for the stint TUI."""

from textual.app import ComposeResult
from textual.containers import Vertical
from textual.widgets import ProgressBar, Static

from stint.core.controller import SessionController
from stint.core.formatting import format_clock, format_duration
from stint.core.session import SessionStatus

STATUS_LABELS = {
    SessionStatus.RUNNING: "Remaining",
    SessionStatus.PAUSED: "Paused",
    SessionStatus.COMPLETED: "Completed",
}


class SessionPanel(Vertical):
    """Shows the active session: task, countdown, status and progress."""

    def compose(self) -> ComposeResult:
        yield Static("", id="task")
        yield Static("", id="clock")
        yield Static("", id="label")
        yield ProgressBar(total=1.0, show_eta=False, id="progress")

    def update_from(self, controller: SessionController) -> None:
        """Redraw from the controller's current state."""
        session = controller.session
        task = self.query_one("#task", Static)
        clock = self.query_one("#clock", Static)
        label = self.query_one("#label", Static)
        progress = self.query_one("#progress", ProgressBar)

        if session is None:
            task.update("No active session")
            clock.update("--:--")
            label.update("Run 'stint start TASK' to begin")
            progress.update(progress=0)
            return

        task.update(session.task_id)
        clock.update(format_clock(controller.time_remaining))
        text = STATUS_LABELS[controller.status]
        if controller.status == SessionStatus.COMPLETED:
            text += f" - worked {format_duration(session.accumulated_worked)}, press a to archive"
        label.update(text)
        progress.update(progress=controller.progress)
