"""Main Textual app for the stint TUI.

The app is the host that drives the controller: it runs tick() on an
interval timer while a session is running, and calls reconcile() on mount,
when the terminal regains focus and when another process changes the
snapshot on disk.
"""

import asyncio
from collections.abc import Callable
from pathlib import Path

from textual.app import App, ComposeResult
from textual.events import AppFocus
from textual.timer import Timer
from textual.widgets import Footer, Header

from stint.core.config import get_tick_interval
from stint.core.controller import SessionController
from stint.core.errors import InvalidTransition, PersistenceError
from stint.core.feedback import BellFeedback
from stint.core.runtime import open_controller
from stint.core.session import SessionStatus
from stint.core.store import get_stint_base
from stint.tui.widgets.session_panel import SessionPanel


class StintApp(App):
    """Stint TUI application.

    Displays the active session with a live countdown.
    """

    TITLE = "stint"
    BINDINGS = [
        ("p", "toggle_pause", "Pause/Resume"),
        ("e", "end_session", "End"),
        ("a", "acknowledge", "Archive"),
        ("x", "reset_session", "Reset"),
        ("q", "quit", "Quit"),
    ]
    CSS = """
    SessionPanel {
        height: 1fr;
        align: center middle;
    }

    SessionPanel > Static {
        width: 100%;
        content-align: center middle;
    }

    #clock {
        text-style: bold;
    }

    #label {
        color: $text-muted;
    }

    #progress {
        width: auto;
    }
    """

    def __init__(
        self,
        controller: SessionController | None = None,
        tick_interval: float | None = None,
    ) -> None:
        super().__init__()
        self._controller = controller
        self._tick_interval = tick_interval
        self._ticker: Timer | None = None
        self._watcher_task: asyncio.Task | None = None

    @property
    def controller(self) -> SessionController:
        assert self._controller is not None
        return self._controller

    def compose(self) -> ComposeResult:
        """Compose the app layout."""
        yield Header()
        yield SessionPanel()
        yield Footer()

    def on_mount(self) -> None:
        """Restore the session, reconcile it, and start ticking if running."""
        if self._controller is None:
            self._controller = open_controller(feedback=BellFeedback())
        if self._tick_interval is None:
            self._tick_interval = get_tick_interval()
        self.reconcile_session()
        self._watcher_task = asyncio.create_task(self._watch_snapshot())

    async def on_unmount(self) -> None:
        """Stop the ticker and the snapshot watcher."""
        self._stop_ticker()
        if self._watcher_task:
            self._watcher_task.cancel()
            try:
                await self._watcher_task
            except asyncio.CancelledError:
                pass

    def on_app_focus(self, event: AppFocus) -> None:
        """The terminal came back to the foreground."""
        self.reconcile_session()

    def refresh_session(self) -> None:
        """Redraw the panel and subtitle."""
        self.query_one(SessionPanel).update_from(self.controller)
        self.sub_title = self.controller.status.value

    def reconcile_session(self) -> None:
        """Re-derive state from timestamps; the ticker must not run meanwhile."""
        self._stop_ticker()
        if self._guard(self.controller.reconcile):
            self._sync_ticker()
        self.refresh_session()

    def _start_ticker(self) -> None:
        if self._ticker is None:
            self._ticker = self.set_interval(self._tick_interval, self._on_tick)

    def _stop_ticker(self) -> None:
        if self._ticker is not None:
            self._ticker.stop()
            self._ticker = None

    def _sync_ticker(self) -> None:
        if self.controller.status == SessionStatus.RUNNING:
            self._start_ticker()
        else:
            self._stop_ticker()

    def _guard(self, operation: Callable[[], object]) -> bool:
        """Run a step that may save a completion; report a failed save."""
        try:
            operation()
        except PersistenceError as e:
            self._stop_ticker()
            self.notify(f"Could not save session: {e}", severity="error")
            return False
        return True

    def _on_tick(self) -> None:
        if not self._guard(self.controller.tick):
            self.refresh_session()
            return
        if self.controller.status != SessionStatus.RUNNING:
            self._stop_ticker()
            self.notify("Session complete")
        self.refresh_session()

    def _apply(self, operation: str) -> None:
        """Run a controller operation, reporting failures as notifications."""
        self._stop_ticker()
        try:
            getattr(self.controller, operation)()
        except InvalidTransition as e:
            self.notify(str(e), severity="warning")
        except PersistenceError as e:
            self.notify(f"Could not save session: {e}", severity="error")
        self._sync_ticker()
        self.refresh_session()

    def action_toggle_pause(self) -> None:
        """Pause a running session or resume a paused one."""
        if self.controller.status == SessionStatus.PAUSED:
            self._apply("resume")
        else:
            self._apply("pause")

    def action_end_session(self) -> None:
        """End the active session early."""
        self._apply("end")

    def action_acknowledge(self) -> None:
        """Archive the completed session."""
        self._apply("acknowledge")

    def action_reset_session(self) -> None:
        """Discard the current session."""
        self._apply("reset")

    async def _watch_snapshot(self) -> None:
        """Reload when another stint process changes the snapshot."""
        from watchfiles import awatch

        base = get_stint_base()
        base.mkdir(parents=True, exist_ok=True)

        try:
            async for _ in awatch(
                base,
                watch_filter=lambda _change, path: Path(path).name == "snapshot.json",
                recursive=False,
            ):
                self._stop_ticker()
                if self._guard(self.controller.reload):
                    self._sync_ticker()
                self.refresh_session()
        except asyncio.CancelledError:
            pass
