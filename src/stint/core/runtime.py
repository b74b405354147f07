"""Builds a SessionController wired to the on-disk stint directory."""

from stint.core.config import get_setting
from stint.core.controller import SessionController
from stint.core.feedback import Feedback
from stint.core.history import SessionArchive
from stint.core.notify import NotificationScheduler, NullScheduler, ProcessScheduler
from stint.core.store import FileSnapshotStore, ensure_stint_dir, snapshot_path


def get_archive() -> SessionArchive:
    """Get the archive of finished sessions."""
    return SessionArchive(ensure_stint_dir() / "history.jsonl")


def get_scheduler() -> NotificationScheduler:
    """Get the alert scheduler configured for this user."""
    if not get_setting("notifications"):
        return NullScheduler()
    return ProcessScheduler(ensure_stint_dir() / "alerts", get_setting("notify_command"))


def open_controller(feedback: Feedback | None = None) -> SessionController:
    """Restore the controller from disk and reconcile it.

    Every CLI invocation is a cold start, so this is called once per command.
    """
    ensure_stint_dir()
    return SessionController.open(
        FileSnapshotStore(snapshot_path()),
        get_scheduler(),
        feedback=feedback,
        archive=get_archive(),
    )
