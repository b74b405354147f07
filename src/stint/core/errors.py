"""Error types for stint.

Invalid transitions are reported to the caller. Persistence and scheduling
failures are recovered where the controller can recover them.
"""


class StintError(Exception):
    """Base class for stint errors."""

    pass


class InvalidTransition(StintError):
    """Raised when an operation is not valid in the current state."""

    def __init__(self, operation: str, status: str) -> None:
        self.operation = operation
        self.status = status
        super().__init__(f"Cannot {operation} while {status}")


class PersistenceError(StintError):
    """Raised when the snapshot store cannot be read or written."""

    pass


class SnapshotError(PersistenceError):
    """Raised when a stored snapshot is malformed."""

    pass


class SchedulingError(StintError):
    """Raised when a notification cannot be scheduled or cancelled."""

    pass
