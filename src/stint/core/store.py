"""Snapshot persistence for stint.

All data lives under ~/.stint/ (or $STINT_HOME):
- snapshot.json: The SessionSnapshot of the active session
- history.jsonl: Archive of finished sessions
- alerts/: Pid files of scheduled completion alerts
- config.json: User configuration
- stint.log: Debug log

The snapshot is written atomically under an exclusive lock, so another stint
process never reads a half-written file.
"""

import fcntl
import os
import tempfile
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Protocol

from stint.core.errors import PersistenceError

STINT_HOME_ENV = "STINT_HOME"


class SnapshotStore(Protocol):
    """Byte-blob persistence for the controller snapshot."""

    def save(self, blob: bytes) -> None: ...

    def load(self) -> bytes | None: ...

    def clear(self) -> None: ...


def get_stint_base() -> Path:
    """Get the stint data directory.

    Returns:
        $STINT_HOME if set, otherwise ~/.stint.
    """
    if env_home := os.environ.get(STINT_HOME_ENV):
        return Path(env_home)
    return Path.home() / ".stint"


def ensure_stint_dir() -> Path:
    """Ensure the stint directory exists.

    Returns:
        Path to the stint directory.
    """
    base = get_stint_base()
    base.mkdir(parents=True, exist_ok=True)
    return base


def snapshot_path() -> Path:
    """Get path to the snapshot file."""
    return get_stint_base() / "snapshot.json"


class FileSnapshotStore:
    """Stores the snapshot in a single file.

    save() and clear() are synchronous and complete before returning.
    """

    def __init__(self, path: Path) -> None:
        self.path = path
        self._lock_path = path.with_name(path.name + ".lock")

    @contextmanager
    def _locked(self) -> Iterator[None]:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self._lock_path, "w") as lock_file:
            fcntl.flock(lock_file, fcntl.LOCK_EX)
            try:
                yield
            finally:
                fcntl.flock(lock_file, fcntl.LOCK_UN)

    def save(self, blob: bytes) -> None:
        """Atomically replace the snapshot with blob.

        Raises:
            PersistenceError: If the file cannot be written.
        """
        try:
            with self._locked():
                fd, tmp_name = tempfile.mkstemp(
                    dir=self.path.parent, prefix=".snapshot-", suffix=".tmp"
                )
                try:
                    with os.fdopen(fd, "wb") as tmp:
                        tmp.write(blob)
                        tmp.flush()
                        os.fsync(tmp.fileno())
                    os.replace(tmp_name, self.path)
                except BaseException:
                    Path(tmp_name).unlink(missing_ok=True)
                    raise
        except OSError as e:
            raise PersistenceError(f"Failed to write snapshot {self.path}: {e}") from e

    def load(self) -> bytes | None:
        """Read the snapshot.

        Returns:
            Snapshot bytes, or None if no snapshot exists.

        Raises:
            PersistenceError: If the file exists but cannot be read.
        """
        try:
            return self.path.read_bytes()
        except FileNotFoundError:
            return None
        except OSError as e:
            raise PersistenceError(f"Failed to read snapshot {self.path}: {e}") from e

    def clear(self) -> None:
        """Remove the snapshot. Safe to call when none exists."""
        try:
            with self._locked():
                self.path.unlink(missing_ok=True)
        except OSError as e:
            raise PersistenceError(f"Failed to clear snapshot {self.path}: {e}") from e
