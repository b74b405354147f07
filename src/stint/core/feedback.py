"""User feedback cues (sound) for session events."""

import sys
from typing import Protocol, TextIO

CUE_START = "start"
CUE_PAUSE = "pause"
CUE_RESUME = "resume"
CUE_COMPLETE = "complete"


class Feedback(Protocol):
    def cue(self, event: str) -> None: ...


class NullFeedback:
    def cue(self, event: str) -> None:
        pass


class BellFeedback:
    """Rings the terminal bell when a session completes."""

    def __init__(self, stream: TextIO | None = None) -> None:
        self._stream = stream

    def cue(self, event: str) -> None:
        if event != CUE_COMPLETE:
            return
        stream = self._stream or sys.stderr
        if stream.isatty():
            stream.write("\a")
            stream.flush()
