"""Wall-clock access for stint.

Elapsed time is always derived from timestamps read here, never from counted
ticks. Timestamps are timezone-aware UTC so they survive a process restart.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Protocol

logger = logging.getLogger(__name__)

ZERO = timedelta(0)


class Clock(Protocol):
    """Source of the current time."""

    def now(self) -> datetime: ...


class SystemClock:
    """Reads the system wall clock."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)


def elapsed_between(start: datetime, end: datetime) -> timedelta:
    """Return the time elapsed from start to end, never negative.

    A negative delta means the wall clock moved backwards (device clock
    adjustment). It is clamped to zero so it can never add remaining time.

    Args:
        start: Earlier timestamp.
        end: Later timestamp.

    Returns:
        end - start, or zero if that is negative.
    """
    delta = end - start
    if delta < ZERO:
        logger.warning(
            "Clock skew detected: now=%s is %.3fs before anchor=%s; clamping to zero",
            end.isoformat(),
            -delta.total_seconds(),
            start.isoformat(),
        )
        return ZERO
    return delta
