"""Duration formatting and parsing for stint."""

import re
from datetime import timedelta

_DURATION_RE = re.compile(r"^(?:(?P<h>\d+)h)?(?:(?P<m>\d+)m)?(?:(?P<s>\d+)s)?$")


def format_clock(value: timedelta) -> str:
    """Format as MM:SS, e.g. "24:59". Minutes are not wrapped at an hour."""
    total = max(0, int(value.total_seconds()))
    minutes, seconds = divmod(total, 60)
    return f"{minutes:02d}:{seconds:02d}"


def format_duration(value: timedelta) -> str:
    """Format as "1h 5m" or "25m"."""
    total = max(0, int(value.total_seconds()))
    hours = total // 3600
    minutes = total // 60 % 60
    if hours > 0:
        return f"{hours}h {minutes}m"
    return f"{minutes}m"


def parse_duration(text: str) -> timedelta:
    """Parse a CLI duration.

    A bare number is minutes ("25"); otherwise any of h/m/s in that order
    ("1h30m", "90s", "1h").

    Raises:
        ValueError: If the text is not a duration or is not positive.
    """
    text = text.strip().lower()
    if text.isdigit():
        duration = timedelta(minutes=int(text))
    else:
        match = _DURATION_RE.match(text)
        if not text or match is None:
            raise ValueError(f"Invalid duration: {text!r}")
        duration = timedelta(
            hours=int(match["h"] or 0),
            minutes=int(match["m"] or 0),
            seconds=int(match["s"] or 0),
        )
    if duration <= timedelta(0):
        raise ValueError(f"Duration must be positive: {text!r}")
    return duration
