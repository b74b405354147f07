"""Logging configuration for the stint CLI and TUI."""

import logging
import sys
from pathlib import Path


def setup_logging(
    *,
    log_dir: str | Path,
    console_level: int = logging.WARNING,
    file_level: int = logging.DEBUG,
) -> None:
    """Configure the "stint" logger with a console handler and a log file.

    - Console handler: stderr, WARNING by default so command output stays clean
    - File handler: everything, in log_dir/stint.log

    Handlers go on the "stint" logger rather than the root logger, so
    third-party libraries (textual, watchfiles) keep their own defaults.
    Calling this again replaces the handlers it installed before.

    Args:
        log_dir: Directory for stint.log.
        console_level: Level for the stderr handler.
        file_level: Level for the file handler.
    """
    log_dir = Path(log_dir)
    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = log_dir / "stint.log"

    logger = logging.getLogger("stint")
    logger.setLevel(logging.DEBUG)

    # Remove handlers from a previous call to avoid duplicates.
    for h in list(logger.handlers):
        logger.removeHandler(h)
        h.close()

    fmt = logging.Formatter(
        fmt="%(asctime)s.%(msecs)03d %(levelname)s %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    ch = logging.StreamHandler(sys.stderr)
    ch.setLevel(console_level)
    ch.setFormatter(fmt)
    logger.addHandler(ch)

    fh = logging.FileHandler(str(log_file), encoding="utf-8")
    fh.setLevel(file_level)
    fh.setFormatter(fmt)
    logger.addHandler(fh)
