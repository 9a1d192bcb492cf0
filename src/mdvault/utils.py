"""Shared helpers for mdvault."""

import sys
from pathlib import Path
from typing import Optional, Union

from loguru import logger

FilePath = Union[Path, str]


def setup_logging(
    level: str = "INFO",
    log_file: Optional[FilePath] = None,
    console: bool = True,
) -> None:  # pragma: no cover
    """Configure loguru sinks for the CLI.

    Args:
        level: Minimum level for all sinks
        log_file: Optional path for a rotating log file
        console: Whether to log to stderr
    """
    # Drop the default handler so repeated calls don't duplicate output
    logger.remove()

    if console:
        logger.add(sys.stderr, level=level, colorize=True, backtrace=False)

    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        logger.add(
            str(log_file),
            level=level,
            rotation="10 MB",
            retention="7 days",
            enqueue=False,
            backtrace=True,
            diagnose=False,
        )

    logger.debug("Logging configured", level=level, log_file=str(log_file) if log_file else None)
