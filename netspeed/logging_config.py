"""Logging configuration for netspeed."""
from __future__ import annotations

import logging
import os
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler

_ENV_VAR = "NETSPEED_LOG_LEVEL"

_LEVELS = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
}


def configure_logging(debug: bool = False, console: Optional[Console] = None) -> int:
    """
    Configure application-wide logging.

    ``--debug`` forces DEBUG; otherwise the ``NETSPEED_LOG_LEVEL``
    environment variable is honoured (default: WARNING).  Records go to
    stderr through rich so they never mix with report-mode stdout.

    Returns the effective level.
    """
    if debug:
        level = logging.DEBUG
    else:
        level = _LEVELS.get(os.environ.get(_ENV_VAR, "WARNING").upper(), logging.WARNING)

    handler = RichHandler(
        console=console or Console(stderr=True),
        show_path=level == logging.DEBUG,
        rich_tracebacks=True,
    )
    logging.basicConfig(
        level=level,
        format="%(name)s: %(message)s",
        datefmt="[%X]",
        handlers=[handler],
        force=True,
    )
    logging.getLogger(__name__).debug(
        "Logging configured: level=%s", logging.getLevelName(level)
    )
    return level
