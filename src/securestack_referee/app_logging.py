"""
Logging setup for the command-line front end.

Library modules only create loggers; the CLI attaches handlers here.
"""

import logging
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler
from rich.theme import Theme


# Custom theme for log levels
_LOG_THEME = Theme({
    "logging.level.debug": "dim cyan",
    "logging.level.info": "green",
    "logging.level.warning": "yellow",
    "logging.level.error": "bold red",
    "log.time": "dim",
})

# Root logger name for the package
ROOT_LOGGER_NAME = "securestack_referee"

_logging_configured = False


def setup_logging(level: str = "WARNING", console: Optional[Console] = None) -> logging.Logger:
    """
    Attach a Rich console handler to the package logger.

    Args:
        level: Log level name (DEBUG, INFO, WARNING, ...)
        console: Console to write to; defaults to a themed stderr console

    Returns:
        The package root logger.
    """
    global _logging_configured

    logger = logging.getLogger(ROOT_LOGGER_NAME)
    logger.setLevel(level.upper())

    if not _logging_configured:
        handler = RichHandler(
            console=console or Console(theme=_LOG_THEME, stderr=True),
            show_path=False,
            rich_tracebacks=True,
        )
        handler.setFormatter(logging.Formatter("%(message)s"))
        logger.addHandler(handler)
        _logging_configured = True

    return logger
