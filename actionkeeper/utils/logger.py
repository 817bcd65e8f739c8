"""
Logging utilities for actionkeeper.

All loggers live under the ``actionkeeper`` namespace. Library use stays
silent (a ``NullHandler`` is attached) until the CLI calls
:func:`setup_logging`, which installs a single stderr handler with optional
ANSI coloring of the level name.
"""

from __future__ import annotations

import os
import sys
import logging
import threading
from typing import IO, Optional

from actionkeeper.constants import (
    LOG_DATE_FORMAT,
    LOG_DEFAULT_FORMAT,
    LOG_VERBOSE_FORMAT,
)

#: Root logger name for the package.
LOGGER_NAMESPACE = "actionkeeper"

_logging_configured: bool = False
_lock = threading.Lock()


class ColoredFormatter(logging.Formatter):
    """Formatter that colors the level name when writing to a terminal."""

    COLORS = {
        "DEBUG": "\033[36m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[35m",
    }
    RESET = "\033[0m"

    def __init__(
        self,
        fmt: str,
        *,
        datefmt: Optional[str] = None,
        use_color: bool = True,
    ) -> None:
        super().__init__(fmt=fmt, datefmt=datefmt)
        self.use_color = use_color

    def format(self, record: logging.LogRecord) -> str:
        color = self.COLORS.get(record.levelname)
        if not (color and self.use_color and _stderr_supports_color()):
            return super().format(record)

        # Records are shared between handlers; color a copy only
        colored = logging.makeLogRecord(record.__dict__)
        colored.levelname = f"{color}{record.levelname}{self.RESET}"
        return super().format(colored)


def _stderr_supports_color() -> bool:
    """Return True when ANSI colors should be written to stderr."""
    if os.environ.get("NO_COLOR") or os.environ.get("CI"):
        return False
    try:
        return sys.stderr.isatty()
    except (AttributeError, OSError):
        return False


def verbosity_to_level(verbose: int) -> int:
    """Map a ``-v`` count to a logging level.

    ``0`` keeps warnings only, ``1`` adds progress messages and ``2`` or
    more enables debug output.
    """
    if verbose <= 0:
        return logging.WARNING
    if verbose == 1:
        return logging.INFO
    return logging.DEBUG


def setup_logging(
    *,
    level: int = logging.INFO,
    verbose: bool = False,
    stream: Optional[IO[str]] = None,
) -> None:
    """Install the actionkeeper stderr handler.

    Calling this again replaces the previous handler, so the CLI can
    reconfigure logging without duplicating output.

    Args:
        level: Logging level (e.g., ``logging.INFO``, ``logging.DEBUG``).
        verbose: Use the verbose format with timestamps and logger names.
        stream: Output stream; defaults to ``sys.stderr``.
    """
    global _logging_configured

    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setLevel(level)
    handler.setFormatter(
        ColoredFormatter(
            LOG_VERBOSE_FORMAT if verbose else LOG_DEFAULT_FORMAT,
            datefmt=LOG_DATE_FORMAT,
            use_color=not os.environ.get("NO_COLOR"),
        )
    )

    with _lock:
        root_logger = logging.getLogger(LOGGER_NAMESPACE)
        root_logger.handlers.clear()
        root_logger.setLevel(level)
        root_logger.addHandler(handler)
        root_logger.propagate = False
        _logging_configured = True


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Return a logger inside the ``actionkeeper`` hierarchy.

    ``get_logger("resolver")`` and ``get_logger("actionkeeper.resolver")``
    return the same logger.
    """
    if not name or name == LOGGER_NAMESPACE:
        logger = logging.getLogger(LOGGER_NAMESPACE)
    elif name.startswith(LOGGER_NAMESPACE + "."):
        logger = logging.getLogger(name)
    else:
        logger = logging.getLogger(f"{LOGGER_NAMESPACE}.{name}")

    if not logger.handlers and (not logger.parent or not logger.parent.handlers):
        logger.addHandler(logging.NullHandler())

    return logger


def is_logging_configured() -> bool:
    """Return True if :func:`setup_logging` has run."""
    return _logging_configured


def disable_logging() -> None:
    """Silence all actionkeeper logging output."""
    global _logging_configured

    with _lock:
        root_logger = logging.getLogger(LOGGER_NAMESPACE)
        root_logger.handlers.clear()
        root_logger.addHandler(logging.NullHandler())
        root_logger.setLevel(logging.NOTSET)
        _logging_configured = False
