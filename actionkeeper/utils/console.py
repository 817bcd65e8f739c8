"""
Console output utilities for actionkeeper using Rich.

This module provides user-facing output helpers for CLI commands.
For diagnostic or debug output, use :mod:`actionkeeper.utils.logger`.
"""

from __future__ import annotations

import os
import sys
import threading
from typing import Any, Dict, List, Optional

from rich.table import Table
from rich.theme import Theme
from rich.console import Console

from actionkeeper.utils.version_utils import looks_like_commit_sha

ACTIONKEEPER_THEME = Theme(
    {
        "success": "bold green",
        "error": "bold red",
        "warning": "bold yellow",
        "info": "bold cyan",
        "dim": "dim",
        "sha": "magenta",
    }
)

#: Characters of a commit SHA shown in tables.
SHORT_SHA_LENGTH = 12

_STATUS_COLORS: Dict[str, str] = {
    "outdated": "yellow",
    "latest": "green",
    "pinned": "cyan",
    "error": "red",
}

_UPDATE_TYPE_COLORS: Dict[str, str] = {
    "major": "red",
    "minor": "yellow",
    "patch": "green",
    "same": "dim",
    "downgrade": "red",
}

_console: Optional[Console] = None
_console_lock = threading.Lock()


def _should_use_color() -> bool:
    """Return True if colored output should be enabled."""
    if os.environ.get("NO_COLOR") or os.environ.get("CI"):
        return False
    try:
        return sys.stdout.isatty()
    except (AttributeError, OSError):
        return False


def _get_console() -> Console:
    """Return the process-wide Rich console, creating it on first use."""
    global _console

    if _console is None:
        with _console_lock:
            if _console is None:
                use_color = _should_use_color()
                _console = Console(
                    theme=ACTIONKEEPER_THEME,
                    no_color=not use_color,
                    highlight=False,
                )
    return _console


def reconfigure_console() -> None:
    """Drop the cached console so the next call re-reads ``NO_COLOR``."""
    global _console
    with _console_lock:
        _console = None


def get_raw_console() -> Console:
    return _get_console()


# ---------------------------------------------------------------------------
# Status lines
# ---------------------------------------------------------------------------


def print_success(message: str, *, prefix: str = "[OK]") -> None:
    _get_console().print(f"{prefix} {message}", style="success")


def print_error(message: str, *, prefix: str = "[ERROR]") -> None:
    _get_console().print(f"{prefix} {message}", style="error")


def print_warning(message: str, *, prefix: str = "[WARNING]") -> None:
    _get_console().print(f"{prefix} {message}", style="warning")


def print_info(message: str) -> None:
    _get_console().print(message, style="info")


# ---------------------------------------------------------------------------
# Structured output
# ---------------------------------------------------------------------------


def print_table(
    rows: List[Dict[str, Any]],
    *,
    headers: List[str],
    title: Optional[str] = None,
    caption: Optional[str] = None,
    no_wrap: Optional[List[str]] = None,
) -> None:
    """Render rows as a Rich table.

    Cell values may contain Rich markup.

    Args:
        rows: Row dictionaries keyed by header.
        headers: Column order.
        title: Optional table title.
        caption: Optional table caption.
        no_wrap: Columns that must not wrap.
    """
    if not rows:
        return

    table = Table(title=title, caption=caption, show_header=True, header_style="bold")
    keep_whole = set(no_wrap or ())
    for header in headers:
        table.add_column(header, no_wrap=header in keep_whole, overflow="fold")

    for row in rows:
        table.add_row(*(str(row.get(header, "")) for header in headers))

    _get_console().print(table)


# ---------------------------------------------------------------------------
# Markup helpers
# ---------------------------------------------------------------------------


def format_ref(ref: Optional[str]) -> str:
    """Display form of a reference; commit SHAs are shortened."""
    if not ref:
        return "[dim]-[/dim]"
    if looks_like_commit_sha(ref) and len(ref) > SHORT_SHA_LENGTH:
        return f"[sha]{ref[:SHORT_SHA_LENGTH]}[/sha]"
    return ref


def colorize_status(status: str) -> str:
    color = _STATUS_COLORS.get(status)
    return f"[{color}]{status}[/{color}]" if color else status


def colorize_update_type(update_type: Optional[str]) -> str:
    """Rich markup for a ``major``/``minor``/``patch`` label."""
    if not update_type:
        return "[dim]-[/dim]"
    color = _UPDATE_TYPE_COLORS.get(update_type.lower())
    return f"[{color}]{update_type}[/{color}]" if color else update_type
