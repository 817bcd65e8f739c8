"""
Utility helpers for actionkeeper.

This package provides reusable utilities used across actionkeeper:

- Console output helpers (Rich-based)
- Logging configuration and retrieval
- Filesystem safety helpers
- Async HTTP client
- Version classification helpers

Only symbols listed in ``__all__`` are considered part of the public API.
"""

from __future__ import annotations

# ---------------------------------------------------------------------------
# Filesystem utilities
# ---------------------------------------------------------------------------

from actionkeeper.utils.filesystem import (
    find_workflow_files,
    safe_read_file,
    validate_path,
)

# ---------------------------------------------------------------------------
# Logging utilities
# ---------------------------------------------------------------------------

from actionkeeper.utils.logger import (
    disable_logging,
    get_logger,
    is_logging_configured,
    setup_logging,
)

# ---------------------------------------------------------------------------
# Console utilities
# ---------------------------------------------------------------------------

from actionkeeper.utils.console import (
    colorize_status,
    colorize_update_type,
    format_ref,
    get_raw_console,
    print_error,
    print_info,
    print_success,
    print_table,
    print_warning,
    reconfigure_console,
)

# ---------------------------------------------------------------------------
# HTTP utilities
# ---------------------------------------------------------------------------

from actionkeeper.utils.http import HTTPClient

# ---------------------------------------------------------------------------
# Version utilities
# ---------------------------------------------------------------------------

from actionkeeper.utils.version_utils import (
    classify,
    get_update_type,
    looks_like_commit_sha,
    looks_like_version,
)

__all__ = [
    # Console
    "print_error",
    "print_info",
    "print_table",
    "print_success",
    "print_warning",
    "get_raw_console",
    "reconfigure_console",
    "colorize_status",
    "colorize_update_type",
    "format_ref",
    # Logging
    "get_logger",
    "setup_logging",
    "disable_logging",
    "is_logging_configured",
    # Filesystem
    "safe_read_file",
    "find_workflow_files",
    "validate_path",
    # HTTP
    "HTTPClient",
    # Version utilities
    "classify",
    "get_update_type",
    "looks_like_commit_sha",
    "looks_like_version",
]
