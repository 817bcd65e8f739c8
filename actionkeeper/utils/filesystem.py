"""
Filesystem utilities for actionkeeper.

This module provides safe helpers for reading and discovering workflow
files. All filesystem errors are normalized to ``FileOperationError``.
"""

from __future__ import annotations

from pathlib import Path
from typing import List, Optional, Union

from actionkeeper.utils.logger import get_logger
from actionkeeper.exceptions import FileOperationError
from actionkeeper.constants import (
    DEFAULT_WORKFLOWS_DIR,
    MAX_FILE_SIZE,
    WORKFLOW_FILE_PATTERNS,
)


logger = get_logger("filesystem")

PathLike = Union[str, Path]


def _validated_file(path: Path) -> Path:
    """Check that *path* is an existing regular file and resolve it."""
    if not path.exists():
        raise FileOperationError(
            f"File not found: {path}",
            file_path=str(path),
            operation="read",
        )
    if not path.is_file():
        raise FileOperationError(
            f"Not a file: {path}",
            file_path=str(path),
            operation="read",
        )
    return path.resolve()


def safe_read_file(
    file_path: PathLike,
    *,
    max_size: Optional[int] = MAX_FILE_SIZE,
    encoding: str = "utf-8",
) -> str:
    """Safely read a text file with optional size limits.

    Args:
        file_path: Path to the file.
        max_size: Maximum allowed file size in bytes (None disables limit).
        encoding: Text encoding.

    Returns:
        File contents as a string.
    """
    path = _validated_file(Path(file_path))
    size = path.stat().st_size

    if max_size is not None and size > max_size:
        raise FileOperationError(
            f"File too large: {size} bytes (max {max_size})",
            file_path=str(path),
            operation="read",
        )

    try:
        return path.read_text(encoding=encoding)
    except (OSError, UnicodeDecodeError) as exc:
        raise FileOperationError(
            f"Failed to read file: {exc}",
            file_path=str(path),
            operation="read",
            original_error=exc,
        ) from exc


def validate_path(
    path: PathLike,
    *,
    base_dir: Optional[PathLike] = None,
) -> Path:
    """Resolve and validate a filesystem path.

    If ``base_dir`` is provided, the resolved path must be within it.
    """
    resolved = Path(path).expanduser().resolve(strict=False)

    if base_dir:
        base = Path(base_dir).resolve(strict=False)
        try:
            resolved.relative_to(base)
        except ValueError:
            raise FileOperationError(
                f"Path outside allowed base directory: {resolved}",
                file_path=str(path),
                operation="validate",
            )

    return resolved


def find_workflow_files(
    path: PathLike = ".",
    *,
    recursive: bool = False,
) -> List[Path]:
    """Find workflow files under *path*.

    A file is returned as-is. A repository root is searched in its
    ``.github/workflows`` directory; any other directory is searched
    directly.
    """
    root = Path(path).resolve()
    if root.is_file():
        return [root]
    if not root.is_dir():
        return []

    workflows_dir = root / DEFAULT_WORKFLOWS_DIR
    if workflows_dir.is_dir():
        root = workflows_dir

    matches: List[Path] = []
    for pattern in WORKFLOW_FILE_PATTERNS:
        iterator = root.rglob(pattern) if recursive else root.glob(pattern)
        matches.extend(p for p in iterator if p.is_file())

    logger.debug("Found %d workflow file(s) in %s", len(matches), root)
    return sorted(set(matches))
