"""
Custom exception hierarchy for actionkeeper.

This module defines structured exception types used across actionkeeper.
All exceptions inherit from :class:`ActionKeeperError` and support optional
structured metadata via the ``details`` attribute to improve diagnostics
and logging.
"""

from __future__ import annotations

from typing import Any, Mapping, MutableMapping, Optional, Sequence


class ActionKeeperError(Exception):
    """Base exception for all actionkeeper errors.

    All actionkeeper-specific exceptions should inherit from this class.
    It supports structured metadata via ``details`` for richer error
    reporting and debugging.

    Args:
        message: Human-readable error message.
        details: Optional structured metadata describing the error.
    """

    __slots__ = ("message", "details")

    def __init__(
        self,
        message: str,
        details: Optional[Mapping[str, Any]] = None,
    ) -> None:
        self.message: str = message
        # Internally normalize to a mutable dict
        self.details: MutableMapping[str, Any] = dict(details) if details else {}
        super().__init__(message)

    def __str__(self) -> str:
        if not self.details:
            return self.message
        formatted = ", ".join(f"{k}={v}" for k, v in self.details.items())
        return f"{self.message} ({formatted})"

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"message={self.message!r}, details={dict(self.details)!r})"
        )


def _add_if(details: MutableMapping[str, Any], key: str, value: Any) -> None:
    """Add a key to ``details`` only if ``value`` is not ``None``."""
    if value is not None:
        details[key] = value


def _truncate(text: str, max_length: int = 200) -> str:
    """Truncate long text for safe logging or error reporting."""
    if len(text) <= max_length:
        return text
    return text[:max_length] + "..."


class ConfigError(ActionKeeperError):
    """Raised when a configuration file is missing, unreadable, or invalid.

    Args:
        message: Error description.
        config_path: Path of the configuration file involved.
        option: Name of the offending option, if any.
    """

    __slots__ = ("config_path", "option")

    def __init__(
        self,
        message: str,
        *,
        config_path: Optional[str] = None,
        option: Optional[str] = None,
    ) -> None:
        details: MutableMapping[str, Any] = {}
        _add_if(details, "path", config_path)
        _add_if(details, "option", option)

        super().__init__(message, details)

        self.config_path = config_path
        self.option = option


class ParseError(ActionKeeperError):
    """Raised when a workflow file cannot be parsed.

    Args:
        message: Error description.
        line_number: Line number where parsing failed.
        line_content: Raw content of the problematic line.
        file_path: Path to the file being parsed.
    """

    __slots__ = ("line_number", "line_content", "file_path")

    def __init__(
        self,
        message: str,
        *,
        line_number: Optional[int] = None,
        line_content: Optional[str] = None,
        file_path: Optional[str] = None,
    ) -> None:
        details: MutableMapping[str, Any] = {}
        _add_if(details, "line", line_number)
        _add_if(details, "content", line_content)
        _add_if(details, "file", file_path)

        super().__init__(message, details)

        self.line_number = line_number
        self.line_content = line_content
        self.file_path = file_path


class InvalidConstraintError(ActionKeeperError):
    """Raised when an ignored-version constraint cannot be parsed.

    Args:
        message: Error description.
        constraint: The constraint string as written.
    """

    __slots__ = ("constraint",)

    def __init__(self, message: str, *, constraint: Optional[str] = None) -> None:
        details: MutableMapping[str, Any] = {}
        _add_if(details, "constraint", constraint)

        super().__init__(message, details)

        self.constraint = constraint


class AllVersionsIgnored(ActionKeeperError):
    """Raised in strict mode when ignore rules exclude every candidate.

    Lets callers tell "already current" apart from "intentionally fenced
    off" by an ignore rule.

    Args:
        message: Error description.
        dependency_name: Name of the dependency being checked.
    """

    __slots__ = ("dependency_name",)

    def __init__(
        self,
        message: str = "All updates for this dependency are being ignored",
        *,
        dependency_name: Optional[str] = None,
    ) -> None:
        details: MutableMapping[str, Any] = {}
        _add_if(details, "dependency", dependency_name)

        super().__init__(message, details)

        self.dependency_name = dependency_name


class AmbiguousBranchesError(ActionKeeperError):
    """Raised when several non-default branches contain a pinned commit.

    There is no safe tie-break: picking the wrong branch would silently
    move the pin onto another line of development.

    Args:
        commit: The pinned commit as written.
        branches: Every branch containing the commit.
    """

    __slots__ = ("commit", "branches")

    def __init__(self, commit: str, branches: Sequence[str]) -> None:
        self.commit = commit
        self.branches = sorted(branches)

        super().__init__(
            f"Multiple ambiguous branches ({', '.join(self.branches)}) "
            f"include {commit}!"
        )


class NetworkError(ActionKeeperError):
    """Raised when HTTP or network operations fail.

    Args:
        message: Error description.
        url: URL being accessed.
        status_code: HTTP status code, if available.
        response_body: Raw response body, truncated for safety.
    """

    __slots__ = ("url", "status_code", "response_body")

    def __init__(
        self,
        message: str,
        *,
        url: Optional[str] = None,
        status_code: Optional[int] = None,
        response_body: Optional[str] = None,
    ) -> None:
        details: MutableMapping[str, Any] = {}
        _add_if(details, "url", url)
        _add_if(details, "status_code", status_code)

        if response_body is not None:
            details["response"] = _truncate(response_body)

        super().__init__(message, details)

        self.url = url
        self.status_code = status_code
        self.response_body = response_body


class GitHubError(NetworkError):
    """Raised when a repository or GitHub API resource is not found.

    Args:
        message: Error description.
        repository: Repository URL or ``owner/repo`` involved.
        **kwargs: Additional arguments forwarded to ``NetworkError``.
    """

    __slots__ = ("repository",)

    def __init__(
        self,
        message: str,
        *,
        repository: Optional[str] = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(message, **kwargs)

        self.repository = repository
        if repository is not None:
            self.details["repository"] = repository


class GitError(ActionKeeperError):
    """Raised when a local git command fails.

    Args:
        message: Error description.
        command: The git command line that was run.
        returncode: Exit status of the command.
        stderr: Captured standard error, truncated for safety.
    """

    __slots__ = ("command", "returncode", "stderr")

    def __init__(
        self,
        message: str,
        *,
        command: Optional[str] = None,
        returncode: Optional[int] = None,
        stderr: Optional[str] = None,
    ) -> None:
        details: MutableMapping[str, Any] = {}
        _add_if(details, "command", command)
        _add_if(details, "returncode", returncode)

        if stderr:
            details["stderr"] = _truncate(stderr.strip())

        super().__init__(message, details)

        self.command = command
        self.returncode = returncode
        self.stderr = stderr


class FileOperationError(ActionKeeperError):
    """Raised when file system operations fail.

    Args:
        message: Error description.
        file_path: Path to the file involved.
        operation: Operation being performed (read/validate).
        original_error: Original exception that triggered this error.
    """

    __slots__ = ("file_path", "operation", "original_error")

    def __init__(
        self,
        message: str,
        *,
        file_path: Optional[str] = None,
        operation: Optional[str] = None,
        original_error: Optional[Exception] = None,
    ) -> None:
        details: MutableMapping[str, Any] = {}
        _add_if(details, "path", file_path)
        _add_if(details, "operation", operation)
        _add_if(
            details,
            "original_error",
            str(original_error) if original_error else None,
        )

        super().__init__(message, details)

        self.file_path = file_path
        self.operation = operation
        self.original_error = original_error
