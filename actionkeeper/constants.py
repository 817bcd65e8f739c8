"""
Centralized constants for actionkeeper.

This module defines immutable configuration values used across actionkeeper,
including network endpoints, git reference conventions, workflow discovery
patterns, and logging formats. All values are intended to be treated as
read-only.
"""

from typing import Final, Sequence

# ---------------------------------------------------------------------------
# Project metadata
# ---------------------------------------------------------------------------

#: HTTP User-Agent template used for outbound requests.
USER_AGENT_TEMPLATE: Final[str] = (
    "actionkeeper/{version} (https://github.com/actionkeeper/actionkeeper)"
)

#: Package manager tag attached to every dependency.
PACKAGE_MANAGER: Final[str] = "github_actions"

# ---------------------------------------------------------------------------
# Remote endpoints
# ---------------------------------------------------------------------------

#: Base URL of repositories referenced by ``uses:`` declarations.
GITHUB_URL: Final[str] = "https://github.com"

#: Smart-HTTP reference advertisement for a repository URL.
UPLOAD_PACK_URL: Final[str] = "{url}.git/info/refs?service=git-upload-pack"

#: GitHub REST endpoint comparing two commits.
GITHUB_COMPARE_API: Final[str] = (
    "https://api.github.com/repos/{owner}/{repo}/compare/{base}...{head}"
)

#: Host whose repositories support the compare API.
GITHUB_HOST: Final[str] = "github.com"

#: Media type requested from the GitHub REST API.
GITHUB_API_ACCEPT: Final[str] = "application/vnd.github+json"

#: Environment variables consulted (in order) for a GitHub API token.
GITHUB_TOKEN_ENV_VARS: Final[Sequence[str]] = ("ACTIONKEEPER_GITHUB_TOKEN", "GITHUB_TOKEN")

# ---------------------------------------------------------------------------
# HTTP configuration
# ---------------------------------------------------------------------------

#: Default network timeout in seconds.
DEFAULT_TIMEOUT: Final[int] = 30

#: Maximum number of retries for failed HTTP requests.
DEFAULT_MAX_RETRIES: Final[int] = 3

# ---------------------------------------------------------------------------
# Git conventions
# ---------------------------------------------------------------------------

#: Shortest abbreviated commit SHA accepted as a pin.
MIN_SHA_LENGTH: Final[int] = 7

#: Length of a full SHA-1 commit id.
MAX_SHA_LENGTH: Final[int] = 40

#: Prefix of branch refs in a reference advertisement.
BRANCH_REF_PREFIX: Final[str] = "refs/heads/"

#: Prefix of tag refs in a reference advertisement.
TAG_REF_PREFIX: Final[str] = "refs/tags/"

#: Suffix marking the peeled (dereferenced) commit of an annotated tag.
PEELED_SUFFIX: Final[str] = "^{}"

#: Name of the remote created by ``git clone``.
CLONE_REMOTE: Final[str] = "origin"

#: Timeout in seconds for local git commands.
GIT_COMMAND_TIMEOUT: Final[int] = 300

# ---------------------------------------------------------------------------
# Workflow discovery
# ---------------------------------------------------------------------------

#: Default directory scanned by ``actionkeeper check``.
DEFAULT_WORKFLOWS_DIR: Final[str] = ".github/workflows"

#: Glob patterns matching workflow and composite action files.
WORKFLOW_FILE_PATTERNS: Final[Sequence[str]] = ("*.yml", "*.yaml")

# ---------------------------------------------------------------------------
# Security constraints
# ---------------------------------------------------------------------------

#: Maximum allowed file size (in bytes) when reading workflow files.
MAX_FILE_SIZE: Final[int] = 10 * 1024 * 1024  # 10 MB

# ---------------------------------------------------------------------------
# Configuration defaults
# ---------------------------------------------------------------------------

#: Raise ``AllVersionsIgnored`` instead of reporting "no update".
DEFAULT_RAISE_ON_IGNORED: Final[bool] = False

#: Allow cloning a repository to resolve commit pins by branch containment.
DEFAULT_ALLOW_CLONE: Final[bool] = True

# ---------------------------------------------------------------------------
# Logging configuration
# ---------------------------------------------------------------------------

#: Timestamp format for verbose logging.
LOG_DATE_FORMAT: Final[str] = "%Y-%m-%d %H:%M:%S"

#: Default log format (non-verbose).
LOG_DEFAULT_FORMAT: Final[str] = "%(levelname)s: %(message)s"

#: Verbose log format including timestamp and logger name.
LOG_VERBOSE_FORMAT: Final[str] = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
