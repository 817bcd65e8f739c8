"""
Git reference and resolution models for actionkeeper.

These types describe what the remote repository advertises (tags and
branches), how the current pin is classified, what the update target is,
and the answers returned by the release comparator and branch-containment
collaborators.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple

from actionkeeper.utils.version_utils import ParsedVersion


class RefKind(Enum):
    """Kind of a remote git reference."""

    TAG = "tag"
    BRANCH = "branch"


@dataclass(frozen=True)
class GitRef:
    """A tag or branch advertised by a remote repository.

    Attributes:
        name: Short name (``v1.0.4``, ``main``), without ``refs/...``.
        target_commit: Commit the ref points at (peeled for annotated tags).
        kind: Tag or branch.
    """

    name: str
    target_commit: str
    kind: RefKind

    @property
    def is_branch(self) -> bool:
        return self.kind is RefKind.BRANCH


class PinKind(Enum):
    """How a declaration pins its dependency."""

    VERSION = "version"
    BRANCH = "branch"
    COMMIT = "commit"
    ALIAS = "alias"


@dataclass(frozen=True)
class Pin:
    """A classified pinned reference.

    Attributes:
        ref: Reference as written.
        kind: Result of classification against the catalog.
        version: Parsed version, for ``VERSION`` pins only.
    """

    ref: str
    kind: PinKind
    version: Optional[ParsedVersion] = None


class TargetKind(Enum):
    """What an update target points at."""

    TAG = "tag"
    BRANCH = "branch"
    RAW_COMMIT = "raw_commit"


@dataclass(frozen=True)
class ResolvedTarget:
    """The reference a dependency should be pinned to.

    Attributes:
        kind: Tag, branch or raw commit.
        commit: Commit the target points at.
        name: Tag or branch name; for raw commits resolved from a release
            or a branch, the name of that release tag or branch.
        version: Version of the target, when it is (or came from) a tag.
        upgradable: ``False`` for pure branch pins, which follow their
            branch and are never rewritten on their own.
    """

    kind: TargetKind
    commit: str
    name: Optional[str] = None
    version: Optional[ParsedVersion] = None
    upgradable: bool = True

    @property
    def ref(self) -> str:
        """Literal reference written into declarations."""
        if self.kind is TargetKind.RAW_COMMIT or self.name is None:
            return self.commit
        return self.name


class ReleaseRelation(Enum):
    """Relationship between a pinned commit and the latest release tag."""

    BEHIND = "behind"
    DIVERGED = "diverged"
    UNRELATED = "unrelated"


@dataclass(frozen=True)
class ReleaseComparison:
    """Answer of the release comparator.

    Attributes:
        relation: How the commit relates to the release tag.
        ahead_by: Commits the pin has that the release lacks, if known.
        behind_by: Commits the release has that the pin lacks, if known.
    """

    relation: ReleaseRelation
    ahead_by: Optional[int] = None
    behind_by: Optional[int] = None


@dataclass(frozen=True)
class BranchContainment:
    """Remote branches whose history contains a commit.

    Attributes:
        branches: Branch names, without the remote prefix.
        default_branch: The repository's default branch, if reported.
    """

    branches: Tuple[str, ...]
    default_branch: Optional[str] = None
