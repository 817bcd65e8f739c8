"""Snapshot of the tags and branches advertised by a remote repository.

The catalog is built once per update check from the reference lister's
output and is never modified afterwards.  It answers two kinds of
questions:

* **Candidate search**: which tags parse as versions, grouped by
  precision.  Only tags are candidates: a branch called ``v2`` is never
  mistaken for the tag ``v2``.
* **Pin classification**: :meth:`ReferenceCatalog.classify_pin` turns the
  reference a declaration is pinned to into a :class:`~actionkeeper.models.Pin`
  (version tag, moving branch, raw commit, or unresolvable alias).  Every
  resolution step consumes this single classification.

Typical usage::

    catalog = ReferenceCatalog.build(
        [
            {"name": "v1.0.4", "target_commit": "fc9ff49b...", "is_branch": False},
            {"name": "main", "target_commit": "d963e800...", "is_branch": True},
        ],
        default_branch="main",
    )
    catalog.candidates_at_precision(3)
    catalog.classify_pin("main").kind      # PinKind.BRANCH
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from actionkeeper.models.reference import GitRef, Pin, PinKind, RefKind
from actionkeeper.utils.logger import get_logger
from actionkeeper.utils.version_utils import (
    ParsedVersion,
    classify,
    commit_matches,
    looks_like_commit_sha,
)

logger = get_logger("catalog")

__all__ = ["ReferenceCatalog", "VersionCandidate"]


@dataclass(frozen=True)
class VersionCandidate:
    """A tag whose name parses as a version."""

    version: ParsedVersion
    ref: GitRef

    @property
    def name(self) -> str:
        return self.ref.name

    @property
    def commit(self) -> str:
        return self.ref.target_commit


class ReferenceCatalog:
    """Immutable view over a repository's tags and branches.

    Args:
        refs: Advertised references.  Duplicate names of the same kind are
            dropped (the first occurrence wins).
        default_branch: Name of the repository's default branch, as
            reported by the reference lister.
    """

    def __init__(
        self,
        refs: Iterable[GitRef],
        default_branch: Optional[str] = None,
    ) -> None:
        tags: Dict[str, GitRef] = {}
        branches: Dict[str, GitRef] = {}

        for ref in refs:
            bucket = branches if ref.is_branch else tags
            bucket.setdefault(ref.name, ref)

        self._tags: Dict[str, GitRef] = tags
        self._branches: Dict[str, GitRef] = branches
        self._default_branch: Optional[str] = default_branch

        candidates: List[VersionCandidate] = []
        for tag in tags.values():
            version = classify(tag.name)
            if version is not None:
                candidates.append(VersionCandidate(version=version, ref=tag))
        self._candidates: Tuple[VersionCandidate, ...] = tuple(candidates)

        logger.debug(
            "Catalog: %d tag(s), %d version candidate(s), %d branch(es), default=%s",
            len(tags),
            len(candidates),
            len(branches),
            default_branch,
        )

    @classmethod
    def build(
        cls,
        raw_refs: Iterable[Mapping[str, Any]],
        default_branch: Optional[str] = None,
    ) -> "ReferenceCatalog":
        """Build a catalog from ``{name, target_commit, is_branch}`` records."""
        refs = [
            GitRef(
                name=raw["name"],
                target_commit=raw["target_commit"],
                kind=RefKind.BRANCH if raw.get("is_branch") else RefKind.TAG,
            )
            for raw in raw_refs
        ]
        return cls(refs, default_branch=default_branch)

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    @property
    def tags(self) -> Tuple[GitRef, ...]:
        return tuple(self._tags.values())

    @property
    def branches(self) -> Tuple[GitRef, ...]:
        return tuple(self._branches.values())

    @property
    def version_candidates(self) -> Tuple[VersionCandidate, ...]:
        return self._candidates

    @property
    def default_branch(self) -> Optional[str]:
        return self._default_branch

    def tag(self, name: str) -> Optional[GitRef]:
        return self._tags.get(name)

    def branch(self, name: str) -> Optional[GitRef]:
        return self._branches.get(name)

    def branch_tip(self, name: str) -> Optional[str]:
        """Commit the branch *name* currently points at, if it exists."""
        branch = self._branches.get(name)
        return branch.target_commit if branch else None

    def default_branch_tip(self) -> Optional[str]:
        """Commit at the tip of the designated default branch."""
        if self._default_branch is None:
            return None
        return self.branch_tip(self._default_branch)

    def is_version_candidate(self, name: str) -> bool:
        return any(c.name == name for c in self._candidates)

    def candidates_at_precision(self, precision: int) -> List[VersionCandidate]:
        """All version tags with exactly *precision* segments."""
        return [c for c in self._candidates if c.version.precision == precision]

    def branches_at_commit(self, commit: str) -> List[str]:
        """Branches whose tip is *commit* (full or abbreviated)."""
        return [
            name
            for name, ref in self._branches.items()
            if commit_matches(commit, ref.target_commit)
        ]

    # ------------------------------------------------------------------
    # Pin classification
    # ------------------------------------------------------------------

    def classify_pin(self, ref: str) -> Pin:
        """Classify the reference a declaration is pinned to.

        Order of precedence:

        1. A branch name that is not also a version tag and does not look
           like a commit SHA is a moving ``BRANCH`` pin.
        2. A version-like reference is a ``VERSION`` pin, unless it is also
           a 7-40 character hex string that no tag carries (``1234567``).
        3. A 7-40 character hex string is a ``COMMIT`` pin.
        4. Anything else (``"latest"``, ``"stable"``) is an ``ALIAS``.
        """
        if (
            ref in self._branches
            and not self.is_version_candidate(ref)
            and not looks_like_commit_sha(ref)
        ):
            return Pin(ref=ref, kind=PinKind.BRANCH)

        version = classify(ref)
        if version is not None and (ref in self._tags or not looks_like_commit_sha(ref)):
            return Pin(ref=ref, kind=PinKind.VERSION, version=version)

        if looks_like_commit_sha(ref):
            return Pin(ref=ref, kind=PinKind.COMMIT)

        return Pin(ref=ref, kind=PinKind.ALIAS)

    def __repr__(self) -> str:
        return (
            f"ReferenceCatalog(tags={len(self._tags)}, "
            f"branches={len(self._branches)}, "
            f"default_branch={self._default_branch!r})"
        )
