"""Resolution of dependencies pinned to a raw commit SHA.

A commit pin carries no version, so the update target is found from the
repository's topology:

1. The **release anchor** is the highest non-ignored release tag (see
   :meth:`VersionResolver.latest_release`).
2. The **release comparator** relates the pinned commit to the anchor.
   Whether the commit is behind the release or has diverged from it, the
   pin moves onto the release lineage: the target is the commit the anchor
   tag points at, keeping the "pin by commit" style.
3. When no relationship can be established (no release, or the comparator
   reports the histories as unrelated), the pin follows the branch it
   lives on.  A commit that is itself a branch tip resolves to that tip
   without further lookups; otherwise the **branch-containment lookup**
   lists the branches containing it:

   * the default branch among them wins;
   * a single non-default branch wins;
   * several non-default branches are ambiguous and raise
     :class:`~actionkeeper.exceptions.AmbiguousBranchesError`.

Both collaborators are plain synchronous lookups; whether they talk to a
hosting API or a local clone is invisible here.
"""

from __future__ import annotations

from typing import Iterable, List, Optional, Protocol

from actionkeeper.core.catalog import ReferenceCatalog
from actionkeeper.core.resolver import VersionResolver
from actionkeeper.exceptions import AmbiguousBranchesError
from actionkeeper.models.reference import (
    BranchContainment,
    ReleaseComparison,
    ReleaseRelation,
    ResolvedTarget,
    TargetKind,
)
from actionkeeper.utils.logger import get_logger

logger = get_logger("commit_pin")

__all__ = [
    "BranchContainmentLookup",
    "CommitPinResolver",
    "ReleaseComparator",
    "resolve_commit_pin",
]


class ReleaseComparator(Protocol):
    """Relates a pinned commit to a release tag."""

    def compare(self, release_tag: str, commit: str) -> ReleaseComparison:
        ...


class BranchContainmentLookup(Protocol):
    """Lists the remote branches whose history contains a commit."""

    def branches_containing(self, commit: str) -> BranchContainment:
        ...


class CommitPinResolver:
    """Find the update target for a commit-pinned dependency.

    Args:
        resolver: Version resolver over the same catalog; supplies the
            release anchor and applies ignore rules.
        comparator: Release comparator collaborator.
        branch_lookup: Branch-containment collaborator, or ``None`` when
            the containment fallback is disabled.
    """

    def __init__(
        self,
        resolver: VersionResolver,
        comparator: ReleaseComparator,
        branch_lookup: Optional[BranchContainmentLookup] = None,
    ) -> None:
        self.resolver = resolver
        self.comparator = comparator
        self.branch_lookup = branch_lookup

    @property
    def catalog(self) -> ReferenceCatalog:
        return self.resolver.catalog

    def resolve(self, commit: str) -> Optional[ResolvedTarget]:
        """Resolve the target for a dependency pinned to *commit*.

        Returns:
            A ``RAW_COMMIT`` target, or ``None`` when the commit is on no
            known branch (or the containment fallback is disabled).

        Raises:
            AmbiguousBranchesError: Several non-default branches contain
                the commit and the default branch does not.
            AllVersionsIgnored: Strict mode and every release is ignored.
        """
        release = self.resolver.latest_release()

        if release is not None:
            comparison = self.comparator.compare(release.name, commit)
            logger.debug(
                "%s relative to %s: %s (ahead_by=%s, behind_by=%s)",
                commit,
                release.name,
                comparison.relation.value,
                comparison.ahead_by,
                comparison.behind_by,
            )
            if comparison.relation is not ReleaseRelation.UNRELATED:
                return ResolvedTarget(
                    kind=TargetKind.RAW_COMMIT,
                    commit=release.commit,
                    name=release.name,
                    version=release.version,
                )
        else:
            logger.debug("No release tag to anchor %s; using branches", commit)

        return self._resolve_by_branch(commit)

    # ------------------------------------------------------------------
    # Branch fallback
    # ------------------------------------------------------------------

    def _resolve_by_branch(self, commit: str) -> Optional[ResolvedTarget]:
        tips = self.catalog.branches_at_commit(commit)
        if tips:
            name = self._preferred(tips)
            logger.debug("%s is the tip of %s", commit, name)
            return self._branch_target(name)

        if self.branch_lookup is None:
            logger.info(
                "Cannot locate %s on a branch without cloning; clone fallback disabled",
                commit,
            )
            return None

        containment = self.branch_lookup.branches_containing(commit)
        name = self._containing_branch(commit, containment)
        if name is None:
            logger.info("No remote branch contains %s", commit)
            return None

        return self._branch_target(name)

    def _containing_branch(
        self,
        commit: str,
        containment: BranchContainment,
    ) -> Optional[str]:
        branches = containment.branches
        if not branches:
            return None

        default = containment.default_branch or self.catalog.default_branch
        if default is not None and default in branches:
            return default

        if len(branches) == 1:
            return branches[0]

        raise AmbiguousBranchesError(commit, branches)

    def _preferred(self, branches: List[str]) -> str:
        default = self.catalog.default_branch
        if default in branches:
            return default
        return sorted(branches)[0]

    def _branch_target(self, name: str) -> Optional[ResolvedTarget]:
        tip = self.catalog.branch_tip(name)
        if tip is None:
            logger.warning("Branch %s is not advertised by the remote", name)
            return None
        return ResolvedTarget(kind=TargetKind.RAW_COMMIT, commit=tip, name=name)


def resolve_commit_pin(
    commit: str,
    catalog: ReferenceCatalog,
    comparator: ReleaseComparator,
    branch_lookup: Optional[BranchContainmentLookup] = None,
    *,
    ignored_versions: Iterable[str] = (),
    raise_on_ignored: bool = False,
) -> Optional[ResolvedTarget]:
    """Functional shortcut for :meth:`CommitPinResolver.resolve`."""
    resolver = VersionResolver(
        catalog,
        ignored_versions,
        raise_on_ignored=raise_on_ignored,
    )
    return CommitPinResolver(resolver, comparator, branch_lookup).resolve(commit)
