"""Update checking for GitHub Actions dependencies.

This module provides the public facade over the resolution engine.  An
:class:`UpdateChecker` is built for one dependency and one catalog snapshot
and answers the four questions an update run asks:

* :meth:`UpdateChecker.can_update`: is there a newer pin?
* :meth:`UpdateChecker.latest_version`: what is the newest version (or
  commit, for branch and commit pins)?
* :meth:`UpdateChecker.latest_resolvable_version`: identical to
  ``latest_version``; actions have no separate resolution step.
* :meth:`UpdateChecker.updated_requirements`: every declaration re-pinned
  to the resolved target.

The pin driving the check is taken from the dependency's declarations in
order of usefulness: the first version pin, else the first commit pin,
else the first declaration.  A dependency declared as ``@latest`` in one
workflow and ``@v1`` in another is therefore checked through ``v1``.

Typical usage::

    catalog = ReferenceCatalog.build(raw_refs, default_branch="main")
    checker = UpdateChecker(
        dependency,
        catalog,
        ignored_versions=[">= 3"],
        release_comparator=comparator,
        branch_lookup=LocalBranchLookup(dependency_url),
    )
    if checker.can_update():
        for req in checker.updated_requirements():
            print(req.file, req.source.ref)
"""

from __future__ import annotations

from typing import Iterable, List, Optional, Tuple

from actionkeeper.core.catalog import ReferenceCatalog
from actionkeeper.core.commit_pin import (
    BranchContainmentLookup,
    CommitPinResolver,
    ReleaseComparator,
)
from actionkeeper.core.resolver import VersionResolver
from actionkeeper.core.rewriter import RequirementRewriter
from actionkeeper.models.dependency import Dependency
from actionkeeper.models.reference import (
    Pin,
    PinKind,
    ReleaseComparison,
    ReleaseRelation,
    ResolvedTarget,
)
from actionkeeper.models.requirement import Requirement
from actionkeeper.utils.logger import get_logger
from actionkeeper.utils.version_utils import commit_matches

logger = get_logger("checker")

__all__ = ["UpdateChecker", "UNLOCK_OPTIONS"]

#: Accepted values for ``requirements_to_unlock``.
UNLOCK_OPTIONS: Tuple[str, ...] = ("own", "all", "none")

# Preference when picking the declaration that drives the check
_PIN_PRIORITY = {
    PinKind.VERSION: 0,
    PinKind.COMMIT: 1,
    PinKind.BRANCH: 2,
    PinKind.ALIAS: 3,
}


class _UnrelatedComparator:
    """Comparator used when none is supplied: nothing can be related."""

    def compare(self, release_tag: str, commit: str) -> ReleaseComparison:
        return ReleaseComparison(relation=ReleaseRelation.UNRELATED)


class UpdateChecker:
    """Update checker for one dependency against one catalog snapshot.

    The resolved target is computed on first use and reused by every
    public method, so collaborators are consulted at most once.

    Args:
        dependency: The dependency and all its declarations.
        catalog: Snapshot of the dependency repository's references.
        ignored_versions: Ignore constraints (``">= 1.1.0"``).
        raise_on_ignored: Raise :class:`AllVersionsIgnored` when ignore
            rules exclude every candidate instead of reporting no update.
        release_comparator: Relates commit pins to the latest release.
            Without one, commit pins fall back to branch resolution.
        branch_lookup: Lists branches containing a commit; ``None``
            disables that fallback.

    Raises:
        ValueError: *dependency* has no requirements.
        InvalidConstraintError: An ignore constraint cannot be parsed.
    """

    def __init__(
        self,
        dependency: Dependency,
        catalog: ReferenceCatalog,
        *,
        ignored_versions: Iterable[str] = (),
        raise_on_ignored: bool = False,
        release_comparator: Optional[ReleaseComparator] = None,
        branch_lookup: Optional[BranchContainmentLookup] = None,
    ) -> None:
        if not dependency.requirements:
            raise ValueError(f"Dependency {dependency.name!r} has no requirements")

        self.dependency = dependency
        self.catalog = catalog
        self.resolver = VersionResolver(
            catalog,
            ignored_versions,
            raise_on_ignored=raise_on_ignored,
            dependency_name=dependency.name,
        )
        self.release_comparator: ReleaseComparator = (
            release_comparator or _UnrelatedComparator()
        )
        self.branch_lookup = branch_lookup

        self._driving: Tuple[Requirement, Pin] = self._select_driving_requirement()
        self._target: Optional[ResolvedTarget] = None
        self._resolved: bool = False

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    @property
    def driving_requirement(self) -> Requirement:
        """The declaration whose pin drives resolution."""
        return self._driving[0]

    @property
    def current_pin(self) -> Pin:
        """Classification of the driving declaration's reference."""
        return self._driving[1]

    def can_update(self, requirements_to_unlock: str = "own") -> bool:
        """Return True if the dependency can move to a newer pin.

        Branch pins and unresolvable aliases never update on their own.
        Version pins update when the target is a higher version (or the
        same tag moved to a new commit); commit pins update when the target
        commit differs from the pinned one.

        Raises:
            ValueError: Unknown *requirements_to_unlock* value.
            AllVersionsIgnored: Strict mode and every candidate is ignored.
            AmbiguousBranchesError: A commit pin sits on several
                non-default branches.
        """
        if requirements_to_unlock not in UNLOCK_OPTIONS:
            raise ValueError(
                f"requirements_to_unlock must be one of {UNLOCK_OPTIONS}, "
                f"got {requirements_to_unlock!r}"
            )

        if requirements_to_unlock == "none":
            return False

        pin = self.current_pin
        if pin.kind in (PinKind.BRANCH, PinKind.ALIAS):
            logger.debug("%s: %s pin %s cannot be updated", self._name, pin.kind.value, pin.ref)
            return False

        target = self.resolved_target()
        if target is None:
            return False

        if pin.kind is PinKind.COMMIT:
            return not commit_matches(pin.ref, target.commit)

        return VersionResolver.is_update(
            pin.version,
            target,
            current_commit=self.dependency.current_commit,
        )

    def latest_version(self) -> Optional[str]:
        """Newest version (tag targets) or commit (branch targets).

        Returns ``None`` when nothing can be resolved, including when ignore
        rules exclude every candidate in non-strict mode.
        """
        target = self.resolved_target()
        if target is None:
            return None

        if target.version is not None:
            return target.version.normalized

        return target.commit

    def latest_resolvable_version(self) -> Optional[str]:
        """Same as :meth:`latest_version`; actions need no resolution step."""
        return self.latest_version()

    def updated_requirements(self) -> List[Requirement]:
        """Every declaration of the dependency re-pinned to the target."""
        rewriter = RequirementRewriter(
            url=self.driving_requirement.source.url,
            catalog=self.catalog,
        )
        return rewriter.rewrite(self.dependency.requirements, self.resolved_target())

    def resolved_target(self) -> Optional[ResolvedTarget]:
        """Resolve (once) and return the update target."""
        if not self._resolved:
            self._target = self._resolve()
            self._resolved = True
        return self._target

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    @property
    def _name(self) -> str:
        return self.dependency.name

    def _select_driving_requirement(self) -> Tuple[Requirement, Pin]:
        classified = [
            (req, self.catalog.classify_pin(req.ref)) for req in self.dependency.requirements
        ]
        # min() is stable: the first declaration wins within a kind
        return min(classified, key=lambda item: _PIN_PRIORITY[item[1].kind])

    def _resolve(self) -> Optional[ResolvedTarget]:
        pin = self.current_pin
        logger.debug("%s: resolving %s pin %s", self._name, pin.kind.value, pin.ref)

        if pin.kind is PinKind.COMMIT:
            resolver = CommitPinResolver(
                self.resolver,
                self.release_comparator,
                self.branch_lookup,
            )
            return resolver.resolve(pin.ref)

        return self.resolver.resolve_pin(pin)
