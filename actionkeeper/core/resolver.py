"""Version resolution for version-pinned action references.

Given the reference a dependency is pinned to and a
:class:`~actionkeeper.core.catalog.ReferenceCatalog`, the resolver finds the
best tag to move to.  The algorithm:

1. **Branch pins** resolve to the branch's current tip, flagged as *not
   upgradable*: a moving branch has no tag to upgrade to.
2. **Aliases** (``latest``, ``stable``) have no resolvable target.
3. **Version pins** search the tags with the *same precision* as the pin
   (``v2`` only moves to one-segment tags, ``v2.1.3`` only to
   three-segment tags), drop tags matched by an ignore rule and pick the
   numeric maximum.  The search crosses major versions.
4. Only lower candidates remaining means there is nothing to move to; a
   target equal to the current version is returned as-is so callers can
   report it as the latest version.

Commit pins are handled by :mod:`actionkeeper.core.commit_pin`, which
reuses :meth:`VersionResolver.latest_release` as its release anchor.

Typical usage::

    resolver = VersionResolver(catalog, ignored_versions=[">= 2.0.0"])
    target = resolver.resolve("v1.0.1")
    if target and VersionResolver.is_update(classify("v1.0.1"), target):
        print(f"update to {target.name} ({target.commit})")
"""

from __future__ import annotations

from typing import Iterable, List, Optional, Sequence

from packaging.specifiers import SpecifierSet

from actionkeeper.core.catalog import ReferenceCatalog, VersionCandidate
from actionkeeper.exceptions import AllVersionsIgnored
from actionkeeper.models.reference import Pin, PinKind, ResolvedTarget, TargetKind
from actionkeeper.utils.logger import get_logger
from actionkeeper.utils.version_utils import (
    ParsedVersion,
    commit_matches,
    is_ignored,
    parse_ignore_constraints,
)

logger = get_logger("resolver")

__all__ = ["VersionResolver", "resolve"]


class VersionResolver:
    """Tag-based upgrade search over a reference catalog.

    Args:
        catalog: Snapshot of the remote repository's references.
        ignored_versions: Ignore constraints such as ``">= 1.1.0"``.
        raise_on_ignored: Raise :class:`AllVersionsIgnored` instead of
            returning ``None`` when ignore rules exclude every candidate.
        dependency_name: Used in log and error messages only.

    Raises:
        InvalidConstraintError: An ignore constraint cannot be parsed.
    """

    def __init__(
        self,
        catalog: ReferenceCatalog,
        ignored_versions: Iterable[str] = (),
        *,
        raise_on_ignored: bool = False,
        dependency_name: Optional[str] = None,
    ) -> None:
        self.catalog = catalog
        self.ignored_versions: List[str] = list(ignored_versions)
        self.raise_on_ignored = raise_on_ignored
        self.dependency_name = dependency_name
        self._ignore_specs: List[SpecifierSet] = parse_ignore_constraints(
            self.ignored_versions
        )

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def resolve(self, current_ref: str) -> Optional[ResolvedTarget]:
        """Resolve the best target for *current_ref*.

        Returns:
            A ``TAG`` target for version pins, a non-upgradable ``BRANCH``
            target for branch pins, or ``None`` when nothing applies
            (aliases, commit SHAs, no candidate at or above the current
            version, or every candidate ignored).

        Raises:
            AllVersionsIgnored: Strict mode and ignore rules excluded
                every candidate.
        """
        return self.resolve_pin(self.catalog.classify_pin(current_ref))

    def resolve_pin(self, pin: Pin) -> Optional[ResolvedTarget]:
        """Resolve an already-classified pin."""
        if pin.kind is PinKind.BRANCH:
            tip = self.catalog.branch_tip(pin.ref)
            logger.debug("%s follows branch %s (tip %s)", self._label, pin.ref, tip)
            if tip is None:
                return None
            return ResolvedTarget(
                kind=TargetKind.BRANCH,
                commit=tip,
                name=pin.ref,
                upgradable=False,
            )

        if pin.kind is not PinKind.VERSION or pin.version is None:
            logger.debug(
                "%s pinned to %s (%s); no tag-based target",
                self._label,
                pin.ref,
                pin.kind.value,
            )
            return None

        return self._resolve_version(pin, pin.version)

    def latest_release(self) -> Optional[VersionCandidate]:
        """Highest non-ignored release tag, preferring full precision.

        Candidates are grouped by precision and the group with the most
        segments wins, so ``v1.1.0`` is preferred over ``v1.1`` and ``v1``.

        Raises:
            AllVersionsIgnored: Strict mode and ignore rules excluded
                every candidate.
        """
        remaining = self._without_ignored(list(self.catalog.version_candidates))
        if not remaining:
            return None

        precision = max(c.version.precision for c in remaining)
        group = [c for c in remaining if c.version.precision == precision]
        return max(group, key=lambda c: c.version.key)

    @staticmethod
    def is_update(
        current: Optional[ParsedVersion],
        target: Optional[ResolvedTarget],
        current_commit: Optional[str] = None,
    ) -> bool:
        """Return True if moving from *current* to *target* is an update.

        A target is an update when its version is strictly greater, or when
        the version is the same but the tag now points at a different
        commit than *current_commit* (the tag was moved).
        """
        if current is None or target is None or target.version is None:
            return False

        if target.version.key > current.key:
            return True

        if target.version.key == current.key and current_commit:
            return not commit_matches(current_commit, target.commit)

        return False

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    @property
    def _label(self) -> str:
        return self.dependency_name or "dependency"

    def _resolve_version(self, pin: Pin, current: ParsedVersion) -> Optional[ResolvedTarget]:
        candidates = self.catalog.candidates_at_precision(current.precision)
        remaining = self._without_ignored(candidates)
        if not remaining:
            logger.debug(
                "%s: no candidate tags at precision %d",
                self._label,
                current.precision,
            )
            return None

        # Equal numeric values spelled differently (v1 / 1): keep the pin's
        # own spelling
        best = max(remaining, key=lambda c: (c.version.key, c.name == pin.ref))

        if best.version.key < current.key:
            logger.debug(
                "%s: best candidate %s is below current %s",
                self._label,
                best.name,
                pin.ref,
            )
            return None

        logger.debug("%s: %s resolves to %s", self._label, pin.ref, best.name)
        return ResolvedTarget(
            kind=TargetKind.TAG,
            commit=best.commit,
            name=best.name,
            version=best.version,
        )

    def _without_ignored(
        self,
        candidates: Sequence[VersionCandidate],
    ) -> List[VersionCandidate]:
        """Drop ignored candidates, enforcing strict ignore semantics."""
        if not self._ignore_specs:
            return list(candidates)

        remaining = [c for c in candidates if not is_ignored(c.version, self._ignore_specs)]

        if candidates and not remaining:
            logger.info(
                "%s: all %d candidate(s) excluded by ignore rules %s",
                self._label,
                len(candidates),
                self.ignored_versions,
            )
            if self.raise_on_ignored:
                raise AllVersionsIgnored(dependency_name=self.dependency_name)

        return remaining


def resolve(
    current_ref: str,
    catalog: ReferenceCatalog,
    ignored_versions: Iterable[str] = (),
    *,
    raise_on_ignored: bool = False,
) -> Optional[ResolvedTarget]:
    """Functional shortcut for :meth:`VersionResolver.resolve`."""
    resolver = VersionResolver(
        catalog,
        ignored_versions,
        raise_on_ignored=raise_on_ignored,
    )
    return resolver.resolve(current_ref)
