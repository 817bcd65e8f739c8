"""
Version classification utilities for actionkeeper.

Action references are only treated as versions when they look like a
plain release number: an optional leading ``v`` followed by one, two or
three dot-separated non-negative integers (``v2``, ``2.1``, ``v2.1.3``).
The number of segments is the reference's *precision*; upgrades always
stay at the precision the dependency is pinned at.

Ignore rules are ordinary PEP 440 specifier strings (``">= 1.1.0"``) and
are evaluated with :mod:`packaging` against the numeric part of the tag.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence, Tuple

from packaging.specifiers import InvalidSpecifier, SpecifierSet
from packaging.version import Version

from actionkeeper.constants import MAX_SHA_LENGTH, MIN_SHA_LENGTH
from actionkeeper.exceptions import InvalidConstraintError

_VERSION_RE = re.compile(r"v?(?P<number>[0-9]+(?:\.[0-9]+){0,2})")
_SHA_RE = re.compile(
    rf"[0-9a-fA-F]{{{MIN_SHA_LENGTH},{MAX_SHA_LENGTH}}}"
)

#: Number of segments comparisons are padded to.
_PADDED_LENGTH = 3


@dataclass(frozen=True)
class ParsedVersion:
    """A version-like reference split into its numeric segments.

    Attributes:
        raw: The reference exactly as written (``"v1.0.4"``).
        segments: Numeric segments in order (``(1, 0, 4)``).
        precision: Number of segments (1, 2 or 3).
    """

    raw: str
    segments: Tuple[int, ...]
    precision: int

    @property
    def key(self) -> Tuple[int, ...]:
        """Ordering key: segments zero-padded to full precision."""
        return self.segments + (0,) * (_PADDED_LENGTH - len(self.segments))

    @property
    def normalized(self) -> str:
        """Canonical spelling without the ``v`` prefix (``"1.0.4"``)."""
        return ".".join(str(segment) for segment in self.segments)

    def as_version(self) -> Version:
        """Return the equivalent :class:`packaging.version.Version`."""
        return Version(self.normalized)

    def __str__(self) -> str:
        return self.normalized


def classify(ref: Optional[str]) -> Optional[ParsedVersion]:
    """Parse *ref* into a :class:`ParsedVersion`, or ``None``.

    Examples:
        >>> classify("v2.1").segments
        (2, 1)
        >>> classify("main") is None
        True
        >>> classify("v1.0.0-beta") is None
        True
    """
    if not ref:
        return None

    match = _VERSION_RE.fullmatch(ref)
    if match is None:
        return None

    segments = tuple(int(part) for part in match.group("number").split("."))
    return ParsedVersion(raw=ref, segments=segments, precision=len(segments))


def looks_like_version(ref: Optional[str]) -> bool:
    """Return True if *ref* classifies as a version."""
    return classify(ref) is not None


def looks_like_commit_sha(ref: Optional[str]) -> bool:
    """Return True for 7 to 40 character hexadecimal strings."""
    return bool(ref) and _SHA_RE.fullmatch(ref) is not None


def commit_matches(pinned: str, commit: Optional[str]) -> bool:
    """Return True if *pinned* (full or abbreviated) names *commit*."""
    if not commit:
        return False
    return commit.lower().startswith(pinned.lower())


# ---------------------------------------------------------------------------
# Ignore constraints
# ---------------------------------------------------------------------------


def parse_ignore_constraints(constraints: Iterable[str]) -> List[SpecifierSet]:
    """Parse ignored-version constraint strings.

    Each string may hold several comma-separated clauses
    (``">= 1, < 2"``), all of which must hold for a version to be ignored.

    Raises:
        InvalidConstraintError: A constraint is not a valid specifier.
    """
    parsed: List[SpecifierSet] = []

    for constraint in constraints:
        try:
            parsed.append(SpecifierSet(constraint.strip()))
        except InvalidSpecifier as exc:
            raise InvalidConstraintError(
                f"Invalid ignored-version constraint: {constraint!r}",
                constraint=constraint,
            ) from exc

    return parsed


def is_ignored(version: ParsedVersion, specifiers: Sequence[SpecifierSet]) -> bool:
    """Return True if any ignore specifier matches *version*."""
    candidate = version.as_version()
    return any(spec.contains(candidate, prereleases=True) for spec in specifiers)


# ---------------------------------------------------------------------------
# Display helpers
# ---------------------------------------------------------------------------


def get_update_type(
    current: Optional[ParsedVersion],
    target: Optional[ParsedVersion],
) -> str:
    """Classify the change between two versions of the same precision.

    Returns:
        One of ``"major"``, ``"minor"``, ``"patch"``, ``"same"``,
        ``"downgrade"`` or ``"unknown"`` (either side missing).

    Examples:
        >>> get_update_type(classify("v1.0.1"), classify("v1.1.0"))
        'minor'
        >>> get_update_type(classify("v2"), classify("v3"))
        'major'
    """
    if current is None or target is None:
        return "unknown"

    if target.key == current.key:
        return "same"

    if target.key < current.key:
        return "downgrade"

    for label, old, new in zip(("major", "minor", "patch"), current.key, target.key):
        if old != new:
            return label

    return "unknown"
