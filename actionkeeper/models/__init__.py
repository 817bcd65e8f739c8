"""
Unified data model exports for actionkeeper.

This module re-exports all core data models to provide a stable and
convenient public API. Users can import models directly from
``actionkeeper.models`` instead of individual submodules.

Example:
    >>> from actionkeeper.models import Dependency, Requirement, GitSource
"""

from __future__ import annotations

from actionkeeper.models.dependency import Dependency
from actionkeeper.models.requirement import GitSource, Requirement
from actionkeeper.models.report import UpdateReport
from actionkeeper.models.reference import (
    BranchContainment,
    GitRef,
    Pin,
    PinKind,
    RefKind,
    ReleaseComparison,
    ReleaseRelation,
    ResolvedTarget,
    TargetKind,
)

__all__ = [
    "Dependency",
    "Requirement",
    "GitSource",
    "UpdateReport",
    "GitRef",
    "RefKind",
    "Pin",
    "PinKind",
    "ResolvedTarget",
    "TargetKind",
    "ReleaseRelation",
    "ReleaseComparison",
    "BranchContainment",
]
