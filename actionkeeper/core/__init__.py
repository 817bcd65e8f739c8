"""
Core functionality exports for actionkeeper.

The resolution engine (classification, catalog, resolvers, rewriter and
the :class:`UpdateChecker` facade) is synchronous and free of I/O. The
collaborators around it list references, compare commits, look up
branches and scan workflow files.

    from actionkeeper.core import ReferenceCatalog, UpdateChecker
"""

from __future__ import annotations

from actionkeeper.core.catalog import ReferenceCatalog, VersionCandidate
from actionkeeper.core.resolver import VersionResolver, resolve
from actionkeeper.core.commit_pin import (
    BranchContainmentLookup,
    CommitPinResolver,
    ReleaseComparator,
    resolve_commit_pin,
)
from actionkeeper.core.rewriter import RequirementRewriter, rewrite
from actionkeeper.core.checker import UpdateChecker
from actionkeeper.core.branches import LocalBranchLookup
from actionkeeper.core.compare import ComparisonSnapshot, fetch_comparison, github_token
from actionkeeper.core.upload_pack import fetch_catalog, parse_advertisement
from actionkeeper.core.workflow_parser import WorkflowParser
from actionkeeper.core.update_service import UpdateService

__all__ = [
    # Engine
    "ReferenceCatalog",
    "VersionCandidate",
    "VersionResolver",
    "resolve",
    "CommitPinResolver",
    "ReleaseComparator",
    "BranchContainmentLookup",
    "resolve_commit_pin",
    "RequirementRewriter",
    "rewrite",
    "UpdateChecker",
    # Collaborators
    "LocalBranchLookup",
    "ComparisonSnapshot",
    "fetch_comparison",
    "github_token",
    "fetch_catalog",
    "parse_advertisement",
    "WorkflowParser",
    "UpdateService",
]
