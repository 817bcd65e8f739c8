"""Builders and collaborator stubs shared by the test modules.

The reference data models a small action repository::

    tags      v1.0.0  v1.0.4  v1.1  v1.1.0  v1
    branches  master (default)  3.3-stable  production

``v1``, ``v1.1`` and ``v1.1.0`` point at the same commit, as they usually
do for actions that maintain floating major/minor tags.
"""

from __future__ import annotations

from typing import Any, Dict, Iterable, List, Optional, Sequence

from actionkeeper.core.catalog import ReferenceCatalog
from actionkeeper.models.dependency import Dependency
from actionkeeper.models.reference import (
    BranchContainment,
    ReleaseComparison,
    ReleaseRelation,
)
from actionkeeper.models.requirement import GitSource, Requirement

ACTION_URL = "https://github.com/actions/setup-node"

SHA_V1_0_0 = "0bd8a8e6c2c0e5c6b6f2f3f1d7c7e2e7a91c4b5d"
SHA_V1_0_4 = "fc9ff49b90869a686df00e922af871c12215986a"
SHA_V1_1_0 = "5273d0df9c603edc4284ac8402cf650b4f1f6686"
SHA_MASTER = "d963e800e3592dd31d6c76252092562d0bc7a3ba"
SHA_STABLE = "1c24df3a9f5e2a7d0b6c1e8f4a3d2c1b0a9e8d7c"
SHA_PRODUCTION = "7a9b3c2d1e0f4a5b6c7d8e9f0a1b2c3d4e5f6a7b"
SHA_UNKNOWN = "aaaabbbbccccddddeeeeffff0000111122223333"


def raw_ref(name: str, commit: str, is_branch: bool = False) -> Dict[str, Any]:
    return {"name": name, "target_commit": commit, "is_branch": is_branch}


def make_requirement(
    ref: str,
    *,
    file: str = ".github/workflows/ci.yml",
    url: str = ACTION_URL,
    name: str = "actions/setup-node",
) -> Requirement:
    return Requirement(
        file=file,
        source=GitSource(url=url, ref=ref),
        metadata={"declaration_string": f"{name}@{ref}", "name": name},
    )


def make_dependency(
    *refs: str,
    current_commit: Optional[str] = None,
    name: str = "actions/setup-node",
) -> Dependency:
    requirements = [
        make_requirement(ref, file=f".github/workflows/wf{i}.yml", name=name)
        for i, ref in enumerate(refs)
    ]
    return Dependency(name=name, requirements=requirements, current_commit=current_commit)


class StubComparator:
    """Release comparator answering one relation and recording calls."""

    def __init__(self, relation: ReleaseRelation = ReleaseRelation.UNRELATED) -> None:
        self.relation = relation
        self.calls: List[tuple] = []

    def compare(self, release_tag: str, commit: str) -> ReleaseComparison:
        self.calls.append((release_tag, commit))
        return ReleaseComparison(relation=self.relation)


class StubBranchLookup:
    """Branch-containment lookup with a fixed answer."""

    def __init__(
        self,
        branches: Sequence[str] = (),
        default_branch: Optional[str] = None,
    ) -> None:
        self.containment = BranchContainment(
            branches=tuple(branches),
            default_branch=default_branch,
        )
        self.calls: List[str] = []

    def branches_containing(self, commit: str) -> BranchContainment:
        self.calls.append(commit)
        return self.containment


def build_catalog(
    refs: Iterable[Dict[str, Any]],
    default_branch: Optional[str] = "master",
) -> ReferenceCatalog:
    return ReferenceCatalog.build(list(refs), default_branch=default_branch)


def setup_node_refs() -> List[Dict[str, Any]]:
    """Raw references of the modelled action repository."""
    return [
        raw_ref("v1.0.0", SHA_V1_0_0),
        raw_ref("v1.0.4", SHA_V1_0_4),
        raw_ref("v1.1", SHA_V1_1_0),
        raw_ref("v1.1.0", SHA_V1_1_0),
        raw_ref("v1", SHA_V1_1_0),
        raw_ref("master", SHA_MASTER, is_branch=True),
        raw_ref("3.3-stable", SHA_STABLE, is_branch=True),
        raw_ref("production", SHA_PRODUCTION, is_branch=True),
    ]
