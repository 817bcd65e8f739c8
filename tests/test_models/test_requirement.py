"""Unit tests for actionkeeper.models.requirement module.

Test Coverage:
- GitSource and Requirement construction and defaults
- Immutability and re-pinning with with_ref
- Wire shape serialization (to_dict / from_dict)
- String rendering
"""

from __future__ import annotations

import dataclasses

import pytest

from actionkeeper.models.requirement import GitSource, Requirement


@pytest.fixture
def requirement() -> Requirement:
    return Requirement(
        file=".github/workflows/ci.yml",
        source=GitSource(url="https://github.com/actions/checkout", ref="v3"),
        groups=("default",),
        metadata={"declaration_string": "actions/checkout@v3", "name": "actions/checkout", "line": 12},
    )


@pytest.mark.unit
class TestGitSource:
    """Tests for GitSource."""

    def test_defaults(self) -> None:
        source = GitSource(url="https://github.com/actions/checkout", ref="v3")

        assert source.branch is None
        assert source.type == "git"

    def test_to_dict(self) -> None:
        source = GitSource(url="https://github.com/actions/checkout", ref="main", branch="main")

        assert source.to_dict() == {
            "type": "git",
            "url": "https://github.com/actions/checkout",
            "ref": "main",
            "branch": "main",
        }


@pytest.mark.unit
class TestRequirement:
    """Tests for Requirement."""

    def test_ref_shortcut(self, requirement: Requirement) -> None:
        assert requirement.ref == "v3"

    def test_declaration_string(self, requirement: Requirement) -> None:
        assert requirement.declaration_string == "actions/checkout@v3"

    def test_frozen(self, requirement: Requirement) -> None:
        with pytest.raises(dataclasses.FrozenInstanceError):
            requirement.file = "other.yml"  # type: ignore[misc]

    def test_with_ref_only_changes_ref(self, requirement: Requirement) -> None:
        updated = requirement.with_ref("v4")

        assert updated.ref == "v4"
        assert updated.file == requirement.file
        assert updated.groups == requirement.groups
        assert updated.metadata == requirement.metadata
        assert updated.source.url == requirement.source.url
        assert requirement.ref == "v3"

    def test_to_dict(self, requirement: Requirement) -> None:
        data = requirement.to_dict()

        assert data["file"] == ".github/workflows/ci.yml"
        assert data["requirement"] is None
        assert data["groups"] == ["default"]
        assert data["source"]["ref"] == "v3"
        assert data["metadata"]["line"] == 12

    def test_from_dict_round_trip(self, requirement: Requirement) -> None:
        assert Requirement.from_dict(requirement.to_dict()) == requirement

    def test_from_dict_minimal(self) -> None:
        req = Requirement.from_dict(
            {
                "file": "action.yml",
                "source": {"url": "https://github.com/actions/cache", "ref": "v4"},
            }
        )

        assert req.source.type == "git"
        assert req.groups == ()
        assert dict(req.metadata) == {}

    def test_from_dict_missing_source(self) -> None:
        with pytest.raises(KeyError):
            Requirement.from_dict({"file": "action.yml"})

    def test_str_uses_declaration(self, requirement: Requirement) -> None:
        assert str(requirement) == "actions/checkout@v3"

    def test_str_without_declaration(self) -> None:
        req = Requirement(
            file="ci.yml",
            source=GitSource(url="https://github.com/actions/cache", ref="v4"),
        )

        assert str(req) == "https://github.com/actions/cache@v4"
