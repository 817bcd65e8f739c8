from __future__ import annotations

from unittest.mock import AsyncMock

import pytest

from actionkeeper.core.compare import (
    ComparisonSnapshot,
    fetch_comparison,
    github_repository,
    github_token,
    relation_from_status,
)
from actionkeeper.exceptions import GitHubError, NetworkError
from actionkeeper.models.reference import ReleaseComparison, ReleaseRelation


@pytest.mark.unit
class TestGithubRepository:
    """Tests for github_repository."""

    @pytest.mark.parametrize(
        "url, expected",
        [
            ("https://github.com/actions/setup-node", ("actions", "setup-node")),
            ("https://github.com/actions/setup-node.git", ("actions", "setup-node")),
            ("https://github.com/actions/setup-node/tree/main", ("actions", "setup-node")),
            ("https://gitlab.com/actions/setup-node", None),
            ("https://github.com/actions", None),
        ],
    )
    def test_parse(self, url: str, expected: object) -> None:
        assert github_repository(url) == expected


@pytest.mark.unit
class TestGithubToken:
    """Tests for github_token."""

    def test_prefers_project_variable(self) -> None:
        env = {"ACTIONKEEPER_GITHUB_TOKEN": "mine", "GITHUB_TOKEN": "ci"}

        assert github_token(env) == "mine"

    def test_falls_back_to_github_token(self) -> None:
        assert github_token({"GITHUB_TOKEN": "ci"}) == "ci"

    def test_empty_values_skipped(self) -> None:
        assert github_token({"ACTIONKEEPER_GITHUB_TOKEN": "", "GITHUB_TOKEN": "ci"}) == "ci"

    def test_none(self) -> None:
        assert github_token({}) is None

    def test_reads_process_environment(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("ACTIONKEEPER_GITHUB_TOKEN", raising=False)
        monkeypatch.setenv("GITHUB_TOKEN", "from-env")

        assert github_token() == "from-env"


@pytest.mark.unit
class TestRelationFromStatus:
    """Tests for relation_from_status."""

    @pytest.mark.parametrize(
        "status, relation",
        [
            ("identical", ReleaseRelation.BEHIND),
            ("behind", ReleaseRelation.BEHIND),
            ("ahead", ReleaseRelation.DIVERGED),
            ("diverged", ReleaseRelation.DIVERGED),
            ("something-new", ReleaseRelation.UNRELATED),
            (None, ReleaseRelation.UNRELATED),
        ],
    )
    def test_mapping(self, status: str, relation: ReleaseRelation) -> None:
        assert relation_from_status(status) is relation


@pytest.mark.unit
class TestFetchComparison:
    """Tests for fetch_comparison."""

    @pytest.mark.asyncio
    async def test_behind(self) -> None:
        client = AsyncMock()
        client.get_json.return_value = {"status": "behind", "ahead_by": 0, "behind_by": 12}

        comparison = await fetch_comparison(
            client, "https://github.com/actions/setup-node", "v1.1.0", "1c24df3"
        )

        assert comparison == ReleaseComparison(ReleaseRelation.BEHIND, ahead_by=0, behind_by=12)
        url = client.get_json.await_args.args[0]
        assert url == "https://api.github.com/repos/actions/setup-node/compare/v1.1.0...1c24df3"
        assert client.get_json.await_args.kwargs["headers"]["Accept"] == "application/vnd.github+json"

    @pytest.mark.asyncio
    async def test_not_found_is_unrelated(self) -> None:
        client = AsyncMock()
        client.get_json.side_effect = GitHubError("Resource not found", status_code=404)

        comparison = await fetch_comparison(
            client, "https://github.com/actions/setup-node", "v1.1.0", "1c24df3"
        )

        assert comparison.relation is ReleaseRelation.UNRELATED

    @pytest.mark.asyncio
    async def test_other_errors_propagate(self) -> None:
        client = AsyncMock()
        client.get_json.side_effect = NetworkError("HTTP 500", status_code=500)

        with pytest.raises(NetworkError):
            await fetch_comparison(client, "https://github.com/actions/setup-node", "v1.1.0", "1c24df3")

    @pytest.mark.asyncio
    async def test_non_github_is_unrelated(self) -> None:
        client = AsyncMock()

        comparison = await fetch_comparison(client, "https://gitlab.com/a/b", "v1", "1c24df3")

        assert comparison.relation is ReleaseRelation.UNRELATED
        client.get_json.assert_not_awaited()


@pytest.mark.unit
class TestComparisonSnapshot:
    """Tests for ComparisonSnapshot."""

    def test_answers_from_fetched_pairs(self) -> None:
        behind = ReleaseComparison(ReleaseRelation.BEHIND)
        snapshot = ComparisonSnapshot({("v1.1.0", "1c24df3"): behind})

        assert snapshot.compare("v1.1.0", "1c24df3") is behind
        assert len(snapshot) == 1

    def test_missing_pair_is_unrelated(self) -> None:
        snapshot = ComparisonSnapshot()

        assert snapshot.compare("v1.1.0", "1c24df3").relation is ReleaseRelation.UNRELATED

    def test_add(self) -> None:
        snapshot = ComparisonSnapshot()
        snapshot.add("v1.1.0", "1c24df3", ReleaseComparison(ReleaseRelation.DIVERGED))

        assert snapshot.compare("v1.1.0", "1c24df3").relation is ReleaseRelation.DIVERGED
