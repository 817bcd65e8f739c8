from __future__ import annotations

from typing import Generator, Optional, Tuple
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from actionkeeper.config import ActionKeeperConfig
from actionkeeper.core.catalog import ReferenceCatalog
from actionkeeper.core.update_service import UpdateService
from actionkeeper.exceptions import GitHubError
from actionkeeper.models.dependency import Dependency
from actionkeeper.models.reference import ReleaseComparison, ReleaseRelation
from tests.helpers import (
    ACTION_URL,
    SHA_UNKNOWN,
    SHA_V1_0_4,
    SHA_V1_1_0,
    StubBranchLookup,
    build_catalog,
    make_dependency,
    make_requirement,
    raw_ref,
    setup_node_refs,
)

Fetchers = Tuple[AsyncMock, AsyncMock]


@pytest.fixture
def fetchers() -> Generator[Fetchers, None, None]:
    """Patch the catalog and comparison fetchers used by the service."""
    fetch_catalog = AsyncMock(side_effect=lambda client, url: build_catalog(setup_node_refs()))
    fetch_comparison = AsyncMock(return_value=ReleaseComparison(ReleaseRelation.BEHIND))

    with patch("actionkeeper.core.update_service.fetch_catalog", fetch_catalog), patch(
        "actionkeeper.core.update_service.fetch_comparison", fetch_comparison
    ):
        yield fetch_catalog, fetch_comparison


def _service(
    config: Optional[ActionKeeperConfig] = None,
    lookup: Optional[StubBranchLookup] = None,
) -> UpdateService:
    factory = MagicMock(return_value=lookup or StubBranchLookup())
    return UpdateService(MagicMock(), config=config, branch_lookup_factory=factory)


@pytest.mark.integration
class TestUpdateServiceVersionPins:
    """Tests for version-pinned dependencies."""

    @pytest.mark.asyncio
    async def test_outdated_report(self, fetchers: Fetchers) -> None:
        service = _service()

        (report,) = await service.check_dependencies([make_dependency("v1.0.1", "master")])

        assert report.status == "outdated"
        assert report.pin_kind == "version"
        assert report.current_ref == "v1.0.1"
        assert report.latest_version == "1.1.0"
        assert report.new_ref == "v1.1.0"
        assert report.update_type == "minor"
        assert [req.ref for req in report.updated_requirements] == ["v1.1.0", "v1.1.0"]

    @pytest.mark.asyncio
    async def test_up_to_date_report(self, fetchers: Fetchers) -> None:
        (report,) = await _service().check_dependencies([make_dependency("v1.1.0")])

        assert report.status == "latest"
        assert report.can_update is False
        assert report.update_type is None

    @pytest.mark.asyncio
    async def test_catalog_fetched_once_per_repository(self, fetchers: Fetchers) -> None:
        fetch_catalog, _ = fetchers
        service = _service()

        reports = await service.check_dependencies(
            [make_dependency("v1.0.1"), make_dependency("v1", name="actions/setup-node-copy")]
        )

        assert len(reports) == 2
        fetch_catalog.assert_awaited_once()
        assert fetch_catalog.await_args.args[1] == ACTION_URL

    @pytest.mark.asyncio
    async def test_ignore_rules_from_config(self, fetchers: Fetchers) -> None:
        config = ActionKeeperConfig(ignore={"actions/setup-node": [">= 1.1.0"]})

        (report,) = await _service(config).check_dependencies([make_dependency("v1.0.1")])

        assert report.new_ref == "v1.0.4"
        assert report.update_type == "patch"

    @pytest.mark.asyncio
    async def test_strict_ignore_becomes_error_report(self, fetchers: Fetchers) -> None:
        config = ActionKeeperConfig(raise_on_ignored=True, ignore={"actions/setup-node": [">= 0"]})

        (report,) = await _service(config).check_dependencies([make_dependency("v1.0.1")])

        assert report.status == "error"
        assert "ignored" in (report.error or "")
        assert report.current_ref == "v1.0.1"

    @pytest.mark.asyncio
    async def test_hex_looking_tag_reported_as_tag(self, fetchers: Fetchers) -> None:
        fetch_catalog, _ = fetchers
        fetch_catalog.side_effect = lambda client, url: build_catalog(
            [
                raw_ref("20240101", "1111111111111111111111111111111111111111"),
                raw_ref("20240501", "2222222222222222222222222222222222222222"),
            ],
            default_branch=None,
        )

        (report,) = await _service().check_dependencies([make_dependency("20240101")])

        assert report.pin_kind == "version"
        assert report.new_ref == "20240501"
        assert report.update_type == "major"
        assert [req.ref for req in report.updated_requirements] == ["20240501"]


@pytest.mark.integration
class TestUpdateServiceCommitPins:
    """Tests for commit-pinned dependencies."""

    @pytest.mark.asyncio
    async def test_comparison_prefetched(self, fetchers: Fetchers) -> None:
        _, fetch_comparison = fetchers

        (report,) = await _service().check_dependencies([make_dependency(SHA_V1_0_4)])

        assert fetch_comparison.await_args.args[1:] == (ACTION_URL, "v1.1.0", SHA_V1_0_4)
        assert report.pin_kind == "commit"
        assert report.can_update is True
        assert report.new_ref == SHA_V1_1_0
        assert report.latest_version == "1.1.0"
        assert report.update_type is None

    @pytest.mark.asyncio
    async def test_clone_disabled(self, fetchers: Fetchers) -> None:
        _, fetch_comparison = fetchers
        fetch_comparison.return_value = ReleaseComparison(ReleaseRelation.UNRELATED)
        service = _service(ActionKeeperConfig(allow_clone=False))

        (report,) = await service.check_dependencies([make_dependency(SHA_UNKNOWN)])

        service.branch_lookup_factory.assert_not_called()  # type: ignore[attr-defined]
        assert report.can_update is False
        assert report.latest_version is None

    @pytest.mark.asyncio
    async def test_ambiguous_branches_reported(self, fetchers: Fetchers) -> None:
        _, fetch_comparison = fetchers
        fetch_comparison.return_value = ReleaseComparison(ReleaseRelation.UNRELATED)
        service = _service(lookup=StubBranchLookup(["production", "3.3-stable"]))

        (report,) = await service.check_dependencies([make_dependency(SHA_UNKNOWN)])

        service.branch_lookup_factory.assert_called_once_with(ACTION_URL)  # type: ignore[attr-defined]
        assert report.status == "error"
        assert report.error == f"Multiple ambiguous branches (3.3-stable, production) include {SHA_UNKNOWN}!"


@pytest.mark.integration
class TestUpdateServiceFailures:
    """Tests for failures isolated to one dependency."""

    @pytest.mark.asyncio
    async def test_missing_repository(self, fetchers: Fetchers) -> None:
        fetch_catalog, _ = fetchers
        fetch_catalog.side_effect = GitHubError("Resource not found", status_code=404)

        (report,) = await _service().check_dependencies([make_dependency("v1.0.1")])

        assert report.status == "error"
        assert report.current_ref == "v1.0.1"
        assert "Resource not found" in (report.error or "")

    @pytest.mark.asyncio
    async def test_unexpected_error_does_not_stop_others(self, fetchers: Fetchers) -> None:
        fetch_catalog, _ = fetchers
        catalog = build_catalog(setup_node_refs())

        async def flaky(client: object, url: str) -> ReferenceCatalog:
            if url.endswith("broken"):
                raise RuntimeError("boom")
            return catalog

        fetch_catalog.side_effect = flaky
        broken = Dependency(
            name="actions/broken",
            requirements=[make_requirement("v1.0.1", url="https://github.com/actions/broken")],
        )

        reports = await _service().check_dependencies([broken, make_dependency("v1.0.1")])

        assert reports[0].status == "error"
        assert reports[0].error == "boom"
        assert reports[1].status == "outdated"
