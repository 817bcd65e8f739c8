"""Concurrent update checks for many action dependencies.

The resolution core (:class:`~actionkeeper.core.checker.UpdateChecker`) is
synchronous.  This service puts the network around it:

1. the reference catalog of each repository is fetched once through the
   shared :class:`~actionkeeper.utils.http.HTTPClient`;
2. for commit pins, the comparison between the pinned commit and the
   latest release is fetched ahead of time and handed over as a
   :class:`~actionkeeper.core.compare.ComparisonSnapshot`;
3. the checker runs in a worker thread, because its branch-containment
   fallback may clone the repository.

Every dependency is checked concurrently with :func:`asyncio.gather`.  A
failure for one dependency becomes an error report and does not stop the
others.

Typical usage::

    async with HTTPClient(api_token=github_token()) as http:
        service = UpdateService(http, config=load_config())
        reports = await service.check_dependencies(dependencies)
"""

from __future__ import annotations

import asyncio
from typing import Callable, Dict, Iterable, List, Optional

from actionkeeper.config import ActionKeeperConfig
from actionkeeper.core.branches import LocalBranchLookup
from actionkeeper.core.catalog import ReferenceCatalog
from actionkeeper.core.checker import UpdateChecker
from actionkeeper.core.commit_pin import BranchContainmentLookup
from actionkeeper.core.compare import ComparisonSnapshot, fetch_comparison
from actionkeeper.core.upload_pack import fetch_catalog
from actionkeeper.exceptions import ActionKeeperError
from actionkeeper.models.dependency import Dependency
from actionkeeper.models.reference import PinKind
from actionkeeper.models.report import UpdateReport
from actionkeeper.utils.http import HTTPClient
from actionkeeper.utils.logger import get_logger
from actionkeeper.utils.version_utils import get_update_type

logger = get_logger("update_service")

__all__ = ["UpdateService"]

BranchLookupFactory = Callable[[str], BranchContainmentLookup]


class UpdateService:
    """Check dependencies concurrently against their remote repositories.

    Args:
        http_client: Shared HTTP client (owns the connection pool).
        config: Loaded configuration; defaults when ``None``.
        concurrent_limit: Maximum number of catalog fetches in flight.
        branch_lookup_factory: Builds the branch-containment lookup for a
            repository URL.  Unused when ``config.allow_clone`` is false.
    """

    def __init__(
        self,
        http_client: HTTPClient,
        *,
        config: Optional[ActionKeeperConfig] = None,
        concurrent_limit: int = 10,
        branch_lookup_factory: BranchLookupFactory = LocalBranchLookup,
    ) -> None:
        self.http_client = http_client
        self.config = config or ActionKeeperConfig()
        self.branch_lookup_factory = branch_lookup_factory
        self._semaphore = asyncio.Semaphore(concurrent_limit)
        self._catalogs: Dict[str, ReferenceCatalog] = {}
        self._catalog_locks: Dict[str, asyncio.Lock] = {}

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def check_dependencies(self, dependencies: Iterable[Dependency]) -> List[UpdateReport]:
        """Check every dependency; results keep the input order."""
        deps = list(dependencies)
        results = await asyncio.gather(
            *(self.check_dependency(dep) for dep in deps),
            return_exceptions=True,
        )

        reports: List[UpdateReport] = []
        for dep, result in zip(deps, results):
            if isinstance(result, BaseException):
                if not isinstance(result, Exception):
                    raise result
                logger.error("Unexpected failure checking %s: %s", dep.name, result)
                reports.append(UpdateReport.failed(dep.name, result, _first_ref(dep)))
            else:
                reports.append(result)
        return reports

    async def check_dependency(self, dependency: Dependency) -> UpdateReport:
        """Check one dependency.

        Errors raised by the resolution engine or its collaborators are
        reported on the returned :class:`UpdateReport`.
        """
        try:
            return await self._check(dependency)
        except ActionKeeperError as exc:
            logger.warning("%s: %s", dependency.name, exc)
            return UpdateReport.failed(dependency.name, exc, _first_ref(dependency))

    async def get_catalog(self, repo_url: str) -> ReferenceCatalog:
        """Fetch (or return cached) the reference catalog of *repo_url*."""
        if repo_url in self._catalogs:
            return self._catalogs[repo_url]

        # One fetch per repository even when several checks ask at once.
        lock = self._catalog_locks.setdefault(repo_url, asyncio.Lock())
        async with lock:
            if repo_url in self._catalogs:
                return self._catalogs[repo_url]

            async with self._semaphore:
                catalog = await fetch_catalog(self.http_client, repo_url)
            self._catalogs[repo_url] = catalog
            return catalog

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    async def _check(self, dependency: Dependency) -> UpdateReport:
        repo_url = dependency.requirements[0].source.url
        catalog = await self.get_catalog(repo_url)

        comparisons = ComparisonSnapshot()
        branch_lookup: Optional[BranchContainmentLookup] = None
        if self.config.allow_clone:
            branch_lookup = self.branch_lookup_factory(repo_url)

        checker = UpdateChecker(
            dependency,
            catalog,
            ignored_versions=self.config.ignored_versions_for(dependency.name),
            raise_on_ignored=self.config.raise_on_ignored,
            release_comparator=comparisons,
            branch_lookup=branch_lookup,
        )

        pin = checker.current_pin
        if pin.kind is PinKind.COMMIT:
            release = checker.resolver.latest_release()
            if release is not None:
                comparison = await fetch_comparison(
                    self.http_client,
                    checker.driving_requirement.source.url,
                    release.name,
                    pin.ref,
                )
                comparisons.add(release.name, pin.ref, comparison)

        return await asyncio.to_thread(self._evaluate, checker)

    @staticmethod
    def _evaluate(checker: UpdateChecker) -> UpdateReport:
        pin = checker.current_pin
        can_update = checker.can_update()
        latest = checker.latest_version()
        updated = checker.updated_requirements()

        driving = checker.driving_requirement
        new_ref: Optional[str] = None
        for old, new in zip(checker.dependency.requirements, updated):
            if old is driving:
                new_ref = new.ref
                break

        update_type: Optional[str] = None
        target = checker.resolved_target()
        if can_update and pin.kind is PinKind.VERSION and target is not None:
            update_type = get_update_type(pin.version, target.version)

        return UpdateReport(
            name=checker.dependency.name,
            current_ref=pin.ref,
            pin_kind=pin.kind.value,
            latest_version=latest,
            new_ref=new_ref,
            can_update=can_update,
            update_type=update_type,
            requirements=list(checker.dependency.requirements),
            updated_requirements=updated,
        )


def _first_ref(dependency: Dependency) -> Optional[str]:
    if not dependency.requirements:
        return None
    return dependency.requirements[0].ref
