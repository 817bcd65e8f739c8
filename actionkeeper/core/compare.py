"""Release comparison through the GitHub "compare commits" API.

``GET /repos/{owner}/{repo}/compare/{release}...{commit}`` reports how the
pinned commit relates to a release tag:

=============  =====================================================
``status``     Relation
=============  =====================================================
``identical``  the commit *is* the release: ``BEHIND``
``behind``     the release contains the commit: ``BEHIND``
``ahead``      the commit is past the release: ``DIVERGED``
``diverged``   both have commits the other lacks: ``DIVERGED``
=============  =====================================================

A 404 (no common ancestor, or an unknown commit) and repositories not
hosted on GitHub are ``UNRELATED``.

The core resolvers are synchronous, so comparisons are fetched ahead of
time and handed over as a :class:`ComparisonSnapshot`.
"""

from __future__ import annotations

import os
from typing import Any, Dict, Mapping, Optional, Tuple
from urllib.parse import urlparse

from actionkeeper.constants import (
    GITHUB_API_ACCEPT,
    GITHUB_COMPARE_API,
    GITHUB_HOST,
    GITHUB_TOKEN_ENV_VARS,
)
from actionkeeper.exceptions import GitHubError
from actionkeeper.models.reference import ReleaseComparison, ReleaseRelation
from actionkeeper.utils.http import HTTPClient
from actionkeeper.utils.logger import get_logger

logger = get_logger("compare")

__all__ = [
    "ComparisonSnapshot",
    "fetch_comparison",
    "github_repository",
    "github_token",
    "relation_from_status",
]

_STATUS_RELATIONS: Dict[str, ReleaseRelation] = {
    "identical": ReleaseRelation.BEHIND,
    "behind": ReleaseRelation.BEHIND,
    "ahead": ReleaseRelation.DIVERGED,
    "diverged": ReleaseRelation.DIVERGED,
}

_UNRELATED = ReleaseComparison(relation=ReleaseRelation.UNRELATED)


def github_repository(repo_url: str) -> Optional[Tuple[str, str]]:
    """Return ``(owner, repo)`` for a github.com URL, else ``None``."""
    parsed = urlparse(repo_url)
    if parsed.hostname != GITHUB_HOST:
        return None

    parts = [part for part in parsed.path.split("/") if part]
    if len(parts) < 2:
        return None

    owner, repo = parts[0], parts[1]
    if repo.endswith(".git"):
        repo = repo[: -len(".git")]
    return owner, repo


def github_token(env: Optional[Mapping[str, str]] = None) -> Optional[str]:
    """GitHub API token from the environment, if one is set."""
    env = os.environ if env is None else env
    for name in GITHUB_TOKEN_ENV_VARS:
        value = env.get(name)
        if value:
            return value
    return None


def relation_from_status(status: Optional[str]) -> ReleaseRelation:
    """Map a compare API ``status`` onto a :class:`ReleaseRelation`."""
    if status is None:
        return ReleaseRelation.UNRELATED
    return _STATUS_RELATIONS.get(status, ReleaseRelation.UNRELATED)


async def fetch_comparison(
    client: HTTPClient,
    repo_url: str,
    release_tag: str,
    commit: str,
) -> ReleaseComparison:
    """Ask GitHub how *commit* relates to *release_tag*.

    Raises:
        NetworkError: The API could not be reached or refused the request
            for a reason other than "not found".
    """
    repository = github_repository(repo_url)
    if repository is None:
        logger.debug("%s is not hosted on GitHub; cannot compare", repo_url)
        return _UNRELATED

    owner, repo = repository
    url = GITHUB_COMPARE_API.format(owner=owner, repo=repo, base=release_tag, head=commit)

    try:
        data: Dict[str, Any] = await client.get_json(url, headers={"Accept": GITHUB_API_ACCEPT})
    except GitHubError:
        logger.debug("No common history between %s and %s in %s", release_tag, commit, repo_url)
        return _UNRELATED

    comparison = ReleaseComparison(
        relation=relation_from_status(data.get("status")),
        ahead_by=data.get("ahead_by"),
        behind_by=data.get("behind_by"),
    )
    logger.debug(
        "%s/%s: %s...%s is %s",
        owner,
        repo,
        release_tag,
        commit,
        data.get("status"),
    )
    return comparison


class ComparisonSnapshot:
    """Comparator answering from comparisons fetched in advance.

    Pairs that were not fetched are reported as ``UNRELATED``, which sends
    the commit pin down the branch-containment path.
    """

    def __init__(
        self,
        comparisons: Optional[Mapping[Tuple[str, str], ReleaseComparison]] = None,
    ) -> None:
        self._comparisons: Dict[Tuple[str, str], ReleaseComparison] = dict(comparisons or {})

    def add(self, release_tag: str, commit: str, comparison: ReleaseComparison) -> None:
        self._comparisons[(release_tag, commit)] = comparison

    def compare(self, release_tag: str, commit: str) -> ReleaseComparison:
        comparison = self._comparisons.get((release_tag, commit))
        if comparison is None:
            logger.debug("No comparison fetched for %s...%s", release_tag, commit)
            return _UNRELATED
        return comparison

    def __len__(self) -> int:
        return len(self._comparisons)
