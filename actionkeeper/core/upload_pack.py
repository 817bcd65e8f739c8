"""Reference listing through git's smart-HTTP advertisement.

A ``GET <url>.git/info/refs?service=git-upload-pack`` returns every ref of
a repository in pkt-line framing: each line is prefixed with its length as
four hex digits (the prefix included), and ``0000`` is a flush packet::

    001e# service=git-upload-pack
    0000
    0155<sha> HEAD\\0multi_ack ... symref=HEAD:refs/heads/main ...
    003f<sha> refs/heads/main
    003e<sha> refs/tags/v1.0.0
    0041<sha> refs/tags/v1.0.0^{}
    0000

Annotated tags are advertised twice; the ``^{}`` line carries the commit
the tag points at and replaces the tag object id.  The default branch is
read from the ``symref=HEAD:`` capability, or guessed from the branch
whose tip equals ``HEAD`` when the server omits it.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Tuple

from actionkeeper.constants import (
    BRANCH_REF_PREFIX,
    PEELED_SUFFIX,
    TAG_REF_PREFIX,
    UPLOAD_PACK_URL,
)
from actionkeeper.core.catalog import ReferenceCatalog
from actionkeeper.exceptions import ParseError
from actionkeeper.utils.http import HTTPClient
from actionkeeper.utils.logger import get_logger

logger = get_logger("upload_pack")

__all__ = [
    "advertisement_url",
    "iter_pkt_lines",
    "parse_advertisement",
    "catalog_from_advertisement",
    "fetch_catalog",
]

_SYMREF_HEAD = "symref=HEAD:"


def advertisement_url(repo_url: str) -> str:
    """Return the smart-HTTP reference advertisement URL for *repo_url*."""
    url = repo_url.rstrip("/")
    if url.endswith(".git"):
        url = url[: -len(".git")]
    return UPLOAD_PACK_URL.format(url=url)


def iter_pkt_lines(body: str) -> List[str]:
    """Split a pkt-line stream into its payloads.

    Flush packets are dropped and trailing newlines stripped.

    Raises:
        ParseError: A length prefix is not hexadecimal or overruns the body.
    """
    lines: List[str] = []
    pos = 0
    end = len(body)

    while pos < end:
        header = body[pos : pos + 4]
        try:
            length = int(header, 16)
        except ValueError:
            raise ParseError(
                f"Invalid pkt-line length prefix {header!r}",
                line_number=len(lines) + 1,
                line_content=body[pos : pos + 40],
            ) from None

        if length == 0:
            pos += 4
            continue

        if length < 4 or pos + length > end:
            raise ParseError(
                f"pkt-line length {length} overruns advertisement",
                line_number=len(lines) + 1,
                line_content=body[pos : pos + 40],
            )

        lines.append(body[pos + 4 : pos + length].rstrip("\n"))
        pos += length

    return lines


def parse_advertisement(body: str) -> Tuple[List[Dict[str, Any]], Optional[str]]:
    """Parse an upload-pack advertisement.

    Returns:
        ``(raw_refs, default_branch)`` where each raw ref is a
        ``{"name", "target_commit", "is_branch"}`` record, ready for
        :meth:`ReferenceCatalog.build`.
    """
    branches: Dict[str, str] = {}
    tags: Dict[str, str] = {}
    peeled: Dict[str, str] = {}
    head_commit: Optional[str] = None
    default_branch: Optional[str] = None

    for line in iter_pkt_lines(body):
        if line.startswith("#"):
            continue

        line, _, capabilities = line.partition("\0")
        for capability in capabilities.split():
            if capability.startswith(_SYMREF_HEAD + BRANCH_REF_PREFIX):
                default_branch = capability[len(_SYMREF_HEAD + BRANCH_REF_PREFIX) :]

        sha, _, refname = line.partition(" ")
        if not refname:
            continue

        if refname == "HEAD":
            head_commit = sha
        elif refname.startswith(BRANCH_REF_PREFIX):
            branches[refname[len(BRANCH_REF_PREFIX) :]] = sha
        elif refname.startswith(TAG_REF_PREFIX):
            name = refname[len(TAG_REF_PREFIX) :]
            if name.endswith(PEELED_SUFFIX):
                peeled[name[: -len(PEELED_SUFFIX)]] = sha
            else:
                tags[name] = sha

    if default_branch is None and head_commit is not None:
        at_head = sorted(name for name, sha in branches.items() if sha == head_commit)
        if at_head:
            default_branch = at_head[0]

    raw_refs: List[Dict[str, Any]] = [
        {"name": name, "target_commit": peeled.get(name, sha), "is_branch": False}
        for name, sha in tags.items()
    ]
    raw_refs.extend(
        {"name": name, "target_commit": sha, "is_branch": True}
        for name, sha in branches.items()
    )

    logger.debug(
        "Advertisement: %d tag(s) (%d peeled), %d branch(es), default=%s",
        len(tags),
        len(peeled),
        len(branches),
        default_branch,
    )
    return raw_refs, default_branch


def catalog_from_advertisement(body: str) -> ReferenceCatalog:
    """Parse an advertisement straight into a :class:`ReferenceCatalog`."""
    raw_refs, default_branch = parse_advertisement(body)
    return ReferenceCatalog.build(raw_refs, default_branch=default_branch)


async def fetch_catalog(client: HTTPClient, repo_url: str) -> ReferenceCatalog:
    """Fetch and parse the references advertised by *repo_url*.

    Raises:
        GitHubError: The repository does not exist.
        NetworkError: The advertisement could not be fetched.
        ParseError: The advertisement is malformed.
    """
    url = advertisement_url(repo_url)
    logger.debug("Listing references of %s", repo_url)
    body = await client.get_text(url)
    return catalog_from_advertisement(body)
