"""Rewriting of a dependency's declarations onto a resolved target.

Resolution works on one reference; this module applies the result to
*every* declaration of the dependency.  A dependency declared
inconsistently (``actions/checkout@v2.1.0`` in one workflow and
``actions/checkout@master`` in another) is normalized onto one pin, so the
same action never ends up with mismatched references after an update.

Rules:

* A branch target that is not upgradable leaves the declarations alone
  when all of them already follow that branch.
* Declarations the catalog classifies as commit pins receive the target's
  commit; a short SHA that abbreviates that commit is kept as written.
  A tag whose name happens to be hex (``20240101``) stays a tag pin.
* Every other declaration receives the target's literal reference.
* Only ``source.ref`` changes; ``file``, ``groups``, ``requirement`` and
  ``metadata`` are carried over.  Inputs are never modified.
"""

from __future__ import annotations

from typing import Iterable, List, Optional

from actionkeeper.core.catalog import ReferenceCatalog
from actionkeeper.models.reference import PinKind, ResolvedTarget
from actionkeeper.models.requirement import Requirement
from actionkeeper.utils.logger import get_logger
from actionkeeper.utils.version_utils import commit_matches

logger = get_logger("rewriter")

__all__ = ["RequirementRewriter", "rewrite"]


class RequirementRewriter:
    """Apply a resolved target to a list of declarations.

    Args:
        url: Source URL of the dependency being rewritten.  Declarations
            pointing elsewhere are passed through unchanged.  ``None``
            rewrites every declaration.
        catalog: References of the dependency repository, used to classify
            each declaration's pin.  Without one, only hex references are
            treated as commits.
    """

    def __init__(
        self,
        url: Optional[str] = None,
        catalog: Optional[ReferenceCatalog] = None,
    ) -> None:
        self.url = url
        self.catalog = catalog if catalog is not None else ReferenceCatalog.build([])

    def rewrite(
        self,
        requirements: Iterable[Requirement],
        resolved: Optional[ResolvedTarget],
    ) -> List[Requirement]:
        """Return the declarations re-pinned to *resolved*."""
        requirements = list(requirements)

        if resolved is None:
            return requirements

        in_scope = [req for req in requirements if self._in_scope(req)]

        if not resolved.upgradable and all(req.ref == resolved.name for req in in_scope):
            logger.debug("All declarations follow branch %s; unchanged", resolved.name)
            return requirements

        updated: List[Requirement] = []
        for req in requirements:
            if not self._in_scope(req):
                updated.append(req)
                continue

            new_ref = self._new_ref(req, resolved)
            if new_ref == req.ref:
                updated.append(req)
            else:
                logger.debug("%s: %s -> %s", req.file, req.ref, new_ref)
                updated.append(req.with_ref(new_ref))

        return updated

    def _in_scope(self, req: Requirement) -> bool:
        return self.url is None or req.source.url == self.url

    def _new_ref(self, req: Requirement, resolved: ResolvedTarget) -> str:
        current = req.ref
        if self.catalog.classify_pin(current).kind is PinKind.COMMIT:
            if commit_matches(current, resolved.commit):
                return current
            return resolved.commit
        return resolved.ref


def rewrite(
    requirements: Iterable[Requirement],
    resolved: Optional[ResolvedTarget],
    *,
    url: Optional[str] = None,
    catalog: Optional[ReferenceCatalog] = None,
) -> List[Requirement]:
    """Functional shortcut for :meth:`RequirementRewriter.rewrite`."""
    return RequirementRewriter(url, catalog).rewrite(requirements, resolved)
