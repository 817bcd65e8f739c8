"""
Requirement data model for actionkeeper.

This module defines the structured representation of a single declaration
of an action inside a workflow file (``uses: actions/checkout@v4``). The
field names and nesting match the dictionary shape exchanged with the
workflow parser and the file patcher, see :meth:`Requirement.to_dict`.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any, Dict, Mapping, Optional, Tuple


@dataclass(frozen=True)
class GitSource:
    """
    Where a declaration points: a git repository and a pinned reference.

    Attributes:
        url: Repository URL (``https://github.com/actions/checkout``).
        ref: The pinned reference as written: tag, branch, or full/short SHA.
        branch: Branch the reference is tracked on, if declared.
        type: Source type; always ``"git"`` for actions.
    """

    url: str
    ref: str
    branch: Optional[str] = None
    type: str = "git"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.type,
            "url": self.url,
            "ref": self.ref,
            "branch": self.branch,
        }


@dataclass(frozen=True)
class Requirement:
    """
    A single declaration of a dependency in a workflow file.

    Requirements are immutable; rewriting a pin produces a new value via
    :meth:`with_ref`.

    Attributes:
        file: Path of the workflow file containing the declaration.
        source: The git source the declaration resolves to.
        requirement: Version requirement string; actions never carry one.
        groups: Dependency groups the declaration belongs to.
        metadata: Extra information, notably ``declaration_string``: the
            ``uses:`` value exactly as written.
    """

    file: str
    source: GitSource
    requirement: Optional[str] = None
    groups: Tuple[str, ...] = ()
    metadata: Mapping[str, Any] = field(default_factory=dict)

    @property
    def ref(self) -> str:
        """Shortcut for ``source.ref``."""
        return self.source.ref

    @property
    def declaration_string(self) -> Optional[str]:
        return self.metadata.get("declaration_string")

    def with_ref(self, ref: str) -> "Requirement":
        """Return a copy pinned to *ref*; everything else is untouched."""
        return replace(self, source=replace(self.source, ref=ref))

    def to_dict(self) -> Dict[str, Any]:
        """Render the wire shape used by the workflow parser and patcher."""
        return {
            "requirement": self.requirement,
            "groups": list(self.groups),
            "file": self.file,
            "source": self.source.to_dict(),
            "metadata": dict(self.metadata),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Requirement":
        """Build a requirement from its wire shape.

        Raises:
            KeyError: ``file`` or ``source`` (or its ``url``/``ref``) is
                missing.
        """
        source = data["source"]
        return cls(
            file=data["file"],
            source=GitSource(
                url=source["url"],
                ref=source["ref"],
                branch=source.get("branch"),
                type=source.get("type", "git"),
            ),
            requirement=data.get("requirement"),
            groups=tuple(data.get("groups") or ()),
            metadata=dict(data.get("metadata") or {}),
        )

    def __str__(self) -> str:
        return self.declaration_string or f"{self.source.url}@{self.ref}"
