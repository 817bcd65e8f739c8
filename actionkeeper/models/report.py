"""
Update report data model for actionkeeper.

An :class:`UpdateReport` is the outcome of checking one dependency: what it
is pinned to, what the latest version is, and how its declarations would
be rewritten. Reports are what the CLI renders and serializes.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from actionkeeper.models.requirement import Requirement


@dataclass
class UpdateReport:
    """
    Result of an update check for a single dependency.

    Attributes:
        name: Action name, ``owner/repo``.
        current_ref: Reference of the declaration driving the check.
        pin_kind: ``"version"``, ``"commit"``, ``"branch"`` or ``"alias"``.
        latest_version: Latest version (or commit), ``None`` if unknown.
        new_ref: Reference the driving declaration would move to.
        can_update: Whether an update is available.
        update_type: ``"major"``/``"minor"``/``"patch"`` for version pins.
        requirements: Current declarations.
        updated_requirements: Declarations after rewriting.
        error: Error message when the check failed.
    """

    name: str
    current_ref: Optional[str] = None
    pin_kind: Optional[str] = None
    latest_version: Optional[str] = None
    new_ref: Optional[str] = None
    can_update: bool = False
    update_type: Optional[str] = None
    requirements: List[Requirement] = field(default_factory=list)
    updated_requirements: List[Requirement] = field(default_factory=list)
    error: Optional[str] = None

    @classmethod
    def failed(cls, name: str, error: Exception, current_ref: Optional[str] = None) -> "UpdateReport":
        """Build the report of a check that raised *error*."""
        return cls(name=name, current_ref=current_ref, error=str(error))

    @property
    def status(self) -> str:
        """``error``, ``outdated``, ``pinned`` (branch or alias) or ``latest``."""
        if self.error is not None:
            return "error"
        if self.can_update:
            return "outdated"
        if self.pin_kind in ("branch", "alias"):
            return "pinned"
        return "latest"

    @property
    def changed_requirements(self) -> List[Requirement]:
        """Updated declarations whose reference differs from the current one."""
        return [
            new
            for old, new in zip(self.requirements, self.updated_requirements)
            if old.ref != new.ref
        ]

    def to_json(self) -> Dict[str, Any]:
        """Serialize to a JSON-compatible dictionary."""
        entry: Dict[str, Any] = {
            "name": self.name,
            "status": self.status,
            "current": self.current_ref,
        }

        if self.pin_kind:
            entry["pin"] = self.pin_kind
        if self.latest_version:
            entry["latest"] = self.latest_version
        if self.can_update:
            entry["new_ref"] = self.new_ref
            if self.update_type:
                entry["update_type"] = self.update_type
            entry["updated_requirements"] = [
                req.to_dict() for req in self.changed_requirements
            ]
        if self.error is not None:
            entry["error"] = self.error

        return entry

    def __str__(self) -> str:
        if self.error is not None:
            return f"{self.name}@{self.current_ref} (error: {self.error})"
        if self.can_update:
            return f"{self.name}@{self.current_ref} -> {self.new_ref}"
        return f"{self.name}@{self.current_ref} ({self.status})"
