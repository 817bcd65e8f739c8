"""
Dependency data model for actionkeeper.

A dependency is one action (``actions/checkout``) together with every
declaration of it found in a repository's workflow files.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple

from actionkeeper.constants import PACKAGE_MANAGER
from actionkeeper.models.requirement import Requirement


@dataclass(frozen=True)
class Dependency:
    """
    An action and all of its declarations.

    Attributes:
        name: Action name, ``owner/repo``.
        requirements: Every declaration of the action, in file order.
        version: Current version: the normalized version for version
            pins, the commit for SHA pins, otherwise ``None``.
        current_commit: Commit the current tag pointed at when last
            resolved, if known. Used to detect tags that were moved.
        package_manager: Ecosystem tag.
    """

    name: str
    requirements: Tuple[Requirement, ...]
    version: Optional[str] = None
    current_commit: Optional[str] = None
    package_manager: str = PACKAGE_MANAGER

    def __post_init__(self) -> None:
        # Accept any sequence but store an immutable tuple
        object.__setattr__(self, "requirements", tuple(self.requirements))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "version": self.version,
            "package_manager": self.package_manager,
            "requirements": [req.to_dict() for req in self.requirements],
        }
