from __future__ import annotations

from typing import Any, Dict, List

import pytest

from actionkeeper.core.catalog import ReferenceCatalog
from tests.helpers import build_catalog, setup_node_refs


@pytest.fixture
def raw_refs() -> List[Dict[str, Any]]:
    """Raw references of the modelled action repository."""
    return setup_node_refs()


@pytest.fixture
def catalog(raw_refs: List[Dict[str, Any]]) -> ReferenceCatalog:
    """Catalog of the modelled action repository, default branch ``master``."""
    return build_catalog(raw_refs)
