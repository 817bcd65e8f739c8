"""
actionkeeper: update checking for GitHub Actions dependencies.

actionkeeper finds the ``uses: owner/repo@ref`` declarations in workflow
files and works out, for each action, whether a newer version exists and
how every declaration should be re-pinned:

    • Version pins (``v2``, ``v2.1``, ``v2.1.3``) move to the newest tag of
      the same precision
    • Commit pins follow the latest release, or the branch they live on
    • Branch pins are reported but never rewritten
    • Ignore rules (``">= 3"``) fence off unwanted versions

The engine is importable on its own::

    from actionkeeper.core import ReferenceCatalog, UpdateChecker
"""

from __future__ import annotations

from actionkeeper.__version__ import __version__

__author__ = "actionkeeper Contributors"
__license__ = "Apache-2.0"
__description__ = "Update checking for GitHub Actions pins."

__all__ = [
    "__version__",
]
