"""
Executable module for actionkeeper.

Running:
    python -m actionkeeper

is equivalent to:
    actionkeeper
"""

from __future__ import annotations

import sys

from actionkeeper.cli import main

if __name__ == "__main__":
    sys.exit(main())
