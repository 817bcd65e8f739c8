"""
Shared context object for actionkeeper CLI commands.

One :class:`ActionKeeperContext` is created per invocation by the root
command and handed to subcommands through Click's context mechanism.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import click

from actionkeeper.config import ActionKeeperConfig


class ActionKeeperContext:
    """Global options and loaded configuration for one CLI run.

    Attributes:
        config_path: Path of the configuration file in use, if any.
        config: Loaded configuration (defaults when no file was found).
        verbose: Verbosity level (0=WARNING, 1=INFO, 2+=DEBUG).
        color: Whether colored terminal output is enabled.
    """

    __slots__ = ("config_path", "config", "verbose", "color")

    def __init__(self) -> None:
        self.config_path: Optional[Path] = None
        self.config: ActionKeeperConfig = ActionKeeperConfig()
        self.verbose: int = 0
        self.color: bool = True


#: Click decorator injecting :class:`ActionKeeperContext` into commands.
pass_context = click.make_pass_decorator(ActionKeeperContext, ensure=True)
