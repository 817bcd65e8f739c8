"""
Command-line interface for actionkeeper.

This module provides the main CLI entry point and handles global options,
configuration loading, and command registration.
"""

from __future__ import annotations

import os
import sys
import logging
from pathlib import Path
from typing import Optional

import click

from actionkeeper.config import load_config
from actionkeeper.__version__ import __version__
from actionkeeper.context import ActionKeeperContext
from actionkeeper.exceptions import ActionKeeperError, ConfigError
from actionkeeper.commands.check import check
from actionkeeper.utils.logger import get_logger, setup_logging, verbosity_to_level
from actionkeeper.utils.console import print_error, print_warning, reconfigure_console

logger = get_logger("cli")


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.option(
    "--config",
    "-c",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Path to configuration file.",
    envvar="ACTIONKEEPER_CONFIG",
)
@click.option(
    "--verbose",
    "-v",
    count=True,
    help="Increase verbosity (can be repeated: -v, -vv).",
)
@click.option(
    "--color/--no-color",
    default=True,
    help="Enable or disable colored output.",
    envvar="ACTIONKEEPER_COLOR",
)
@click.version_option(
    version=__version__,
    prog_name="actionkeeper",
    message="%(prog)s %(version)s",
)
@click.pass_context
def cli(
    ctx: click.Context,
    config: Optional[Path],
    verbose: int,
    color: bool,
) -> None:
    """actionkeeper: keep GitHub Actions pins up to date.

    \b
    Available commands:
      actionkeeper check           Check workflow actions for updates

    \b
    Examples:
      actionkeeper check
      actionkeeper check .github/workflows/ci.yml
      actionkeeper -vv check --format json

    Use ``actionkeeper COMMAND --help`` for command-specific options.
    """
    # Respect NO_COLOR for downstream libraries and our own console
    if color:
        os.environ.pop("NO_COLOR", None)
    else:
        os.environ["NO_COLOR"] = "1"
    reconfigure_console()

    level = verbosity_to_level(verbose)
    setup_logging(level=level, verbose=verbose >= 2)
    logger.debug("Logging initialized at %s level", logging.getLevelName(level))

    try:
        loaded_config = load_config(config)
    except ConfigError as exc:
        print_error(str(exc))
        raise SystemExit(1) from exc

    ak_ctx = ActionKeeperContext()
    ak_ctx.config_path = config or loaded_config.source_path
    ak_ctx.config = loaded_config
    ak_ctx.color = color
    ak_ctx.verbose = verbose
    ctx.obj = ak_ctx

    logger.debug("actionkeeper v%s", __version__)
    logger.debug("Config path: %s", ak_ctx.config_path)
    if loaded_config.source_path:
        logger.debug("Loaded configuration: %s", loaded_config.to_log_dict())


cli.add_command(check)


def main() -> int:
    """Main entry point for the actionkeeper CLI.

    Returns:
        Exit code:
            0   Success, nothing to update
            1   Updates available, or an application error
            2   Usage error (Click)
            130 Interrupted by user (Ctrl+C)
    """
    try:
        cli(standalone_mode=False)
        return 0

    except click.ClickException as exc:
        exc.show()
        return exc.exit_code

    except click.exceptions.Exit as exc:
        return exc.exit_code

    except SystemExit as exc:
        code = exc.code
        return code if isinstance(code, int) else 1

    except ActionKeeperError as exc:
        print_error(str(exc))
        logger.debug("ActionKeeperError details: %s", exc.details or "<none>", exc_info=True)
        return 1

    except (KeyboardInterrupt, click.Abort):
        print_warning("\nOperation cancelled by user")
        return 130

    except Exception as exc:
        print_error(f"Unexpected error: {exc}")
        logger.exception("Unhandled exception in CLI")
        return 1


if __name__ == "__main__":
    sys.exit(main())
