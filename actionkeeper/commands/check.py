"""Check command implementation for actionkeeper.

Scans workflow files for ``uses:`` declarations, resolves the latest
version of every action and reports which pins can be moved.

The command wires three pieces together:

1. **WorkflowParser**: collects the declarations and groups them into one
   dependency per action.
2. **UpdateService**: fetches each repository's references (and, for
   commit pins, the comparison with the latest release) concurrently.
3. **UpdateChecker**: decides the target and rewrites every declaration.

Typical usage::

    # Check .github/workflows in the current repository
    $ actionkeeper check

    # A single workflow, only actions with updates
    $ actionkeeper check .github/workflows/ci.yml --outdated-only

    # Machine-readable output, never clone
    $ actionkeeper check --format json --no-clone
"""

from __future__ import annotations

import sys
import json
import click
import asyncio
from pathlib import Path
from typing import Dict, List

from actionkeeper.context import ActionKeeperContext, pass_context
from actionkeeper.core import UpdateService, WorkflowParser, github_token
from actionkeeper.exceptions import ActionKeeperError
from actionkeeper.models import UpdateReport
from actionkeeper.utils import (
    HTTPClient,
    colorize_status,
    colorize_update_type,
    find_workflow_files,
    format_ref,
    get_logger,
    get_raw_console,
    print_error,
    print_success,
    print_table,
    print_warning,
)

logger = get_logger("commands.check")

_TABLE_HEADERS = ["Status", "Action", "Current", "Latest", "New pin", "Update Type"]


@click.command()
@click.argument(
    "path",
    type=click.Path(exists=True, path_type=Path),
    default=".",
)
@click.option(
    "--outdated-only",
    is_flag=True,
    help="Show only actions with available updates.",
)
@click.option(
    "--format",
    "-f",
    type=click.Choice(["table", "simple", "json"], case_sensitive=False),
    default="table",
    help="Output format.",
)
@click.option(
    "--raise-on-ignored/--no-raise-on-ignored",
    default=None,
    help="Report actions whose every newer version is ignored as errors.",
)
@click.option(
    "--clone/--no-clone",
    "allow_clone",
    default=None,
    help="Allow cloning repositories to locate commit pins on a branch.",
)
@click.option(
    "--recursive",
    "-r",
    is_flag=True,
    help="Search sub-directories for workflow files.",
)
@pass_context
def check(
    ctx: ActionKeeperContext,
    path: Path,
    outdated_only: bool,
    format: str,
    raise_on_ignored: bool,
    allow_clone: bool,
    recursive: bool,
) -> None:
    """Check workflow files for action updates.

    PATH is a workflow file, a workflows directory, or a repository root
    (its ``.github/workflows`` is scanned). Defaults to the current
    directory.

    Exits with status 1 when at least one action can be updated or a
    check failed, 0 otherwise.
    """
    config = ctx.config
    if raise_on_ignored is not None:
        config.raise_on_ignored = raise_on_ignored
    if allow_clone is not None:
        config.allow_clone = allow_clone

    try:
        needs_action = asyncio.run(
            _check_async(ctx, path, outdated_only, format.lower(), recursive)
        )
    except ActionKeeperError as exc:
        print_error(str(exc))
        sys.exit(1)

    sys.exit(1 if needs_action else 0)


async def _check_async(
    ctx: ActionKeeperContext,
    path: Path,
    outdated_only: bool,
    format: str,
    recursive: bool,
) -> bool:
    """Run the check; True when updates are available or a check failed."""
    show_progress = format == "table" or ctx.verbose > 0

    files = find_workflow_files(path, recursive=recursive)
    if not files:
        if show_progress:
            print_warning(f"No workflow files found in {path}")
        return False

    logger.info("Scanning %d workflow file(s)", len(files))
    dependencies = WorkflowParser().parse_paths(files)
    if not dependencies:
        if show_progress:
            print_warning("No action references found")
        return False

    logger.info("Found %d action(s)", len(dependencies))

    async with HTTPClient(api_token=github_token()) as http:
        service = UpdateService(http, config=ctx.config)
        reports = await service.check_dependencies(dependencies)

    outdated = sum(1 for r in reports if r.can_update)
    failed = sum(1 for r in reports if r.error is not None)

    shown = [r for r in reports if r.can_update or r.error] if outdated_only else reports

    if format == "json":
        _display_json(shown)
    elif shown:
        if format == "table":
            _display_table(shown)
        else:
            _display_simple(shown)

    if show_progress:
        if outdated:
            print_warning(f"\n{outdated} action(s) have updates available")
        if failed:
            print_error(f"{failed} action(s) could not be checked")
        if not outdated and not failed:
            print_success("\nAll actions are up to date!")

    return bool(outdated or failed)


# ---------------------------------------------------------------------------
# Renderers
# ---------------------------------------------------------------------------


def _table_row(report: UpdateReport) -> Dict[str, str]:
    return {
        "Status": colorize_status(report.status),
        "Action": report.name,
        "Current": format_ref(report.current_ref),
        "Latest": (
            f"[red]{report.error}[/red]"
            if report.error
            else format_ref(report.latest_version)
        ),
        "New pin": format_ref(report.new_ref) if report.can_update else "[dim]-[/dim]",
        "Update Type": colorize_update_type(report.update_type),
    }


def _display_table(reports: List[UpdateReport]) -> None:
    print_table(
        [_table_row(r) for r in reports],
        headers=_TABLE_HEADERS,
        title="Action Status",
        no_wrap=["Status", "Action"],
    )


def _display_simple(reports: List[UpdateReport]) -> None:
    """One line per action, followed by the files that would change."""
    console = get_raw_console()

    for report in reports:
        current = report.current_ref or "-"
        if report.error:
            console.print(f"[{report.status}] {report.name:30} {current:12} ({report.error})", markup=False)
            continue

        target = report.new_ref if report.can_update else report.latest_version or "-"
        console.print(f"[{report.status}] {report.name:30} {current:12} -> {target}", markup=False)

        for req in report.changed_requirements:
            console.print(f"       {req.file}: {req.source.ref}", markup=False)


def _display_json(reports: List[UpdateReport]) -> None:
    print(json.dumps([r.to_json() for r in reports], indent=2))
