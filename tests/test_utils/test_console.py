from __future__ import annotations

import sys
from typing import Generator
from unittest.mock import patch

import pytest
from rich.console import Console

import actionkeeper.utils.console as console_module
from actionkeeper.utils.console import (
    ACTIONKEEPER_THEME,
    SHORT_SHA_LENGTH,
    _get_console,
    _should_use_color,
    colorize_status,
    colorize_update_type,
    format_ref,
    get_raw_console,
    print_error,
    print_success,
    print_table,
    print_warning,
    reconfigure_console,
)


@pytest.fixture(autouse=True)
def reset_console() -> Generator[None, None, None]:
    """Reset the console singleton before and after each test."""
    reconfigure_console()
    yield
    reconfigure_console()


@pytest.fixture
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("NO_COLOR", raising=False)
    monkeypatch.delenv("CI", raising=False)


@pytest.fixture
def recording_console() -> Generator[Console, None, None]:
    """Swap the singleton for a recording console without color."""
    console = Console(theme=ACTIONKEEPER_THEME, record=True, no_color=True, width=120)
    with patch.object(console_module, "_console", console):
        yield console


@pytest.mark.unit
class TestConsoleSetup:
    """Tests for color detection and the console singleton."""

    def test_theme_styles(self) -> None:
        for style in ("success", "error", "warning", "info", "dim", "sha"):
            assert style in ACTIONKEEPER_THEME.styles

    def test_color_on_tty(self, clean_env: None) -> None:
        with patch.object(sys.stdout, "isatty", return_value=True):
            assert _should_use_color() is True

    def test_no_color_off_tty(self, clean_env: None) -> None:
        with patch.object(sys.stdout, "isatty", return_value=False):
            assert _should_use_color() is False

    @pytest.mark.parametrize("var", ["NO_COLOR", "CI"])
    def test_env_disables_color(self, monkeypatch: pytest.MonkeyPatch, var: str) -> None:
        monkeypatch.setenv(var, "1")

        assert _should_use_color() is False

    def test_singleton(self) -> None:
        assert _get_console() is get_raw_console()

    def test_reconfigure_creates_new_console(self) -> None:
        first = _get_console()
        reconfigure_console()

        assert _get_console() is not first


@pytest.mark.unit
class TestPrintHelpers:
    """Tests for the status line printers and print_table."""

    def test_status_prefixes(self, recording_console: Console) -> None:
        print_success("done")
        print_warning("careful")
        print_error("broken")

        output = recording_console.export_text()
        assert "[OK] done" in output
        assert "[WARNING] careful" in output
        assert "[ERROR] broken" in output

    def test_print_table(self, recording_console: Console) -> None:
        print_table(
            [{"Action": "actions/checkout", "Current": "v3"}],
            headers=["Action", "Current"],
            title="Action Status",
        )

        output = recording_console.export_text()
        assert "Action Status" in output
        assert "actions/checkout" in output
        assert "v3" in output

    def test_empty_table_prints_nothing(self, recording_console: Console) -> None:
        print_table([], headers=["Action"])

        assert recording_console.export_text() == ""


@pytest.mark.unit
class TestMarkupHelpers:
    """Tests for format_ref and the colorizers."""

    def test_full_sha_shortened(self) -> None:
        sha = "5273d0df9c603edc4284ac8402cf650b4f1f6686"

        assert format_ref(sha) == f"[sha]{sha[:SHORT_SHA_LENGTH]}[/sha]"

    def test_short_sha_unchanged(self) -> None:
        assert format_ref("5273d0d") == "5273d0d"

    def test_tag_unchanged(self) -> None:
        assert format_ref("v1.1.0") == "v1.1.0"

    def test_missing_ref(self) -> None:
        assert format_ref(None) == "[dim]-[/dim]"

    @pytest.mark.parametrize(
        "status, color",
        [("outdated", "yellow"), ("latest", "green"), ("pinned", "cyan"), ("error", "red")],
    )
    def test_colorize_status(self, status: str, color: str) -> None:
        assert colorize_status(status) == f"[{color}]{status}[/{color}]"

    def test_unknown_status_unchanged(self) -> None:
        assert colorize_status("other") == "other"

    def test_colorize_update_type(self) -> None:
        assert colorize_update_type("major") == "[red]major[/red]"
        assert colorize_update_type("PATCH") == "[green]PATCH[/green]"
        assert colorize_update_type(None) == "[dim]-[/dim]"
        assert colorize_update_type("unknown") == "unknown"
