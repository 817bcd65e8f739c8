"""Unit tests for actionkeeper.core.workflow_parser module.

Test Coverage:
- ``uses:`` value parsing (actions, sub-path actions, reusable workflows)
- Skipping local, docker and unpinned references
- Step, job-level and composite action declarations
- Line tracking and metadata
- Grouping declarations into dependencies
- Invalid YAML handling
"""

from __future__ import annotations

from pathlib import Path

import pytest

from actionkeeper.core.workflow_parser import WorkflowParser, parse_uses
from actionkeeper.exceptions import FileOperationError, ParseError

CI_WORKFLOW = """\
name: CI
on: [push, pull_request]
jobs:
  test:
    runs-on: ubuntu-latest
    steps:
      - uses: actions/checkout@v3
      - uses: actions/setup-node@v1.0.1
        with:
          node-version: 18
      - run: npm test
      - uses: ./.github/actions/local
      - uses: docker://alpine:3.18
  lint:
    runs-on: ubuntu-latest
    steps:
      - uses: actions/checkout@5273d0df9c603edc4284ac8402cf650b4f1f6686
      - uses: github/codeql-action/init@v2
  release:
    uses: octo-org/workflows/.github/workflows/release.yml@main
"""

COMPOSITE_ACTION = """\
name: Setup
runs:
  using: composite
  steps:
    - uses: actions/cache@v4
    - run: echo done
      shell: bash
"""


@pytest.mark.unit
class TestParseUses:
    """Tests for parse_uses."""

    def test_plain_action(self) -> None:
        action = parse_uses("actions/checkout@v3")

        assert action is not None
        assert action.name == "actions/checkout"
        assert action.url == "https://github.com/actions/checkout"
        assert action.ref == "v3"
        assert action.path is None

    def test_sub_path_action(self) -> None:
        action = parse_uses("github/codeql-action/init@v2")

        assert action is not None
        assert action.name == "github/codeql-action"
        assert action.path == "init"

    def test_reusable_workflow(self) -> None:
        action = parse_uses("octo-org/workflows/.github/workflows/release.yml@main")

        assert action is not None
        assert action.name == "octo-org/workflows"
        assert action.path == ".github/workflows/release.yml"
        assert action.ref == "main"

    @pytest.mark.parametrize(
        "uses",
        [
            "./.github/actions/local",
            "../shared/action",
            "docker://alpine:3.18",
            "actions/checkout",
            "actions/checkout@",
            "checkout@v3",
            "   ",
        ],
    )
    def test_skipped(self, uses: str) -> None:
        assert parse_uses(uses) is None

    def test_whitespace_trimmed(self) -> None:
        action = parse_uses("  actions/checkout@v3 ")

        assert action is not None
        assert action.declaration == "actions/checkout@v3"


@pytest.mark.unit
class TestParseString:
    """Tests for WorkflowParser.parse_string."""

    def test_collects_remote_declarations(self) -> None:
        requirements = WorkflowParser().parse_string(CI_WORKFLOW, source_file_path="ci.yml")

        assert [req.declaration_string for req in requirements] == [
            "actions/checkout@v3",
            "actions/setup-node@v1.0.1",
            "actions/checkout@5273d0df9c603edc4284ac8402cf650b4f1f6686",
            "github/codeql-action/init@v2",
            "octo-org/workflows/.github/workflows/release.yml@main",
        ]
        assert all(req.file == "ci.yml" for req in requirements)

    def test_metadata(self) -> None:
        requirements = WorkflowParser().parse_string(CI_WORKFLOW)

        checkout = requirements[0]
        assert checkout.metadata["name"] == "actions/checkout"
        assert checkout.metadata["line"] == 7
        assert checkout.source.url == "https://github.com/actions/checkout"
        assert checkout.ref == "v3"
        assert requirements[3].metadata["path"] == "init"

    def test_composite_action(self) -> None:
        requirements = WorkflowParser().parse_string(COMPOSITE_ACTION, source_file_path="action.yml")

        assert [req.ref for req in requirements] == ["v4"]
        assert requirements[0].metadata["name"] == "actions/cache"

    def test_empty_document(self) -> None:
        assert WorkflowParser().parse_string("") == []

    def test_document_without_jobs(self) -> None:
        assert WorkflowParser().parse_string("name: nothing\non: push\n") == []

    def test_invalid_yaml(self) -> None:
        with pytest.raises(ParseError) as exc_info:
            WorkflowParser().parse_string("jobs: [unclosed\n", source_file_path="bad.yml")

        assert exc_info.value.file_path == "bad.yml"
        assert exc_info.value.line_number is not None

    def test_non_mapping_document(self) -> None:
        with pytest.raises(ParseError, match="not a YAML mapping"):
            WorkflowParser().parse_string("- just\n- a list\n")


@pytest.mark.unit
class TestGrouping:
    """Tests for grouping declarations into dependencies."""

    def test_grouped_in_first_seen_order(self) -> None:
        parser = WorkflowParser()
        dependencies = parser.group(parser.parse_string(CI_WORKFLOW))

        assert [dep.name for dep in dependencies] == [
            "actions/checkout",
            "actions/setup-node",
            "github/codeql-action",
            "octo-org/workflows",
        ]
        checkout = dependencies[0]
        assert [req.ref for req in checkout.requirements] == [
            "v3",
            "5273d0df9c603edc4284ac8402cf650b4f1f6686",
        ]
        assert checkout.version == "3"

    def test_version_falls_back_to_commit(self) -> None:
        parser = WorkflowParser()
        content = "jobs:\n  a:\n    steps:\n      - uses: actions/checkout@5273d0d\n"

        (dependency,) = parser.group(parser.parse_string(content))

        assert dependency.version == "5273d0d"

    def test_branch_only_has_no_version(self) -> None:
        parser = WorkflowParser()
        content = "jobs:\n  a:\n    uses: octo-org/workflows/.github/workflows/x.yml@main\n"

        (dependency,) = parser.group(parser.parse_string(content))

        assert dependency.version is None


@pytest.mark.unit
class TestParsePaths:
    """Tests for file-based parsing."""

    def test_parse_paths_groups_across_files(self, tmp_path: Path) -> None:
        ci = tmp_path / "ci.yml"
        ci.write_text(CI_WORKFLOW, encoding="utf-8")
        release = tmp_path / "release.yml"
        release.write_text(
            "jobs:\n  publish:\n    steps:\n      - uses: actions/checkout@v4\n",
            encoding="utf-8",
        )

        dependencies = WorkflowParser().parse_paths([ci, release])

        checkout = dependencies[0]
        assert [req.ref for req in checkout.requirements][-1] == "v4"
        assert checkout.requirements[-1].file == str(release)

    def test_invalid_file_skipped(self, tmp_path: Path) -> None:
        bad = tmp_path / "bad.yml"
        bad.write_text("jobs: [unclosed\n", encoding="utf-8")
        good = tmp_path / "good.yml"
        good.write_text(COMPOSITE_ACTION, encoding="utf-8")

        dependencies = WorkflowParser().parse_paths([bad, good])

        assert [dep.name for dep in dependencies] == ["actions/cache"]

    def test_invalid_file_raises_when_strict(self, tmp_path: Path) -> None:
        bad = tmp_path / "bad.yml"
        bad.write_text("jobs: [unclosed\n", encoding="utf-8")

        with pytest.raises(ParseError):
            WorkflowParser().parse_paths([bad], skip_invalid=False)

    def test_missing_file_raises_when_strict(self, tmp_path: Path) -> None:
        with pytest.raises(FileOperationError):
            WorkflowParser().parse_paths([tmp_path / "missing.yml"], skip_invalid=False)
