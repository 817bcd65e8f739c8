"""Workflow scanner for GitHub Actions ``uses:`` declarations.

Finds every remote action reference in workflow files and composite
action metadata:

- step actions (``jobs.<id>.steps[*].uses``);
- reusable workflows (``jobs.<id>.uses``);
- composite action steps (``runs.steps[*].uses`` in ``action.yml``).

Local (``./path``) and container (``docker://image``) references carry no
git ref and are skipped, as are references without ``@ref``.

Declarations are grouped into one :class:`Dependency` per action
(``owner/repo``), so an action used in several places is checked once and
all of its declarations are rewritten together.

Typical usage::

    parser = WorkflowParser()
    dependencies = parser.parse_paths(find_workflow_files("."))
    for dep in dependencies:
        print(dep.name, [req.ref for req in dep.requirements])
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Tuple, Union

import yaml

from actionkeeper.constants import GITHUB_URL
from actionkeeper.exceptions import FileOperationError, ParseError
from actionkeeper.models.dependency import Dependency
from actionkeeper.models.requirement import GitSource, Requirement
from actionkeeper.utils.filesystem import safe_read_file
from actionkeeper.utils.logger import get_logger
from actionkeeper.utils.version_utils import classify, looks_like_commit_sha

logger = get_logger("workflow_parser")

__all__ = ["ActionReference", "WorkflowParser", "parse_uses"]

_LINE_KEY = "__line__"


class _LineLoader(yaml.SafeLoader):
    """Safe loader recording the start line of every mapping."""


def _construct_mapping(loader: _LineLoader, node: yaml.MappingNode) -> Dict[Any, Any]:
    mapping: Dict[Any, Any] = loader.construct_mapping(node, deep=True)
    mapping[_LINE_KEY] = node.start_mark.line + 1
    return mapping


_LineLoader.add_constructor(
    yaml.resolver.BaseResolver.DEFAULT_MAPPING_TAG,
    _construct_mapping,
)


class ActionReference:
    """A parsed ``owner/repo[/path]@ref`` string."""

    __slots__ = ("owner", "repo", "path", "ref", "declaration")

    def __init__(self, owner: str, repo: str, path: Optional[str], ref: str, declaration: str):
        self.owner = owner
        self.repo = repo
        self.path = path
        self.ref = ref
        self.declaration = declaration

    @property
    def name(self) -> str:
        return f"{self.owner}/{self.repo}"

    @property
    def url(self) -> str:
        return f"{GITHUB_URL}/{self.owner}/{self.repo}"

    def __repr__(self) -> str:
        return f"ActionReference({self.declaration!r})"


def parse_uses(uses: str) -> Optional[ActionReference]:
    """Parse a ``uses:`` value; ``None`` for local, docker or unpinned ones."""
    value = uses.strip()
    if not value or value.startswith(("./", "../", "docker://")):
        return None

    if "@" not in value:
        logger.debug("Skipping action without ref: %s", value)
        return None

    action_path, ref = value.rsplit("@", 1)
    parts = [part for part in action_path.split("/") if part]
    if len(parts) < 2 or not ref:
        return None

    path = "/".join(parts[2:]) or None
    return ActionReference(parts[0], parts[1], path, ref, value)


class WorkflowParser:
    """Extract action dependencies from workflow YAML."""

    def parse_paths(
        self,
        paths: Iterable[Union[str, Path]],
        *,
        skip_invalid: bool = True,
    ) -> List[Dependency]:
        """Parse several files and group their declarations.

        Args:
            paths: Workflow or action metadata files.
            skip_invalid: Log and skip files that fail to parse instead of
                raising.

        Raises:
            ParseError: A file is not valid YAML (``skip_invalid=False``).
            FileOperationError: A file cannot be read (``skip_invalid=False``).
        """
        requirements: List[Requirement] = []
        for path in paths:
            try:
                requirements.extend(self.parse_file(path))
            except (ParseError, FileOperationError) as exc:
                if not skip_invalid:
                    raise
                logger.warning("Skipping %s: %s", path, exc)

        return self.group(requirements)

    def parse_file(self, file_path: Union[str, Path]) -> List[Requirement]:
        """Return every remote action declaration in one file."""
        content = safe_read_file(file_path)
        return self.parse_string(content, source_file_path=str(file_path))

    def parse_string(self, content: str, source_file_path: str = "<string>") -> List[Requirement]:
        """Return every remote action declaration in YAML *content*."""
        try:
            document = yaml.load(content, Loader=_LineLoader)  # noqa: S506
        except yaml.YAMLError as exc:
            mark = getattr(exc, "problem_mark", None)
            raise ParseError(
                f"Invalid YAML: {getattr(exc, 'problem', None) or exc}",
                line_number=mark.line + 1 if mark is not None else None,
                file_path=source_file_path,
            ) from exc

        if document is None:
            return []
        if not isinstance(document, dict):
            raise ParseError(
                "Workflow file is not a YAML mapping",
                file_path=source_file_path,
            )

        found: List[Requirement] = []
        for uses, line in self._iter_uses(document):
            action = parse_uses(uses)
            if action is None:
                continue
            found.append(self._requirement(action, source_file_path, line))

        logger.debug("%s: %d action declaration(s)", source_file_path, len(found))
        return found

    @staticmethod
    def group(requirements: Iterable[Requirement]) -> List[Dependency]:
        """Group declarations into one dependency per action, in first-seen order."""
        grouped: Dict[Tuple[str, str], List[Requirement]] = {}
        for req in requirements:
            key = (req.metadata.get("name", ""), req.source.url)
            grouped.setdefault(key, []).append(req)

        return [
            Dependency(name=name, requirements=tuple(reqs), version=_current_version(reqs))
            for (name, _url), reqs in grouped.items()
        ]

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _iter_uses(self, document: Dict[Any, Any]) -> List[Tuple[str, Optional[int]]]:
        found: List[Tuple[str, Optional[int]]] = []

        jobs = document.get("jobs")
        if isinstance(jobs, dict):
            for job_id, job in jobs.items():
                if job_id == _LINE_KEY or not isinstance(job, dict):
                    continue
                if isinstance(job.get("uses"), str):
                    found.append((job["uses"], job.get(_LINE_KEY)))
                found.extend(self._steps_uses(job.get("steps")))

        runs = document.get("runs")
        if isinstance(runs, dict):
            found.extend(self._steps_uses(runs.get("steps")))

        return found

    @staticmethod
    def _steps_uses(steps: Any) -> List[Tuple[str, Optional[int]]]:
        if not isinstance(steps, list):
            return []
        return [
            (step["uses"], step.get(_LINE_KEY))
            for step in steps
            if isinstance(step, dict) and isinstance(step.get("uses"), str)
        ]

    @staticmethod
    def _requirement(action: ActionReference, file_path: str, line: Optional[int]) -> Requirement:
        metadata: Dict[str, Any] = {
            "declaration_string": action.declaration,
            "name": action.name,
        }
        if action.path:
            metadata["path"] = action.path
        if line is not None:
            metadata["line"] = line

        return Requirement(
            file=file_path,
            source=GitSource(url=action.url, ref=action.ref),
            metadata=metadata,
        )


def _current_version(requirements: List[Requirement]) -> Optional[str]:
    """Normalized version of the first version pin, else the first commit pin."""
    for req in requirements:
        version = classify(req.ref)
        if version is not None:
            return version.normalized
    for req in requirements:
        if looks_like_commit_sha(req.ref):
            return req.ref
    return None
