"""Branch containment through a local clone.

Neither the reference advertisement nor the compare API tells which
branches contain an arbitrary commit, so this lookup clones the
repository into a temporary directory and asks git::

    git clone --no-recurse-submodules <url> repo
    git branch --remotes --contains <sha>

whose output looks like::

      origin/HEAD -> origin/main
      origin/3.3-stable
      origin/main

The ``HEAD ->`` line names the default branch; the remote prefix is
stripped from every name.  The clone is removed when the lookup returns,
whether it succeeded or not.
"""

from __future__ import annotations

import os
import subprocess
import tempfile
from pathlib import Path
from typing import Dict, List, Optional, Sequence

from actionkeeper.constants import CLONE_REMOTE, GIT_COMMAND_TIMEOUT
from actionkeeper.exceptions import GitError
from actionkeeper.models.reference import BranchContainment
from actionkeeper.utils.logger import get_logger

logger = get_logger("branches")

__all__ = ["LocalBranchLookup", "parse_remote_branches"]

_HEAD_POINTER = "HEAD -> "


def parse_remote_branches(output: str, remote: str = CLONE_REMOTE) -> BranchContainment:
    """Parse ``git branch --remotes --contains`` output."""
    prefix = f"{remote}/"
    branches: List[str] = []
    default_branch: Optional[str] = None

    for raw in output.splitlines():
        line = raw.strip().lstrip("* ")
        if not line:
            continue

        if _HEAD_POINTER in line:
            target = line.split(_HEAD_POINTER, 1)[1].strip()
            default_branch = target[len(prefix) :] if target.startswith(prefix) else target
            continue

        name = line[len(prefix) :] if line.startswith(prefix) else line
        if name not in branches:
            branches.append(name)

    return BranchContainment(branches=tuple(branches), default_branch=default_branch)


class LocalBranchLookup:
    """Branch-containment lookup backed by a throwaway clone.

    Results are cached per commit for the lifetime of the instance.

    Args:
        repo_url: URL to clone.
        timeout: Seconds allowed for each git command.
        git: Git executable.
    """

    def __init__(
        self,
        repo_url: str,
        *,
        timeout: int = GIT_COMMAND_TIMEOUT,
        git: str = "git",
    ) -> None:
        self.repo_url = repo_url
        self.timeout = timeout
        self.git = git
        self._cache: Dict[str, BranchContainment] = {}

    def branches_containing(self, commit: str) -> BranchContainment:
        """List the remote branches whose history contains *commit*.

        Raises:
            GitError: git is missing, the clone fails, or the commit is
                unknown to the repository.
        """
        cached = self._cache.get(commit)
        if cached is not None:
            return cached

        with tempfile.TemporaryDirectory(prefix="actionkeeper-") as tmp:
            checkout = Path(tmp) / "repo"
            logger.info("Cloning %s to locate %s", self.repo_url, commit)
            self._run(
                ["clone", "--no-recurse-submodules", self.repo_url, str(checkout)],
                cwd=tmp,
            )
            output = self._run(["branch", "--remotes", "--contains", commit], cwd=str(checkout))

        containment = parse_remote_branches(output)
        logger.debug(
            "%s is contained in %s (default %s)",
            commit,
            ", ".join(containment.branches) or "no branch",
            containment.default_branch,
        )
        self._cache[commit] = containment
        return containment

    def _run(self, args: Sequence[str], cwd: str) -> str:
        cmd = [self.git, *args]
        display = " ".join(cmd)
        env = dict(os.environ, GIT_TERMINAL_PROMPT="0")

        try:
            result = subprocess.run(
                cmd,
                cwd=cwd,
                capture_output=True,
                text=True,
                timeout=self.timeout,
                env=env,
            )
        except FileNotFoundError as exc:
            raise GitError(f"git executable not found: {self.git}", command=display) from exc
        except subprocess.TimeoutExpired as exc:
            raise GitError(
                f"git command timed out after {self.timeout}s",
                command=display,
            ) from exc

        if result.returncode != 0:
            raise GitError(
                f"git command failed: {display}",
                command=display,
                returncode=result.returncode,
                stderr=result.stderr,
            )

        return result.stdout
