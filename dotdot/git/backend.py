"""Git capability consumed by the reconciler.

The reconciler only talks to git through `GitBackend`, so its decision logic
can be exercised with an in-memory fake. `GitCli` is the production
implementation, shelling out to the `git` executable.
"""

from __future__ import annotations

from pathlib import Path
from typing import Protocol

from dotdot.core.result import Result
from dotdot.git.repository import GitError, Repository, clone_repository

__all__ = ["GitBackend", "GitCli"]


class GitBackend(Protocol):
    """Path-based git operations used by restore, pull, update and status."""

    def clone(self, url: str, dest: Path) -> Result[None, GitError]: ...

    def is_git_repo(self, path: Path) -> bool: ...

    def current_rev(self, path: Path) -> Result[str, GitError]: ...

    def current_branch(self, path: Path) -> Result[str, GitError]:
        """Branch name, or DETACHED_HEAD."""
        ...

    def is_dirty(self, path: Path) -> Result[bool, GitError]: ...

    def pull(self, path: Path) -> Result[str, GitError]: ...

    def checkout(self, path: Path, revision: str) -> Result[None, GitError]: ...


class GitCli:
    """GitBackend backed by the `git` command line."""

    def clone(self, url: str, dest: Path) -> Result[None, GitError]:
        return clone_repository(url, dest)

    def is_git_repo(self, path: Path) -> bool:
        return Repository(path).exists()

    def current_rev(self, path: Path) -> Result[str, GitError]:
        return Repository(path).current_rev()

    def current_branch(self, path: Path) -> Result[str, GitError]:
        return Repository(path).current_branch()

    def is_dirty(self, path: Path) -> Result[bool, GitError]:
        return Repository(path).is_dirty()

    def pull(self, path: Path) -> Result[str, GitError]:
        return Repository(path).pull_ff()

    def checkout(self, path: Path, revision: str) -> Result[None, GitError]:
        return Repository(path).checkout(revision)
