"""Git repository abstraction.

This module provides the Repository class for single-repo git operations.
All operations that can fail return Result types.

Usage:
    repo = Repository(Path("/path/to/repo"))

    match repo.current_rev():
        case Ok(rev):
            print(f"HEAD at {rev[:7]}")
        case Err(e):
            print(f"Error: {e.message}")
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from dotdot.core.result import Err, Ok, Result
from dotdot.platform.process import ProcessError
from dotdot.platform.process import run as run_process

_GIT_TIMEOUT_SECONDS = 30.0
_GIT_NETWORK_TIMEOUT_SECONDS = 10 * 60.0

# `git rev-parse --abbrev-ref HEAD` prints this when HEAD is detached.
DETACHED_HEAD = "HEAD"

__all__ = [
    "DETACHED_HEAD",
    "GitError",
    "Repository",
    "clone_repository",
]


@dataclass(frozen=True, slots=True)
class GitError:
    """Error from a git operation.

    Attributes:
        command: The git command that failed
        message: Error message
        returncode: Process return code
    """

    command: str
    message: str
    returncode: int = 1

    def __str__(self) -> str:
        return f"git {self.command}: {self.message}"


def _git_error(command: str, error: ProcessError, fallback: str) -> GitError:
    return GitError(
        command=command,
        message=error.stderr.strip() or error.stdout.strip() or fallback,
        returncode=error.returncode,
    )


def clone_repository(url: str, dest: Path) -> Result[None, GitError]:
    """Clone url into dest. The parent of dest must exist."""
    result = run_process(
        ["git", "clone", url, str(dest)],
        cwd=dest.parent,
        timeout=_GIT_NETWORK_TIMEOUT_SECONDS,
    )
    if isinstance(result, Err):
        return Err(_git_error("clone", result.error, "clone failed"))
    return Ok(None)


class Repository:
    """Git repository abstraction.

    Attributes:
        path: Path to the repository root
    """

    def __init__(self, path: Path) -> None:
        self.path = path

    def exists(self) -> bool:
        """Check if this is a git checkout (.git directory or worktree file)."""
        return (self.path / ".git").exists()

    def current_rev(self) -> Result[str, GitError]:
        """Full hash of HEAD."""
        result = self._run(["rev-parse", "HEAD"])
        match result:
            case Err(e):
                return Err(_git_error("rev-parse HEAD", e, "could not read HEAD"))
            case Ok(stdout):
                return Ok(stdout.strip())

    def current_branch(self) -> Result[str, GitError]:
        """Current branch name, or DETACHED_HEAD when HEAD is detached."""
        result = self._run(["rev-parse", "--abbrev-ref", "HEAD"])
        match result:
            case Err(e):
                return Err(_git_error("rev-parse --abbrev-ref HEAD", e, "could not read branch"))
            case Ok(stdout):
                return Ok(stdout.strip() or DETACHED_HEAD)

    def is_dirty(self) -> Result[bool, GitError]:
        """True if the working tree has staged, unstaged or untracked changes."""
        result = self._run(["status", "--porcelain"])
        match result:
            case Err(e):
                return Err(_git_error("status", e, "git status failed"))
            case Ok(stdout):
                return Ok(stdout.strip() != "")

    def pull_ff(self) -> Result[str, GitError]:
        """Pull with fast-forward only.

        Returns:
            Ok(output) on success
            Err(GitError) on failure (conflicts, no upstream, etc.)
        """
        result = self._run(["pull", "--ff-only"])
        match result:
            case Err(e):
                return Err(_git_error("pull --ff-only", e, "pull failed"))
            case Ok(stdout):
                return Ok(stdout.strip())

    def checkout(self, revision: str) -> Result[None, GitError]:
        """Check out a revision (leaves HEAD detached for commit hashes)."""
        result = self._run(["checkout", "--quiet", revision])
        if isinstance(result, Err):
            return Err(_git_error(f"checkout {revision}", result.error, "checkout failed"))
        return Ok(None)

    def _run(self, args: list[str]) -> Result[str, ProcessError]:
        """Run a git command in this repository."""
        command = args[0] if args else ""
        timeout = (
            _GIT_NETWORK_TIMEOUT_SECONDS
            if command in {"fetch", "pull", "push"}
            else _GIT_TIMEOUT_SECONDS
        )
        return run_process(["git", "-C", str(self.path), *args], cwd=self.path, timeout=timeout)
