"""Per-repo reconciliation policies.

Each policy looks at one `(workspace root, name, RepoConfig)` triple, probes
the checkout through the git capability, decides what to do and does it.
Every failure is folded into the returned result: one broken repo never
stops the caller from processing the next one.

Policies:
- restore: clone missing repos, move existing ones to their pinned revision
- pull: fast-forward clean repos that are on a branch
- update: read the checked-out revision so the caller can re-pin it
- exec: run a shell command inside the repo
- probe: read-only state report used by `status`
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Literal

from dotdot.core.config import RepoConfig
from dotdot.core.result import Err
from dotdot.git.backend import GitBackend
from dotdot.git.repository import DETACHED_HEAD, GitError
from dotdot.platform.process import ProcessError, ShellRunner, run_shell

__all__ = [
    "EXEC_ORDER",
    "PULL_ORDER",
    "RESTORE_ORDER",
    "UPDATE_ORDER",
    "ExecResult",
    "PinState",
    "PullResult",
    "RepoState",
    "RestoreResult",
    "UpdateResult",
    "exec_in_repo",
    "probe_repo",
    "pull_repo",
    "restore_repo",
    "revision_matches",
    "short_rev",
    "update_repo",
]

RestoreStatus = Literal["cloned", "checked-out", "skipped", "failed"]
PullStatus = Literal["pulled", "skipped", "failed"]
UpdateStatus = Literal["updated", "unchanged", "skipped", "failed"]
ExecStatus = Literal["success", "failed", "skipped"]
PinState = Literal["pinned", "diverged", "unpinned"]

RESTORE_ORDER: tuple[RestoreStatus, ...] = ("cloned", "checked-out", "skipped", "failed")
PULL_ORDER: tuple[PullStatus, ...] = ("pulled", "skipped", "failed")
UPDATE_ORDER: tuple[UpdateStatus, ...] = ("updated", "unchanged", "skipped", "failed")
EXEC_ORDER: tuple[ExecStatus, ...] = ("success", "failed", "skipped")


@dataclass(frozen=True, slots=True)
class RestoreResult:
    name: str
    status: RestoreStatus
    message: str | None = None


@dataclass(frozen=True, slots=True)
class PullResult:
    """Result of pulling one repo.

    `diverged` is informational: the pull succeeded but HEAD no longer
    matches the pinned revision.
    """

    name: str
    status: PullStatus
    message: str | None = None
    diverged: bool = False


@dataclass(frozen=True, slots=True)
class UpdateResult:
    """Result of reading one repo's revision for re-pinning.

    Attributes:
        revision: Checked-out revision when it could be read
        previous: Revision pinned in config before the update
    """

    name: str
    status: UpdateStatus
    message: str | None = None
    revision: str | None = None
    previous: str | None = None


@dataclass(frozen=True, slots=True)
class ExecResult:
    name: str
    status: ExecStatus
    message: str | None = None


@dataclass(frozen=True, slots=True)
class RepoState:
    """Read-only snapshot of one declared repo."""

    name: str
    exists: bool
    is_git_repo: bool = False
    branch: str | None = None
    revision: str | None = None
    dirty: bool = False
    pin: PinState = "unpinned"
    error: str | None = None

    @property
    def detached(self) -> bool:
        return self.branch == DETACHED_HEAD


def revision_matches(current: str, pinned: str) -> bool:
    """True if the checked-out revision satisfies the pin.

    Pins may be short hashes: `abc123d` is satisfied by `abc123def456...`.
    """
    return current == pinned or current.startswith(pinned)


def short_rev(revision: str) -> str:
    return revision[:7]


def _failed_restore(name: str, error: GitError | ProcessError) -> RestoreResult:
    return RestoreResult(name=name, status="failed", message=error.message)


# -----------------------------------------------------------------------------
# Restore
# -----------------------------------------------------------------------------


def restore_repo(
    root: Path,
    name: str,
    config: RepoConfig,
    *,
    git: GitBackend,
    shell: ShellRunner = run_shell,
    dry_run: bool = False,
) -> RestoreResult:
    """Bring one repo to its declared state.

    - missing: clone, check out the pin, run install -> `cloned`
    - present but not a git repo: `failed`, nothing is touched
    - git repo off its pin: check out the pin -> `checked-out`
    - otherwise: `skipped`

    With dry_run the same decision is returned and nothing is changed.
    """
    repo_path = root / name
    try:
        if repo_path.exists():
            return _restore_existing(repo_path, name, config, git=git, dry_run=dry_run)
        if dry_run:
            return RestoreResult(
                name=name,
                status="cloned",
                message=f"Would clone from {config.url}",
            )
        return _restore_missing(repo_path, name, config, git=git, shell=shell)
    except OSError as e:
        return RestoreResult(name=name, status="failed", message=str(e))


def _restore_existing(
    repo_path: Path,
    name: str,
    config: RepoConfig,
    *,
    git: GitBackend,
    dry_run: bool,
) -> RestoreResult:
    if not git.is_git_repo(repo_path):
        return RestoreResult(
            name=name,
            status="failed",
            message="Directory exists but is not a git repo",
        )

    if config.revision:
        current = git.current_rev(repo_path)
        if isinstance(current, Err):
            return _failed_restore(name, current.error)

        if not revision_matches(current.value, config.revision):
            pin = short_rev(config.revision)
            if dry_run:
                return RestoreResult(
                    name=name,
                    status="checked-out",
                    message=f"Would check out {pin}",
                )
            checkout = git.checkout(repo_path, config.revision)
            if isinstance(checkout, Err):
                return _failed_restore(name, checkout.error)
            return RestoreResult(name=name, status="checked-out", message=f"Checked out {pin}")

    return RestoreResult(name=name, status="skipped", message="Already exists")


def _restore_missing(
    repo_path: Path,
    name: str,
    config: RepoConfig,
    *,
    git: GitBackend,
    shell: ShellRunner,
) -> RestoreResult:
    cloned = git.clone(config.url, repo_path)
    if isinstance(cloned, Err):
        return _failed_restore(name, cloned.error)

    if config.revision:
        checkout = git.checkout(repo_path, config.revision)
        if isinstance(checkout, Err):
            return _failed_restore(name, checkout.error)

    if config.install:
        installed = shell(config.install, repo_path)
        if isinstance(installed, Err):
            return _failed_restore(name, installed.error)

    rev = git.current_rev(repo_path)
    if isinstance(rev, Err):
        return _failed_restore(name, rev.error)

    suffix = " (installed)" if config.install else ""
    return RestoreResult(
        name=name,
        status="cloned",
        message=f"Cloned at {short_rev(rev.value)}{suffix}",
    )


# -----------------------------------------------------------------------------
# Pull
# -----------------------------------------------------------------------------


def pull_repo(root: Path, name: str, config: RepoConfig, *, git: GitBackend) -> PullResult:
    """Fast-forward one repo if it is safe to do so.

    Detached checkouts and dirty working trees are skipped without calling
    pull, so a pinned commit or local edits are never left behind.
    """
    repo_path = root / name
    try:
        return _pull(repo_path, name, config, git=git)
    except OSError as e:
        return PullResult(name=name, status="failed", message=str(e))


def _pull(repo_path: Path, name: str, config: RepoConfig, *, git: GitBackend) -> PullResult:
    if not repo_path.exists():
        return PullResult(name=name, status="skipped", message="Directory does not exist")
    if not git.is_git_repo(repo_path):
        return PullResult(name=name, status="skipped", message="Not a git repo")

    branch = git.current_branch(repo_path)
    if isinstance(branch, Err):
        return PullResult(name=name, status="failed", message=branch.error.message)
    if branch.value == DETACHED_HEAD:
        return PullResult(name=name, status="skipped", message="Detached HEAD")

    dirty = git.is_dirty(repo_path)
    if isinstance(dirty, Err):
        return PullResult(name=name, status="failed", message=dirty.error.message)
    if dirty.value:
        return PullResult(
            name=name,
            status="skipped",
            message="Working tree has uncommitted changes",
        )

    pulled = git.pull(repo_path)
    if isinstance(pulled, Err):
        return PullResult(name=name, status="failed", message=pulled.error.message)

    diverged = False
    if config.revision:
        current = git.current_rev(repo_path)
        if isinstance(current, Err):
            return PullResult(name=name, status="failed", message=current.error.message)
        diverged = not revision_matches(current.value, config.revision)

    message = "Pulled (now diverged from pinned revision)" if diverged else "Pulled"
    return PullResult(name=name, status="pulled", message=message, diverged=diverged)


# -----------------------------------------------------------------------------
# Update
# -----------------------------------------------------------------------------


def update_repo(root: Path, name: str, config: RepoConfig, *, git: GitBackend) -> UpdateResult:
    """Compare the checked-out revision with the pin.

    Does not write anything; the caller rewrites config for `updated` results.
    """
    repo_path = root / name
    if not repo_path.exists():
        return UpdateResult(name=name, status="skipped", message="Directory does not exist")
    if not git.is_git_repo(repo_path):
        return UpdateResult(name=name, status="skipped", message="Not a git repo")

    rev = git.current_rev(repo_path)
    if isinstance(rev, Err):
        return UpdateResult(name=name, status="failed", message=rev.error.message)

    current = rev.value
    if current == config.revision:
        return UpdateResult(
            name=name,
            status="unchanged",
            message=f"Unchanged ({short_rev(current)})",
            revision=current,
            previous=config.revision,
        )

    before = short_rev(config.revision) if config.revision else "unpinned"
    return UpdateResult(
        name=name,
        status="updated",
        message=f"{before} -> {short_rev(current)}",
        revision=current,
        previous=config.revision,
    )


# -----------------------------------------------------------------------------
# Exec / probe
# -----------------------------------------------------------------------------


def exec_in_repo(
    root: Path,
    name: str,
    command: str,
    *,
    shell: ShellRunner = run_shell,
) -> ExecResult:
    repo_path = root / name
    if not repo_path.exists():
        return ExecResult(name=name, status="skipped", message="Directory does not exist")

    result = shell(command, repo_path)
    if isinstance(result, Err):
        return ExecResult(name=name, status="failed", message=result.error.message)
    return ExecResult(name=name, status="success")


def probe_repo(root: Path, name: str, config: RepoConfig, *, git: GitBackend) -> RepoState:
    """Collect branch, revision, dirtiness and pin state without changing anything."""
    repo_path = root / name
    if not repo_path.exists():
        return RepoState(name=name, exists=False)
    if not git.is_git_repo(repo_path):
        return RepoState(name=name, exists=True)

    branch = git.current_branch(repo_path)
    revision = git.current_rev(repo_path)
    dirty = git.is_dirty(repo_path)
    for probe in (branch, revision, dirty):
        if isinstance(probe, Err):
            return RepoState(name=name, exists=True, is_git_repo=True, error=probe.error.message)

    rev = revision.unwrap_or("")
    pin: PinState = "unpinned"
    if config.revision:
        pin = "pinned" if revision_matches(rev, config.revision) else "diverged"

    return RepoState(
        name=name,
        exists=True,
        is_git_repo=True,
        branch=branch.unwrap_or(None),
        revision=rev,
        dirty=dirty.unwrap_or(False),
        pin=pin,
    )
