from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Literal

from dotdot.core.config import (
    ConfigError,
    RepoConfig,
    check_repo_name,
    update_repo_revisions,
    upsert_repo,
)
from dotdot.core.result import Err, Ok, Result
from dotdot.core.workspace import (
    ConfigSource,
    Workspace,
    collect_all_configs,
    declared_repos,
    declaring_sources,
    find_pin_mismatches,
    load_root_config,
)
from dotdot.git.backend import GitBackend, GitCli
from dotdot.output.console import ConsoleProtocol, Style
from dotdot.platform.process import ShellRunner, run_shell
from dotdot.services.reconcile import (
    EXEC_ORDER,
    PULL_ORDER,
    RESTORE_ORDER,
    UPDATE_ORDER,
    ExecResult,
    PullResult,
    RepoState,
    RestoreResult,
    UpdateResult,
    exec_in_repo,
    probe_repo,
    pull_repo,
    restore_repo,
    short_rev,
    update_repo,
)
from dotdot.services.summary import summarize

# -----------------------------------------------------------------------------
# Error Types
# -----------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class CloneError:
    """Error from `clone`; the config file is untouched unless kind is install_failed."""

    kind: Literal["invalid_name", "target_exists", "clone_failed", "config_invalid", "install_failed"]
    message: str
    hint: str | None = None


NO_REPOS_MESSAGE = "No repos declared in config"

_STATUS_STYLES: dict[str, Style] = {
    "cloned": Style.SUCCESS,
    "checked-out": Style.SUCCESS,
    "pulled": Style.SUCCESS,
    "updated": Style.SUCCESS,
    "success": Style.SUCCESS,
    "unchanged": Style.DIM,
    "skipped": Style.DIM,
    "failed": Style.ERROR,
}


def extract_repo_name(url: str) -> str:
    """Derive a directory name from a clone URL.

    git@github.com:org/repo.git, https://host/org/repo and /path/to/repo.git
    all give `repo`.
    """
    name = url.rstrip("/")
    if name.endswith(".git"):
        name = name[: -len(".git")]
    cut = max(name.rfind("/"), name.rfind(":"))
    if cut != -1:
        name = name[cut + 1 :]
    return name


def resolve_clone_url(url: str, start_dir: Path) -> str:
    """Make a relative local path absolute, anchored at start_dir.

    `git clone` runs from the workspace root, so `../lib.git` typed in a
    subdirectory must not reach it unresolved. URLs with a scheme, scp-style
    `host:path` locators and absolute paths are returned unchanged.
    """
    if "://" in url or Path(url).is_absolute():
        return url
    colon = url.find(":")
    if colon != -1 and "/" not in url[:colon]:
        return url
    return str((start_dir / url).resolve())


class RepoService:
    """Drive every declared repo through a reconciliation policy.

    Policy:
    - The declared repo set is re-read from disk on every call.
    - Repos are processed one at a time, in declaration order.
    - A failing repo is reported and counted; the others still run.
    """

    def __init__(
        self,
        *,
        workspace: Workspace,
        console: ConsoleProtocol,
        git: GitBackend | None = None,
        shell: ShellRunner | None = None,
    ) -> None:
        self._workspace = workspace
        self._console = console
        self._git: GitBackend = git or GitCli()
        self._shell: ShellRunner = shell or run_shell

    # -------------------------------------------------------------------------
    # restore / pull / update
    # -------------------------------------------------------------------------

    def restore_all(self, *, dry_run: bool = False) -> Result[list[RestoreResult], ConfigError]:
        loaded = self._load()
        if isinstance(loaded, Err):
            return loaded
        repos = declared_repos(loaded.value)

        if not repos:
            self._console.print(NO_REPOS_MESSAGE)
            return Ok([])

        self._console.print(f"Found {len(repos)} declared repo(s)")
        if dry_run:
            self._console.info("dry run - no changes will be made")
        self._console.newline()

        results: list[RestoreResult] = []
        for name, config in repos.items():
            self._console.print(f"Restoring {name}...", Style.BOLD)
            result = restore_repo(
                self._workspace.root,
                name,
                config,
                git=self._git,
                shell=self._shell,
                dry_run=dry_run,
            )
            results.append(result)
            self._report(result.status, result.message)

        self._console.newline()
        self._console.print(
            summarize(
                (r.status for r in results),
                RESTORE_ORDER,
                display={"checked-out": "checked out"},
            )
        )
        return Ok(results)

    def pull_all(self) -> Result[list[PullResult], ConfigError]:
        loaded = self._load()
        if isinstance(loaded, Err):
            return loaded
        repos = declared_repos(loaded.value)

        if not repos:
            self._console.print(NO_REPOS_MESSAGE)
            return Ok([])

        self._console.print(f"Pulling {len(repos)} repo(s)...")
        self._console.newline()

        results: list[PullResult] = []
        for name, config in repos.items():
            self._console.print(f"Pulling {name}...", Style.BOLD)
            result = pull_repo(self._workspace.root, name, config, git=self._git)
            results.append(result)
            if result.diverged:
                self._console.print(f"  {result.message}", Style.WARNING)
            else:
                self._report(result.status, result.message)

        statuses = [r.status for r in results]
        diverged = sum(1 for r in results if r.diverged)
        notes = {"pulled": f"{diverged} diverged"} if diverged else None
        summary = summarize(statuses, PULL_ORDER, notes=notes)

        self._console.newline()
        self._console.print(summary)

        if diverged:
            self._console.newline()
            self._console.warning("Some repos are now diverged from their pinned revisions.")
            self._console.print(
                "Run `dotdot update` to update pins, or `dotdot restore` to reset "
                "to pinned revisions.",
                Style.DIM,
            )
        return Ok(results)

    def update_all(
        self,
        names: list[str] | None = None,
        *,
        dry_run: bool = False,
    ) -> Result[list[UpdateResult], ConfigError]:
        """Re-pin repos to their checked-out revisions.

        Args:
            names: Only update these repos (unknown names are ignored)
            dry_run: Report the new pins without writing any config file
        """
        loaded = self._load()
        if isinstance(loaded, Err):
            return loaded
        sources = loaded.value
        repos = declared_repos(sources)
        owners = declaring_sources(sources)

        wanted = set(names or ())
        selected = [n for n in repos if not wanted or n in wanted]
        if not selected:
            self._console.print(NO_REPOS_MESSAGE if not repos else "No matching repos to update")
            return Ok([])

        if dry_run:
            self._console.info("dry run - no changes will be made")

        results: list[UpdateResult] = []
        pending: dict[Path, tuple[ConfigSource, dict[str, str]]] = {}
        for name in selected:
            result = update_repo(self._workspace.root, name, repos[name], git=self._git)
            results.append(result)
            self._report(result.status, f"{name}: {result.message}")

            if result.status == "updated" and result.revision is not None:
                owner = owners[name]
                pending.setdefault(owner.path, (owner, {}))[1][name] = result.revision

        if not dry_run:
            for path, (owner, revisions) in pending.items():
                written = update_repo_revisions(path, revisions, owner.config)
                if isinstance(written, Err):
                    return written
                self._console.print(f"Updated {owner.label} config: {path}", Style.DIM)

        self._console.newline()
        self._console.print(summarize((r.status for r in results), UPDATE_ORDER))
        return Ok(results)

    # -------------------------------------------------------------------------
    # clone / exec
    # -------------------------------------------------------------------------

    def clone(
        self,
        url: str,
        name: str | None = None,
        *,
        install: str | None = None,
        start_dir: Path | None = None,
    ) -> Result[str, CloneError]:
        """Clone url into the workspace and declare it in the root config.

        Args:
            start_dir: Directory relative local paths in url are resolved
                against (the invoking directory). Without it url is used as given.

        Returns:
            Ok(name) of the new repo directory
        """
        if start_dir is not None:
            url = resolve_clone_url(url, start_dir)
        target = name or extract_repo_name(url)
        problem = check_repo_name(target)
        if problem:
            return Err(CloneError(kind="invalid_name", message=problem))

        dest = self._workspace.repo_path(target)
        if dest.exists() or dest.is_symlink():
            return Err(
                CloneError(
                    kind="target_exists",
                    message=f"Target directory '{target}' already exists",
                    hint="Pass a different name: dotdot clone <url> <name>",
                )
            )

        root_config = load_root_config(self._workspace.root)
        if isinstance(root_config, Err):
            return Err(CloneError(kind="config_invalid", message=str(root_config.error)))

        self._console.print(f"Cloning {url} into {target}...", Style.DIM)
        cloned = self._git.clone(url, dest)
        if isinstance(cloned, Err):
            return Err(CloneError(kind="clone_failed", message=cloned.error.message))

        rev = self._git.current_rev(dest)
        if isinstance(rev, Err):
            return Err(CloneError(kind="clone_failed", message=rev.error.message))

        written = upsert_repo(
            self._workspace.config_path,
            target,
            RepoConfig(url=url, revision=rev.value, install=install),
            root_config.value.config,
        )
        if isinstance(written, Err):
            return Err(CloneError(kind="config_invalid", message=str(written.error)))

        self._console.success(f"Cloned {target} at revision {short_rev(rev.value)}")
        self._console.print(f"Added to {self._workspace.config_path.name}", Style.DIM)

        if install:
            self._console.print(f"Running install command: {install}", Style.DIM)
            installed = self._shell(install, dest)
            if isinstance(installed, Err):
                return Err(CloneError(kind="install_failed", message=installed.error.message))
            self._console.success("Install completed")

        return Ok(target)

    def exec_all(self, command: str) -> Result[list[ExecResult], ConfigError]:
        loaded = self._load()
        if isinstance(loaded, Err):
            return loaded
        repos = declared_repos(loaded.value)

        self._console.print(f"Running: {command}", Style.DIM)
        if not repos:
            self._console.print(NO_REPOS_MESSAGE)
            return Ok([])
        self._console.newline()

        results: list[ExecResult] = []
        for name in repos:
            self._console.print(f"[{name}] Running...", Style.BOLD)
            result = exec_in_repo(self._workspace.root, name, command, shell=self._shell)
            results.append(result)
            match result.status:
                case "success":
                    self._console.print(f"[{name}] Done", Style.SUCCESS)
                case "failed":
                    self._console.print(f"[{name}] Failed: {result.message}", Style.ERROR)
                case "skipped":
                    self._console.print(f"[{name}] Skipped ({result.message})", Style.DIM)

        self._console.newline()
        self._console.print(summarize((r.status for r in results), EXEC_ORDER))
        return Ok(results)

    # -------------------------------------------------------------------------
    # status / tree
    # -------------------------------------------------------------------------

    def status_all(self) -> Result[list[RepoState], ConfigError]:
        loaded = self._load()
        if isinstance(loaded, Err):
            return loaded
        repos = declared_repos(loaded.value)

        if not repos:
            self._console.print(NO_REPOS_MESSAGE)
            return Ok([])

        states: list[RepoState] = []
        for name, config in repos.items():
            state = probe_repo(self._workspace.root, name, config, git=self._git)
            states.append(state)
            self._print_state(state, config)
        return Ok(states)

    def tree(self) -> Result[list[ConfigSource], ConfigError]:
        """Print every config file and the repos it declares."""
        loaded = self._load()
        if isinstance(loaded, Err):
            return loaded
        sources = loaded.value
        owners = declaring_sources(sources)

        for source in sources:
            self._console.print(f"{source.label} {source.path}", Style.HEADER)
            if not source.config.repos:
                self._console.print("  (no repos)", Style.DIM)
            for name, repo in source.config.repos.items():
                pin = f" @ {short_rev(repo.revision)}" if repo.revision else ""
                winner = owners[name]
                if winner is source:
                    self._console.print(f"  {name}{pin}")
                else:
                    self._console.print(
                        f"  {name}{pin} (shadowed by {winner.label})",
                        Style.DIM,
                    )
        return Ok(sources)

    # -------------------------------------------------------------------------
    # helpers
    # -------------------------------------------------------------------------

    def _load(self) -> Result[list[ConfigSource], ConfigError]:
        self._console.print(f"dotdot workspace: {self._workspace.root}", Style.DIM)
        loaded = collect_all_configs(self._workspace.root)
        if isinstance(loaded, Ok):
            for mismatch in find_pin_mismatches(loaded.value):
                self._console.warning(
                    f"{mismatch.name}: {mismatch.other.label} pins {mismatch.other_revision}, "
                    f"using {mismatch.winning_revision or 'no pin'} from {mismatch.winner.label}"
                )
        return loaded

    def _report(self, status: str, message: str | None) -> None:
        style = _STATUS_STYLES.get(status, Style.DEFAULT)
        self._console.print(f"  {status}: {message or ''}".rstrip(), style)

    def _print_state(self, state: RepoState, config: RepoConfig) -> None:
        if not state.exists:
            self._console.print(f"  {state.name}: missing", Style.WARNING)
            return
        if not state.is_git_repo:
            self._console.print(f"  {state.name}: not a git repo", Style.ERROR)
            return
        if state.error:
            self._console.print(f"  {state.name}: {state.error}", Style.ERROR)
            return

        branch = "(detached)" if state.detached else state.branch
        rev = short_rev(state.revision or "")
        parts = [f"{branch} @ {rev}"]
        if state.dirty:
            parts.append("dirty")
        if state.pin == "diverged" and config.revision:
            parts.append(f"diverged from pin {short_rev(config.revision)}")
        elif state.pin == "unpinned":
            parts.append("unpinned")

        style = Style.WARNING if state.dirty or state.pin == "diverged" else Style.DEFAULT
        self._console.print(f"  {state.name}: {', '.join(parts)}", style)
