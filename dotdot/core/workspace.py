"""Workspace detection and config discovery.

The workspace is the directory holding the root `dotdot.toml`. Its direct
children are repo checkouts, each of which may carry its own `dotdot.toml`
declaring the repos it depends on.

Discovery is read-only. The merge rule is "first declaration wins" over the
ordered sequence root, then nested configs, so the root config always takes
precedence over a repo's self-declaration.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from .config import CONFIG_FILE_NAME, ConfigError, RepoConfig, WorkspaceConfig, load_config_file
from .result import Err, Ok, Result

__all__ = [
    "ConfigSource",
    "PinMismatch",
    "ROOT_LABEL",
    "Workspace",
    "WorkspaceError",
    "collect_all_configs",
    "declared_repos",
    "declaring_sources",
    "detect_workspace",
    "find_pin_mismatches",
    "find_workspace_root",
    "is_workspace_root",
    "load_root_config",
]

ROOT_LABEL = "(root)"


@dataclass(frozen=True)
class WorkspaceError:
    """No workspace root could be found."""

    message: str
    searched_from: Path | None = None


@dataclass(frozen=True, slots=True)
class Workspace:
    """A detected dotdot workspace."""

    root: Path

    @property
    def config_path(self) -> Path:
        """Path to the root dotdot.toml."""
        return self.root / CONFIG_FILE_NAME

    def repo_path(self, name: str) -> Path:
        return self.root / name

    def __str__(self) -> str:
        return str(self.root)


@dataclass(frozen=True, slots=True)
class ConfigSource:
    """A loaded config plus where it came from.

    Attributes:
        config: The parsed file
        is_root: True for the workspace root config
        dir: Directory containing the config file
    """

    config: WorkspaceConfig
    is_root: bool
    dir: Path

    @property
    def path(self) -> Path:
        return self.dir / CONFIG_FILE_NAME

    @property
    def label(self) -> str:
        """Human-readable origin used when reporting declarations."""
        return ROOT_LABEL if self.is_root else self.dir.name


@dataclass(frozen=True, slots=True)
class PinMismatch:
    """A repo pinned to different revisions by different config files."""

    name: str
    winner: ConfigSource
    other: ConfigSource

    @property
    def winning_revision(self) -> str | None:
        return self.winner.config.repos[self.name].revision

    @property
    def other_revision(self) -> str | None:
        return self.other.config.repos[self.name].revision


# -----------------------------------------------------------------------------
# Root detection
# -----------------------------------------------------------------------------


def is_workspace_root(path: Path) -> bool:
    return (path / CONFIG_FILE_NAME).is_file()


def find_workspace_root(start_dir: Path) -> Result[Path, WorkspaceError]:
    """Walk upward from start_dir to the first directory with a dotdot.toml."""
    for parent in (start_dir, *start_dir.parents):
        if is_workspace_root(parent):
            return Ok(parent)
    return Err(
        WorkspaceError(
            message=f"Could not find workspace ({CONFIG_FILE_NAME} not found)",
            searched_from=start_dir,
        )
    )


def detect_workspace(
    *,
    start_dir: Path,
    env_var: str = "DOTDOT_WORKSPACE",
    environ: dict[str, str] | None = None,
) -> Result[Workspace, WorkspaceError]:
    """Detect the workspace for a CLI invocation.

    Detection order:
    1. `env_var` in the environment (must name a workspace root)
    2. Search upward from start_dir
    """
    env = os.environ if environ is None else environ
    env_value = env.get(env_var)
    if env_value:
        env_path = Path(env_value).expanduser().resolve()
        if env_path.is_dir() and is_workspace_root(env_path):
            return Ok(Workspace(root=env_path))
        return Err(
            WorkspaceError(
                message=f"${env_var} is set to '{env_value}' but it is not a dotdot workspace",
                searched_from=env_path if env_path.is_dir() else None,
            )
        )

    found = find_workspace_root(start_dir.resolve())
    if isinstance(found, Err):
        return found
    return Ok(Workspace(root=found.value))


# -----------------------------------------------------------------------------
# Discovery & merge
# -----------------------------------------------------------------------------


def load_root_config(root: Path) -> Result[ConfigSource, ConfigError]:
    loaded = load_config_file(root / CONFIG_FILE_NAME)
    if isinstance(loaded, Err):
        return loaded
    return Ok(ConfigSource(config=loaded.value, is_root=True, dir=root))


def _nested_config_dirs(root: Path) -> list[Path]:
    dirs: list[Path] = []
    for child in sorted(root.iterdir(), key=lambda p: p.name):
        # Exposed links point back into repos; following them would load a
        # config twice under a different label.
        if child.is_symlink() or not child.is_dir():
            continue
        if (child / CONFIG_FILE_NAME).is_file():
            dirs.append(child)
    return dirs


def collect_all_configs(root: Path) -> Result[list[ConfigSource], ConfigError]:
    """Load the root config, then each direct child repo's own config.

    Only one level of nesting is merged. Nested configs are ordered by
    directory name.
    """
    root_source = load_root_config(root)
    if isinstance(root_source, Err):
        return root_source

    sources = [root_source.value]
    try:
        nested_dirs = _nested_config_dirs(root)
    except OSError as e:
        return Err(ConfigError(f"Could not list workspace: {e}", path=root))

    for child in nested_dirs:
        loaded = load_config_file(child / CONFIG_FILE_NAME)
        if isinstance(loaded, Err):
            return loaded
        sources.append(ConfigSource(config=loaded.value, is_root=False, dir=child))

    return Ok(sources)


def declaring_sources(sources: list[ConfigSource]) -> dict[str, ConfigSource]:
    """Map each repo name to the first source that declares it."""
    winners: dict[str, ConfigSource] = {}
    for source in sources:
        for name in source.config.repos:
            if name not in winners:
                winners[name] = source
    return winners


def declared_repos(sources: list[ConfigSource]) -> dict[str, RepoConfig]:
    """Merge sources into the declared repo set (first declaration wins)."""
    return {
        name: source.config.repos[name] for name, source in declaring_sources(sources).items()
    }


def find_pin_mismatches(sources: list[ConfigSource]) -> list[PinMismatch]:
    """Find repos whose later re-declarations pin a different revision.

    A re-declaration without a revision is not a mismatch.
    """
    winners = declaring_sources(sources)
    mismatches: list[PinMismatch] = []
    for source in sources:
        for name, repo in source.config.repos.items():
            winner = winners[name]
            if winner is source or repo.revision is None:
                continue
            if winner.config.repos[name].revision != repo.revision:
                mismatches.append(PinMismatch(name=name, winner=winner, other=source))
    return mismatches
