"""Workspace configuration model, loading and writing.

A workspace is declared in `dotdot.toml` files:

    [repos]

    [repos.lib]
    url = "git@github.com:org/lib.git"
    revision = "3f6251fb01dbfd13f38f011aca66d126a2ad6791"
    install = "make install"
    expose = ["packages/shared"]

The file is a plain TOML document. It is only ever deserialized, never
executed, and it is written back whole (read-modify-write).
"""

from __future__ import annotations

import json
import re
import tomllib
from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from pathlib import Path, PurePosixPath

from dotdot.core.result import Err, Ok, Result
from dotdot.core.structured import StrDict, as_str_dict, as_str_list
from dotdot.platform.files import atomic_write_text

__all__ = [
    "CONFIG_FILE_NAME",
    "ConfigError",
    "RepoConfig",
    "WorkspaceConfig",
    "check_repo_name",
    "create_empty_config",
    "load_config_file",
    "render_config",
    "update_repo_revisions",
    "upsert_repo",
    "write_config",
]

CONFIG_FILE_NAME = "dotdot.toml"

_BARE_KEY = re.compile(r"^[A-Za-z0-9_-]+$")


@dataclass(frozen=True, slots=True)
class ConfigError:
    """Error when a config file cannot be read, parsed or written."""

    message: str
    path: Path | None = None

    def __str__(self) -> str:
        if self.path is None:
            return self.message
        return f"{self.path}: {self.message}"


@dataclass(frozen=True, slots=True)
class RepoConfig:
    """One declared repository.

    Attributes:
        url: Clone locator, passed to git as-is
        revision: Pinned commit (full hash or unambiguous prefix)
        install: Shell command run in the repo after cloning
        expose: Repo-relative paths to surface at the workspace root
    """

    url: str
    revision: str | None = None
    install: str | None = None
    expose: tuple[str, ...] = ()

    def with_revision(self, revision: str) -> RepoConfig:
        return replace(self, revision=revision)


def _empty_repos() -> dict[str, RepoConfig]:
    return {}


@dataclass(frozen=True, slots=True)
class WorkspaceConfig:
    """Mapping of repo name to RepoConfig, as declared by one file."""

    repos: dict[str, RepoConfig] = field(default_factory=_empty_repos)

    def with_repo(self, name: str, repo: RepoConfig) -> WorkspaceConfig:
        return WorkspaceConfig(repos={**self.repos, name: repo})

    def with_revision(self, name: str, revision: str) -> WorkspaceConfig:
        """Re-pin one declared repo. Raises KeyError if `name` is not declared."""
        return self.with_repo(name, self.repos[name].with_revision(revision))


# -----------------------------------------------------------------------------
# Loading
# -----------------------------------------------------------------------------


def _parse_toml(path: Path) -> Result[StrDict, ConfigError]:
    try:
        content = path.read_bytes()
        data: StrDict = tomllib.loads(content.decode("utf-8"))
        return Ok(data)
    except FileNotFoundError:
        return Err(ConfigError(f"Config file not found: {path}", path=path))
    except PermissionError:
        return Err(ConfigError(f"Permission denied reading: {path}", path=path))
    except tomllib.TOMLDecodeError as e:
        return Err(ConfigError(f"Invalid TOML syntax: {e}", path=path))
    except UnicodeDecodeError as e:
        return Err(ConfigError(f"Invalid UTF-8 in config: {e}", path=path))
    except OSError as e:
        return Err(ConfigError(f"Error reading config: {e}", path=path))


def check_repo_name(name: str) -> str | None:
    if not name or name in {".", ".."}:
        return f"invalid repo name: {name!r}"
    if "/" in name or "\\" in name:
        return f"repo name must not contain path separators: {name!r}"
    return None


def _check_expose_path(name: str, value: str) -> str | None:
    p = PurePosixPath(value)
    if not value or p.is_absolute() or ".." in p.parts or not p.name:
        return f"repos.{name}.expose: invalid path {value!r} (must be relative, inside the repo)"
    return None


def _parse_repo(name: str, raw: object) -> Result[RepoConfig, str]:
    table = as_str_dict(raw)
    if table is None:
        return Err(f"repos.{name} must be a table")

    url = table.get("url")
    if not isinstance(url, str) or not url.strip():
        return Err(f"repos.{name}.url must be a non-empty string")

    optional: dict[str, str | None] = {}
    for key in ("revision", "install"):
        value = table.get(key)
        if value is None:
            optional[key] = None
            continue
        if not isinstance(value, str):
            return Err(f"repos.{name}.{key} must be a string")
        optional[key] = value.strip() or None

    expose: list[str] = []
    if "expose" in table:
        items = as_str_list(table["expose"])
        if items is None:
            return Err(f"repos.{name}.expose must be a list of strings")
        for item in items:
            problem = _check_expose_path(name, item)
            if problem:
                return Err(problem)
        expose = items

    return Ok(
        RepoConfig(
            url=url.strip(),
            revision=optional["revision"],
            install=optional["install"],
            expose=tuple(expose),
        )
    )


def load_config_file(path: Path) -> Result[WorkspaceConfig, ConfigError]:
    """Load and validate one `dotdot.toml`.

    Args:
        path: Path to the config file

    Returns:
        Ok(WorkspaceConfig) on success, Err(ConfigError) naming the file on failure
    """
    parsed = _parse_toml(path)
    if isinstance(parsed, Err):
        return parsed

    if "repos" not in parsed.value:
        return Err(ConfigError("missing 'repos' table", path=path))
    raw_repos = as_str_dict(parsed.value["repos"])
    if raw_repos is None:
        return Err(ConfigError("'repos' must be a table", path=path))

    repos: dict[str, RepoConfig] = {}
    for name, raw in raw_repos.items():
        problem = check_repo_name(name)
        if problem:
            return Err(ConfigError(problem, path=path))
        repo = _parse_repo(name, raw)
        if isinstance(repo, Err):
            return Err(ConfigError(repo.error, path=path))
        repos[name] = repo.value

    return Ok(WorkspaceConfig(repos=repos))


# -----------------------------------------------------------------------------
# Writing
# -----------------------------------------------------------------------------


def _toml_key(key: str) -> str:
    return key if _BARE_KEY.match(key) else _toml_str(key)


def _toml_str(value: str) -> str:
    # JSON string escapes are a subset of TOML basic string escapes.
    return json.dumps(value, ensure_ascii=False)


def render_config(config: WorkspaceConfig) -> str:
    """Render a WorkspaceConfig as deterministic TOML text.

    Repos keep their mapping order; only present optional fields are written.
    """
    lines = ["[repos]"]
    for name, repo in config.repos.items():
        lines.append("")
        lines.append(f"[repos.{_toml_key(name)}]")
        lines.append(f"url = {_toml_str(repo.url)}")
        if repo.revision is not None:
            lines.append(f"revision = {_toml_str(repo.revision)}")
        if repo.install is not None:
            lines.append(f"install = {_toml_str(repo.install)}")
        if repo.expose:
            items = ", ".join(_toml_str(e) for e in repo.expose)
            lines.append(f"expose = [{items}]")
    lines.append("")
    return "\n".join(lines)


def write_config(path: Path, config: WorkspaceConfig) -> Result[None, ConfigError]:
    """Replace the whole config file atomically."""
    try:
        atomic_write_text(path, render_config(config))
    except OSError as e:
        return Err(ConfigError(f"Failed to write config file: {e}", path=path))
    return Ok(None)


def upsert_repo(
    path: Path,
    name: str,
    repo: RepoConfig,
    existing: WorkspaceConfig,
) -> Result[WorkspaceConfig, ConfigError]:
    """Add or replace one repo entry and write the file."""
    updated = existing.with_repo(name, repo)
    written = write_config(path, updated)
    if isinstance(written, Err):
        return written
    return Ok(updated)


def update_repo_revisions(
    path: Path,
    revisions: Mapping[str, str],
    existing: WorkspaceConfig,
) -> Result[WorkspaceConfig, ConfigError]:
    """Re-pin several declared repos with a single write of the file.

    Nothing is written if any name is not declared in `existing`.
    """
    unknown = [name for name in revisions if name not in existing.repos]
    if unknown:
        return Err(ConfigError(f"Repo '{unknown[0]}' not found in config", path=path))

    updated = existing
    for name, revision in revisions.items():
        updated = updated.with_revision(name, revision)
    written = write_config(path, updated)
    if isinstance(written, Err):
        return written
    return Ok(updated)


def create_empty_config(directory: Path) -> Result[Path, ConfigError]:
    path = directory / CONFIG_FILE_NAME
    written = write_config(path, WorkspaceConfig())
    if isinstance(written, Err):
        return written
    return Ok(path)
