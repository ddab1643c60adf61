"""Expose resolver: surface repo sub-paths as symlinks at the workspace root.

Every `expose` entry of every config file becomes one mapping from
`<root>/<repo>/<path>` to `<root>/<basename(path)>`. Mappings are ordered
source by source, repo by repo, entry by entry; when two mappings share a
target name the first one wins, but only with `--force`.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Literal

from dotdot.core.config import ConfigError
from dotdot.core.result import Err, Ok, Result
from dotdot.core.workspace import ConfigSource, Workspace, collect_all_configs
from dotdot.output.console import ConsoleProtocol, Style
from dotdot.platform.files import entry_exists, remove_entry
from dotdot.services.summary import summarize

__all__ = [
    "ExposeMapping",
    "LinkError",
    "LinkOutcome",
    "LinkService",
    "LinkState",
    "collect_expose_mappings",
    "find_conflicts",
    "get_unique_mappings",
    "is_protected_target",
    "link_state",
    "repo_dirs",
]

LinkState = Literal["source missing", "not linked", "linked", "blocked (not a symlink)"]
LinkStatus = Literal["created", "removed", "skipped", "failed"]

LINK_ORDER: tuple[LinkStatus, ...] = ("created", "removed", "skipped", "failed")

NO_EXPOSE_MESSAGE = "No expose configurations found"


@dataclass(frozen=True, slots=True)
class ExposeMapping:
    """One exposed path.

    Attributes:
        source: Absolute path inside the repo
        target: Absolute path of the link at the workspace root
        target_name: Basename of the expose path, the link's name
        declared_by: Label of the config file declaring the expose
        source_repo: Repo containing the source
        expose_path: The expose entry as written in config
    """

    source: Path
    target: Path
    target_name: str
    declared_by: str
    source_repo: str
    expose_path: str

    def link_text(self, root: Path) -> str:
        """Relative symlink contents, e.g. `repo-a/shared-lib`."""
        return os.path.relpath(self.source, root)


@dataclass(frozen=True, slots=True)
class LinkOutcome:
    target_name: str
    status: LinkStatus
    message: str


@dataclass(frozen=True, slots=True)
class LinkError:
    """Error while creating or removing links.

    `conflict` aborts `create` before any change; `config_invalid` means the
    mappings could not be collected.
    """

    kind: Literal["conflict", "config_invalid"]
    message: str
    path: Path | None = None


# -----------------------------------------------------------------------------
# Mapping resolution
# -----------------------------------------------------------------------------


def collect_expose_mappings(root: Path, sources: list[ConfigSource]) -> list[ExposeMapping]:
    mappings: list[ExposeMapping] = []
    for source in sources:
        for repo_name, repo in source.config.repos.items():
            for expose_path in repo.expose:
                target_name = Path(expose_path).name
                mappings.append(
                    ExposeMapping(
                        source=root / repo_name / expose_path,
                        target=root / target_name,
                        target_name=target_name,
                        declared_by=source.label,
                        source_repo=repo_name,
                        expose_path=expose_path,
                    )
                )
    return mappings


def find_conflicts(mappings: list[ExposeMapping]) -> dict[str, list[ExposeMapping]]:
    """Group mappings by target name, keeping only names claimed more than once."""
    by_target: dict[str, list[ExposeMapping]] = {}
    for mapping in mappings:
        by_target.setdefault(mapping.target_name, []).append(mapping)
    return {name: group for name, group in by_target.items() if len(group) > 1}


def get_unique_mappings(mappings: list[ExposeMapping]) -> dict[str, ExposeMapping]:
    unique: dict[str, ExposeMapping] = {}
    for mapping in mappings:
        unique.setdefault(mapping.target_name, mapping)
    return unique


def repo_dirs(root: Path, sources: list[ConfigSource]) -> set[Path]:
    return {root / name for source in sources for name in source.config.repos}


def is_protected_target(mapping: ExposeMapping, checkouts: set[Path]) -> bool:
    """True if replacing the target would delete a repo checkout.

    That covers any declared repo directory, and the mapping's own source or
    one of its ancestors (`docs` exposing `site/docs` targets `<root>/docs`).
    """
    target = mapping.target
    return target in checkouts or target == mapping.source or target in mapping.source.parents


def link_state(mapping: ExposeMapping) -> LinkState:
    if not mapping.source.exists():
        return "source missing"
    if not entry_exists(mapping.target):
        return "not linked"
    if mapping.target.is_symlink():
        return "linked"
    return "blocked (not a symlink)"


# -----------------------------------------------------------------------------
# Service
# -----------------------------------------------------------------------------


class LinkService:
    """Show, create and remove expose symlinks for a workspace."""

    def __init__(self, *, workspace: Workspace, console: ConsoleProtocol) -> None:
        self._workspace = workspace
        self._console = console

    def status(self) -> Result[list[tuple[ExposeMapping, LinkState]], ConfigError]:
        sources = self._load()
        if isinstance(sources, Err):
            return sources
        mappings = collect_expose_mappings(self._workspace.root, sources.value)
        if not mappings:
            self._console.print(NO_EXPOSE_MESSAGE)
            return Ok([])

        conflicts = find_conflicts(mappings)
        if conflicts:
            self._console.print("Conflicts:", Style.WARNING)
            self._print_conflicts(conflicts)
            self._console.newline()

        self._console.print("Expose mappings:", Style.BOLD)
        states: list[tuple[ExposeMapping, LinkState]] = []
        for name, mapping in get_unique_mappings(mappings).items():
            state = link_state(mapping)
            states.append((mapping, state))
            style = Style.DEFAULT if state == "linked" else Style.WARNING
            self._console.print(
                f"  {name} -> {mapping.link_text(self._workspace.root)} [{state}]",
                style,
            )
        return Ok(states)

    def create(
        self,
        *,
        dry_run: bool = False,
        force: bool = False,
    ) -> Result[list[LinkOutcome], LinkError]:
        """Create one relative symlink per unique target name.

        Without force, any conflict aborts before touching the filesystem and
        existing targets are skipped. With force the first mapping wins and
        existing targets are replaced.
        """
        root = self._workspace.root
        sources = self._load()
        if isinstance(sources, Err):
            return Err(LinkError(kind="config_invalid", message=str(sources.error)))
        mappings = collect_expose_mappings(root, sources.value)
        if not mappings:
            self._console.print(NO_EXPOSE_MESSAGE)
            return Ok([])

        conflicts = find_conflicts(mappings)
        if conflicts and not force:
            self._console.error("Expose conflicts detected:")
            self._console.newline()
            self._print_conflicts(conflicts)
            self._console.newline()
            self._console.print("Use --force to overwrite with the first match", Style.DIM)
            return Err(
                LinkError(
                    kind="conflict",
                    message=f"{len(conflicts)} expose conflict(s): {', '.join(conflicts)}",
                )
            )

        if dry_run:
            self._console.info("dry run - no changes will be made")
        self._console.print("Creating symlinks...")

        checkouts = repo_dirs(root, sources.value)
        outcomes: list[LinkOutcome] = []
        for name, mapping in get_unique_mappings(mappings).items():
            outcome = self._create_one(name, mapping, checkouts, dry_run=dry_run, force=force)
            outcomes.append(outcome)
            self._report(outcome)

        self._console.newline()
        self._console.print(summarize((o.status for o in outcomes), LINK_ORDER))
        return Ok(outcomes)

    def remove(self, *, dry_run: bool = False) -> Result[list[LinkOutcome], ConfigError]:
        """Remove root entries named by any mapping, but only symlinks."""
        sources = self._load()
        if isinstance(sources, Err):
            return sources
        mappings = collect_expose_mappings(self._workspace.root, sources.value)
        if not mappings:
            self._console.print(NO_EXPOSE_MESSAGE)
            return Ok([])

        if dry_run:
            self._console.info("dry run - no changes will be made")
        self._console.print("Removing symlinks...")

        outcomes: list[LinkOutcome] = []
        for name, mapping in get_unique_mappings(mappings).items():
            outcome = self._remove_one(name, mapping.target, dry_run=dry_run)
            outcomes.append(outcome)
            self._report(outcome)

        self._console.newline()
        self._console.print(summarize((o.status for o in outcomes), LINK_ORDER))
        return Ok(outcomes)

    # -------------------------------------------------------------------------
    # helpers
    # -------------------------------------------------------------------------

    def _load(self) -> Result[list[ConfigSource], ConfigError]:
        root = self._workspace.root
        self._console.print(f"dotdot workspace: {root}", Style.DIM)
        return collect_all_configs(root)

    def _create_one(
        self,
        name: str,
        mapping: ExposeMapping,
        checkouts: set[Path],
        *,
        dry_run: bool,
        force: bool,
    ) -> LinkOutcome:
        if not mapping.source.exists():
            return LinkOutcome(name, "skipped", f"Skipped: {name} (source does not exist)")

        link_text = mapping.link_text(self._workspace.root)
        try:
            if entry_exists(mapping.target):
                if not force:
                    return LinkOutcome(name, "skipped", f"Skipped: {name} (target already exists)")
                if is_protected_target(mapping, checkouts):
                    return LinkOutcome(name, "failed", f"Failed: {name} (target is a repo checkout)")
                if not dry_run:
                    remove_entry(mapping.target)

            if dry_run:
                return LinkOutcome(name, "created", f"Would create: {name} -> {link_text}")
            mapping.target.symlink_to(link_text, target_is_directory=mapping.source.is_dir())
        except OSError as e:
            return LinkOutcome(name, "failed", f"Failed: {name} ({e.strerror or e})")
        return LinkOutcome(name, "created", f"Created: {name} -> {link_text}")

    def _remove_one(self, name: str, target: Path, *, dry_run: bool) -> LinkOutcome:
        if not entry_exists(target):
            return LinkOutcome(name, "skipped", f"Skipped: {name} (not linked)")
        if not target.is_symlink():
            return LinkOutcome(name, "skipped", f"Skipped: {name} (not a symlink)")
        if dry_run:
            return LinkOutcome(name, "removed", f"Would remove: {name}")
        try:
            target.unlink()
        except OSError as e:
            return LinkOutcome(name, "failed", f"Failed: {name} ({e.strerror or e})")
        return LinkOutcome(name, "removed", f"Removed: {name}")

    def _print_conflicts(self, conflicts: dict[str, list[ExposeMapping]]) -> None:
        for name, group in conflicts.items():
            self._console.print(f"  {name}:")
            for mapping in group:
                self._console.print(
                    f"    - {mapping.source_repo}/{mapping.expose_path} (from {mapping.declared_by})"
                )

    def _report(self, outcome: LinkOutcome) -> None:
        style = {
            "created": Style.SUCCESS,
            "removed": Style.SUCCESS,
            "failed": Style.ERROR,
        }.get(outcome.status, Style.DIM)
        self._console.print(f"  {outcome.message}", style)
