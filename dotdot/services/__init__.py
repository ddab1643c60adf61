"""Application services for the dotdot CLI.

Services drive the declared repos and expose links, coordinating between the
domain layer (core/) and infrastructure (git/, platform/).
"""

from dotdot.services.links import (
    ExposeMapping,
    LinkError,
    LinkOutcome,
    LinkService,
    collect_expose_mappings,
    find_conflicts,
    get_unique_mappings,
    link_state,
)
from dotdot.services.reconcile import (
    ExecResult,
    PullResult,
    RepoState,
    RestoreResult,
    UpdateResult,
    pull_repo,
    restore_repo,
    update_repo,
)
from dotdot.services.repos import (
    CloneError,
    RepoService,
    extract_repo_name,
    resolve_clone_url,
)
from dotdot.services.summary import summarize

__all__ = [
    # Repos
    "RepoService",
    "CloneError",
    "extract_repo_name",
    "resolve_clone_url",
    "restore_repo",
    "pull_repo",
    "update_repo",
    "RestoreResult",
    "PullResult",
    "UpdateResult",
    "ExecResult",
    "RepoState",
    "summarize",
    # Links
    "LinkService",
    "LinkError",
    "LinkOutcome",
    "ExposeMapping",
    "collect_expose_mappings",
    "find_conflicts",
    "get_unique_mappings",
    "link_state",
]
