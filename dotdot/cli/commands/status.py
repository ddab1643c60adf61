"""Status and tree commands - read-only workspace reports."""

from __future__ import annotations

from dotdot.cli.commands._helpers import exit_on_error
from dotdot.cli.context import build_context
from dotdot.services.repos import RepoService


def status() -> None:
    """Show branch, revision and pin state of every declared repo."""
    ctx = build_context()
    service = RepoService(workspace=ctx.workspace, console=ctx.console)
    exit_on_error(service.status_all(), ctx)


def tree() -> None:
    """Show every config file and the repos it declares."""
    ctx = build_context()
    service = RepoService(workspace=ctx.workspace, console=ctx.console)
    exit_on_error(service.tree(), ctx)
