from __future__ import annotations

import typer

from dotdot.cli.commands._helpers import exit_if_failed, exit_on_error
from dotdot.cli.context import build_context
from dotdot.services.repos import RepoService


def update(
    repos: list[str] | None = typer.Argument(None, help="Repos to re-pin (default: all)"),
    dry_run: bool = typer.Option(False, "--dry-run", help="Print new pins without writing"),
) -> None:
    """Pin repos to their currently checked-out revisions."""
    ctx = build_context()
    service = RepoService(workspace=ctx.workspace, console=ctx.console)
    results = exit_on_error(service.update_all(repos, dry_run=dry_run), ctx)
    exit_if_failed(results)
