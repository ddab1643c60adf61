from __future__ import annotations

import typer

from dotdot.cli.commands._helpers import exit_if_failed, exit_on_error
from dotdot.cli.context import build_context
from dotdot.services.repos import RepoService


def restore(
    dry_run: bool = typer.Option(False, "--dry-run", help="Print actions without modifying"),
) -> None:
    """Clone missing repos and check out pinned revisions."""
    ctx = build_context()
    service = RepoService(workspace=ctx.workspace, console=ctx.console)
    results = exit_on_error(service.restore_all(dry_run=dry_run), ctx)
    exit_if_failed(results)
