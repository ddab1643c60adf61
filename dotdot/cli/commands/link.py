"""Link commands - manage expose symlinks at the workspace root."""

from __future__ import annotations

import typer

from dotdot.cli.commands._helpers import exit_if_failed, exit_on_error
from dotdot.cli.context import build_context
from dotdot.core.errors import ErrorCode
from dotdot.core.result import Err
from dotdot.services.links import LinkService

link_app = typer.Typer(
    no_args_is_help=True,
    help="Manage symlinks for exposed repo paths.",
    add_completion=False,
)


@link_app.command("status")
def status() -> None:
    """Show every expose mapping and whether it is linked."""
    ctx = build_context()
    service = LinkService(workspace=ctx.workspace, console=ctx.console)
    exit_on_error(service.status(), ctx)


@link_app.command("create")
def create(
    dry_run: bool = typer.Option(False, "--dry-run", help="Print actions without modifying"),
    force: bool = typer.Option(False, "--force", help="Overwrite existing files and symlinks"),
) -> None:
    """Create symlinks for all exposed paths."""
    ctx = build_context()
    service = LinkService(workspace=ctx.workspace, console=ctx.console)
    result = service.create(dry_run=dry_run, force=force)
    code = ErrorCode.USER_ERROR
    if isinstance(result, Err) and result.error.kind == "config_invalid":
        code = ErrorCode.CONFIG_ERROR
    outcomes = exit_on_error(result, ctx, code)
    exit_if_failed(outcomes)


@link_app.command("remove")
def remove(
    dry_run: bool = typer.Option(False, "--dry-run", help="Print actions without modifying"),
) -> None:
    """Remove symlinks created for exposed paths."""
    ctx = build_context()
    service = LinkService(workspace=ctx.workspace, console=ctx.console)
    outcomes = exit_on_error(service.remove(dry_run=dry_run), ctx)
    exit_if_failed(outcomes)
