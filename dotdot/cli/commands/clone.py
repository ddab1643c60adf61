"""Clone command - add a repo to the workspace."""

from __future__ import annotations

from pathlib import Path

import typer

from dotdot.cli.commands._helpers import exit_on_error
from dotdot.cli.context import build_context
from dotdot.core.errors import ErrorCode
from dotdot.core.result import Err
from dotdot.services.repos import RepoService


def clone(
    url: str = typer.Argument(..., help="Git URL to clone"),
    name: str | None = typer.Argument(None, help="Directory name (default: derived from URL)"),
    install: str | None = typer.Option(
        None,
        "--install",
        help="Shell command to run in the repo after cloning",
    ),
) -> None:
    """Clone a repo into the workspace and pin it in the root config."""
    ctx = build_context()
    service = RepoService(workspace=ctx.workspace, console=ctx.console)
    result = service.clone(url, name, install=install, start_dir=Path.cwd())
    if isinstance(result, Err):
        code = {
            "config_invalid": ErrorCode.CONFIG_ERROR,
            "clone_failed": ErrorCode.OPERATION_FAILED,
            "install_failed": ErrorCode.OPERATION_FAILED,
        }.get(result.error.kind, ErrorCode.USER_ERROR)
        exit_on_error(result, ctx, code)
