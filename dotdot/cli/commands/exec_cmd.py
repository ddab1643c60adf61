from __future__ import annotations

import typer

from dotdot.cli.commands._helpers import exit_if_failed, exit_on_error
from dotdot.cli.context import build_context
from dotdot.services.repos import RepoService


def exec_(
    command: str = typer.Argument(..., help="Shell command to run in each repo"),
) -> None:
    """Run a shell command in every declared repo."""
    ctx = build_context()
    service = RepoService(workspace=ctx.workspace, console=ctx.console)
    results = exit_on_error(service.exec_all(command), ctx)
    exit_if_failed(results)
