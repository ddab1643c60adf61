from __future__ import annotations

from dotdot.cli.commands._helpers import exit_if_failed, exit_on_error
from dotdot.cli.context import build_context
from dotdot.services.repos import RepoService


def pull() -> None:
    """Fast-forward every clean repo that is on a branch."""
    ctx = build_context()
    service = RepoService(workspace=ctx.workspace, console=ctx.console)
    results = exit_on_error(service.pull_all(), ctx)
    exit_if_failed(results)
