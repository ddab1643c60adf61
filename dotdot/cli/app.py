from __future__ import annotations

import os
from pathlib import Path

import typer

from dotdot import __version__
from dotdot.cli.commands.clone import clone
from dotdot.cli.commands.exec_cmd import exec_
from dotdot.cli.commands.init import init
from dotdot.cli.commands.link import link_app
from dotdot.cli.commands.pull import pull
from dotdot.cli.commands.restore import restore
from dotdot.cli.commands.status import status, tree
from dotdot.cli.commands.update import update
from dotdot.core.errors import ErrorCode
from dotdot.core.workspace import is_workspace_root

WORKSPACE_ENV_VAR = "DOTDOT_WORKSPACE"

app = typer.Typer(
    add_completion=False,
    no_args_is_help=True,
    rich_markup_mode="rich",
    help="Manage a workspace of sibling git repos pinned by dotdot.toml.",
)


# Commands
app.command()(init)
app.command()(status)
app.command()(tree)
app.command()(clone)
app.command()(restore)
app.command()(pull)
app.command()(update)
app.command("exec")(exec_)

# Sub-apps
app.add_typer(link_app, name="link")


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(__version__)
        raise typer.Exit(code=0)


@app.callback()
def _main(  # pyright: ignore[reportUnusedFunction]
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    workspace: Path | None = typer.Option(
        None,
        "--workspace",
        help="Workspace root (overrides auto detection)",
    ),
) -> None:
    if workspace is not None:
        try:
            root = workspace.expanduser().resolve()
        except OSError as e:
            typer.echo(f"error: invalid --workspace: {e}", err=True)
            raise typer.Exit(code=int(ErrorCode.USER_ERROR))

        if not root.is_dir() or not is_workspace_root(root):
            typer.echo(
                f"error: --workspace '{root}' is not a valid workspace (missing dotdot.toml)",
                err=True,
            )
            raise typer.Exit(code=int(ErrorCode.ENV_ERROR))

        os.environ[WORKSPACE_ENV_VAR] = str(root)


def main() -> None:
    app()
