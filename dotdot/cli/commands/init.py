"""Init command - create a workspace in the current directory."""

from __future__ import annotations

from pathlib import Path

import typer

from dotdot.core.config import CONFIG_FILE_NAME, create_empty_config
from dotdot.core.errors import ErrorCode
from dotdot.core.result import Err
from dotdot.output.console import RichConsole, Style


def init(
    path: Path = typer.Argument(Path("."), help="Directory to initialize (default: current dir)"),
) -> None:
    """Create an empty dotdot.toml, making the directory a workspace root."""
    console = RichConsole()
    try:
        root = path.expanduser().resolve()
    except OSError as e:
        console.error(f"invalid path: {e}")
        raise typer.Exit(code=int(ErrorCode.USER_ERROR)) from e

    if not root.is_dir():
        console.error(f"not a directory: {root}")
        raise typer.Exit(code=int(ErrorCode.USER_ERROR))

    if (root / CONFIG_FILE_NAME).exists():
        console.print("Workspace already initialized", Style.DIM)
        return

    created = create_empty_config(root)
    if isinstance(created, Err):
        console.error(str(created.error))
        raise typer.Exit(code=int(ErrorCode.CONFIG_ERROR))

    console.success(f"Initialized dotdot workspace: {root}")
    console.print(f"Created {created.value.name}", Style.DIM)
