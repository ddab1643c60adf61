from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

import typer

from dotdot.core.errors import ErrorCode
from dotdot.core.result import Err
from dotdot.core.workspace import Workspace, detect_workspace
from dotdot.output.console import ConsoleProtocol, RichConsole


@dataclass(frozen=True, slots=True)
class CLIContext:
    workspace: Workspace
    console: ConsoleProtocol


def build_context(start_dir: Path | None = None) -> CLIContext:
    """Detect the workspace for this invocation or exit with ENV_ERROR.

    The process working directory is read here, once, and passed down.
    """
    console = RichConsole()
    workspace_result = detect_workspace(start_dir=start_dir or Path.cwd())
    if isinstance(workspace_result, Err):
        console.error(workspace_result.error.message)
        console.print("hint: run `dotdot init` to create a workspace here")
        raise typer.Exit(code=int(ErrorCode.ENV_ERROR))

    return CLIContext(workspace=workspace_result.value, console=console)
