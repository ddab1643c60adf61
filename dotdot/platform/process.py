"""Subprocess execution returning Result values.

`run` captures output for commands whose stdout is parsed (git plumbing).
`run_shell` hands user-declared commands (`install`, `exec`) to the system
shell and lets their output reach the terminal.

    rev = run(["git", "rev-parse", "HEAD"], cwd=repo_dir)
    if isinstance(rev, Err):
        console.error(rev.error.message)
"""

from __future__ import annotations

import subprocess
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path

from dotdot.core.result import Err, Ok, Result

__all__ = ["ProcessError", "ShellRunner", "run", "run_shell"]


@dataclass(frozen=True, slots=True)
class ProcessError:
    """Error from a failed subprocess execution.

    Attributes:
        command: The command that was executed.
        returncode: The exit code of the process.
        stdout: Standard output (may be empty).
        stderr: Standard error (contains error details).
    """

    command: tuple[str, ...]
    returncode: int
    stdout: str
    stderr: str

    def __str__(self) -> str:
        cmd_str = " ".join(self.command[:3])
        if len(self.command) > 3:
            cmd_str += " ..."
        return f"{cmd_str} failed (exit {self.returncode})"

    @property
    def message(self) -> str:
        """Best single-line description of the failure."""
        detail = self.stderr.strip() or self.stdout.strip()
        if detail:
            return detail.splitlines()[-1]
        return str(self)


type ShellRunner = Callable[[str, Path], Result[None, ProcessError]]


def run(
    cmd: list[str],
    cwd: Path,
    env: dict[str, str] | None = None,
    *,
    timeout: float | None = None,
) -> Result[str, ProcessError]:
    """Execute a command and return stdout or error.

    Args:
        cmd: Command and arguments to execute.
        cwd: Working directory for the command.
        env: Environment variables (uses current env if None).
        timeout: Maximum seconds to wait (None for no limit).

    Returns:
        Ok(stdout) on success, Err(ProcessError) on failure.
    """
    try:
        proc = subprocess.run(
            cmd,
            cwd=str(cwd),
            env=env,
            capture_output=True,
            text=True,
            timeout=timeout,
            check=False,
        )
    except subprocess.TimeoutExpired as e:
        return Err(
            ProcessError(
                command=tuple(cmd),
                returncode=-1,
                stdout=e.stdout if isinstance(e.stdout, str) else "",
                stderr=f"Command timed out after {timeout}s",
            )
        )
    except OSError as e:
        return Err(
            ProcessError(
                command=tuple(cmd),
                returncode=-1,
                stdout="",
                stderr=str(e),
            )
        )

    if proc.returncode != 0:
        return Err(
            ProcessError(
                command=tuple(cmd),
                returncode=proc.returncode,
                stdout=proc.stdout,
                stderr=proc.stderr,
            )
        )

    return Ok(proc.stdout)


def run_shell(command: str, cwd: Path) -> Result[None, ProcessError]:
    """Run a user-supplied shell command, streaming output to the terminal.

    The command string is opaque: it is handed to the system shell unchanged.
    Only the exit status is inspected.
    """
    try:
        proc = subprocess.run(command, cwd=str(cwd), shell=True, check=False)
    except OSError as e:
        return Err(ProcessError(command=(command,), returncode=-1, stdout="", stderr=str(e)))

    if proc.returncode != 0:
        return Err(
            ProcessError(
                command=(command,),
                returncode=proc.returncode,
                stdout="",
                stderr=f"Command failed with exit code {proc.returncode}: {command}",
            )
        )

    return Ok(None)
