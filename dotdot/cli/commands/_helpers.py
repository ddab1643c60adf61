"""Shared helpers for CLI commands."""

from __future__ import annotations

from collections.abc import Iterable
from typing import TYPE_CHECKING, NoReturn, Protocol

import typer

from dotdot.core.config import ConfigError
from dotdot.core.errors import ErrorCode
from dotdot.core.result import Err, Result
from dotdot.output.console import Style

if TYPE_CHECKING:
    from dotdot.cli.context import CLIContext


class _HasStatus(Protocol):
    @property
    def status(self) -> str: ...


def exit_on_error[T, E](
    result: Result[T, E],
    ctx: CLIContext,
    error_code: ErrorCode = ErrorCode.CONFIG_ERROR,
) -> T:
    """Exit with error if result is Err, otherwise return its value.

    This helper reduces boilerplate for the common pattern:
        match result:
            case Err(e):
                ctx.console.error(e.message)
                if e.hint:
                    ctx.console.print(f"hint: {e.hint}", Style.DIM)
                raise typer.Exit(code=int(ErrorCode.CONFIG_ERROR))
            case Ok(value):
                ...

    Error objects are expected to have a "message" and an optional "hint"
    attribute. ConfigError is printed with the file it refers to.
    """
    if isinstance(result, Err):
        error = result.error
        if isinstance(error, ConfigError):
            message = str(error)
        else:
            message = getattr(error, "message", str(error))
        hint: str | None = getattr(error, "hint", None)
        ctx.console.error(message)
        if hint:
            ctx.console.print(f"hint: {hint}", Style.DIM)
        raise typer.Exit(code=int(error_code))
    return result.value


def exit_if_failed(items: Iterable[_HasStatus]) -> None:
    """Exit with OPERATION_FAILED when any item ended up `failed`."""
    if any(item.status == "failed" for item in items):
        exit_with_code(int(ErrorCode.OPERATION_FAILED))


def exit_with_code(code: int) -> NoReturn:
    """Exit with given code. Explicit helper for clarity."""
    raise typer.Exit(code=code)
