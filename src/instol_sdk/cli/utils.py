"""Shared helpers used across CLI command modules."""

from __future__ import annotations
import asyncio
from collections.abc import Awaitable, Callable
from typing import NoReturn, TypeVar
import typer
from instol_sdk.client import InstolSession
from instol_sdk.errors import InstolError
from .state import CLIContext


T = TypeVar("T")


def get_context(ctx: typer.Context) -> CLIContext:
    """Return the CLI context stored on the Typer context object."""
    obj = ctx.ensure_object(CLIContext)
    if not isinstance(obj, CLIContext):  # pragma: no cover - defensive branch
        msg = "CLI context has not been initialised"
        raise RuntimeError(msg)
    return obj


def abort_with_error(context: CLIContext, exc: Exception | str) -> NoReturn:
    """Print an error and exit the CLI with a non-zero status code."""
    context.console.print(f"[red]{exc}[/red]")
    raise typer.Exit(code=1)


def run_session(
    context: CLIContext, operation: Callable[[InstolSession], Awaitable[T]]
) -> T:
    """Run ``operation`` against a fresh session on its own event loop.

    The signed-in guard runs first. An unauthorised response anywhere in the
    operation has already cleared the credential; it is reported here.
    """

    async def _runner() -> T:
        async with context.session() as session:
            session.controller.require_authenticated()
            return await operation(session)

    try:
        return asyncio.run(_runner())
    except InstolError as exc:
        abort_with_error(context, exc)


__all__ = ["abort_with_error", "get_context", "run_session"]
