"""Authentication commands."""

from __future__ import annotations
import asyncio
from typing import Annotated
import typer
from instol_sdk.auth.callback import raise_for_login_intent, start_browser_login
from instol_sdk.errors import InstolError, UnauthorizedError
from .render import render_kv_section
from .utils import abort_with_error, get_context


auth_app = typer.Typer(help="Sign in to and out of instol.cloud.")


def _mask(token: str) -> str:
    return f"{token[:8]}..." if len(token) > 8 else "********"


@auth_app.command("login")
def login(
    ctx: typer.Context,
    no_browser: Annotated[
        bool,
        typer.Option("--no-browser", help="Print the login URL instead of opening it."),
    ] = False,
    port: Annotated[
        int | None,
        typer.Option(help="Local port receiving the login redirect."),
    ] = None,
) -> None:
    """Sign in through the browser and store the session token."""
    context = get_context(ctx)
    manager = context.credentials()
    try:
        start_browser_login(
            manager,
            api_url=context.settings.api_url,
            console=context.console,
            port=port or context.settings.callback_port,
            no_browser=no_browser,
        )
    except (InstolError, OSError) as exc:
        abort_with_error(context, exc)
    context.console.print("[green]Logged in.[/green]")


@auth_app.command("callback")
def callback(
    ctx: typer.Context,
    url: Annotated[str, typer.Argument(help="Redirect URL carrying token or error.")],
) -> None:
    """Complete a login from a pasted redirect URL."""
    context = get_context(ctx)
    manager = context.credentials()
    try:
        raise_for_login_intent(manager.capture(url))
    except InstolError as exc:
        abort_with_error(context, exc)
    context.console.print("[green]Logged in.[/green]")


@auth_app.command("status")
def status(ctx: typer.Context) -> None:
    """Show whether this profile is signed in."""
    context = get_context(ctx)
    settings = context.settings
    token = context.credentials().current()
    if token is None:
        context.console.print("[yellow]Not authenticated.[/yellow]")
        context.console.print("Run 'instol auth login' to sign in.")
        return

    async def _load_user() -> tuple[str, str]:
        async with context.session() as session:
            user = await session.api.me()
        return user.email, user.name

    try:
        email, name = asyncio.run(_load_user())
    except UnauthorizedError as exc:
        abort_with_error(context, exc)
    except InstolError as exc:
        context.console.print(f"[yellow]Could not load account details: {exc}[/yellow]")
        email, name = "", ""

    render_kv_section(
        context.console,
        title="Authentication",
        pairs=[
            ("Profile", settings.profile),
            ("API URL", settings.api_url),
            ("Token", _mask(token)),
            ("Email", email),
            ("Name", name),
        ],
    )


@auth_app.command("logout")
def logout(ctx: typer.Context) -> None:
    """Sign out and forget the stored session token."""
    context = get_context(ctx)

    async def _invalidate() -> None:
        async with context.session() as session:
            await session.credentials.invalidate()

    asyncio.run(_invalidate())
    context.console.print("[green]Logged out.[/green]")


__all__ = ["auth_app"]
