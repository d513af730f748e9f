"""Typer application wiring for the instol CLI."""

from __future__ import annotations
import logging
from pathlib import Path
from typing import Annotated
import typer
from rich.console import Console
from instol_sdk.config import resolve_settings
from instol_sdk.errors import ConfigurationError
from instol_sdk.logging_config import configure_logging
from .auth import auth_app
from .instances import instance_app
from .state import CLIContext


app = typer.Typer(help="Command line tools for instol.cloud n8n hosting.")
app.add_typer(auth_app, name="auth")
app.add_typer(instance_app, name="instance")


@app.callback()
def _configure(
    ctx: typer.Context,
    api_url: Annotated[
        str | None,
        typer.Option(help="Override the instol API URL."),
    ] = None,
    profile: Annotated[
        str | None,
        typer.Option(
            "--profile",
            "-p",
            help="Named profile from the CLI config file.",
        ),
    ] = None,
    config_dir: Annotated[
        Path | None,
        typer.Option(help="Directory holding cli.toml and stored tokens."),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Log debug output to stderr."),
    ] = False,
) -> None:
    """Initialise shared CLI state before executing a command."""
    configure_logging(logging.DEBUG if verbose else None)
    try:
        settings = resolve_settings(
            api_url=api_url,
            profile=profile,
            config_dir=config_dir,
        )
    except ConfigurationError as exc:
        raise typer.BadParameter(str(exc)) from exc

    ctx.obj = CLIContext(settings=settings, console=Console())


def main() -> None:
    """Entry point for console script execution."""
    app()


__all__ = ["app", "main"]
