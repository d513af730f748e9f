"""Instance management commands."""

from __future__ import annotations
from typing import Annotated
import typer
from instol_sdk.client import InstolSession
from instol_sdk.lifecycle.availability import AvailabilityProber
from instol_sdk.lifecycle.dashboard import (
    DEFAULT_MAX_POLLS,
    DEFAULT_POLL_INTERVAL,
    InstanceDashboard,
)
from instol_sdk.models import KNOWN_REGIONS, AvailabilityState, InstanceHealth
from .render import format_status, render_instances
from .state import CLIContext
from .utils import abort_with_error, get_context, run_session


instance_app = typer.Typer(help="Create, inspect, and delete n8n instances.")

_AVAILABILITY_STYLES = {
    AvailabilityState.AVAILABLE: "green",
    AvailabilityState.UNAVAILABLE: "red",
    AvailabilityState.UNKNOWN: "yellow",
}


async def _watch(
    context: CLIContext,
    dashboard: InstanceDashboard,
    instance_id: str,
    *,
    interval: float,
    max_polls: int,
) -> None:
    console = context.console
    last = None
    async for instance in dashboard.watch(
        instance_id, interval=interval, max_polls=max_polls
    ):
        if instance is None:
            console.print(
                f"[yellow]Instance {instance_id} is no longer listed.[/yellow]"
            )
            return
        if instance.status != last:
            console.print(f"{instance.host}: {format_status(instance)}")
            last = instance.status
        if instance.health is InstanceHealth.HEALTHY:
            console.print(f"[green]Ready at {instance.instance_url}[/green]")
            return
    console.print("[yellow]Stopped watching; the instance is still starting.[/yellow]")


@instance_app.command("list")
def list_instances(ctx: typer.Context) -> None:
    """List instances owned by the signed-in account."""
    context = get_context(ctx)

    async def _operation(session: InstolSession) -> None:
        dashboard = session.controller.dashboard
        await dashboard.refresh()
        if dashboard.error:
            abort_with_error(context, dashboard.error)
        render_instances(context.console, dashboard.instances)

    run_session(context, _operation)


@instance_app.command("check")
def check(
    ctx: typer.Context,
    subdomain: Annotated[str, typer.Argument(help="Subdomain to probe.")],
) -> None:
    """Check whether a subdomain is still free."""
    context = get_context(ctx)

    async def _operation(session: InstolSession) -> None:
        prober = AvailabilityProber(session.api, quiet_period=0)
        prober.set_candidate(subdomain.lower())
        if len(prober.candidate) < prober.min_length:
            context.console.print(
                f"[yellow]Subdomains need at least {prober.min_length} characters."
                "[/yellow]"
            )
            return
        await prober.wait_idle()
        state = prober.state
        style = _AVAILABILITY_STYLES[state]
        message = prober.message or "Availability could not be determined."
        context.console.print(f"[{style}]{prober.candidate}: {state}[/{style}]")
        context.console.print(message)

    run_session(context, _operation)


@instance_app.command("create")
def create(
    ctx: typer.Context,
    subdomain: Annotated[str, typer.Argument(help="Subdomain for the instance.")],
    region: Annotated[
        str | None,
        typer.Option(help=f"Deployment region ({', '.join(KNOWN_REGIONS)})."),
    ] = None,
    watch: Annotated[
        bool,
        typer.Option("--watch/--no-watch", help="Poll until the instance is running."),
    ] = True,
    interval: Annotated[
        float, typer.Option(help="Seconds between status polls.")
    ] = DEFAULT_POLL_INTERVAL,
    max_polls: Annotated[
        int, typer.Option(help="Maximum number of status polls.")
    ] = DEFAULT_MAX_POLLS,
) -> None:
    """Deploy a new instance at <subdomain>."""
    context = get_context(ctx)

    async def _operation(session: InstolSession) -> None:
        console = context.console
        form = session.controller.creation_form(region=region)
        if not form.region_enabled:
            console.print(
                f"[yellow]Region '{form.region}' is not open yet; "
                "the server may reject it.[/yellow]"
            )
        form.prober.quiet_period = 0
        form.set_subdomain(subdomain)
        await form.prober.wait_idle()
        if form.prober.message:
            style = _AVAILABILITY_STYLES[form.availability]
            console.print(f"[{style}]{form.prober.message}[/{style}]")

        with console.status("Deploying..."):
            intent = await form.submit()
        await form.aclose()
        if intent is None:
            abort_with_error(context, form.error or "Failed to create instance")

        console.print(f"[green]Deployment of {form.subdomain} started.[/green]")
        dashboard = session.controller.dashboard
        if watch and form.created is not None:
            await _watch(
                context,
                dashboard,
                form.created.id,
                interval=interval,
                max_polls=max_polls,
            )
            return
        await dashboard.refresh()
        render_instances(console, dashboard.instances)

    run_session(context, _operation)


@instance_app.command("watch")
def watch_instance(
    ctx: typer.Context,
    instance_id: Annotated[str, typer.Argument(help="Instance identifier.")],
    interval: Annotated[
        float, typer.Option(help="Seconds between status polls.")
    ] = DEFAULT_POLL_INTERVAL,
    max_polls: Annotated[
        int, typer.Option(help="Maximum number of status polls.")
    ] = DEFAULT_MAX_POLLS,
) -> None:
    """Follow an instance until it reports running."""
    context = get_context(ctx)

    async def _operation(session: InstolSession) -> None:
        await _watch(
            context,
            session.controller.dashboard,
            instance_id,
            interval=interval,
            max_polls=max_polls,
        )

    run_session(context, _operation)


@instance_app.command("delete")
def delete(
    ctx: typer.Context,
    instance_id: Annotated[str, typer.Argument(help="Instance identifier.")],
    confirm: Annotated[
        str | None,
        typer.Option(help="Subdomain of the instance, to skip the prompt."),
    ] = None,
) -> None:
    """Delete an instance after typing its subdomain to confirm."""
    context = get_context(ctx)

    async def _operation(session: InstolSession) -> None:
        console = context.console
        dashboard = session.controller.dashboard
        await dashboard.refresh()
        if dashboard.error:
            abort_with_error(context, dashboard.error)
        instance = dashboard.find(instance_id)
        if instance is None:
            abort_with_error(context, f"Instance '{instance_id}' not found.")

        confirmation = dashboard.open_delete(instance)
        console.print(f"You are about to delete [bold]{instance.host}[/bold].")
        typed = confirm
        if typed is None:
            typed = typer.prompt(f"Type {confirmation.expected} to confirm")
        dashboard.type_confirmation(typed)
        if not dashboard.can_delete:
            dashboard.close_delete()
            abort_with_error(context, "Confirmation did not match; nothing deleted.")

        if not await dashboard.confirm_delete():
            abort_with_error(context, dashboard.error or "Failed to delete instance")
        console.print(f"[green]Deleted {instance.host}.[/green]")
        render_instances(console, dashboard.instances)

    run_session(context, _operation)


__all__ = ["instance_app"]
