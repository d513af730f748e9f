"""Rendering helpers for CLI output."""

from __future__ import annotations
from collections.abc import Iterable, Sequence
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from instol_sdk.models import Instance, InstanceHealth


_HEALTH_STYLES = {
    InstanceHealth.HEALTHY: "green",
    InstanceHealth.PENDING: "yellow",
}
_MISSING = "-"

Column = tuple[str, str | None]


def render_table(
    console: Console,
    *,
    title: str,
    columns: Sequence[Column],
    rows: Iterable[Sequence[str]],
    caption: str | None = None,
) -> None:
    """Render rows under ``(header, style)`` columns."""
    table = Table(title=title, caption=caption, header_style="bold")
    for header, style in columns:
        table.add_column(header, style=style)
    for row in rows:
        table.add_row(*(cell or _MISSING for cell in row))
    console.print(table)


def render_kv_section(
    console: Console,
    *,
    title: str,
    pairs: Sequence[tuple[str, str | None]],
) -> None:
    """Render labelled values in a panel; empty values show as a dash."""
    grid = Table.grid(padding=(0, 2))
    grid.add_column(style="bold")
    grid.add_column()
    for label, value in pairs:
        grid.add_row(label, value or _MISSING)
    console.print(Panel(grid, title=title, expand=False))


def format_status(instance: Instance) -> str:
    """Return the instance status wrapped in its health colour."""
    style = _HEALTH_STYLES[instance.health]
    return f"[{style}]{instance.status or 'unknown'}[/{style}]"


def render_instances(console: Console, instances: Sequence[Instance]) -> None:
    """Render the instance listing, or a hint when it is empty."""
    if not instances:
        console.print("[yellow]No instances yet.[/yellow]")
        console.print("Create one with 'instol instance create <subdomain>'.")
        return
    render_table(
        console,
        title="Instances",
        columns=(("ID", "dim"), ("Host", "cyan"), ("Status", None), ("Created", None)),
        caption=f"{len(instances)} instance(s)",
        rows=[
            (
                instance.id,
                instance.host,
                format_status(instance),
                instance.created_display,
            )
            for instance in instances
        ],
    )


__all__ = ["format_status", "render_instances", "render_kv_section", "render_table"]
