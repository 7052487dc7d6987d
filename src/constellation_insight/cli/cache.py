"""Cache management commands."""

from pathlib import Path
from typing import Optional

import typer

from ..cache.persistence import SnapshotDiskCache
from ..exceptions import ConstellationError
from . import app
from ._common import console, resolve_config


@app.command()
def cache_info(
    config: Optional[Path] = typer.Option(
        None, "--config", "-c", help="Configuration file (TOML)", exists=True, dir_okay=False
    ),
):
    """Show persisted snapshot cache information."""
    try:
        settings = resolve_config(config)
    except ConstellationError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)

    if not settings.cache_enabled:
        console.print("Status: [red]Disabled[/red]")
        return

    disk = SnapshotDiskCache(settings.cache_dir, enabled=True)
    try:
        stats = disk.stats()
    finally:
        disk.close()

    console.print("[bold cyan]Constellation Insight Cache Info[/bold cyan]")
    console.print()
    console.print("Status: [green]Enabled[/green]")
    console.print(f"Directory: [blue]{stats.get('directory', 'N/A')}[/blue]")
    console.print(f"Snapshots: [yellow]{stats.get('size', 0)}[/yellow]")
    console.print(f"Size: [yellow]{stats.get('volume', 0)} bytes[/yellow]")


@app.command()
def cache_clear(
    path: Optional[Path] = typer.Argument(
        None,
        help="Only drop the snapshot for this workspace root",
        file_okay=False,
        dir_okay=True,
    ),
    config: Optional[Path] = typer.Option(
        None, "--config", "-c", help="Configuration file (TOML)", exists=True, dir_okay=False
    ),
):
    """Clear persisted dependency graph snapshots."""
    try:
        settings = resolve_config(config)
    except ConstellationError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)

    if not settings.cache_enabled:
        console.print("[yellow]Cache is disabled[/yellow]")
        raise typer.Exit(0)

    disk = SnapshotDiskCache(settings.cache_dir, enabled=True)
    try:
        if path is None:
            disk.clear()
            console.print("[green]Cache cleared successfully[/green]")
        elif disk.delete(str(path.expanduser().resolve())):
            console.print(f"[green]Dropped cached graph for {path}[/green]")
        else:
            console.print(f"[yellow]No cached graph for {path}[/yellow]")
    finally:
        disk.close()
