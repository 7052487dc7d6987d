"""Summary command: size, hubs, cycles and orphans for a workspace."""

from pathlib import Path
from typing import Optional

import typer
from rich.table import Table

from ..exceptions import ConstellationError, ErrorResult
from . import app
from ._common import (
    build_engine,
    configure_logging,
    console,
    print_json,
    report_error,
    resolve_config,
)

_MAX_LISTED = 10


@app.command()
def summary(
    path: Path = typer.Argument(
        Path("."),
        help="Workspace root to analyze",
        exists=True,
        file_okay=False,
        dir_okay=True,
    ),
    scan_path: str = typer.Option(".", "--scan-path", "-s", help="Sub-path to scan, relative to the root"),
    force_refresh: bool = typer.Option(False, "--force-refresh", "-f", help="Ignore the cached graph"),
    json_output: bool = typer.Option(False, "--json", help="Output in machine-readable JSON format"),
    config: Optional[Path] = typer.Option(
        None,
        "--config",
        "-c",
        help="Configuration file (TOML)",
        exists=True,
        file_okay=True,
        dir_okay=False,
    ),
    scanner_json: Optional[Path] = typer.Option(
        None,
        "--scanner-json",
        help="Use a saved scanner report instead of running the scanner",
        exists=True,
        dir_okay=False,
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Suppress logging"),
):
    """
    Summarize the dependency structure of a workspace.

    [bold cyan]Examples:[/bold cyan]

      constellation-insight summary .

      constellation-insight summary ./web --json
    """
    try:
        settings = resolve_config(config, verbose, quiet)
        configure_logging(settings, json_output)
        engine = build_engine(settings, scanner_json)
    except ConstellationError as e:
        report_error(ErrorResult.from_exception(e), json_output)

    try:
        result = engine.get_summary(path, scan_path=scan_path, force_refresh=force_refresh)
    finally:
        engine.close()

    if not result.ok:
        report_error(result, json_output)

    if json_output:
        print_json(result.to_dict())
        return

    metrics = result.summary.metrics
    insights = result.summary.insights

    console.print()
    console.print("[bold cyan]CONSTELLATION INSIGHT - Summary[/bold cyan]")
    console.print()
    console.print(result.summary.narrative)
    console.print()
    source = "cache" if result.cache_used else f"scan ({result.scan_duration_ms} ms)"
    console.print(
        f"  Files: [green]{metrics.file_count}[/green]  "
        f"Dependencies: [green]{metrics.dependency_count}[/green]  "
        f"Source: [dim]{source}[/dim]"
    )
    if result.summary.truncated:
        console.print("  [yellow]Graph exceeded size limits; insights cover part of it.[/yellow]")

    if insights.top_hubs:
        table = Table(title="Top hubs", show_header=True)
        table.add_column("File")
        table.add_column("Connections", justify="right")
        for hub in insights.top_hubs:
            table.add_row(hub.id, str(hub.connection_count))
        console.print()
        console.print(table)

    if insights.circular_dependencies:
        console.print()
        console.print(f"[bold]Circular dependencies[/bold] ({len(insights.circular_dependencies)})")
        for cycle in insights.circular_dependencies[:_MAX_LISTED]:
            console.print(f"  [red]{' -> '.join(cycle + cycle[:1])}[/red]")

    if insights.orphan_files:
        console.print()
        console.print(f"[bold]Orphan files[/bold] ({len(insights.orphan_files)})")
        for orphan in insights.orphan_files[:_MAX_LISTED]:
            console.print(f"  [dim]{orphan}[/dim]")
        if len(insights.orphan_files) > _MAX_LISTED:
            console.print(f"  [dim]... and {len(insights.orphan_files) - _MAX_LISTED} more[/dim]")
