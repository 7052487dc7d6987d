"""Impact command: what a change to one file touches."""

from pathlib import Path
from typing import Optional

import typer
from rich.table import Table

from ..exceptions import ConstellationError, ErrorResult
from ..impact.models import ChangeType
from . import app
from ._common import (
    TIER_STYLES,
    build_engine,
    configure_logging,
    console,
    print_json,
    report_error,
    resolve_config,
)


@app.command()
def impact(
    path: Path = typer.Argument(
        ...,
        help="Workspace root to analyze",
        exists=True,
        file_okay=False,
        dir_okay=True,
    ),
    file: str = typer.Argument(..., help="File to analyze, relative to the workspace root"),
    change_type: Optional[str] = typer.Option(
        None,
        "--change-type",
        "-t",
        help=f"Kind of change: {', '.join(c.value for c in ChangeType)}",
    ),
    depth: Optional[int] = typer.Option(
        None, "--depth", "-d", help="Transitive traversal depth", min=1, max=5
    ),
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
    Show the dependents, dependencies and blast radius of changing FILE.

    Misspelled paths are matched against the graph when one candidate is
    clearly best; otherwise the closest candidates are suggested.

    [bold cyan]Examples:[/bold cyan]

      constellation-insight impact . src/utils/helpers.ts

      constellation-insight impact . utils/helper.ts --change-type refactor
    """
    try:
        settings = resolve_config(config, verbose, quiet)
        configure_logging(settings, json_output)
        engine = build_engine(settings, scanner_json)
    except ConstellationError as e:
        report_error(ErrorResult.from_exception(e), json_output)

    try:
        result = engine.analyze_impact(
            path, file, change_type=change_type, force_refresh=force_refresh, max_depth=depth
        )
    finally:
        engine.close()

    if not result.ok:
        if not json_output and result.path_suggestions:
            console.print("[bold]Closest files:[/bold]")
            for suggestion in result.path_suggestions:
                console.print(
                    f"  {suggestion.path} [dim]({suggestion.reason}, {suggestion.confidence}%)[/dim]"
                )
        report_error(result, json_output)

    if json_output:
        print_json(result.to_dict())
        return

    resolution = result.path_resolution
    console.print()
    console.print("[bold cyan]CONSTELLATION INSIGHT - Impact[/bold cyan]")
    console.print()
    if resolution.fuzzy_matched:
        console.print(
            f"  [yellow]Matched '{resolution.original_path}' to '{resolution.resolved_path}' "
            f"({resolution.confidence}% confidence)[/yellow]"
        )
        console.print()
    console.print(result.summary)

    transitive = result.transitive_impact
    console.print()
    console.print(
        f"  Blast radius: [bold]{len(transitive.impacted_files)}[/bold] files within "
        f"{transitive.depth} hops, risk score [bold]{transitive.risk_score}[/bold] / 10"
    )

    if transitive.impacted_files:
        table = Table(show_header=True)
        table.add_column("File")
        table.add_column("Hops", justify="right")
        table.add_column("Impact")
        for affected in transitive.impacted_files[:15]:
            style = TIER_STYLES[affected.level]
            label = affected.level + (" (circular)" if affected.circular else "")
            table.add_row(affected.id, str(affected.distance), f"[{style}]{label}[/{style}]")
        console.print(table)

    for recommendation in transitive.recommendations:
        console.print(f"  - {recommendation}")
