"""Health command: risk tiers, top risks and recommendations."""

from pathlib import Path
from typing import Optional

import typer
from rich.table import Table

from ..exceptions import ConstellationError, ErrorResult
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


def _score_style(score: int) -> str:
    if score >= 70:
        return "green"
    if score >= 50:
        return "yellow"
    return "red"


@app.command()
def health(
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
    Score every file's risk from complexity, churn and coupling.

    [bold cyan]Examples:[/bold cyan]

      constellation-insight health .

      constellation-insight health . --json
    """
    try:
        settings = resolve_config(config, verbose, quiet)
        configure_logging(settings, json_output)
        engine = build_engine(settings, scanner_json)
    except ConstellationError as e:
        report_error(ErrorResult.from_exception(e), json_output)

    try:
        result = engine.get_health_report(path, scan_path=scan_path, force_refresh=force_refresh)
    finally:
        engine.close()

    if not result.ok:
        report_error(result, json_output)

    if json_output:
        print_json(result.to_dict())
        return

    report = result.report
    distribution = report.distribution
    style = _score_style(report.health_score)

    console.print()
    console.print("[bold cyan]CONSTELLATION INSIGHT - Health[/bold cyan]")
    console.print()
    console.print(f"  Health score: [bold {style}]{report.health_score}[/bold {style}] / 100")
    console.print(
        "  "
        + "  ".join(
            f"[{TIER_STYLES[tier]}]{tier}: {count}[/{TIER_STYLES[tier]}]"
            for tier, count in distribution.counts.items()
        )
    )

    if report.top_risks:
        table = Table(title="Top risks", show_header=True)
        table.add_column("File")
        table.add_column("Score", justify="right")
        table.add_column("Tier")
        table.add_column("Connections", justify="right")
        for risk in report.top_risks:
            tier_style = TIER_STYLES[risk.tier]
            table.add_row(
                risk.id,
                f"{risk.score:.1f}",
                f"[{tier_style}]{risk.tier}[/{tier_style}]",
                str(risk.degree),
            )
        console.print()
        console.print(table)

    console.print()
    console.print("[bold]Recommendations[/bold]")
    for message in report.recommendations.messages():
        console.print(f"  - {message}")
