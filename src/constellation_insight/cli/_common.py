"""Shared CLI helpers."""

import json
from pathlib import Path
from typing import Any, NoReturn, Optional

import typer
from rich.console import Console

from ..config import EngineConfig, load_config
from ..engine import DependencyGraphEngine
from ..exceptions import ErrorResult
from ..logging_config import setup_logging
from ..scanning.scanner import JsonFileScanner

console = Console()

TIER_STYLES = {
    "low": "green",
    "medium": "yellow",
    "high": "dark_orange",
    "critical": "red",
}


def resolve_config(
    config: Optional[Path] = None,
    verbose: bool = False,
    quiet: bool = False,
    cache: Optional[bool] = None,
) -> EngineConfig:
    """Build configuration from CLI options."""
    overrides: dict[str, Any] = {}
    if verbose:
        overrides["verbose"] = True
    if quiet:
        overrides["quiet"] = True
    if cache is not None:
        overrides["cache_enabled"] = cache
    return load_config(config_file=config, **overrides)


def configure_logging(settings: EngineConfig, json_output: bool = False) -> None:
    """Logging level from the merged configuration; JSON output keeps only errors."""
    setup_logging(
        verbose=settings.verbosity == "verbose",
        quiet=json_output or settings.verbosity == "quiet",
    )


def build_engine(settings: EngineConfig, scanner_json: Optional[Path] = None) -> DependencyGraphEngine:
    """Engine for one CLI invocation; ``scanner_json`` replays a saved scan."""
    scanner = JsonFileScanner(str(scanner_json)) if scanner_json else None
    return DependencyGraphEngine(scanner=scanner, config=settings)


def print_json(data: Any) -> None:
    # Plain print keeps stdout free of rich markup
    print(json.dumps(data, indent=2, default=str))


def report_error(result: ErrorResult, json_output: bool) -> NoReturn:
    """Print an error result and exit with status 1."""
    if json_output:
        print_json(result.to_dict())
        raise typer.Exit(1)

    console.print(f"[red]Error ({result.error_code.value}):[/red] {result.error}")
    for suggestion in result.suggestions:
        console.print(f"  [yellow]-[/yellow] {suggestion}")
    for action in result.recovery_actions:
        console.print(f"  [dim]-> {action}[/dim]")
    raise typer.Exit(1)
