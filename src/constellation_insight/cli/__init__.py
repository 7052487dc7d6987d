"""CLI entry point: registers all subcommands."""

import typer

app = typer.Typer(
    name="constellation-insight",
    help="Constellation Insight - dependency graph cache, health and impact analysis",
    add_completion=False,
    rich_markup_mode="rich",
)


# Import subcommands to register them
from .summary import summary as _summary  # noqa: F401, E402
from .health import health as _health  # noqa: F401, E402
from .impact import impact as _impact  # noqa: F401, E402
from .cache import cache_clear as _cache_clear, cache_info as _cache_info  # noqa: F401, E402


def main() -> None:
    app()
