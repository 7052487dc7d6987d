"""
Logging for Constellation Insight.

The engine is embedded in long-running hosts, so only the package logger is
configured here; the host's root logger is left alone. Terminal output goes
through rich on stderr, keeping stdout clean for ``--json``.
"""

import logging
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler

ROOT_LOGGER = "constellation_insight"

_FILE_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"


def _level_for(verbose: bool, quiet: bool) -> int:
    if quiet:
        return logging.ERROR
    if verbose:
        return logging.DEBUG
    return logging.WARNING


def setup_logging(
    verbose: bool = False, quiet: bool = False, log_file: Optional[str] = None
) -> logging.Logger:
    """
    Attach a rich stderr handler (and optionally a log file) to the package logger.

    Safe to call repeatedly: handlers from an earlier call are replaced.

    Args:
        verbose: DEBUG level, with source paths and locals in tracebacks
        quiet: ERROR level only (used for --json output)
        log_file: Append plain-text records to this file as well
    """
    level = _level_for(verbose, quiet)
    logger = logging.getLogger(ROOT_LOGGER)

    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    rich_handler = RichHandler(
        console=Console(stderr=True),
        rich_tracebacks=True,
        tracebacks_show_locals=verbose,
        # File paths and scanner stderr often contain [brackets]
        markup=False,
        show_path=verbose,
        log_time_format="[%X]",
    )
    rich_handler.setFormatter(logging.Formatter("%(message)s"))
    logger.addHandler(rich_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file, mode="a", encoding="utf-8")
        file_handler.setFormatter(logging.Formatter(_FILE_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
        logger.addHandler(file_handler)

    logger.setLevel(level)
    logger.propagate = False
    return logger


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """
    Logger under the ``constellation_insight`` namespace.

    Module names from inside the package already carry the prefix; anything
    else is nested under it.
    """
    if not name:
        return logging.getLogger(ROOT_LOGGER)
    if name != ROOT_LOGGER and not name.startswith(ROOT_LOGGER + "."):
        name = f"{ROOT_LOGGER}.{name}"
    return logging.getLogger(name)
