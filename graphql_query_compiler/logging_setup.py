"""Logging setup for the gqc command line."""

import logging
from typing import Optional, Union

from rich.console import Console
from rich.logging import RichHandler

PACKAGE_LOGGER = "graphql_query_compiler"


def setup_logging(level: Union[int, str] = logging.WARNING, console: Optional[Console] = None) -> logging.Logger:
    """
    Route the package's log records to stderr through rich.

    Args:
        level: Logging level name or number
        console: Console to render on (default: a stderr console)

    Returns:
        The configured package logger
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())

    logger = logging.getLogger(PACKAGE_LOGGER)
    logger.setLevel(level)

    # Replace handlers from a previous call instead of stacking them
    for handler in list(logger.handlers):
        logger.removeHandler(handler)

    handler = RichHandler(console=console or Console(stderr=True), show_path=False, markup=False)
    handler.setFormatter(logging.Formatter("%(message)s"))
    logger.addHandler(handler)
    logger.propagate = False

    return logger
