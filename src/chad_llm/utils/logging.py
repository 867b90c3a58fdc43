"""
Logging setup for the command-line entry point.

Library modules only create loggers; handlers are installed once here so
log records go to stderr and never interleave with a reply piped on stdout.
"""

import logging
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler

LOG_FORMAT = "%(name)s: %(message)s"


def setup_logging(level: str = "WARNING", debug: bool = False, console: Optional[Console] = None) -> None:
    """Configure the root logger with a Rich handler on stderr.

    Args:
        level: Level name such as "INFO"
        debug: Force DEBUG level and show file locations
        console: Console to log to (defaults to a stderr console)
    """
    effective_level = logging.DEBUG if debug else getattr(logging, level.upper(), logging.WARNING)

    handler = RichHandler(
        console=console or Console(stderr=True),
        show_path=debug,
        rich_tracebacks=debug,
        markup=False,
    )
    logging.basicConfig(
        level=effective_level,
        format=LOG_FORMAT,
        datefmt="[%X]",
        handlers=[handler],
        force=True,
    )

    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(logging.DEBUG if debug else logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
