# cnproc_sentinel/log.py
"""
Logging setup.
Diagnostics go to stderr through rich; stdout is reserved for event lines.
"""
import logging

from rich.console import Console
from rich.logging import RichHandler

from cnproc_sentinel import config

stderr_console = Console(stderr=True)


def setup_logging(level=None):
    """Route the root logger through a RichHandler on stderr."""
    handler = RichHandler(
        console=stderr_console,
        show_path=False,
        rich_tracebacks=True,
    )
    logging.basicConfig(
        level=level or config.LOG_LEVEL,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[handler],
        force=True,
    )


def get_logger(name):
    return logging.getLogger(name)
