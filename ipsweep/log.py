"""Logging setup for the command line tool, rendered through rich."""
import logging

from rich.logging import RichHandler

from .ui import console


def setup_logging(level: int = logging.WARNING):
    """
    Route the standard logging module through a RichHandler on the shared
    console so log lines and the progress bar do not trample each other.
    The library modules only create loggers; handlers are configured here.
    """
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=True, show_path=False)],
        force=True,
    )
