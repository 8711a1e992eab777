"""Central logging setup for the scanctl logger tree."""

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path

from rich.console import Console
from rich.logging import RichHandler

LOGGER_NAME = "scanctl"


def init_logging(
    verbose: bool = False,
    log_file: Path | None = None,
    console: Console | None = None,
) -> logging.Logger:
    """Attach console (and optional rotating file) handlers to the ``scanctl`` logger.

    Calling it again only adjusts the level.
    """
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(logging.DEBUG if verbose else logging.WARNING)
    if logger.handlers:
        return logger

    handler = RichHandler(console=console, rich_tracebacks=True, show_time=True, show_level=True)
    logger.addHandler(handler)

    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        fmt = logging.Formatter("[%(asctime)s] %(levelname)s %(threadName)s %(name)s: %(message)s")
        file_handler = RotatingFileHandler(log_file, maxBytes=10 * 1024 * 1024, backupCount=5)
        file_handler.setFormatter(fmt)
        logger.addHandler(file_handler)

    return logger
