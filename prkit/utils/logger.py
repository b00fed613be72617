"""Logging utilities for prkit.

Every module logs through a child of the ``prkit`` logger. Records go to a
rich handler on stderr (INFO, DEBUG with ``--verbose``) and, when the home
directory is writable, to ``~/.prkit/logs/prkit.log`` at DEBUG.
"""

import logging
from pathlib import Path
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler

ROOT_LOGGER = "prkit"
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def _configure_root() -> logging.Logger:
    """Attach the console and file handlers to the ``prkit`` logger once."""
    root = logging.getLogger(ROOT_LOGGER)
    if root.handlers:
        return root
    root.setLevel(logging.DEBUG)

    console_handler = RichHandler(
        console=Console(stderr=True),
        show_time=False,
        show_path=False,
        rich_tracebacks=True,
    )
    console_handler.setLevel(logging.INFO)
    root.addHandler(console_handler)

    log_file = Path.home() / ".prkit" / "logs" / "prkit.log"
    try:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file)
    except OSError:
        return root
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(logging.Formatter(LOG_FORMAT))
    root.addHandler(file_handler)
    return root


class PrkitLogger:
    """Named logger taking preformatted messages."""

    def __init__(self, name: str = ROOT_LOGGER):
        _configure_root()
        self.logger = logging.getLogger(name)

    def debug(self, message: str, **kwargs) -> None:
        self.logger.debug(message, **kwargs)

    def info(self, message: str, **kwargs) -> None:
        self.logger.info(message, **kwargs)

    def warning(self, message: str, **kwargs) -> None:
        self.logger.warning(message, **kwargs)

    def error(self, message: str, **kwargs) -> None:
        self.logger.error(message, **kwargs)


def get_logger(name: Optional[str] = None) -> PrkitLogger:
    """Logger for ``name`` (a module's ``__name__``), or the root prkit logger."""
    return PrkitLogger(name or ROOT_LOGGER)


def enable_verbose_logging() -> None:
    """Show DEBUG records on the console too."""
    root = _configure_root()
    for handler in root.handlers:
        if not isinstance(handler, logging.FileHandler):
            handler.setLevel(logging.DEBUG)
    root.debug("Verbose logging enabled")
