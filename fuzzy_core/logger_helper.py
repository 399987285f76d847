"""
logger_helper.py - Logging Helpers

get_logger() returns a module logger; setup_logging() configures the root
logger for the CLI and GUI (console, plus an optional rotating file).
"""

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

_CONSOLE_FORMAT = "[%(levelname)s] %(message)s"
_FILE_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """
    Returns a logger with the given name, or the module name if None.

    Args:
        name: Optional name for the logger (defaults to this module)

    Returns:
        Logger instance
    """
    return logging.getLogger(name or __name__)


def setup_logging(
    verbose: bool = False,
    log_file: Optional[Path] = None,
    max_bytes: int = 1_000_000,
    backup_count: int = 3
) -> logging.Logger:
    """
    Configure application-wide logging

    Args:
        verbose: Log DEBUG to the console instead of WARNING
        log_file: Optional file receiving INFO and higher
        max_bytes: Max size of the log file before rotating
        backup_count: Number of rotated files to keep

    Returns:
        The root logger
    """
    root = logging.getLogger()
    root.setLevel(logging.DEBUG)

    # Repeated calls (e.g. GUI relaunch in tests) must not stack handlers
    for handler in list(root.handlers):
        if getattr(handler, "_fuzzy_rename", False):
            root.removeHandler(handler)
            handler.close()

    console = logging.StreamHandler()
    console.setLevel(logging.DEBUG if verbose else logging.WARNING)
    console.setFormatter(logging.Formatter(_CONSOLE_FORMAT))
    console._fuzzy_rename = True
    root.addHandler(console)

    if log_file is not None:
        log_file = Path(log_file)
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(log_file, maxBytes=max_bytes, backupCount=backup_count,
                                           encoding="utf-8")
        file_handler.setLevel(logging.INFO)
        file_handler.setFormatter(logging.Formatter(_FILE_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
        file_handler._fuzzy_rename = True
        root.addHandler(file_handler)

    return root
