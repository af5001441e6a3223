"""Logging setup for bmsync.

Engine components never print. They log to loggers below the ``bmsync``
namespace, and the CLI decides where those records go.
"""

import logging
from pathlib import Path
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler

ROOT_LOGGER_NAME = "bmsync"


def get_logger(component: str) -> logging.Logger:
    """Return the hierarchical logger for a component, e.g. ``bmsync.cache``."""
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{component}")


def configure_logging(
    *,
    verbose: bool = False,
    log_file: Optional[str] = None,
    console: Optional[Console] = None,
) -> logging.Logger:
    """Attach a Rich handler (and optionally a file handler) to the bmsync logger.

    Args:
        verbose: Show DEBUG records on the console instead of WARNING and above.
        log_file: Optional path of a log file receiving DEBUG and above.
        console: Rich console to render to (stderr by default).

    Returns:
        The configured ``bmsync`` root logger.
    """
    root = logging.getLogger(ROOT_LOGGER_NAME)
    root.setLevel(logging.DEBUG)

    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()

    rich_handler = RichHandler(
        console=console or Console(stderr=True),
        show_time=False,
        show_path=False,
        markup=False,
    )
    rich_handler.setLevel(logging.DEBUG if verbose else logging.WARNING)
    root.addHandler(rich_handler)

    if log_file:
        path = Path(log_file).expanduser()
        path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(path, encoding="utf-8")
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s"))
        root.addHandler(file_handler)

    return root
