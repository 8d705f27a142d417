# SMSYNC Logging
# stdlib logging routed through Rich

import logging
from pathlib import Path
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler

FILE_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
FILE_DATEFMT = "%Y-%m-%d %H:%M:%S"

_NOISY_LOGGERS = ("httpx", "httpcore", "apscheduler")


def setup_logging(level: str = "INFO", log_file: Optional[str] = None, colored: bool = True) -> None:
    """
    Configure application logging.

    Args:
        level: Log level name (DEBUG, INFO, WARNING, ...).
        log_file: Optional path of a plain-text log file.
        colored: Enable colored console output.
    """
    log_level = getattr(logging, level.upper(), logging.INFO)

    handlers: list[logging.Handler] = [
        RichHandler(
            console=Console(stderr=True, no_color=not colored),
            show_path=False,
            rich_tracebacks=True,
            markup=False,
        )
    ]

    if log_file:
        path = Path(log_file).expanduser()
        path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(path, encoding="utf-8")
        file_handler.setFormatter(logging.Formatter(FILE_FORMAT, datefmt=FILE_DATEFMT))
        handlers.append(file_handler)

    logging.basicConfig(level=log_level, format="%(message)s", datefmt="[%X]", handlers=handlers, force=True)

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    logging.getLogger(__name__).debug("Logging configured at %s level", level.upper())
