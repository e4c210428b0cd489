"""Console and file logging for upgrade runs."""
from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import List

from services.options import UpgradeOptions

ROOT_LOGGER_NAME = "services"
FILE_FORMAT = "%(asctime)s [%(levelname)s] %(message)s"
DESCRIPTION_PREFIX = "Description:"

# Records logged with this extra reach the log file but not the console.
FILE_ONLY = {"file_only": True}


class DescriptionFilter(logging.Filter):
    """Keep step descriptions out of the log file."""

    def filter(self, record: logging.LogRecord) -> bool:
        return not record.getMessage().startswith(DESCRIPTION_PREFIX)


class ConsoleFilter(logging.Filter):
    """Route a record to one console stream by level."""

    def __init__(self, errors: bool) -> None:
        super().__init__()
        self.errors = errors

    def filter(self, record: logging.LogRecord) -> bool:
        if getattr(record, "file_only", False):
            return False
        return (record.levelno >= logging.WARNING) == self.errors


def configure_logging(options: UpgradeOptions) -> List[logging.Handler]:
    """Attach console and file handlers for the run and return them.

    Warnings and errors go to stderr, everything else to stdout. The log
    file is opened in append mode; when it cannot be opened the run continues
    with console output only.
    """
    logger = logging.getLogger(ROOT_LOGGER_NAME)
    logger.setLevel(logging.DEBUG)
    logger.propagate = False

    handlers: List[logging.Handler] = []

    if not options.quiet:
        for stream, errors in ((sys.stdout, False), (sys.stderr, True)):
            console = logging.StreamHandler(stream)
            console.setLevel(logging.INFO)
            console.setFormatter(logging.Formatter("%(message)s"))
            console.addFilter(ConsoleFilter(errors))
            handlers.append(console)

    log_path = Path(options.log_file)
    try:
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_path, mode="a", encoding="utf-8")
    except OSError as exc:
        file_handler = None
        if not options.quiet:
            print(f"Warning: unable to open log file {log_path}: {exc}", file=sys.stderr)
    if file_handler is not None:
        file_handler.setLevel(logging.DEBUG if options.trace else logging.INFO)
        file_handler.setFormatter(logging.Formatter(FILE_FORMAT))
        file_handler.addFilter(DescriptionFilter())
        handlers.append(file_handler)

    for handler in handlers:
        logger.addHandler(handler)
    return handlers


def reset_logging(handlers: List[logging.Handler]) -> None:
    logger = logging.getLogger(ROOT_LOGGER_NAME)
    for handler in handlers:
        logger.removeHandler(handler)
        handler.close()
    logger.propagate = True
