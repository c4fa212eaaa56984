"""Logger hierarchy and handler setup for typedupes."""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import List, Optional

ROOT_LOGGER = "typedupes"

_CONSOLE_FORMAT = "typedupes: %(levelname)s: %(message)s"
# Worker threads log concurrently, so file records carry the thread name.
_FILE_FORMAT = "%(asctime)s %(threadName)s %(name)s %(levelname)s %(message)s"


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Return ``typedupes`` or one of its children, e.g. ``typedupes.walker``."""
    root = logging.getLogger(ROOT_LOGGER)
    return root.getChild(name) if name else root


def configure_logging(*, verbose: bool = False, log_file: Optional[Path] = None) -> logging.Logger:
    """Send typedupes records to stderr and, when given, to ``log_file``.

    The console only shows warnings unless ``verbose`` is set. The log file
    always receives debug records, so a quiet run can still be inspected.
    Raises OSError when ``log_file`` cannot be opened.
    """
    logger = logging.getLogger(ROOT_LOGGER)
    shutdown_logging()

    console_level = logging.DEBUG if verbose else logging.WARNING
    handlers: List[logging.Handler] = [
        _with_format(logging.StreamHandler(sys.stderr), console_level, _CONSOLE_FORMAT)
    ]
    if log_file is not None:
        path = Path(log_file).expanduser()
        handlers.append(
            _with_format(logging.FileHandler(path, mode="w", encoding="utf-8"), logging.DEBUG, _FILE_FORMAT)
        )

    logger.setLevel(min(handler.level for handler in handlers))
    logger.propagate = False
    for handler in handlers:
        logger.addHandler(handler)
    return logger


def shutdown_logging() -> None:
    """Detach and close every handler on the typedupes logger."""
    logger = logging.getLogger(ROOT_LOGGER)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()


def _with_format(handler: logging.Handler, level: int, fmt: str) -> logging.Handler:
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(fmt))
    return handler


__all__ = ["ROOT_LOGGER", "configure_logging", "get_logger", "shutdown_logging"]
