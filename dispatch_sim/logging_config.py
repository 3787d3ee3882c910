"""Central logging configuration for the CLI and batch runs."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional


LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

_configured_handlers: list[logging.Handler] = []


def setup_logging(level: int | str = logging.WARNING, log_file: Optional[str] = None) -> logging.Logger:
    """Attach console (and optionally file) handlers to the package logger.

    Calling it again replaces the handlers installed by the previous call.
    """
    if isinstance(level, str):
        resolved = logging.getLevelName(level.upper())
        if not isinstance(resolved, int):
            raise ValueError(f"unknown log level {level}")
        level = resolved

    package_logger = logging.getLogger("dispatch_sim")
    shutdown_logging()

    formatter = logging.Formatter(LOG_FORMAT)
    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)
    _configured_handlers.append(console_handler)

    if log_file:
        path = Path(log_file)
        path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(path, encoding="utf-8")
        file_handler.setFormatter(formatter)
        _configured_handlers.append(file_handler)

    for handler in _configured_handlers:
        package_logger.addHandler(handler)
    package_logger.setLevel(level)
    return package_logger


def shutdown_logging() -> None:
    """Detach and close handlers installed by ``setup_logging``."""
    package_logger = logging.getLogger("dispatch_sim")
    while _configured_handlers:
        handler = _configured_handlers.pop()
        package_logger.removeHandler(handler)
        handler.close()
