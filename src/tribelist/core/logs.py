"""Logging setup for tribelist."""

from __future__ import annotations

import logging
import sys
from pathlib import Path

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(level: str = "INFO", log_path: Path | None = None) -> logging.Logger:
    """Configure logging to output to stderr and optionally a file.

    Calling it again replaces the handlers installed by a previous call.

    Args:
        level: Logging level name.
        log_path: Optional path to a log file.

    Returns:
        The configured ``tribelist`` root logger.
    """
    formatter = logging.Formatter(LOG_FORMAT)

    root_logger = logging.getLogger("tribelist")
    root_logger.setLevel(level.upper())

    for handler in list(root_logger.handlers):
        if getattr(handler, "_tribelist_handler", False):
            root_logger.removeHandler(handler)
            handler.close()

    # Stderr keeps command output on stdout clean
    stream_handler = logging.StreamHandler(sys.stderr)
    stream_handler.setFormatter(formatter)
    stream_handler._tribelist_handler = True  # type: ignore[attr-defined]
    root_logger.addHandler(stream_handler)

    if log_path is not None:
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_path, encoding="utf-8")
        file_handler.setFormatter(formatter)
        file_handler._tribelist_handler = True  # type: ignore[attr-defined]
        root_logger.addHandler(file_handler)

    return root_logger
