"""
Logging configuration for file-search.

Quiet by default: only warnings reach stderr. --verbose (or FILE_SEARCH_VERBOSE=1) turns on
debug output. Unexpected CLI failures are appended with their traceback to an error log
kept beside the database.
"""

from __future__ import annotations

import logging
import os
import sys
import traceback
from datetime import datetime, timezone
from pathlib import Path

LOGGER_NAME = "file_search"
ERROR_LOG_NAME = "filesearch-errors.log"


def configure_quiet_mode() -> None:
    """
    Show warnings and errors from file_search only. With no handler configured they go
    through logging's last-resort handler, which always writes to the current sys.stderr.
    """
    logging.getLogger(LOGGER_NAME).setLevel(logging.WARNING)


def enable_debug_mode() -> None:
    """Enable debug-level logging to stderr."""
    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)

    if not any(isinstance(h, logging.StreamHandler) and h.stream == sys.stderr
               for h in root_logger.handlers):
        handler = logging.StreamHandler(sys.stderr)
        handler.setLevel(logging.DEBUG)
        handler.setFormatter(logging.Formatter(
            "%(asctime)s %(levelname)s %(name)s: %(message)s",
            datefmt="%H:%M:%S",
        ))
        root_logger.addHandler(handler)

    logging.getLogger(LOGGER_NAME).setLevel(logging.DEBUG)


def verbose_from_env() -> bool:
    return os.environ.get("FILE_SEARCH_VERBOSE") == "1"


def log_exception(exc: Exception, log_dir: Path, context: str = "") -> Path:
    """
    Append the current traceback to the error log in log_dir.

    Returns the log path so the caller can point the user at it.
    """
    log_path = log_dir / ERROR_LOG_NAME
    timestamp = datetime.now(timezone.utc).isoformat()
    try:
        log_path.parent.mkdir(parents=True, exist_ok=True)
        with open(log_path, "a", encoding="utf-8") as f:
            f.write(f"\n{'=' * 60}\n")
            f.write(f"[{timestamp}]")
            if context:
                f.write(f" {context}")
            f.write(f" {type(exc).__name__}: {exc}\n")
            f.write(traceback.format_exc())
    except OSError:
        logging.getLogger(LOGGER_NAME).warning("Could not write error log %s", log_path)
    return log_path
