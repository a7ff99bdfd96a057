"""Logging configuration for folderplay."""

from __future__ import annotations

import logging
import logging.config
from pathlib import Path
from typing import Any, Dict, Tuple

MAX_LOG_BYTES = 5 * 1024 * 1024

# logger name -> (log file, rotated backups kept)
LOG_TARGETS: Dict[str, Tuple[str, int]] = {
    "folderplay": ("app.log", 5),
    "folderplay.playback": ("playback.log", 3),
    "folderplay.fileops": ("fileops.log", 3),
}

# File moves and deletions also belong in the main application log.
_EXTRA_HANDLERS = {"folderplay.fileops": ["app_file"]}


def _handler_id(filename: str) -> str:
    return f"{Path(filename).stem}_file"


def build_logging_config(log_directory: Path, level: str = "INFO") -> Dict[str, Any]:
    """Return the dictConfig mapping: one rotating file per logger plus console."""
    handlers: Dict[str, Dict[str, Any]] = {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "brief",
            "level": level,
        },
    }
    loggers: Dict[str, Dict[str, Any]] = {}
    for name, (filename, backups) in LOG_TARGETS.items():
        handler_id = _handler_id(filename)
        handlers[handler_id] = {
            "class": "logging.handlers.RotatingFileHandler",
            "formatter": "default",
            "level": "DEBUG",
            "filename": str(log_directory / filename),
            "maxBytes": MAX_LOG_BYTES,
            "backupCount": backups,
            "encoding": "utf-8",
        }
        loggers[name] = {
            "handlers": [handler_id, *_EXTRA_HANDLERS.get(name, []), "console"],
            "level": level,
            "propagate": False,
        }

    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "default": {"format": "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"},
            "brief": {"format": "%(levelname)s | %(name)s | %(message)s"},
        },
        "handlers": handlers,
        "loggers": loggers,
    }


def setup_logging(log_directory: Path, level: str = "INFO") -> None:
    """Configure application logging targets."""
    log_directory.mkdir(parents=True, exist_ok=True)
    logging.config.dictConfig(build_logging_config(log_directory, level))
    logging.getLogger("folderplay").info("Logging initialised; log directory: %s", log_directory)
