"""
Logging utilities for the geokit toolkit.

Provides unified structured logging:
- pretty console output via Rich
- structured (JSON) file output to `replay.log` when running `geokit replay`
- a default level taken from the GEOKIT_LOG_LEVEL environment variable
"""

import logging
import os
import sys
import json
from pathlib import Path

from rich.logging import RichHandler


class JSONFormatter(logging.Formatter):
    """
    Formatter that serializes log records to JSON.
    """
    def format(self, record: logging.LogRecord) -> str:
        log_record = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level":     record.levelname,
            "logger":    record.name,
            "message":   record.getMessage(),
        }
        if record.exc_info:
            log_record["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(log_record)


LOG_LEVEL_ENV = "GEOKIT_LOG_LEVEL"


def default_level() -> int | str:
    """
    Level named by GEOKIT_LOG_LEVEL (e.g. "DEBUG"), or INFO if unset or unknown.
    """
    name = os.environ.get(LOG_LEVEL_ENV, "").strip().upper()
    if name and isinstance(logging.getLevelName(name), int):
        return name
    return logging.INFO


def get_logger(name: str, level: int | str | None = None) -> logging.Logger:
    """
    Return a configured logger for the given name.

    Attaches:
    - a RichHandler for console output
    - when the command is 'replay', a FileHandler writing JSON logs to {cwd}/replay.log

    Parameters
    ----------
    name
        Logger name (typically __name__).
    level
        Log level (int or string). Defaults to GEOKIT_LOG_LEVEL, else INFO.

    Returns
    -------
    logging.Logger
        Configured logger instance.
    """
    if level is None:
        level = default_level()
    logger = logging.getLogger(name)
    logger.setLevel(level)

    if not logger.handlers:
        # Console via Rich
        console_handler = RichHandler(rich_tracebacks=True)
        console_handler.setLevel(level)
        logger.addHandler(console_handler)

        # File output for `geokit replay`, as structured JSON
        if len(sys.argv) > 1 and sys.argv[1] == "replay":
            log_path = Path.cwd() / f"{sys.argv[1]}.log"
            file_handler = logging.FileHandler(log_path, mode="a", encoding="utf-8")
            file_handler.setLevel(level)
            file_handler.setFormatter(JSONFormatter())
            logger.addHandler(file_handler)

    return logger
