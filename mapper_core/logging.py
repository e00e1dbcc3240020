"""
Structured JSON logger for mapper_core.

One JSONL file per logger name under the logs directory, plus a console
stream.  File: DEBUG+, console: MAPPER_LOG_LEVEL (default INFO).
Files rotate at 10 MB, keeping 5 backups.

The logs directory is, in order: $MAPPER_LOG_DIR, ``paths.logs_dir`` from
mapper.json, ``./logs``.
"""

import functools
import json
import logging
import os
import sys
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from pathlib import Path

LOG_DIR_ENV = "MAPPER_LOG_DIR"
LOG_LEVEL_ENV = "MAPPER_LOG_LEVEL"

_ROTATE_BYTES = 10 * 1024 * 1024
_ROTATE_KEEP = 5
_CONSOLE_FORMAT = "%(asctime)s | %(threadName)-12s | %(name)-22s | %(levelname)-7s | %(message)s"


class JsonFormatter(logging.Formatter):
    """Serialises a record to one JSON object per line."""

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "ts": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
            "where": f"{record.module}:{record.funcName}:{record.lineno}",
            "thread": record.threadName,
        }
        if record.exc_info and record.exc_info[0] is not None:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str)


def _configured_dir() -> Path:
    env_dir = os.environ.get(LOG_DIR_ENV)
    if env_dir:
        return Path(env_dir)

    # mapper_core.config logs through this module, so mapper.json is read raw here.
    config_file = Path("mapper.json")
    if config_file.exists():
        try:
            with open(config_file, "r") as fh:
                configured = json.load(fh).get("paths", {}).get("logs_dir")
        except (OSError, ValueError, AttributeError):
            configured = None
        if configured:
            return Path(configured)
    return Path("logs")


@functools.lru_cache(maxsize=1)
def log_directory() -> Path:
    """The resolved (and created) logs directory; computed once per process."""
    path = _configured_dir()
    try:
        path.mkdir(parents=True, exist_ok=True)
    except OSError:
        path = Path("logs")
        path.mkdir(parents=True, exist_ok=True)
    return path


def _console_level() -> int:
    level = logging.getLevelName(os.environ.get(LOG_LEVEL_ENV, "INFO").upper())
    return level if isinstance(level, int) else logging.INFO


def get_logger(name: str, *, console: bool = True) -> logging.Logger:
    """
    Logger *name* with a JSON file handler and, optionally, a console one.

    Calling it again for the same name returns the already configured
    logger; handlers are never attached twice.
    """
    logger = logging.getLogger(name)
    if logger.handlers:
        return logger

    logger.setLevel(logging.DEBUG)
    logger.propagate = False

    file_handler = RotatingFileHandler(
        log_directory() / f"{name}.jsonl",
        maxBytes=_ROTATE_BYTES,
        backupCount=_ROTATE_KEEP,
    )
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(JsonFormatter())
    logger.addHandler(file_handler)

    if console:
        stream = logging.StreamHandler(sys.stdout)
        stream.setLevel(_console_level())
        stream.setFormatter(logging.Formatter(_CONSOLE_FORMAT))
        logger.addHandler(stream)

    return logger
