"""Root logger setup driven by the verbosity and JSON command line flags."""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime
from typing import Optional, TextIO

TRACE = 5
logging.addLevelName(TRACE, "TRACE")

# Indexed by verbosity 0..5: (level, short name, colour).
_LEVELS = (
    (logging.CRITICAL, "crit", "\x1b[35m"),
    (logging.ERROR, "eror", "\x1b[31m"),
    (logging.WARNING, "warn", "\x1b[33m"),
    (logging.INFO, "info", "\x1b[32m"),
    (logging.DEBUG, "dbug", "\x1b[36m"),
    (TRACE, "trce", "\x1b[34m"),
)


def _level_info(levelno: int) -> tuple[int, str, str]:
    return next((entry for entry in _LEVELS if levelno >= entry[0]), _LEVELS[-1])


def _verbosity_to_level(verbosity: int) -> int:
    if verbosity < 0:
        return logging.CRITICAL + 1
    return _LEVELS[verbosity][0] if verbosity < len(_LEVELS) else 1


class JsonFormatter(logging.Formatter):
    """Formats each record as one JSON object with ``t``, ``lvl`` and ``msg``."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "t": datetime.fromtimestamp(record.created).astimezone().isoformat(),
            "lvl": _level_info(record.levelno)[1],
            "msg": record.getMessage(),
        }
        if record.exc_info:
            entry["error"] = self.formatException(record.exc_info)
        return json.dumps(entry, ensure_ascii=False, default=str)


class _TerminalFormatter(logging.Formatter):
    """Formats records as ``LVL [mm-dd|hh:mm:ss.mmm] message``."""

    def __init__(self, color: bool) -> None:
        super().__init__()
        self._color = color

    def format(self, record: logging.LogRecord) -> str:
        _, name, colour = _level_info(record.levelno)
        level = f"{colour}{name.upper()}\x1b[0m" if self._color else name.upper()
        stamp = datetime.fromtimestamp(record.created).strftime("%m-%d|%H:%M:%S")
        line = f"{level} [{stamp}.{int(record.msecs):03d}] {record.getMessage()}"
        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line


def init_logger(
    verbosity: int = 3, log_json: bool = False, stream: Optional[TextIO] = None
) -> logging.Handler:
    """Replace the root logger's handlers with one writing to ``stream`` (stdout by default)."""
    target = sys.stdout if stream is None else stream
    handler = logging.StreamHandler(target)
    if log_json:
        handler.setFormatter(JsonFormatter())
    else:
        isatty = getattr(target, "isatty", None)
        handler.setFormatter(_TerminalFormatter(color=bool(isatty and isatty())))

    level = _verbosity_to_level(verbosity)
    handler.setLevel(level)
    root = logging.getLogger()
    for existing in list(root.handlers):
        root.removeHandler(existing)
    root.addHandler(handler)
    root.setLevel(level)
    return handler