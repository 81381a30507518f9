"""Structured JSON logging shared by the dispatch engine and operator API.

Context passed through ``extra={...}`` (correlation id, provider, result)
becomes top-level keys of the JSON line.
"""

import json
import logging
import sys
from collections.abc import Sequence
from datetime import datetime, timezone
from typing import TextIO

_RESERVED = frozenset(vars(logging.makeLogRecord({}))) | {"message", "asctime"}


class JsonFormatter(logging.Formatter):
    """One JSON object per line."""

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, object] = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        entry.update(
            (key, value) for key, value in vars(record).items() if key not in _RESERVED
        )

        if record.exc_info and record.exc_info[1]:
            entry["exception"] = self.formatException(record.exc_info)
        if record.stack_info:
            entry["stack"] = self.formatStack(record.stack_info)

        return json.dumps(entry, default=str, ensure_ascii=False)


def setup_logging(
    level: str = "INFO",
    suppress: Sequence[str] = (),
    stream: TextIO | None = None,
) -> None:
    """Send JSON log lines to *stream* (stdout by default).

    Args:
        level: Root log level (e.g. "INFO", "DEBUG").
        suppress: Third-party loggers to cap at WARNING (e.g. "httpx",
                  "celery", "werkzeug").
        stream: Where log lines go; the CLI keeps stdout for its output.
    """
    handler = logging.StreamHandler(stream or sys.stdout)
    handler.setFormatter(JsonFormatter())

    root = logging.getLogger()
    root.setLevel(getattr(logging, level.upper(), logging.INFO))
    root.handlers[:] = [handler]

    for name in suppress:
        logging.getLogger(name).setLevel(logging.WARNING)
