"""Logging configuration for the short-news API.

Two output shapes, selected by LOG_JSON:

  _ContainerFormatter: one human-readable line per record for dev
    terminals, tagged with the request id.  WARNING and above carry
    [file:line].

  _JsonFormatter: one JSON object per line for log aggregation in prod.
    Request-scoped fields attached by RequestContextMiddleware (request
    id, timing, cache status and key) become top-level keys so they can
    be filtered on directly, e.g.

      cache_status == "MISS" AND path == "/api/public/news"

The request id lives in a ContextVar.  The filter that copies it onto
records is installed on the handler rather than the root logger, because
logger-level filters do not see records propagated from child loggers.
"""

from __future__ import annotations

import datetime
import json
import logging
import sys
from contextvars import ContextVar

request_id_var: ContextVar[str] = ContextVar("request_id", default="-")

_QUIET_LOGGERS = (
    "uvicorn",
    "uvicorn.access",
    "uvicorn.error",
    "httpcore",
    "httpx",
    "redis",  # logs every reconnect attempt at DEBUG
)


class _RequestContextFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "request_id"):
            record.request_id = request_id_var.get()  # type: ignore[attr-defined]
        return True


def _iso_millis(record: logging.LogRecord) -> str:
    ts = datetime.datetime.fromtimestamp(record.created).astimezone()
    return ts.isoformat(timespec="milliseconds")


class _ContainerFormatter(logging.Formatter):
    """`<time> <LEVEL> <logger> [<request id>]  <message>`, plus the source
    location from WARNING up and the traceback when there is one."""

    def formatTime(self, record: logging.LogRecord, datefmt: str | None = None) -> str:
        return _iso_millis(record)

    def format(self, record: logging.LogRecord) -> str:
        line = (
            f"{self.formatTime(record)} {record.levelname:<8} {record.name} "
            f"[{getattr(record, 'request_id', '-')}]  {record.getMessage()}"
        )
        if record.levelno >= logging.WARNING:
            line += f"  [{record.filename}:{record.lineno}]"
        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line


class _JsonFormatter(logging.Formatter):
    """JSON Lines formatter.

    Context fields are copied only when present on the record, so plain
    module logs stay small.
    """

    _CONTEXT_FIELDS = (
        "request_id",
        "method",
        "path",
        "status_code",
        "duration_ms",
        "cache_status",
        "cache_key",
    )

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, object] = {
            "timestamp": _iso_millis(record),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for key in self._CONTEXT_FIELDS:
            value = getattr(record, key, None)
            if value is not None and value != "-":
                entry[key] = value
        if record.exc_info and record.exc_info[0] is not None:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


def setup_logging(level_name: str, *, json_format: bool = False) -> None:
    """Send every record to stdout in the chosen shape.

    Unknown level names fall back to INFO.  Chatty third-party loggers are
    held at WARNING unless the service itself runs quieter than that.
    """
    level = getattr(logging, level_name.upper(), logging.INFO)

    handler = logging.StreamHandler(sys.stdout)
    handler.addFilter(_RequestContextFilter())
    handler.setFormatter(_JsonFormatter() if json_format else _ContainerFormatter())

    root = logging.getLogger()
    root.setLevel(level)
    root.handlers.clear()
    root.addHandler(handler)

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))
