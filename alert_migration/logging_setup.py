"""Logging setup.

JSON lines for production runs, a readable console format for operators.
Fields bound with log_context() (org_id, run_id, ...) are attached to every
record emitted inside the block, including from worker threads that enter
their own context.
"""

from __future__ import annotations

import json
import logging
import os
import sys
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Any, Dict, Iterator, Optional

_context_var: ContextVar[Dict[str, Any]] = ContextVar("alert_migration_log_context", default={})

LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
FORMATS = ("json", "console")


def get_context_dict() -> Dict[str, Any]:
    return dict(_context_var.get())


@contextmanager
def log_context(**fields: Any) -> Iterator[None]:
    token = _context_var.set({**_context_var.get(), **fields})
    try:
        yield
    finally:
        _context_var.reset(token)


class StructuredFormatter(logging.Formatter):
    """One JSON object per line: timestamp, level, logger, message, context, extra_data."""

    def __init__(self, service_name: str = "alert-migration"):
        super().__init__()
        self.service_name = service_name

    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "service": self.service_name,
        }
        entry.update(get_context_dict())

        extra = getattr(record, "extra_data", None)
        if extra:
            entry.update(extra)

        if record.exc_info and record.exc_info[0] is not None:
            entry["exception"] = {
                "type": record.exc_info[0].__name__,
                "message": str(record.exc_info[1]),
                "traceback": self.formatException(record.exc_info),
            }
        return json.dumps(entry, default=str)


class ConsoleFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        timestamp = datetime.now(timezone.utc).strftime("%H:%M:%S.%f")[:-3]
        fields = {**get_context_dict(), **(getattr(record, "extra_data", None) or {})}
        kv = " ".join(f"{k}={v}" for k, v in fields.items())
        line = f"{timestamp} {record.levelname:8s} {record.name}: {record.getMessage()}"
        if kv:
            line += f" [{kv}]"
        if record.exc_info and record.exc_info[0] is not None:
            line += "\n" + self.formatException(record.exc_info)
        return line


def configure_logging(level: Optional[str] = None, fmt: Optional[str] = None) -> None:
    """
    Configure the root logger once at startup.

    ALERT_MIGRATION_LOG_LEVEL / ALERT_MIGRATION_LOG_FORMAT override the
    arguments when set to a recognised value.
    """
    level = (level or "INFO").upper()
    fmt = (fmt or "console").lower()

    env_level = os.environ.get("ALERT_MIGRATION_LOG_LEVEL", "").upper()
    if env_level in LEVELS:
        level = env_level
    env_format = os.environ.get("ALERT_MIGRATION_LOG_FORMAT", "").lower()
    if env_format in FORMATS:
        fmt = env_format

    if level not in LEVELS:
        raise ValueError(f"unknown log level {level!r}")

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(StructuredFormatter() if fmt == "json" else ConsoleFormatter())

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(getattr(logging, level))

    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
