from __future__ import annotations

import datetime as dt
import json
import logging
import os
import sys
import uuid
from typing import Any

from loguru import logger as loguru_logger

UTC = dt.UTC

# Attributes every LogRecord carries; anything else arrived through ``extra``.
_STANDARD_FIELDS = frozenset(
    {
        "args",
        "msg",
        "name",
        "levelno",
        "levelname",
        "pathname",
        "filename",
        "module",
        "exc_info",
        "exc_text",
        "stack_info",
        "lineno",
        "funcName",
        "created",
        "msecs",
        "relativeCreated",
        "thread",
        "threadName",
        "processName",
        "process",
        "taskName",
        "getMessage",
        "message",
    }
)

_SYNC_COUNTER_FIELDS = frozenset(
    {
        "created_local",
        "linked_existing",
        "updated_titles",
        "deleted_local",
        "deleted_remote",
        "uploaded",
        "relinked",
        "moved",
        "duplicates_removed",
        "failed",
        "duration",
    }
)


def _user_fields(record: logging.LogRecord) -> dict[str, Any]:
    """Fields attached through ``extra=``."""
    return {
        key: value
        for key, value in record.__dict__.items()
        if not key.startswith("_") and key not in _STANDARD_FIELDS
    }


def _to_json_safe(obj: Any) -> str:
    if isinstance(obj, set | frozenset):
        return str(sorted(obj, key=str))
    if hasattr(obj, "__dict__"):
        return f"<{type(obj).__name__}>"
    return str(obj)


class EnhancedJsonFormatter(logging.Formatter):
    """One JSON object per record.

    ``correlation_id`` is lifted to the top level, sync counters are grouped under
    ``counters`` and any other ``extra`` field lands under ``extra``.
    """

    def __init__(self, include_location: bool = True, include_process_info: bool = False):
        super().__init__()
        self.include_location = include_location
        self.include_process_info = include_process_info
        self.hostname = os.uname().nodename if hasattr(os, "uname") else "unknown"

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "timestamp": dt.datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "hostname": self.hostname,
        }
        if self.include_location:
            payload["module"] = record.module
            payload["function"] = record.funcName
            payload["line"] = record.lineno
        if self.include_process_info:
            payload["process"] = record.process
            payload["thread"] = record.thread

        if record.exc_info:
            exc_type, exc_value, _ = record.exc_info
            payload["exception"] = {
                "type": exc_type.__name__ if exc_type else None,
                "message": str(exc_value) if exc_value is not None else None,
                "traceback": self.formatException(record.exc_info),
            }

        fields = _user_fields(record)
        for key in ("correlation_id", "cid"):
            if key in fields:
                payload["correlation_id"] = fields.pop(key)
        counters = {k: fields.pop(k) for k in list(fields) if k in _SYNC_COUNTER_FIELDS}
        if counters:
            payload["counters"] = counters
        leftovers = {k: v for k, v in fields.items() if k not in payload}
        if leftovers:
            payload["extra"] = leftovers

        return json.dumps(payload, ensure_ascii=False, default=_to_json_safe, separators=(",", ":"))


class _InterceptHandler(logging.Handler):
    """Forward stdlib records into loguru, keeping ``extra`` fields bound."""

    def emit(self, record: logging.LogRecord) -> None:
        level_to_use: int | str
        try:
            level_to_use = loguru_logger.level(record.levelname).name
        except ValueError:
            level_to_use = record.levelno

        loguru_logger.bind(**_user_fields(record)).opt(depth=6, exception=record.exc_info).log(
            level_to_use, record.getMessage()
        )


def setup_json_logging(
    level: str = "INFO",
    *,
    use_loguru: bool = True,
    log_file: str | None = None,
    max_file_size: str = "20 MB",
    retention: str = "14 days",
) -> None:
    """Configure JSON logging for the process.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        use_loguru: Route stdlib records through loguru sinks
        log_file: Optional log file path for persistent logging
        max_file_size: Rotation size per log file (loguru format)
        retention: Log retention period (loguru format)
    """
    lvl = getattr(logging, level.upper(), logging.INFO)
    root = logging.getLogger()
    root.handlers.clear()
    root.setLevel(lvl)

    if use_loguru:
        loguru_logger.remove()
        loguru_logger.add(sys.stdout, level=level.upper(), serialize=True, backtrace=False)
        if log_file:
            loguru_logger.add(
                log_file,
                level=level.upper(),
                serialize=True,
                rotation=max_file_size,
                retention=retention,
                compression="gz",
            )
        root.addHandler(_InterceptHandler())
    else:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setFormatter(EnhancedJsonFormatter())
        root.addHandler(console_handler)
        if log_file:
            from logging.handlers import RotatingFileHandler

            file_handler = RotatingFileHandler(log_file, maxBytes=20 * 1024 * 1024, backupCount=5)
            file_handler.setFormatter(EnhancedJsonFormatter())
            root.addHandler(file_handler)

    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("apscheduler").setLevel(logging.WARNING)

    logging.getLogger(__name__).info(
        "logging_initialized",
        extra={"level": level, "use_loguru": use_loguru, "log_file": log_file},
    )


def generate_correlation_id() -> str:
    """Generate a short correlation ID for tracing one sync cycle across logs."""
    return uuid.uuid4().hex[:12]
