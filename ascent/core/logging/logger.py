"""
Ascent Logging

Purpose
-------
Structured logging for the progression engine. Every record carries the
operation context (user, athlete, operation, correlation id) that was active
when it was emitted, so an award or review can be followed across services.

Output
------
- Console: human-readable lines in development, one JSON object per line in
  production (or whenever LOG_JSON is set)
- File (LOG_TO_FILE): JSON lines rotated at midnight UTC

Usage
-----
    log = get_logger(__name__)

    async with LogContext(athlete_id=athlete.id, operation="award_submission"):
        log.info("Awarded XP", extra={"xp": 250})

Extra fields passed through `extra={...}` are emitted under "extra" in JSON.

Dependencies
------------
- ascent.core.config.config.Config
"""

from __future__ import annotations

import json
import logging
import sys
import uuid
from contextvars import ContextVar, Token
from datetime import datetime, timezone
from logging import Logger
from logging.handlers import TimedRotatingFileHandler
from typing import Any, Dict, List, Optional

from ascent.core.config.config import Config

_log_context: ContextVar[Dict[str, Any]] = ContextVar("ascent_log_context", default={})

CONTEXT_FIELDS = ("user_id", "athlete_id", "operation", "correlation_id")

CONSOLE_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)-40s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
LOG_FILE_NAME = "ascent.json.log"

# Attributes every LogRecord has; anything else came from `extra`.
_RECORD_ATTRS = frozenset(
    vars(logging.LogRecord("", 0, "", 0, "", None, None)).keys()
) | {"message", "asctime", "taskName", *CONTEXT_FIELDS}

_initialized = False


# ============================================================================
# Context
# ============================================================================


class LogContext:
    """
    Bind operation context to every record logged inside the block.

    Works as a sync or async context manager. Nested contexts inherit the
    outer fields they do not override; a correlation id is generated when
    none is inherited or given.
    """

    def __init__(
        self,
        user_id: Optional[int] = None,
        athlete_id: Optional[int] = None,
        operation: Optional[str] = None,
        correlation_id: Optional[str] = None,
        **extra: Any,
    ) -> None:
        inherited = _log_context.get()
        fields = {
            "user_id": user_id,
            "athlete_id": athlete_id,
            "operation": operation,
            "correlation_id": correlation_id,
            **extra,
        }
        self.context: Dict[str, Any] = dict(inherited)
        self.context.update({k: v for k, v in fields.items() if v is not None})
        self.context.setdefault("correlation_id", uuid.uuid4().hex[:8])
        self._token: Optional[Token[Dict[str, Any]]] = None

    def __enter__(self) -> "LogContext":
        self._token = _log_context.set(self.context)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        if self._token is not None:
            _log_context.reset(self._token)
            self._token = None

    async def __aenter__(self) -> "LogContext":
        return self.__enter__()

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        self.__exit__(exc_type, exc_val, exc_tb)


def get_log_context() -> Dict[str, Any]:
    return dict(_log_context.get())


class ContextFilter(logging.Filter):
    """Copy the active LogContext onto the record."""

    def filter(self, record: logging.LogRecord) -> bool:  # type: ignore[override]
        context = _log_context.get()
        for name in CONTEXT_FIELDS:
            if getattr(record, name, None) is None:
                setattr(record, name, context.get(name))
        for key, value in context.items():
            if key not in CONTEXT_FIELDS and not hasattr(record, key):
                setattr(record, key, value)
        return True


# ============================================================================
# Formatting
# ============================================================================


class JSONFormatter(logging.Formatter):
    """One JSON object per record: timestamp, level, context, extra."""

    def format(self, record: logging.LogRecord) -> str:  # type: ignore[override]
        payload: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        for name in CONTEXT_FIELDS:
            value = getattr(record, name, None)
            if value is not None:
                payload[name] = value

        extra = {
            key: value
            for key, value in record.__dict__.items()
            if key not in _RECORD_ATTRS and not key.startswith("_")
        }
        if extra:
            payload["extra"] = extra

        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)

        return json.dumps(payload, ensure_ascii=False, default=str)


def _use_json() -> bool:
    flag = getattr(Config, "LOG_JSON", None)
    if flag is None:
        return Config.is_production()
    return bool(flag)


def _level() -> int:
    name = str(getattr(Config, "LOG_LEVEL", "INFO")).upper()
    return getattr(logging, name, logging.INFO)


def _build_handlers() -> List[logging.Handler]:
    console = logging.StreamHandler(sys.stdout)
    if _use_json():
        console.setFormatter(JSONFormatter())
    else:
        console.setFormatter(logging.Formatter(CONSOLE_FORMAT, DATE_FORMAT))
    handlers: List[logging.Handler] = [console]

    if getattr(Config, "LOG_TO_FILE", False):
        logs_dir = Config.LOGS_DIR
        logs_dir.mkdir(parents=True, exist_ok=True)
        file_handler = TimedRotatingFileHandler(
            filename=str(logs_dir / LOG_FILE_NAME),
            when="midnight",
            backupCount=7,
            encoding="utf-8",
            utc=True,
        )
        file_handler.setFormatter(JSONFormatter())
        handlers.append(file_handler)

    context_filter = ContextFilter()
    for handler in handlers:
        handler.addFilter(context_filter)
    return handlers


# ============================================================================
# Setup
# ============================================================================


def setup_logging() -> None:
    """Configure the root logger once. Later calls are no-ops."""
    global _initialized
    if _initialized:
        return

    root = logging.getLogger()
    root.setLevel(_level())
    for handler in _build_handlers():
        root.addHandler(handler)

    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("aiosqlite").setLevel(logging.WARNING)
    logging.getLogger("asyncio").setLevel(logging.WARNING)

    _initialized = True
    logging.getLogger(__name__).info(
        "Logging initialized",
        extra={
            "environment": Config.ENVIRONMENT,
            "log_level": logging.getLevelName(root.level),
            "json": _use_json(),
        },
    )


def shutdown_logging() -> None:
    global _initialized
    if not _initialized:
        return

    root = logging.getLogger()
    for handler in list(root.handlers):
        if any(isinstance(f, ContextFilter) for f in handler.filters):
            handler.flush()
            handler.close()
            root.removeHandler(handler)
    _initialized = False


def get_logger(name: str) -> Logger:
    setup_logging()
    return logging.getLogger(name)
