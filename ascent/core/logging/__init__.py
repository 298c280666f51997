"""
Ascent logging: structured records with per-operation context.
"""

from ascent.core.logging.logger import (
    ContextFilter,
    JSONFormatter,
    LogContext,
    get_log_context,
    get_logger,
    setup_logging,
    shutdown_logging,
)

__all__ = [
    "ContextFilter",
    "JSONFormatter",
    "LogContext",
    "get_log_context",
    "get_logger",
    "setup_logging",
    "shutdown_logging",
]
