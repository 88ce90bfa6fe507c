"""Structured logging utilities for the gateway Lambda.

This module provides JSON-formatted logging with request context,
suitable for CloudWatch Logs Insights queries.

SECURITY NOTES:
- Directive payloads carry bearer tokens; they are only logged at TRACE,
  the most verbose level, which must be opted into via LOG_LEVEL=TRACE
- Use mask_token() whenever a credential has to appear in a log line
"""

from __future__ import annotations

import json
import logging
import os
import sys
import time
import traceback
from contextvars import ContextVar
from datetime import datetime
from datetime import timezone
from typing import Any
from typing import MutableMapping
from typing import Optional

TRACE = 5
logging.addLevelName(TRACE, "TRACE")


def mask_token(token: str, visible_chars: int = 4) -> str:
    """Mask a credential for safe logging.

    Args:
        token: The credential to mask.
        visible_chars: Number of characters to show at the start.

    Returns:
        A masked version showing only the first few characters.

    Examples:
        >>> mask_token("abcdefgh")
        'abcd***'
        >>> mask_token("abc")
        'a***'
    """
    if not token:
        return "***"
    if len(token) <= visible_chars:
        return token[0] + "***"
    return token[:visible_chars] + "***"


# Context variables for request tracking
request_id: ContextVar[str] = ContextVar("request_id", default="")
correlation_id: ContextVar[str] = ContextVar("correlation_id", default="")


class StructuredLogFormatter(logging.Formatter):
    """JSON formatter for structured logging.

    Produces log entries compatible with CloudWatch Logs Insights,
    including request context and exception details.
    """

    def format(self, record: logging.LogRecord) -> str:
        """Format a log record as JSON."""
        log_data: dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        req_id = request_id.get()
        if req_id:
            log_data["request_id"] = req_id

        corr_id = correlation_id.get()
        if corr_id:
            log_data["correlation_id"] = corr_id

        # Source location only for the verbose levels
        if record.levelno <= logging.DEBUG:
            log_data["source"] = {
                "file": record.filename,
                "line": record.lineno,
                "function": record.funcName,
            }

        if record.exc_info:
            log_data["exception"] = {
                "type": record.exc_info[0].__name__ if record.exc_info[0] else None,
                "message": str(record.exc_info[1]) if record.exc_info[1] else None,
                "traceback": traceback.format_exception(*record.exc_info),
            }

        if hasattr(record, "extra") and isinstance(record.extra, dict):
            log_data["extra"] = record.extra

        return json.dumps(log_data, default=str)


class ContextLogger(logging.LoggerAdapter):
    """Logger adapter that automatically includes context variables."""

    def process(
        self,
        msg: str,
        kwargs: MutableMapping[str, Any],
    ) -> tuple[str, MutableMapping[str, Any]]:
        """Process log message to include extra context."""
        extra = kwargs.get("extra", {})

        if self.extra:
            extra.update(self.extra)

        kwargs["extra"] = extra
        return msg, kwargs

    def trace(self, msg: str, *args: Any, **kwargs: Any) -> None:
        """Log a message at TRACE level."""
        self.log(TRACE, msg, *args, **kwargs)


def configure_logging(level: Optional[str] = None) -> None:
    """Configure structured logging for Lambda execution.

    Args:
        level: Log level (TRACE, DEBUG, INFO, WARNING, ERROR). Defaults to
               LOG_LEVEL environment variable or INFO.
    """
    log_level: str = (level or os.getenv("LOG_LEVEL") or "INFO").upper()

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(StructuredLogFormatter())
    root_logger.addHandler(handler)

    # Reduce noise from libraries
    logging.getLogger("urllib3").setLevel(logging.WARNING)
    logging.getLogger("requests").setLevel(logging.WARNING)


def get_logger(name: str, **extra: Any) -> ContextLogger:
    """Get a context-aware logger.

    Args:
        name: Logger name (typically __name__).
        **extra: Additional context to include in all log messages.

    Returns:
        A ContextLogger instance.
    """
    logger = logging.getLogger(name)
    return ContextLogger(logger, extra)


def is_trace_enabled(logger: logging.LoggerAdapter | logging.Logger) -> bool:
    return logger.isEnabledFor(TRACE)


def set_request_context(
    req_id: Optional[str] = None,
    corr_id: Optional[str] = None,
) -> None:
    """Set request context for logging.

    Call this at the start of each Lambda invocation to set
    context that will be included in all log messages.

    Args:
        req_id: AWS request ID from Lambda context.
        corr_id: Directive messageId, used as correlation ID.
    """
    if req_id:
        request_id.set(req_id)
    if corr_id:
        correlation_id.set(corr_id)


def clear_request_context() -> None:
    """Clear request context after Lambda invocation."""
    request_id.set("")
    correlation_id.set("")


def log_directive(logger: ContextLogger, event: Any) -> None:
    """Dump the full inbound event at TRACE level.

    The event may carry a bearer token, so nothing is serialized unless
    TRACE is enabled.
    """
    if not is_trace_enabled(logger):
        return
    logger.trace("Event: %s", json.dumps(event, indent=2, default=str))


class Timer:
    """Measure a block and log its duration at DEBUG level.

    The clock is only read when DEBUG is enabled for the logger.

    Example:
        >>> with Timer(logger, "validate() completed"):
        ...     validate(event, settings)
    """

    def __init__(self, logger: ContextLogger, label: str) -> None:
        self._logger = logger
        self._label = label
        self._start: Optional[float] = None

    def __enter__(self) -> "Timer":
        if self._logger.isEnabledFor(logging.DEBUG):
            self._start = time.perf_counter()
        return self

    def __exit__(self, exc_type: Any, exc: Any, tb: Any) -> None:
        if self._start is None or exc_type is not None:
            return
        duration_ms = (time.perf_counter() - self._start) * 1000
        self._logger.debug(
            "%s in %.2fms",
            self._label,
            duration_ms,
            extra={"extra": {"duration_ms": round(duration_ms, 2)}},
        )
