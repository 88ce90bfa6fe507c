"""Utility modules for the gateway."""

from alexa_gateway.utils.logging import (
    TRACE,
    Timer,
    clear_request_context,
    configure_logging,
    get_logger,
    is_trace_enabled,
    log_directive,
    mask_token,
    set_request_context,
)

__all__ = [
    "TRACE",
    "Timer",
    "clear_request_context",
    "configure_logging",
    "get_logger",
    "is_trace_enabled",
    "log_directive",
    "mask_token",
    "set_request_context",
]
