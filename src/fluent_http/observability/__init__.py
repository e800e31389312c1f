"""Observability module for logging and metrics."""

from fluent_http.observability.logging import (
    configure_logging,
    current_request_id,
    get_logger,
    new_request_id,
    redact_event,
    request_scope,
)
from fluent_http.observability.metrics import RequestMetrics


__all__ = [
    "RequestMetrics",
    "configure_logging",
    "current_request_id",
    "get_logger",
    "new_request_id",
    "redact_event",
    "request_scope",
]
