"""Structured logging for request execution.

Every execution runs inside :func:`request_scope`, which binds a
``request_id`` to the structlog context so the attempt, retry and completion
events of one call can be correlated. :func:`redact_event` hides credentials
in ``url`` and ``headers`` fields before rendering.
"""

import logging
import sys
import uuid
from collections.abc import Iterator, MutableMapping
from contextlib import contextmanager
from typing import Any, TextIO

import structlog

from fluent_http.redact import (
    REDACTED_VALUE,
    is_sensitive_header,
    redact_url_credentials,
)


REQUEST_ID_KEY = "request_id"


def redact_event(
    _logger: Any,
    _method_name: str,
    event_dict: MutableMapping[str, Any],
) -> MutableMapping[str, Any]:
    """Processor redacting URL credentials and sensitive header values."""
    url = event_dict.get("url")
    if isinstance(url, str):
        event_dict["url"] = redact_url_credentials(url)

    headers = event_dict.get("headers")
    if isinstance(headers, dict):
        event_dict["headers"] = {
            name: (
                [REDACTED_VALUE] * len(values)
                if isinstance(values, list)
                else REDACTED_VALUE
            )
            if is_sensitive_header(name)
            else values
            for name, values in headers.items()
        }
    return event_dict


def configure_logging(
    level: int | str = logging.INFO,
    output: TextIO = sys.stderr,
    json_format: bool = True,
) -> None:
    """Configure structlog for request logging.

    Args:
        level: Level number or name such as ``"DEBUG"``. Attempt-level
            events are logged at debug.
        output: Output stream (default: stderr).
        json_format: Render JSON lines instead of console output.

    Raises:
        ValueError: If ``level`` is an unknown level name.
    """
    if isinstance(level, str):
        levels = logging.getLevelNamesMapping()
        if level.upper() not in levels:
            msg = f"unknown log level: {level!r}"
            raise ValueError(msg)
        level = levels[level.upper()]

    renderer: structlog.types.Processor = (
        structlog.processors.JSONRenderer(sort_keys=True)
        if json_format
        else structlog.dev.ConsoleRenderer(colors=False)
    )
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            redact_event,
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=output),
        cache_logger_on_first_use=False,
    )


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Get a lazily configured logger.

    Args:
        name: Optional logger name.

    Returns:
        Logger proxy resolved against the current configuration.
    """
    logger: structlog.stdlib.BoundLogger = structlog.get_logger(name)
    return logger


def new_request_id() -> str:
    """Generate a short identifier for one request execution."""
    return uuid.uuid4().hex[:16]


def current_request_id() -> str | None:
    """Return the request id bound to the current context, if any."""
    value = structlog.contextvars.get_contextvars().get(REQUEST_ID_KEY)
    return str(value) if value is not None else None


@contextmanager
def request_scope(request_id: str | None = None) -> Iterator[str]:
    """Bind a request id to log events emitted inside the block.

    An id already bound by the caller is reused, so executions nested in a
    caller's own scope share its id. The previous context is restored on
    exit.

    Args:
        request_id: Explicit id; defaults to the bound one or a new one.

    Yields:
        The request id in effect.
    """
    request_id = request_id or current_request_id() or new_request_id()
    with structlog.contextvars.bound_contextvars(**{REQUEST_ID_KEY: request_id}):
        yield request_id
