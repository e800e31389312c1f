"""Server-driven retry loop.

Each execution moves through SENDING -> AWAITING_RESPONSE and then either
TERMINAL (the response goes to the completion callback) or RETRYABLE (the
response is drained and closed, the body rewound, and the request re-sent).

A response is retryable only when its status is 429 or >= 500, it carries
an integer ``Retry-After`` header, fewer than ``max_attempts`` responses have
been evaluated, and the body can be rewound. The attempt counter includes
the first response, so ``max_attempts`` bounds the total number of sends.
"""

import errno
import re
from collections.abc import Callable
from enum import Enum
from typing import TypeVar

import httpx
import structlog

from fluent_http.body import BodySource
from fluent_http.config import RequestSettings
from fluent_http.constants import (
    CONNECTION_RESET_RETRY_AFTER,
    HEADER_CONTENT_LENGTH,
    HEADER_RETRY_AFTER,
    HTTP_STATUS_INTERNAL_SERVER_ERROR,
    HTTP_STATUS_TOO_MANY_REQUESTS,
)
from fluent_http.context import RequestContext
from fluent_http.observability.logging import get_logger
from fluent_http.observability.metrics import RequestMetrics


T = TypeVar("T")

logger = get_logger(__name__)

_INTEGER_PATTERN = re.compile(r"^[+-]?\d+$")

# Failures raised by the transport while sending a request
SEND_ERRORS = (httpx.HTTPError, OSError)

# Failures raised while draining a discarded response
DRAIN_ERRORS = (httpx.HTTPError, httpx.StreamError, OSError)


class AttemptState(str, Enum):
    """States of one request execution."""

    SENDING = "SENDING"
    AWAITING_RESPONSE = "AWAITING_RESPONSE"
    RETRYABLE = "RETRYABLE"
    TERMINAL = "TERMINAL"


def is_connection_reset(error: BaseException) -> bool:
    """Check whether an exception was caused by a connection reset.

    Walks the ``__cause__``/``__context__`` chain, since httpx wraps the
    socket error raised by the network layer.

    Args:
        error: Exception raised by the transport.

    Returns:
        True if a ConnectionResetError or ECONNRESET OSError is in the chain.
    """
    seen: set[int] = set()
    current: BaseException | None = error
    while current is not None and id(current) not in seen:
        seen.add(id(current))
        if isinstance(current, ConnectionResetError):
            return True
        if isinstance(current, OSError) and current.errno == errno.ECONNRESET:
            return True
        current = current.__cause__ or current.__context__
    return False


def retry_after_seconds(headers: httpx.Headers) -> int | None:
    """Parse an integer ``Retry-After`` header.

    Args:
        headers: Response headers.

    Returns:
        The number of seconds, or None if absent or not an integer.
    """
    value = headers.get(HEADER_RETRY_AFTER)
    if not value or not _INTEGER_PATTERN.match(value):
        return None
    return int(value)


def check_wait(status_code: int, headers: httpx.Headers) -> int | None:
    """Decide whether a response asks the client to wait and retry.

    Args:
        status_code: HTTP status code.
        headers: Response headers.

    Returns:
        Seconds to wait for 429/5xx responses with an integer Retry-After,
        None otherwise.
    """
    if (
        status_code != HTTP_STATUS_TOO_MANY_REQUESTS
        and status_code < HTTP_STATUS_INTERNAL_SERVER_ERROR
    ):
        return None
    return retry_after_seconds(headers)


def connection_reset_response(request: httpx.Request) -> httpx.Response:
    """Build the placeholder response used after a connection reset."""
    return httpx.Response(
        HTTP_STATUS_INTERNAL_SERVER_ERROR,
        headers={HEADER_RETRY_AFTER: CONNECTION_RESET_RETRY_AFTER},
        content=b"",
        request=request,
    )


def drain_and_close(response: httpx.Response, limit: int) -> None:
    """Drain a bounded body prefix and close the response.

    Draining lets the transport return the connection to its pool. Bodies
    declaring a Content-Length above ``limit`` are closed without draining.

    Args:
        response: Response to discard.
        limit: Maximum number of bytes to drain.
    """
    try:
        if response.is_stream_consumed:
            return
        declared = response.headers.get(HEADER_CONTENT_LENGTH)
        if declared is not None and declared.isdigit() and int(declared) > limit:
            return
        drained = 0
        for chunk in response.iter_raw():
            drained += len(chunk)
            if drained >= limit:
                break
    except DRAIN_ERRORS as e:
        logger.debug("response_drain_failed", error=repr(e))
    finally:
        response.close()


class RetryController:
    """Drives the send/evaluate loop of one request execution."""

    def __init__(
        self,
        client: httpx.Client,
        settings: RequestSettings,
        context: RequestContext,
        log: structlog.stdlib.BoundLogger | None = None,
    ) -> None:
        """Initialize the controller.

        Args:
            client: Transport used to send requests.
            settings: Retry limits and Retry-After handling.
            context: Cancellation context for sends and waits.
            log: Bound logger; the module logger when None.
        """
        self._client = client
        self._settings = settings
        self._context = context
        self._log = log or logger.bind(component="request")
        self._metrics = RequestMetrics.get_instance()
        self._attempts = 0
        self._state = AttemptState.SENDING

    @property
    def attempts(self) -> int:
        """Number of responses evaluated so far."""
        return self._attempts

    @property
    def state(self) -> AttemptState:
        """Current state of the execution."""
        return self._state

    def execute(
        self,
        build_request: Callable[[], httpx.Request],
        body: BodySource | None,
        on_complete: Callable[[httpx.Request, httpx.Response], T],
    ) -> T:
        """Send a request until a terminal response arrives.

        Args:
            build_request: Builds a fresh request for every attempt.
            body: Body source rewound before each retry, if any.
            on_complete: Receives the terminal response; its return value is
                returned. The response is closed after it returns.

        Returns:
            Whatever ``on_complete`` returned.

        Raises:
            RequestCancelledError: If the context ends before a send or
                during a Retry-After wait.
            httpx.HTTPError: On fatal transport failures.
            OSError: On fatal socket failures raised by the transport.
        """
        while True:
            self._state = AttemptState.SENDING
            self._context.raise_if_done()
            request = build_request()
            response = self._send(request)

            self._attempts += 1
            self._metrics.record_response(response.status_code)
            wait = check_wait(response.status_code, response.headers)

            if (
                wait is not None
                and self._attempts < self._settings.max_attempts
                and (body is None or body.rewind())
            ):
                self._state = AttemptState.RETRYABLE
                drain_and_close(response, self._settings.drain_limit_bytes)
                self._metrics.record_retry()
                self._log.info(
                    "retry_scheduled",
                    attempt=self._attempts,
                    status_code=response.status_code,
                    retry_after=wait,
                )
                self._wait(wait)
                continue

            self._state = AttemptState.TERMINAL
            try:
                return on_complete(request, response)
            finally:
                drain_and_close(response, self._settings.drain_limit_bytes)

    def _send(self, request: httpx.Request) -> httpx.Response:
        self._metrics.record_attempt()
        self._log.debug("request_attempt", attempt=self._attempts + 1)
        try:
            response = self._client.send(request, stream=True)
        except SEND_ERRORS as e:
            if request.method != "GET" or not is_connection_reset(e):
                self._metrics.record_transport_failure(e)
                self._log.warning(
                    "transport_error",
                    attempt=self._attempts + 1,
                    error=repr(e),
                )
                raise
            self._metrics.record_connection_reset()
            self._log.warning("connection_reset", attempt=self._attempts + 1)
            response = connection_reset_response(request)
        self._state = AttemptState.AWAITING_RESPONSE
        return response

    def _wait(self, retry_after: int) -> None:
        if not self._settings.honor_retry_after:
            return
        delay = min(max(retry_after, 0), self._settings.max_retry_after_seconds)
        if delay > 0:
            self._context.wait(delay)
