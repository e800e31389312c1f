"""Fluent request builder.

A :class:`Request` is configured through chained calls and executed once,
either buffered with :meth:`Request.do` or streamed with
:meth:`Request.stream`. Configuration calls never raise: the first error is
kept on the builder, every later configuration call becomes a no-op, and the
error is reported when the request is executed.

Example:
    >>> result = (
    ...     new_request("https://api.example.com", "get")
    ...     .prefix("/v1")
    ...     .suffix("items", "42")
    ...     .param("expand", "owner")
    ...     .do()
    ... )
    >>> item = result.into(dict())
"""

import time
from datetime import timedelta
from typing import Any
from urllib.parse import SplitResult

import httpx
import structlog

from fluent_http.body import BodySource, make_body
from fluent_http.classify import (
    is_success_status,
    read_limited,
    transform_response,
    transform_unstructured_error,
)
from fluent_http.config import RequestSettings, get_settings
from fluent_http.constants import HTTP_STATUS_SWITCHING_PROTOCOLS
from fluent_http.context import RequestContext, background
from fluent_http.decode import ContentDecoder
from fluent_http.errors import ConfigurationError, RequestError, StatusError
from fluent_http.models import ResponseStream, Result
from fluent_http.observability.logging import get_logger, request_scope
from fluent_http.observability.metrics import RequestMetrics
from fluent_http.redact import redact_headers, redact_url_credentials
from fluent_http.retry import RetryController
from fluent_http.transport import get_default_client
from fluent_http.url import (
    abs_path,
    build_url,
    join_path,
    parse_base_url,
    parse_request_uri,
)


logger = get_logger(__name__)

# Exceptions turned into a failed Result by do()
EXECUTION_ERRORS = (httpx.HTTPError, httpx.InvalidURL, OSError, RequestError)


class Request:
    """Mutable, chainable configuration of one HTTP request."""

    def __init__(self, base_address: str, verb: str) -> None:
        """Initialize the request.

        Args:
            base_address: Full URL or bare host; see
                :func:`fluent_http.url.parse_base_url`.
            verb: HTTP method, case-insensitive.
        """
        self._verb = verb.upper()
        self._client: httpx.Client | None = None
        self._settings: RequestSettings | None = None
        self._decoder: ContentDecoder | None = None
        self._context: RequestContext = background()

        self._base_url: SplitResult | None = None
        self._path_prefix = "/"
        self._subpath = ""
        self._abs_path: str | None = None
        self._params: dict[str, list[str]] = {}
        self._headers: list[tuple[str, str]] = []
        self._timeout: timedelta | float | None = None
        self._body: BodySource | None = None
        self._err: ConfigurationError | None = None

        try:
            self._base_url = parse_base_url(base_address)
        except ConfigurationError as e:
            self._err = e
            return
        self._path_prefix = join_path("/", self._base_url.path)

    @property
    def verb(self) -> str:
        """Uppercased HTTP method."""
        return self._verb

    @property
    def error(self) -> ConfigurationError | None:
        """First configuration error, if any."""
        return self._err

    # Configuration

    def client(self, client: httpx.Client) -> "Request":
        """Use a specific client instead of the process-wide default."""
        if self._err is not None:
            return self
        self._client = client
        return self

    def settings(self, settings: RequestSettings) -> "Request":
        """Override the environment-derived settings for this request."""
        if self._err is not None:
            return self
        self._settings = settings
        return self

    def decoder(self, decoder: ContentDecoder) -> "Request":
        """Use a specific content decoder for the result."""
        if self._err is not None:
            return self
        self._decoder = decoder
        return self

    def header(self, name: str, *values: str) -> "Request":
        """Set a header, replacing every earlier value of the same name.

        Args:
            name: Header name, matched case-insensitively.
            values: Values to send; none removes the header.

        Returns:
            This request.
        """
        if self._err is not None:
            return self
        lowered = name.lower()
        self._headers = [(k, v) for k, v in self._headers if k.lower() != lowered]
        self._headers.extend((name, value) for value in values)
        return self

    def timeout(self, timeout: timedelta | float) -> "Request":
        """Send a server-side timeout as the reserved ``timeout`` parameter.

        The value is formatted as a duration string (``30s``, ``1m30s``) and
        overrides any ``timeout`` parameter set with :meth:`param`. It does
        not bound the transport call; use :meth:`context` for that.
        """
        if self._err is not None:
            return self
        self._timeout = timeout
        return self

    def context(self, context: RequestContext) -> "Request":
        """Attach a cancellation context to the execution."""
        if self._err is not None:
            return self
        self._context = context
        return self

    def prefix(self, *segments: str) -> "Request":
        """Append segments to the path prefix."""
        if self._err is not None:
            return self
        self._path_prefix = join_path(self._path_prefix, join_path(*segments))
        return self

    def suffix(self, *segments: str) -> "Request":
        """Append segments to the subpath placed after the prefix."""
        if self._err is not None:
            return self
        self._subpath = join_path(self._subpath, join_path(*segments))
        return self

    def abs_path(self, *segments: str) -> "Request":
        """Set the path below the base URL path, replacing prefix and suffix.

        A single segment with a trailing slash keeps it; see
        :func:`fluent_http.url.abs_path`.
        """
        if self._err is not None:
            return self
        base_path = self._base_url.path if self._base_url else ""
        self._abs_path = abs_path(base_path, segments)
        return self

    def request_uri(self, uri: str) -> "Request":
        """Set path and query parameters from a request URI.

        The URI path replaces the effective path. Each query key of the URI
        replaces that key's values; other parameters are kept.
        """
        if self._err is not None:
            return self
        try:
            path, params = parse_request_uri(uri)
        except ConfigurationError as e:
            self._err = e
            return self
        self._abs_path = path
        self._params.update(params)
        return self

    def param(self, name: str, value: str) -> "Request":
        """Append a query parameter value."""
        if self._err is not None:
            return self
        self._params.setdefault(name, []).append(value)
        return self

    def body(self, value: Any) -> "Request":
        """Set the request body.

        Args:
            value: A file path (read fully now), bytes, or a readable
                stream. Seekable streams can be replayed on retry.

        Returns:
            This request.
        """
        if self._err is not None:
            return self
        try:
            self._body = make_body(value)
        except ConfigurationError as e:
            self._err = e
        return self

    # Introspection

    def path(self) -> str:
        """Return the effective request path."""
        if self._abs_path is not None:
            return self._abs_path
        return join_path(self._path_prefix, self._subpath)

    def url(self) -> str:
        """Return the fully-qualified request URL.

        Raises:
            ConfigurationError: If the base address could not be parsed.
        """
        if self._base_url is None:
            raise self._err or ConfigurationError("request has no base URL")
        return build_url(self._base_url, self.path(), self._params, self._timeout)

    # Execution

    def do(self) -> Result:
        """Execute the request, retrying on server-driven backoff signals.

        Never raises for configuration, transport, cancellation or status
        failures; they are reported through ``Result.error()``. Log events of
        the execution share one ``request_id``.

        Returns:
            The classified result of the terminal response.
        """
        decoder = self._resolve_decoder()
        if self._err is not None:
            return Result(err=self._err, decoder=decoder)

        with request_scope():
            return self._execute(decoder)

    def stream(self) -> ResponseStream:
        """Execute the request once and return the live response body.

        No retries are attempted.

        Returns:
            The open body of a 2xx response; the caller must close it.

        Raises:
            ConfigurationError: If configuration failed.
            RequestCancelledError: If the context has already ended.
            httpx.HTTPError: On transport failures.
            StatusError: For any non-2xx response.
        """
        if self._err is not None:
            raise self._err

        with request_scope():
            return self._open_stream()

    # Helpers

    def _bind_log(self, url: str) -> structlog.stdlib.BoundLogger:
        return logger.bind(
            component="request",
            verb=self._verb,
            url=redact_url_credentials(url),
        )

    def _execute(self, decoder: ContentDecoder) -> Result:
        settings = self._resolve_settings()
        log = self._bind_log(self.url())
        log.debug("request_start", headers=redact_headers(self._headers))

        controller = RetryController(
            client=self._resolve_client(),
            settings=settings,
            context=self._context,
            log=log,
        )
        start_time_ns = time.perf_counter_ns()
        try:
            result = controller.execute(
                build_request=self._build_request,
                body=self._body,
                on_complete=lambda _request, response: transform_response(
                    response, decoder, settings.error_body_limit_bytes
                ),
            )
        except EXECUTION_ERRORS as e:
            result = Result(err=e, decoder=decoder)

        duration_ms = (time.perf_counter_ns() - start_time_ns) / 1_000_000
        RequestMetrics.get_instance().record_completion(len(result.body), duration_ms)
        log.info(
            "request_complete",
            status_code=result.status_code,
            attempts=controller.attempts,
            bytes=len(result.body),
            duration_ms=round(duration_ms, 2),
            error=str(result.err) if result.err is not None else None,
        )
        return result

    def _open_stream(self) -> ResponseStream:
        self._context.raise_if_done()

        settings = self._resolve_settings()
        url = self.url()
        log = self._bind_log(url)
        request = self._build_request()
        response = self._resolve_client().send(request, stream=True)
        log.info("stream_opened", status_code=response.status_code)

        if is_success_status(response.status_code):
            return ResponseStream(response)

        limit = settings.error_body_limit_bytes
        try:
            if response.status_code == HTTP_STATUS_SWITCHING_PROTOCOLS:
                body = read_limited(response, limit)
                text = body.decode("utf-8", errors="replace")
                error = StatusError(
                    f"{response.status_code} while accessing {url}: {text}"
                )
            else:
                error = transform_unstructured_error(response, None, limit)
        finally:
            response.close()
        raise error

    def _resolve_settings(self) -> RequestSettings:
        if self._settings is None:
            self._settings = get_settings()
        return self._settings

    def _resolve_decoder(self) -> ContentDecoder:
        if self._decoder is not None:
            return self._decoder
        if self._err is not None:
            return ContentDecoder.default()
        return ContentDecoder.default(
            strict=self._resolve_settings().strict_media_types
        )

    def _resolve_client(self) -> httpx.Client:
        return self._client or get_default_client()

    def _build_request(self) -> httpx.Request:
        kwargs: dict[str, Any] = {
            "headers": self._headers,
        }
        if self._body is not None:
            kwargs["content"] = self._body.content()
        remaining = self._context.remaining()
        if remaining is not None:
            kwargs["timeout"] = httpx.Timeout(remaining)
        return self._resolve_client().build_request(self._verb, self.url(), **kwargs)


def new_request(base_address: str, verb: str) -> Request:
    """Create a request against a base address.

    Args:
        base_address: Full URL (``https://host/base``) or bare host
            (``host:8080``).
        verb: HTTP method, case-insensitive.

    Returns:
        A new request builder.
    """
    return Request(base_address, verb)
