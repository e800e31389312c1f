"""Fluent HTTP request builder with server-driven retry.

This package provides:
- Chainable request configuration with deferred configuration errors
- URL composition from base address, path segments and query parameters
- Retry on 429/5xx responses carrying Retry-After, with body replay
- Response classification into results with stable status messages
- Content decoding keyed by media type (JSON, YAML, XML)
"""

from fluent_http.body import BodySource, BufferBody, StreamBody, make_body
from fluent_http.config import RequestSettings, get_settings
from fluent_http.context import RequestContext, background
from fluent_http.decode import ContentDecoder, DecodeOutcome, parse_media_type
from fluent_http.errors import (
    BodyReadError,
    ConfigurationError,
    DeadlineExceededError,
    EmptyResponseError,
    InvalidMediaTypeError,
    InvalidURLError,
    RequestCancelledError,
    RequestError,
    RequestErrorClass,
    StatusError,
    StreamReadError,
    UnexpectedReadError,
    UnknownBodyTypeError,
    UnsupportedMediaTypeError,
)
from fluent_http.models import ResponseCookie, ResponseStream, Result
from fluent_http.request import Request, new_request
from fluent_http.retry import check_wait, is_connection_reset, retry_after_seconds
from fluent_http.status import new_generic_server_response
from fluent_http.transport import (
    get_default_client,
    reset_default_client,
    set_default_client,
)
from fluent_http.url import format_duration


__all__ = [
    # Builder
    "Request",
    "new_request",
    # Results
    "Result",
    "ResponseStream",
    "ResponseCookie",
    # Body
    "BodySource",
    "BufferBody",
    "StreamBody",
    "make_body",
    # Decoding
    "ContentDecoder",
    "DecodeOutcome",
    "parse_media_type",
    # Context
    "RequestContext",
    "background",
    # Config
    "RequestSettings",
    "get_settings",
    # Transport
    "get_default_client",
    "set_default_client",
    "reset_default_client",
    # Helpers
    "check_wait",
    "format_duration",
    "is_connection_reset",
    "new_generic_server_response",
    "retry_after_seconds",
    # Errors
    "RequestError",
    "RequestErrorClass",
    "ConfigurationError",
    "InvalidURLError",
    "UnknownBodyTypeError",
    "BodyReadError",
    "RequestCancelledError",
    "DeadlineExceededError",
    "StreamReadError",
    "UnexpectedReadError",
    "StatusError",
    "EmptyResponseError",
    "InvalidMediaTypeError",
    "UnsupportedMediaTypeError",
]
