"""Response classification.

Turns a raw ``httpx.Response`` into a :class:`Result`: reads the body,
decides success or failure from the status code, and builds the structured
error for failures from a bounded sample of the body.
"""

import httpx

from fluent_http.constants import (
    HEADER_CONTENT_TYPE,
    HTTP_STATUS_OK_MAX,
    HTTP_STATUS_OK_MIN,
    HTTP_STATUS_SWITCHING_PROTOCOLS,
    MAX_UNSTRUCTURED_RESPONSE_TEXT_BYTES,
)
from fluent_http.decode import ContentDecoder, parse_media_type
from fluent_http.errors import (
    InvalidMediaTypeError,
    StatusError,
    StreamReadError,
    UnexpectedReadError,
)
from fluent_http.models import ResponseCookie, Result
from fluent_http.observability.logging import get_logger
from fluent_http.status import new_generic_server_response, server_message


logger = get_logger(__name__)

# Failures raised while pulling bytes off a response stream
BODY_READ_ERRORS = (httpx.HTTPError, httpx.StreamError, OSError)


def canonical_header_name(name: str) -> str:
    """Canonicalize a header name, e.g. ``content-type`` -> ``Content-Type``."""
    return "-".join(part.capitalize() for part in name.split("-"))


def canonical_headers(headers: httpx.Headers) -> dict[str, list[str]]:
    """Group header values by canonical header name, keeping their order."""
    result: dict[str, list[str]] = {}
    for name, value in headers.multi_items():
        result.setdefault(canonical_header_name(name), []).append(value)
    return result


def is_success_status(status_code: int) -> bool:
    """Check whether a status code is in [200, 300)."""
    return HTTP_STATUS_OK_MIN <= status_code < HTTP_STATUS_OK_MAX


def is_text_response(headers: httpx.Headers) -> bool:
    """Check whether a response declares a textual body.

    A missing Content-Type counts as text; an unparseable one does not.
    """
    content_type = headers.get(HEADER_CONTENT_TYPE)
    if not content_type:
        return True
    try:
        media_type = parse_media_type(content_type)
    except InvalidMediaTypeError:
        return False
    return media_type.startswith("text/")


def read_limited(response: httpx.Response, limit: int) -> bytes:
    """Read at most ``limit`` bytes of a response body for diagnostics.

    Read failures yield whatever was received before the failure.

    Args:
        response: Response whose body is read.
        limit: Maximum number of bytes.

    Returns:
        The body prefix.
    """
    if response.is_stream_consumed:
        return response.content[:limit]

    data = bytearray()
    try:
        for chunk in response.iter_bytes():
            data.extend(chunk)
            if len(data) >= limit:
                break
    except BODY_READ_ERRORS as e:
        logger.debug("error_body_read_failed", error=repr(e))
    return bytes(data[:limit])


def transform_unstructured_error(
    response: httpx.Response,
    body: bytes | None,
    limit: int = MAX_UNSTRUCTURED_RESPONSE_TEXT_BYTES,
) -> StatusError:
    """Build the error for a non-success response.

    Args:
        response: The failed response.
        body: Body captured so far, or None to sample the live body.
        limit: Maximum number of body bytes used for the message.

    Returns:
        StatusError with the translated message.
    """
    if body is None:
        body = read_limited(response, limit)
    text = server_message(body, is_text_response(response.headers), limit)
    return new_generic_server_response(response.status_code, text)


def transform_response(
    response: httpx.Response,
    decoder: ContentDecoder,
    error_body_limit: int = MAX_UNSTRUCTURED_RESPONSE_TEXT_BYTES,
) -> Result:
    """Read a response fully and classify it.

    Args:
        response: Response to read; the caller closes it.
        decoder: Decoder attached to the result for ``Result.into``.
        error_body_limit: Bytes of an error body used for its message.

    Returns:
        The classified result. A body read failure yields a result that
        carries only the read error.
    """
    try:
        body = response.read()
    except httpx.RemoteProtocolError as e:
        return Result(err=StreamReadError(e), decoder=decoder)
    except BODY_READ_ERRORS as e:
        return Result(err=UnexpectedReadError(e), decoder=decoder)

    status_code = response.status_code
    error: StatusError | None = None
    if status_code != HTTP_STATUS_SWITCHING_PROTOCOLS and not is_success_status(
        status_code
    ):
        error = transform_unstructured_error(response, body, error_body_limit)

    return Result(
        body=body,
        content_type=response.headers.get(HEADER_CONTENT_TYPE, ""),
        status_code=status_code,
        response_headers=canonical_headers(response.headers),
        response_cookies=tuple(
            ResponseCookie.from_cookie(cookie) for cookie in response.cookies.jar
        ),
        err=error,
        decoder=decoder,
    )
