"""Translation of HTTP status codes into stable, human-readable messages.

Messages are fixed per status code so that callers see the same text no
matter what the server put in its error page. 403, 406 and 415 carry the
server's own text, and 429 does when the server sent a textual reason.
"""

from fluent_http.constants import (
    HTTP_STATUS_BAD_REQUEST,
    HTTP_STATUS_CONFLICT,
    HTTP_STATUS_FORBIDDEN,
    HTTP_STATUS_GATEWAY_TIMEOUT,
    HTTP_STATUS_INTERNAL_SERVER_ERROR,
    HTTP_STATUS_METHOD_NOT_ALLOWED,
    HTTP_STATUS_NOT_ACCEPTABLE,
    HTTP_STATUS_NOT_FOUND,
    HTTP_STATUS_SERVICE_UNAVAILABLE,
    HTTP_STATUS_TOO_MANY_REQUESTS,
    HTTP_STATUS_UNAUTHORIZED,
    HTTP_STATUS_UNPROCESSABLE_ENTITY,
    HTTP_STATUS_UNSUPPORTED_MEDIA_TYPE,
    MAX_UNSTRUCTURED_RESPONSE_TEXT_BYTES,
)
from fluent_http.errors import StatusError


UNKNOWN_SERVER_MESSAGE = "unknown"

CANNED_MESSAGES: dict[int, str] = {
    HTTP_STATUS_CONFLICT: "the server reported a conflict",
    HTTP_STATUS_NOT_FOUND: "the server could not find the requested resource",
    HTTP_STATUS_BAD_REQUEST: "the server rejected our request for an unknown reason",
    HTTP_STATUS_UNAUTHORIZED: (
        "the server has asked for the client to provide credentials"
    ),
    HTTP_STATUS_METHOD_NOT_ALLOWED: (
        "the server does not allow this method on the requested resource"
    ),
    HTTP_STATUS_UNPROCESSABLE_ENTITY: (
        "the server rejected our request due to an error in our request"
    ),
    HTTP_STATUS_SERVICE_UNAVAILABLE: (
        "the server is currently unable to handle the request"
    ),
    HTTP_STATUS_GATEWAY_TIMEOUT: (
        "the server was unable to return a response in the time allotted, "
        "but may still be processing the request"
    ),
    HTTP_STATUS_TOO_MANY_REQUESTS: (
        "the server has received too many requests and has asked us to try "
        "again later"
    ),
}

# Status codes whose message is the server-provided text
SERVER_MESSAGE_STATUSES = frozenset(
    {
        HTTP_STATUS_FORBIDDEN,
        HTTP_STATUS_NOT_ACCEPTABLE,
        HTTP_STATUS_UNSUPPORTED_MEDIA_TYPE,
    }
)


def server_message(
    body: bytes,
    is_text: bool,
    limit: int = MAX_UNSTRUCTURED_RESPONSE_TEXT_BYTES,
) -> str:
    """Extract the server's own message from an error body.

    Args:
        body: Captured response body.
        is_text: Whether the response declared a textual media type.
        limit: Maximum number of body bytes to use.

    Returns:
        The trimmed body text, or ``"unknown"`` for non-text bodies.
    """
    if not is_text:
        return UNKNOWN_SERVER_MESSAGE
    return body[:limit].decode("utf-8", errors="replace").strip()


def status_message(code: int, server_text: str) -> str:
    """Map a status code to its human-readable message.

    403, 406 and 415 always carry the server text, which is "unknown" for
    non-text bodies. A 429 differs: it uses the server text only when the
    body is text and non-empty. A non-text or empty 429 body, or one that
    reads exactly "unknown", gets the canned "too many requests" message
    instead of "unknown".

    Args:
        code: HTTP status code.
        server_text: Message extracted from the response body.

    Returns:
        The message for this status.
    """
    if code in SERVER_MESSAGE_STATUSES:
        return server_text
    if (
        code == HTTP_STATUS_TOO_MANY_REQUESTS
        and server_text
        and server_text != UNKNOWN_SERVER_MESSAGE
    ):
        return server_text
    if code in CANNED_MESSAGES:
        return CANNED_MESSAGES[code]
    if code >= HTTP_STATUS_INTERNAL_SERVER_ERROR:
        return (
            f"an error on the server ({code}) has prevented the request "
            "from succeeding"
        )
    return (
        f"the server responded with the status code {code} but did not "
        "return more information"
    )


def new_generic_server_response(code: int, server_text: str) -> StatusError:
    """Build the structured error for a non-success status.

    Args:
        code: HTTP status code.
        server_text: Message extracted from the response body.

    Returns:
        StatusError carrying the translated message.
    """
    return StatusError(status_message(code, server_text))
