"""Data models for request results and response streams."""

import copy
from collections.abc import Iterator
from http.cookiejar import Cookie
from types import TracebackType
from typing import Any

import httpx
from pydantic import BaseModel, ConfigDict, Field

from fluent_http.constants import (
    HTTP_STATUS_CREATED,
    HTTP_STATUS_OK_MAX,
    HTTP_STATUS_OK_MIN,
)
from fluent_http.decode import ContentDecoder, parse_media_type
from fluent_http.errors import EmptyResponseError


class ResponseCookie(BaseModel):
    """Cookie set by a response.

    Immutable and compared by value, so repeated reads of a result's
    cookies are equal.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    name: str = Field(..., min_length=1, description="Cookie name")
    value: str | None = Field(default=None, description="Cookie value")
    domain: str = Field(default="", description="Domain the cookie applies to")
    path: str = Field(default="/", description="Path the cookie applies to")
    expires: int | None = Field(
        default=None, description="Expiry as a Unix timestamp; None for session"
    )
    secure: bool = Field(default=False, description="Sent over HTTPS only")

    @classmethod
    def from_cookie(cls, cookie: Cookie) -> "ResponseCookie":
        """Build from a cookie stored by the client's cookie jar."""
        return cls(
            name=cookie.name,
            value=cookie.value,
            domain=cookie.domain,
            path=cookie.path,
            expires=cookie.expires,
            secure=cookie.secure,
        )


class Result(BaseModel):
    """Outcome of one completed request execution.

    Holds the raw body, declared content type, final status code, response
    headers and cookies, and the error if the execution failed. A status
    outside [200, 300) other than 101 always carries an error. Accessors
    return copies, so repeated calls yield equal values.
    """

    model_config = ConfigDict(frozen=True, extra="forbid", arbitrary_types_allowed=True)

    body: bytes = Field(default=b"", description="Raw response body")
    content_type: str = Field(default="", description="Content-Type header value")
    status_code: int = Field(default=0, ge=0, le=999, description="HTTP status code")
    response_headers: dict[str, list[str]] = Field(
        default_factory=dict, description="Response headers by canonical name"
    )
    response_cookies: tuple[ResponseCookie, ...] = Field(
        default=(), description="Cookies set by the response"
    )
    err: BaseException | None = Field(
        default=None, description="Execution or status error, if any"
    )
    decoder: ContentDecoder = Field(
        default_factory=ContentDecoder.default, exclude=True, repr=False
    )

    @property
    def is_success(self) -> bool:
        """Check if the request succeeded (2xx status, no error)."""
        return (
            self.err is None
            and HTTP_STATUS_OK_MIN <= self.status_code < HTTP_STATUS_OK_MAX
        )

    def raw(self) -> tuple[bytes, BaseException | None]:
        """Return the raw body together with the error, if any."""
        return self.body, self.err

    def error(self) -> BaseException | None:
        """Return the execution or status error, if any."""
        return self.err

    def into(self, target: Any = None) -> Any:
        """Decode the body into a target according to its Content-Type.

        See :func:`fluent_http.decode.populate` for the accepted targets.

        Args:
            target: A dict or list to fill in place, a type to validate
                against, or None to return the decoded document.

        Returns:
            The populated target or validated object. With a non-strict
            decoder and an unknown media type, the target unchanged.

        Raises:
            BaseException: The execution error, if the request failed.
            EmptyResponseError: If the body is empty.
            InvalidMediaTypeError: If the Content-Type cannot be parsed.
            UnsupportedMediaTypeError: If the decoder is strict and does not
                know the media type.
        """
        if self.err is not None:
            raise self.err
        if not self.body:
            raise EmptyResponseError
        media_type = parse_media_type(self.content_type)
        return self.decoder.decode(self.body, media_type, target).value

    def was_created(self) -> bool:
        """Check whether the server answered 201 Created."""
        return self.status_code == HTTP_STATUS_CREATED

    def headers(self) -> dict[str, list[str]]:
        """Return the response headers keyed by canonical name."""
        return copy.deepcopy(self.response_headers)

    def header(self, name: str) -> str | None:
        """Return the first value of a response header, if present."""
        for key, values in self.response_headers.items():
            if key.lower() == name.lower() and values:
                return values[0]
        return None

    def cookies(self) -> list[ResponseCookie]:
        """Return the cookies set by the response."""
        return list(self.response_cookies)


class ResponseStream:
    """Live body of a successful streamed response.

    The caller owns the stream and must close it, directly or by using it
    as a context manager.
    """

    def __init__(self, response: httpx.Response) -> None:
        self._response = response

    def __enter__(self) -> "ResponseStream":
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        self.close()

    def __iter__(self) -> Iterator[bytes]:
        return self.iter_bytes()

    @property
    def status_code(self) -> int:
        """HTTP status code of the response."""
        return self._response.status_code

    @property
    def headers(self) -> httpx.Headers:
        """Response headers."""
        return self._response.headers

    @property
    def closed(self) -> bool:
        """Whether the underlying response has been closed."""
        return self._response.is_closed

    def iter_bytes(self, chunk_size: int | None = None) -> Iterator[bytes]:
        """Iterate over decoded body chunks."""
        return self._response.iter_bytes(chunk_size)

    def iter_lines(self) -> Iterator[str]:
        """Iterate over body lines."""
        return self._response.iter_lines()

    def read(self) -> bytes:
        """Read the remaining body."""
        return self._response.read()

    def close(self) -> None:
        """Close the response and release its connection."""
        self._response.close()
