"""Unit tests for Result and ResponseStream."""

import json
from http.cookiejar import Cookie

import httpx
import pytest
from pydantic import BaseModel, ValidationError

from fluent_http.classify import transform_response
from fluent_http.decode import ContentDecoder
from fluent_http.errors import (
    EmptyResponseError,
    InvalidMediaTypeError,
    StatusError,
    UnsupportedMediaTypeError,
)
from fluent_http.models import ResponseCookie, ResponseStream, Result


class Item(BaseModel):
    """Model used as a decode target."""

    id: int
    tags: list[str]


def make_cookie(name: str, value: str) -> Cookie:
    """Build a cookie as the cookie jar would store it."""
    return Cookie(
        version=0,
        name=name,
        value=value,
        port=None,
        port_specified=False,
        domain="example.com",
        domain_specified=False,
        domain_initial_dot=False,
        path="/",
        path_specified=True,
        secure=False,
        expires=None,
        discard=True,
        comment=None,
        comment_url=None,
        rest={},
    )


class TestResultInto:
    """Tests for Result.into."""

    def test_into_dict(self) -> None:
        """JSON bodies fill a dict target."""
        result = Result(
            body=b'{"id": 7}', content_type="application/json", status_code=200
        )
        target: dict[str, int] = {}

        result.into(target)

        assert target == {"id": 7}

    def test_into_model(self) -> None:
        """Model targets are validated."""
        result = Result(
            body=b'{"id": 7, "tags": ["a"]}',
            content_type="application/json; charset=utf-8",
            status_code=200,
        )

        assert result.into(Item) == Item(id=7, tags=["a"])

    def test_into_without_target(self) -> None:
        """Without a target the decoded document is returned."""
        result = Result(body=b"- 1\n- 2\n", content_type="application/yaml")

        assert result.into() == [1, 2]

    def test_error_raised_first(self) -> None:
        """The execution error wins over decoding."""
        error = StatusError("the server could not find the requested resource")
        result = Result(
            body=b'{"id": 7}',
            content_type="application/json",
            status_code=404,
            err=error,
        )

        with pytest.raises(StatusError) as exc_info:
            result.into({})

        assert exc_info.value is error

    def test_empty_body(self) -> None:
        """An empty body cannot be decoded."""
        result = Result(content_type="application/json", status_code=204)

        with pytest.raises(EmptyResponseError, match="0-length response"):
            result.into({})

    def test_invalid_content_type(self) -> None:
        """A malformed Content-Type is reported."""
        result = Result(body=b"{}", content_type="json", status_code=200)

        with pytest.raises(InvalidMediaTypeError):
            result.into({})

    def test_missing_content_type(self) -> None:
        """A missing Content-Type is not a media type."""
        result = Result(body=b"{}", status_code=200)

        with pytest.raises(InvalidMediaTypeError):
            result.into({})

    def test_unsupported_strict(self) -> None:
        """Unknown media types raise with the default decoder."""
        result = Result(body=b"hi", content_type="text/plain", status_code=200)

        with pytest.raises(UnsupportedMediaTypeError):
            result.into({})

    def test_unsupported_lenient(self) -> None:
        """A lenient decoder leaves the target alone."""
        result = Result(
            body=b"hi",
            content_type="text/plain",
            status_code=200,
            decoder=ContentDecoder.default(strict=False),
        )
        target = {"untouched": True}

        assert result.into(target) == {"untouched": True}

    def test_decode_error_verbatim(self) -> None:
        """Decoder failures propagate unchanged."""
        result = Result(
            body=b"{broken", content_type="application/json", status_code=200
        )

        with pytest.raises(json.JSONDecodeError):
            result.into({})

    def test_validation_error(self) -> None:
        """Validation failures propagate unchanged."""
        result = Result(
            body=b'{"id": "x"}', content_type="application/json", status_code=200
        )

        with pytest.raises(ValidationError):
            result.into(Item)


class TestResultAccessors:
    """Tests for Result accessors."""

    def test_raw(self) -> None:
        """raw returns body and error together."""
        error = StatusError("boom")
        result = Result(body=b"page", status_code=500, err=error)

        assert result.raw() == (b"page", error)
        assert result.error() is error

    def test_accessors_idempotent(self) -> None:
        """Repeated calls on a classified response return equal values."""
        response = httpx.Response(
            200,
            content=b"x",
            headers=[
                ("X-Trace", "1"),
                ("X-Trace", "2"),
                ("Set-Cookie", "session=abc; Path=/"),
                ("Set-Cookie", "theme=dark; Path=/; Secure"),
            ],
            request=httpx.Request("GET", "https://example.com/account"),
        )
        result = transform_response(response, ContentDecoder.default())

        assert result.raw() == result.raw()
        assert result.headers() == result.headers()
        assert result.cookies() == result.cookies()
        assert result.status_code == result.status_code == 200
        assert result.error() is None
        assert [(c.name, c.value) for c in result.cookies()] == [
            ("session", "abc"),
            ("theme", "dark"),
        ]

    def test_headers_copied(self) -> None:
        """Mutating returned headers does not affect the result."""
        result = Result(response_headers={"X-Trace": ["1"]})

        result.headers()["X-Trace"].append("2")

        assert result.headers() == {"X-Trace": ["1"]}

    def test_header_lookup(self) -> None:
        """Single headers are looked up case-insensitively."""
        result = Result(response_headers={"Etag": ['"abc"', '"def"']})

        assert result.header("ETag") == '"abc"'
        assert result.header("Location") is None

    @pytest.mark.parametrize(
        ("status_code", "expected"), [(201, True), (200, False), (202, False)]
    )
    def test_was_created(self, status_code: int, expected: bool) -> None:
        """was_created is true only for 201."""
        assert Result(status_code=status_code).was_created() is expected

    def test_is_success(self) -> None:
        """Success needs a 2xx status and no error."""
        assert Result(status_code=204).is_success
        assert not Result(status_code=101).is_success
        assert not Result(status_code=200, err=StatusError("x")).is_success

    def test_cookies_immutable(self) -> None:
        """Returned cookies cannot be changed through the result."""
        cookie = ResponseCookie(name="session", value="abc")
        result = Result(response_cookies=(cookie,))

        cookies = result.cookies()
        cookies.clear()

        assert result.cookies() == [cookie]
        with pytest.raises(ValidationError):
            result.cookies()[0].value = "changed"  # type: ignore[misc]

    def test_cookie_from_jar(self) -> None:
        """Jar cookies convert to value objects."""
        cookie = ResponseCookie.from_cookie(make_cookie("session", "abc"))

        assert cookie == ResponseCookie(
            name="session", value="abc", domain="example.com", path="/"
        )
        assert cookie.expires is None
        assert cookie.secure is False

    def test_frozen(self) -> None:
        """Results cannot be modified."""
        result = Result(status_code=200)

        with pytest.raises(ValidationError):
            result.status_code = 500  # type: ignore[misc]


class TestResponseStream:
    """Tests for ResponseStream."""

    def test_iterates_and_closes(self) -> None:
        """The stream yields the body and closes on exit."""
        response = httpx.Response(
            200,
            headers={"Content-Type": "text/plain"},
            stream=httpx.ByteStream(b"line one\nline two\n"),
        )

        with ResponseStream(response) as stream:
            assert stream.status_code == 200
            assert stream.headers["Content-Type"] == "text/plain"
            lines = list(stream.iter_lines())

        assert lines == ["line one", "line two"]
        assert stream.closed

    def test_read(self) -> None:
        """read returns the full remaining body."""
        stream = ResponseStream(
            httpx.Response(200, stream=httpx.ByteStream(b"payload"))
        )

        assert stream.read() == b"payload"
        stream.close()
        assert stream.closed
