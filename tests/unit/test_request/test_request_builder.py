"""Unit tests for request configuration."""

import io
from datetime import timedelta
from pathlib import Path
from urllib.parse import parse_qs, urlsplit

import pytest

from fluent_http.errors import (
    BodyReadError,
    InvalidURLError,
    UnknownBodyTypeError,
)
from fluent_http.request import Request, new_request


class TestRequestPath:
    """Tests for path composition."""

    def test_base_path_is_prefix(self) -> None:
        """The base URL path starts the prefix."""
        request = new_request("https://api.example.com/base", "get")

        assert request.path() == "/base"

    def test_prefix_and_suffix(self) -> None:
        """Prefix and suffix segments are joined in order."""
        request = (
            new_request("https://api.example.com/base", "get")
            .suffix("items", "42")
            .prefix("v1")
        )

        assert request.path() == "/base/v1/items/42"
        assert request.url() == "https://api.example.com/base/v1/items/42"

    def test_repeated_prefix_accumulates(self) -> None:
        """Each prefix call appends to the previous ones."""
        request = new_request("example.com", "get").prefix("a").prefix("/b/")

        assert request.path() == "/a/b"

    def test_abs_path_replaces_prefix_and_suffix(self) -> None:
        """abs_path overrides every other path setting."""
        request = (
            new_request("https://example.com/root", "get")
            .prefix("ignored")
            .suffix("also", "ignored")
            .abs_path("direct/")
        )

        assert request.path() == "/root/direct/"

    def test_abs_path_root(self) -> None:
        """A bare slash on a root base stays the root."""
        request = new_request("https://example.com", "get").abs_path("/")

        assert request.path() == "/"

    def test_path_escaped_in_url(self) -> None:
        """Path segments are percent-encoded in the URL."""
        request = new_request("https://example.com", "get").suffix("a b", "c%d")

        assert request.url() == "https://example.com/a%20b/c%25d"

    def test_verb_uppercased(self) -> None:
        """Verbs are case-insensitive."""
        assert Request("example.com", "patch").verb == "PATCH"


class TestRequestParams:
    """Tests for query parameters."""

    def test_params_sorted_and_ordered(self) -> None:
        """Keys are sorted and repeated values keep their order."""
        request = (
            new_request("https://example.com", "get")
            .param("z", "1")
            .param("a", "2")
            .param("z", "0")
        )

        assert urlsplit(request.url()).query == "a=2&z=1&z=0"

    def test_timeout_overrides_param(self) -> None:
        """A configured timeout replaces a caller-set timeout parameter."""
        request = (
            new_request("https://example.com", "get")
            .param("timeout", "5s")
            .timeout(timedelta(minutes=1, seconds=30))
        )

        assert parse_qs(urlsplit(request.url()).query) == {"timeout": ["1m30s"]}

    def test_zero_timeout_is_unset(self) -> None:
        """A zero timeout adds nothing."""
        request = new_request("https://example.com", "get").timeout(0)

        assert urlsplit(request.url()).query == ""

    def test_request_uri(self) -> None:
        """A request URI sets the path and replaces only its own keys."""
        request = (
            new_request("https://example.com/base", "get")
            .param("page", "1")
            .param("keep", "yes")
            .request_uri("/other/path%20x?page=2&page=3")
        )

        assert request.path() == "/other/path x"
        assert parse_qs(urlsplit(request.url()).query) == {
            "keep": ["yes"],
            "page": ["2", "3"],
        }

    def test_base_query_dropped(self) -> None:
        """The base URL query is replaced by the parameters."""
        request = new_request("https://example.com/x?stale=1", "get").param("q", "v")

        assert urlsplit(request.url()).query == "q=v"


class TestRequestConfigurationErrors:
    """Tests for deferred configuration errors."""

    def test_invalid_base_address(self) -> None:
        """An unparseable base address is kept as the error."""
        request = new_request("", "get")

        assert isinstance(request.error, InvalidURLError)
        with pytest.raises(InvalidURLError):
            request.url()

    def test_unknown_body_type(self) -> None:
        """An unsupported body records an error."""
        request = new_request("https://example.com", "post").body({"a": 1})

        assert isinstance(request.error, UnknownBodyTypeError)
        assert str(request.error).startswith("unknown type used for body")

    def test_missing_body_file(self, tmp_path: Path) -> None:
        """A missing body file records an error."""
        request = new_request("https://example.com", "post").body(
            str(tmp_path / "missing.json")
        )

        assert isinstance(request.error, BodyReadError)

    def test_first_error_wins(self) -> None:
        """Calls after an error are no-ops."""
        request = (
            new_request("https://example.com", "post")
            .body(42)
            .body(b"fine")
            .suffix("ignored")
            .param("ignored", "1")
        )

        assert isinstance(request.error, UnknownBodyTypeError)
        assert request.path() == "/"
        assert urlsplit(request.url()).query == ""

    def test_body_file_read_eagerly(self, tmp_path: Path) -> None:
        """File bodies are read when configured."""
        body_file = tmp_path / "body.txt"
        body_file.write_bytes(b"from file")

        request = new_request("https://example.com", "post").body(body_file)
        body_file.unlink()

        assert request.error is None

    def test_stream_body_accepted(self) -> None:
        """Readable streams are accepted."""
        request = new_request("https://example.com", "post").body(io.BytesIO(b"x"))

        assert request.error is None
