"""Unit tests for status code message translation."""

import pytest

from fluent_http.errors import RequestErrorClass, StatusError
from fluent_http.status import (
    UNKNOWN_SERVER_MESSAGE,
    new_generic_server_response,
    server_message,
    status_message,
)


class TestStatusMessage:
    """Tests for status_message."""

    @pytest.mark.parametrize(
        ("code", "expected"),
        [
            (409, "the server reported a conflict"),
            (404, "the server could not find the requested resource"),
            (400, "the server rejected our request for an unknown reason"),
            (401, "the server has asked for the client to provide credentials"),
            (405, "the server does not allow this method on the requested resource"),
            (422, "the server rejected our request due to an error in our request"),
            (503, "the server is currently unable to handle the request"),
        ],
    )
    def test_canned_messages(self, code: int, expected: str) -> None:
        """Table statuses ignore the server text."""
        assert status_message(code, "server says hi") == expected

    def test_gateway_timeout(self) -> None:
        """504 explains the request may still be processing."""
        message = status_message(504, "")

        assert message.startswith("the server was unable to return a response")
        assert "may still be processing the request" in message

    @pytest.mark.parametrize("code", [403, 406, 415])
    def test_server_text_statuses(self, code: int) -> None:
        """403, 406 and 415 use the server text."""
        assert status_message(code, "policy denied") == "policy denied"

    def test_too_many_requests_prefers_server_text(self) -> None:
        """429 uses the server text when there is some."""
        assert status_message(429, "quota exhausted") == "quota exhausted"

    @pytest.mark.parametrize("text", ["", UNKNOWN_SERVER_MESSAGE])
    def test_too_many_requests_falls_back(self, text: str) -> None:
        """429 without server text uses the canned message."""
        assert status_message(429, text) == (
            "the server has received too many requests and has asked us to "
            "try again later"
        )

    @pytest.mark.parametrize("code", [500, 502, 507, 599])
    def test_other_server_errors(self, code: int) -> None:
        """Other 5xx codes name the status."""
        assert status_message(code, "boom") == (
            f"an error on the server ({code}) has prevented the request "
            "from succeeding"
        )

    @pytest.mark.parametrize("code", [300, 302, 410, 418])
    def test_other_codes(self, code: int) -> None:
        """Anything else gets the generic message."""
        assert status_message(code, "whatever") == (
            f"the server responded with the status code {code} but did not "
            "return more information"
        )


class TestServerMessage:
    """Tests for server_message."""

    def test_text_is_trimmed(self) -> None:
        """Texty bodies are decoded and stripped."""
        assert server_message(b"  denied \n", is_text=True) == "denied"

    def test_non_text_is_unknown(self) -> None:
        """Non-text bodies yield 'unknown'."""
        assert server_message(b'{"error": 1}', is_text=False) == "unknown"

    def test_truncated(self) -> None:
        """Bodies are capped at the limit."""
        assert len(server_message(b"a" * 5000, is_text=True)) == 2048

    def test_invalid_utf8_replaced(self) -> None:
        """Undecodable bytes do not fail."""
        assert server_message(b"bad \xff byte", is_text=True) == "bad � byte"


class TestNewGenericServerResponse:
    """Tests for new_generic_server_response."""

    def test_builds_status_error(self) -> None:
        """The error carries only the message."""
        error = new_generic_server_response(404, "")

        assert isinstance(error, StatusError)
        assert str(error) == "the server could not find the requested resource"
        assert error.error_class == RequestErrorClass.STATUS
        assert error.to_dict()["message"] == error.message

    def test_equal_messages_compare_equal(self) -> None:
        """Status errors compare by message."""
        assert new_generic_server_response(404, "") == StatusError(
            "the server could not find the requested resource"
        )
