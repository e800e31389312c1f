"""Redaction helpers for request logging."""

import re
from collections.abc import Iterable


# Headers whose values must never appear in logs
SENSITIVE_HEADERS = frozenset(
    {
        "authorization",
        "cookie",
        "x-api-key",
        "x-auth-token",
        "proxy-authorization",
        "set-cookie",
    }
)

REDACTED_VALUE = "[REDACTED]"

_URL_CREDENTIALS_PATTERN = re.compile(r"(https?://)([^:/@]+):([^@/]+)@")


def is_sensitive_header(header_name: str) -> bool:
    """Check if a header name is sensitive.

    Args:
        header_name: The header name to check.

    Returns:
        True if the header should be redacted.
    """
    return header_name.lower() in SENSITIVE_HEADERS


def redact_headers(headers: Iterable[tuple[str, str]]) -> dict[str, list[str]]:
    """Redact sensitive header values for logging.

    Args:
        headers: Ordered ``(name, value)`` pairs.

    Returns:
        Mapping of header name to values with sensitive values replaced.
    """
    result: dict[str, list[str]] = {}
    for name, value in headers:
        shown = REDACTED_VALUE if is_sensitive_header(name) else value
        result.setdefault(name, []).append(shown)
    return result


def redact_url_credentials(url: str) -> str:
    """Redact ``user:password@`` credentials from a URL.

    Args:
        url: URL that may contain credentials.

    Returns:
        URL with credentials redacted.
    """
    return _URL_CREDENTIALS_PATTERN.sub(r"\1[REDACTED]:[REDACTED]@", url)
