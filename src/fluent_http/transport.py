"""Process-wide default HTTP client.

Requests that were not given a client resolve one here at execution time.
The default is built lazily from :class:`RequestSettings` and can be
replaced, e.g. with an ``httpx.MockTransport``-backed client in tests.
"""

import threading

import httpx

from fluent_http.config import RequestSettings, get_settings


_lock = threading.Lock()
_default_client: httpx.Client | None = None


def build_client(settings: RequestSettings | None = None) -> httpx.Client:
    """Create a connection-reusing client from settings.

    Args:
        settings: Settings to use; loaded from the environment when None.

    Returns:
        A new httpx client.
    """
    settings = settings or get_settings()
    return httpx.Client(
        timeout=httpx.Timeout(
            settings.read_timeout_seconds,
            connect=settings.connect_timeout_seconds,
        ),
        verify=settings.verify_tls,
        headers={"User-Agent": settings.user_agent},
    )


def get_default_client() -> httpx.Client:
    """Return the default client, creating it on first use."""
    global _default_client  # noqa: PLW0603
    with _lock:
        if _default_client is None or _default_client.is_closed:
            _default_client = build_client()
        return _default_client


def set_default_client(client: httpx.Client | None) -> None:
    """Replace the default client.

    Args:
        client: The new default, or None to rebuild lazily on next use.
    """
    global _default_client  # noqa: PLW0603
    with _lock:
        _default_client = client


def reset_default_client() -> None:
    """Close and forget the default client (primarily for testing)."""
    global _default_client  # noqa: PLW0603
    with _lock:
        if _default_client is not None:
            _default_client.close()
        _default_client = None
