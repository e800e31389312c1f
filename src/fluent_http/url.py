"""URL composition for requests.

Builds the final request URL from a base address, joined path segments and
accumulated query parameters. Paths are cleaned POSIX-style (duplicate
separators, ``.`` and ``..`` collapsed) except for the trailing slash kept
by :func:`abs_path`.
"""

import posixpath
from collections.abc import Mapping, Sequence
from datetime import timedelta
from urllib.parse import SplitResult, parse_qs, quote, unquote, urlencode, urlsplit

from fluent_http.constants import TIMEOUT_PARAM
from fluent_http.errors import InvalidURLError


# Characters left unescaped in a path, per RFC 3986 pchar plus "/"
_PATH_SAFE_CHARS = "/:@!$&'()*+,;="

_NANOS_PER_MICROSECOND = 10**3
_NANOS_PER_MILLISECOND = 10**6
_NANOS_PER_SECOND = 10**9
_NANOS_PER_MINUTE = 60 * _NANOS_PER_SECOND
_NANOS_PER_HOUR = 60 * _NANOS_PER_MINUTE


def parse_base_url(address: str) -> SplitResult:
    """Parse a base address that may be a bare host.

    When the address lacks a scheme or host it is treated as a bare host:
    ``https://`` is prefixed if the raw input contains ``https`` anywhere,
    ``http://`` otherwise.

    Args:
        address: Full URL or bare ``host[:port][/path]``.

    Returns:
        The parsed absolute URL.

    Raises:
        InvalidURLError: If no host can be derived from the address.
    """
    try:
        parsed: SplitResult | None = urlsplit(address)
    except ValueError:
        parsed = None

    if parsed is not None and parsed.scheme and parsed.netloc:
        return parsed

    scheme = "https://" if "https" in address else "http://"
    try:
        parsed = urlsplit(scheme + address)
    except ValueError as e:
        raise InvalidURLError(address, str(e)) from e
    if not parsed.netloc:
        raise InvalidURLError(address, "missing host")
    return parsed


def parse_request_uri(uri: str) -> tuple[str, dict[str, list[str]]]:
    """Split a request URI into its unescaped path and query parameters.

    Args:
        uri: Request URI such as ``/api/items?page=2``, optionally absolute.

    Returns:
        Tuple of (path, parameters).

    Raises:
        InvalidURLError: If the URI cannot be parsed.
    """
    try:
        locator = urlsplit(uri)
    except ValueError as e:
        raise InvalidURLError(uri, str(e)) from e
    params = parse_qs(locator.query, keep_blank_values=True)
    return unquote(locator.path), params


def clean_path(path: str) -> str:
    """Collapse redundant separators and dot segments."""
    cleaned = posixpath.normpath(path)
    # normpath keeps a leading "//" per POSIX
    if cleaned.startswith("//"):
        cleaned = "/" + cleaned.lstrip("/")
    return cleaned


def join_path(*segments: str) -> str:
    """Join path segments and clean the result.

    Empty segments are ignored; if every segment is empty the result is
    the empty string.

    Args:
        segments: Path segments, with or without slashes.

    Returns:
        Cleaned path with no trailing slash (except the root ``/``).
    """
    parts = [segment for segment in segments if segment]
    if not parts:
        return ""
    return clean_path("/".join(parts))


def abs_path(base_path: str, segments: Sequence[str]) -> str:
    """Build an absolute path override below the base URL path.

    A single segment ending in ``/`` keeps its trailing slash when either
    the base path or the segment is longer than one character, because some
    servers route ``/foo/`` and ``/foo`` differently.

    Args:
        base_path: Path of the base URL.
        segments: Path segments to append.

    Returns:
        The joined path.
    """
    result = join_path(base_path, join_path(*segments))
    if (
        len(segments) == 1
        and (len(base_path) > 1 or len(segments[0]) > 1)
        and segments[0].endswith("/")
    ):
        result += "/"
    return result


def format_duration(value: timedelta | float) -> str:
    """Format a duration in canonical short form.

    Durations of a second or more render as ``[<h>h][<m>m]<s>s`` with a
    fractional seconds part when needed (``2s``, ``1m30s``, ``1h0m0.5s``);
    shorter ones use the largest fitting unit (``250ms``, ``1.5µs``,
    ``10ns``). Zero renders as ``0s``.

    Args:
        value: A timedelta or a number of seconds.

    Returns:
        The formatted duration.
    """
    if isinstance(value, timedelta):
        nanos = (
            (value.days * 86400 + value.seconds) * _NANOS_PER_SECOND
            + value.microseconds * _NANOS_PER_MICROSECOND
        )
    else:
        nanos = round(value * _NANOS_PER_SECOND)

    if nanos == 0:
        return "0s"

    sign = "-" if nanos < 0 else ""
    nanos = abs(nanos)

    if nanos < _NANOS_PER_MICROSECOND:
        return f"{sign}{nanos}ns"
    if nanos < _NANOS_PER_MILLISECOND:
        return f"{sign}{_with_fraction(nanos, _NANOS_PER_MICROSECOND)}µs"
    if nanos < _NANOS_PER_SECOND:
        return f"{sign}{_with_fraction(nanos, _NANOS_PER_MILLISECOND)}ms"

    hours, rest = divmod(nanos, _NANOS_PER_HOUR)
    minutes, rest = divmod(rest, _NANOS_PER_MINUTE)
    seconds = f"{_with_fraction(rest, _NANOS_PER_SECOND)}s"
    if hours:
        return f"{sign}{hours}h{minutes}m{seconds}"
    if minutes:
        return f"{sign}{minutes}m{seconds}"
    return f"{sign}{seconds}"


def _with_fraction(nanos: int, scale: int) -> str:
    whole, fraction = divmod(nanos, scale)
    if not fraction:
        return str(whole)
    digits = len(str(scale)) - 1
    return f"{whole}.{str(fraction).zfill(digits).rstrip('0')}"


def encode_query(
    params: Mapping[str, Sequence[str]],
    timeout: timedelta | float | None = None,
) -> str:
    """Encode query parameters deterministically.

    Keys are sorted; the values of one key keep their insertion order. A
    non-zero timeout replaces every caller-set ``timeout`` value.

    Args:
        params: Parameter name to ordered values.
        timeout: Configured request timeout, if any.

    Returns:
        The encoded query string, without a leading ``?``.
    """
    query = {key: list(values) for key, values in params.items()}
    if timeout:
        query[TIMEOUT_PARAM] = [format_duration(timeout)]
    return urlencode([(key, value) for key in sorted(query) for value in query[key]])


def build_url(
    base: SplitResult,
    path: str,
    params: Mapping[str, Sequence[str]],
    timeout: timedelta | float | None = None,
) -> str:
    """Assemble the final request URL.

    Scheme, host and fragment come from the base URL; its query string is
    replaced by the encoded parameters.

    Args:
        base: Parsed base URL.
        path: Unescaped request path.
        params: Query parameters.
        timeout: Configured request timeout, if any.

    Returns:
        The fully-qualified URL.
    """
    if path and not path.startswith("/"):
        path = "/" + path
    return SplitResult(
        scheme=base.scheme,
        netloc=base.netloc,
        path=quote(path, safe=_PATH_SAFE_CHARS),
        query=encode_query(params, timeout),
        fragment=base.fragment,
    ).geturl()
