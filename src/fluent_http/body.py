"""Request body sources.

A body is either an in-memory buffer, which can always be re-sent, or a
caller-supplied stream, which can be re-sent only when it can seek back to
its start. The retry loop asks :meth:`BodySource.rewind` before every retry.
"""

import os
from abc import ABC, abstractmethod
from collections.abc import Iterator
from typing import IO, Any

from fluent_http.errors import BodyReadError, UnknownBodyTypeError


# Bytes read from a body stream per chunk sent
STREAM_CHUNK_SIZE = 64 * 1024


class BodySource(ABC):
    """Byte source sent as a request body."""

    @abstractmethod
    def content(self) -> bytes | Iterator[bytes]:
        """Return the value handed to the transport."""

    @abstractmethod
    def rewind(self) -> bool:
        """Move back to the start of the body.

        Returns:
            True if the next content() call yields the full body again.
        """


class BufferBody(BodySource):
    """In-memory body; always replayable."""

    def __init__(self, data: bytes) -> None:
        self._data = data

    @property
    def size(self) -> int:
        """Body length in bytes."""
        return len(self._data)

    def content(self) -> bytes:
        return self._data

    def rewind(self) -> bool:
        return True


class StreamBody(BodySource):
    """Caller-supplied readable stream.

    Replayable only when the stream is seekable and seeking succeeds.
    """

    def __init__(self, stream: IO[bytes]) -> None:
        self._stream = stream

    def content(self) -> Iterator[bytes]:
        chunk = self._stream.read(STREAM_CHUNK_SIZE)
        while chunk:
            yield chunk
            chunk = self._stream.read(STREAM_CHUNK_SIZE)

    def rewind(self) -> bool:
        seekable = getattr(self._stream, "seekable", None)
        if seekable is None or not seekable():
            return False
        try:
            self._stream.seek(0)
        except OSError:
            return False
        return True


def make_body(value: Any) -> BodySource:
    """Normalize a caller-supplied body value.

    Args:
        value: A file path (``str`` or path-like), raw bytes, or an object
            with a ``read`` method.

    Returns:
        The matching body source.

    Raises:
        BodyReadError: If a file path cannot be read.
        UnknownBodyTypeError: For any other kind of value.
    """
    if isinstance(value, str | os.PathLike):
        path = os.fspath(value)
        try:
            with open(path, "rb") as f:
                return BufferBody(f.read())
        except OSError as e:
            raise BodyReadError(str(path), str(e)) from e

    if isinstance(value, bytes | bytearray | memoryview):
        return BufferBody(bytes(value))

    if callable(getattr(value, "read", None)):
        return StreamBody(value)

    raise UnknownBodyTypeError(value)
