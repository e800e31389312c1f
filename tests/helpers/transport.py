"""Scripted httpx transport for driving the request pipeline in tests."""

from collections.abc import Callable, Iterator

import httpx


ResponseFactory = Callable[[httpx.Request], httpx.Response]
Step = ResponseFactory | BaseException


def respond(
    status_code: int,
    content: bytes = b"",
    headers: dict[str, str] | list[tuple[str, str]] | None = None,
) -> ResponseFactory:
    """Build a step that answers with a fresh response."""

    def factory(_request: httpx.Request) -> httpx.Response:
        return httpx.Response(status_code, content=content, headers=headers)

    return factory


def echo(content_type: str, status_code: int = 200) -> ResponseFactory:
    """Build a step that answers with the request body."""

    def factory(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            status_code,
            content=request.content,
            headers={"Content-Type": content_type},
        )

    return factory


class FailingStream(httpx.SyncByteStream):
    """Response body that yields one chunk and then fails."""

    def __init__(self, error: Exception, first_chunk: bytes = b"partial") -> None:
        self._error = error
        self._first_chunk = first_chunk

    def __iter__(self) -> Iterator[bytes]:
        yield self._first_chunk
        raise self._error


class ScriptedTransport:
    """Replays scripted steps and records every request it receives.

    Steps are consumed in order; the last step repeats once the script runs
    out. A step is either a response factory or an exception to raise.
    """

    def __init__(self, *steps: Step) -> None:
        self._steps = list(steps)
        self.requests: list[httpx.Request] = []
        self.bodies: list[bytes] = []

    @property
    def calls(self) -> int:
        """Number of requests received."""
        return len(self.requests)

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        self.bodies.append(request.content)
        step = self._steps[min(len(self.requests), len(self._steps)) - 1]
        if isinstance(step, BaseException):
            raise step
        return step(request)

    def client(self) -> httpx.Client:
        """Create a client backed by this transport."""
        return httpx.Client(transport=httpx.MockTransport(self.handler))
