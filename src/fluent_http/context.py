"""Cooperative cancellation for request execution.

A :class:`RequestContext` is threaded through every attempt of a request.
It is checked before each send, bounds the transport timeout of each attempt
by its deadline, and interrupts ``Retry-After`` waits when cancelled.
"""

import threading
import time
from datetime import timedelta

from fluent_http.errors import DeadlineExceededError, RequestCancelledError


class RequestContext:
    """Thread-safe cancellation signal with an optional deadline.

    Examples:
        >>> ctx = RequestContext.with_timeout(5.0)
        >>> # From another thread
        >>> ctx.cancel()
    """

    def __init__(self, deadline: float | None = None) -> None:
        """Initialize the context.

        Args:
            deadline: Absolute ``time.monotonic()`` deadline, or None.
        """
        self._cancelled = threading.Event()
        self._deadline = deadline

    @classmethod
    def with_timeout(cls, timeout: timedelta | float) -> "RequestContext":
        """Create a context that expires after ``timeout``.

        Args:
            timeout: Time budget as a timedelta or seconds.

        Returns:
            A new context with a deadline.
        """
        seconds = (
            timeout.total_seconds() if isinstance(timeout, timedelta) else timeout
        )
        return cls(deadline=time.monotonic() + seconds)

    @property
    def deadline(self) -> float | None:
        """Absolute monotonic deadline, if any."""
        return self._deadline

    def cancel(self) -> None:
        """Signal that the request should stop."""
        self._cancelled.set()

    def is_cancelled(self) -> bool:
        """Check whether cancel() was called."""
        return self._cancelled.is_set()

    def remaining(self) -> float | None:
        """Seconds left before the deadline, or None without a deadline."""
        if self._deadline is None:
            return None
        return max(0.0, self._deadline - time.monotonic())

    def raise_if_done(self) -> None:
        """Raise if the context is cancelled or past its deadline.

        Raises:
            RequestCancelledError: If cancel() was called.
            DeadlineExceededError: If the deadline has passed.
        """
        if self.is_cancelled():
            raise RequestCancelledError
        remaining = self.remaining()
        if remaining is not None and remaining <= 0:
            raise DeadlineExceededError

    def wait(self, seconds: float) -> None:
        """Sleep for ``seconds`` unless the context ends first.

        Args:
            seconds: Time to wait.

        Raises:
            RequestCancelledError: If cancelled while waiting.
            DeadlineExceededError: If the deadline falls inside the wait.
        """
        remaining = self.remaining()
        if remaining is not None and remaining < seconds:
            self._cancelled.wait(remaining)
            self.raise_if_done()
            raise DeadlineExceededError
        if self._cancelled.wait(seconds):
            raise RequestCancelledError


def background() -> RequestContext:
    """Return a context that is never cancelled and has no deadline."""
    return RequestContext()
