"""Metrics collection for request execution."""

from collections import Counter
from dataclasses import dataclass, field
from threading import Lock


# Module-level singleton state
_metrics_instance: "RequestMetrics | None" = None
_metrics_lock: Lock = Lock()


@dataclass
class RequestMetrics:
    """Thread-safe metrics for request execution.

    Tracks attempts, retries, response status codes, transport failures,
    connection resets, and received bytes. Use get_instance() for singleton
    access.
    """

    _lock: Lock = field(default_factory=Lock, repr=False, compare=False)

    # Transport sends, including retries
    http_attempts_total: int = 0

    # Responses discarded in favor of a retry
    http_retry_total: int = 0

    # Evaluated responses by status code
    http_responses_total: Counter[int] = field(default_factory=Counter)

    # Fatal transport failures by exception type
    http_transport_failures_total: Counter[str] = field(default_factory=Counter)

    http_connection_resets_total: int = 0
    http_bytes_total: int = 0
    http_duration_ms_total: float = 0.0
    http_request_count: int = 0

    @classmethod
    def get_instance(cls) -> "RequestMetrics":
        """Get the singleton instance (thread-safe).

        Returns:
            The shared RequestMetrics instance.
        """
        global _metrics_instance  # noqa: PLW0603
        if _metrics_instance is None:
            with _metrics_lock:
                if _metrics_instance is None:
                    _metrics_instance = cls()
        return _metrics_instance

    @classmethod
    def reset(cls) -> None:
        """Reset the singleton instance (for testing)."""
        global _metrics_instance  # noqa: PLW0603
        with _metrics_lock:
            _metrics_instance = None

    def record_attempt(self) -> None:
        """Record a request sent to the transport."""
        with self._lock:
            self.http_attempts_total += 1

    def record_retry(self) -> None:
        """Record a retry decision."""
        with self._lock:
            self.http_retry_total += 1

    def record_response(self, status_code: int) -> None:
        """Record a response evaluated by the retry loop.

        Args:
            status_code: HTTP status code.
        """
        with self._lock:
            self.http_responses_total[status_code] += 1

    def record_transport_failure(self, error: BaseException) -> None:
        """Record a fatal transport failure.

        Args:
            error: The exception raised by the transport.
        """
        with self._lock:
            self.http_transport_failures_total[type(error).__name__] += 1

    def record_connection_reset(self) -> None:
        """Record a connection reset turned into a retryable response."""
        with self._lock:
            self.http_connection_resets_total += 1

    def record_completion(self, bytes_received: int, duration_ms: float) -> None:
        """Record a finished execution.

        Args:
            bytes_received: Size of the final response body.
            duration_ms: Wall time of the execution in milliseconds.
        """
        with self._lock:
            self.http_bytes_total += bytes_received
            self.http_duration_ms_total += duration_ms
            self.http_request_count += 1

    @property
    def avg_duration_ms(self) -> float:
        """Calculate average execution duration.

        Returns:
            Average duration in milliseconds.
        """
        with self._lock:
            if self.http_request_count == 0:
                return 0.0
            return self.http_duration_ms_total / self.http_request_count

    def to_dict(self) -> dict[str, int | float | dict[str, int] | dict[int, int]]:
        """Convert metrics to dictionary.

        Returns:
            Dictionary of metric name to value.
        """
        with self._lock:
            return {
                "http_attempts_total": self.http_attempts_total,
                "http_retry_total": self.http_retry_total,
                "http_responses_total": dict(self.http_responses_total),
                "http_transport_failures_total": dict(
                    self.http_transport_failures_total
                ),
                "http_connection_resets_total": self.http_connection_resets_total,
                "http_bytes_total": self.http_bytes_total,
                "http_duration_ms_total": self.http_duration_ms_total,
                "http_request_count": self.http_request_count,
            }

    def to_prometheus_format(self) -> str:
        """Export metrics in Prometheus text format.

        Returns:
            Prometheus-formatted metrics string.
        """
        lines: list[str] = []
        with self._lock:
            lines.append("# HELP http_attempts_total Requests sent to the transport")
            lines.append("# TYPE http_attempts_total counter")
            lines.append(f"http_attempts_total {self.http_attempts_total}")

            lines.append("# HELP http_retry_total Responses discarded for a retry")
            lines.append("# TYPE http_retry_total counter")
            lines.append(f"http_retry_total {self.http_retry_total}")

            lines.append("# HELP http_responses_total Evaluated responses by status")
            lines.append("# TYPE http_responses_total counter")
            for status_code, count in sorted(self.http_responses_total.items()):
                lines.append(f'http_responses_total{{status="{status_code}"}} {count}')

            lines.append(
                "# HELP http_transport_failures_total Fatal transport failures by type"
            )
            lines.append("# TYPE http_transport_failures_total counter")
            for error_type, count in sorted(
                self.http_transport_failures_total.items()
            ):
                lines.append(
                    f'http_transport_failures_total{{error="{error_type}"}} {count}'
                )

            lines.append(
                "# HELP http_connection_resets_total Connection resets retried"
            )
            lines.append("# TYPE http_connection_resets_total counter")
            lines.append(
                f"http_connection_resets_total {self.http_connection_resets_total}"
            )

        return "\n".join(lines)
