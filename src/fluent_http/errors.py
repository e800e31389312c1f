"""Error types for the request pipeline."""

from enum import Enum


class RequestErrorClass(str, Enum):
    """Classification of request errors.

    - CONFIGURATION: Invalid builder input (URL, body, request URI)
    - CANCELLED: The request context was cancelled or its deadline passed
    - STREAM: Reading a response body failed part way through
    - STATUS: The server answered with a non-success status code
    - DECODE: The response body could not be decoded into a target
    """

    CONFIGURATION = "CONFIGURATION"
    CANCELLED = "CANCELLED"
    STREAM = "STREAM"
    STATUS = "STATUS"
    DECODE = "DECODE"


class RequestError(Exception):
    """Base exception for request errors.

    Provides structured error information for logging and result reporting.
    """

    error_class: RequestErrorClass = RequestErrorClass.CONFIGURATION

    def __init__(
        self,
        message: str,
        details: dict[str, str | int | bool | None] | None = None,
    ) -> None:
        """Initialize the request error.

        Args:
            message: Human-readable error message.
            details: Additional structured error details.
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(
        self,
    ) -> dict[str, str | dict[str, str | int | bool | None]]:
        """Convert error to dictionary for logging/serialization.

        Returns:
            Dictionary representation of the error.
        """
        return {
            "error_class": self.error_class.value,
            "message": self.message,
            "details": self.details,
        }


class ConfigurationError(RequestError):
    """Error captured while configuring a request.

    Stored on the builder and surfaced when the request is executed.
    """

    error_class = RequestErrorClass.CONFIGURATION


class InvalidURLError(ConfigurationError):
    """Raised when a base address or request URI cannot be parsed."""

    def __init__(self, url: str, reason: str) -> None:
        """Initialize the error.

        Args:
            url: The offending URL.
            reason: Why parsing failed.
        """
        super().__init__(
            f"invalid URL {url!r}: {reason}",
            details={"url": url},
        )
        self.url = url


class UnknownBodyTypeError(ConfigurationError):
    """Raised when a body value is not a path, bytes, or a readable stream."""

    def __init__(self, value: object) -> None:
        """Initialize the error.

        Args:
            value: The rejected body value.
        """
        super().__init__(
            f"unknown type used for body: {value!r}",
            details={"type": type(value).__name__},
        )


class BodyReadError(ConfigurationError):
    """Raised when a body file cannot be read."""

    def __init__(self, path: str, reason: str) -> None:
        """Initialize the error.

        Args:
            path: Path of the body file.
            reason: Underlying OS error message.
        """
        super().__init__(
            f"could not read body from {path}: {reason}",
            details={"path": path},
        )
        self.path = path


class RequestCancelledError(RequestError):
    """Raised when the request context is cancelled."""

    error_class = RequestErrorClass.CANCELLED

    def __init__(self, message: str = "request cancelled") -> None:
        """Initialize the error.

        Args:
            message: Human-readable error message.
        """
        super().__init__(message)


class DeadlineExceededError(RequestCancelledError):
    """Raised when the request context deadline has passed."""

    def __init__(self) -> None:
        """Initialize the error."""
        super().__init__("request deadline exceeded")


class StreamReadError(RequestError):
    """The response stream broke, most likely because the connection closed."""

    error_class = RequestErrorClass.STREAM

    def __init__(self, cause: BaseException) -> None:
        """Initialize the error.

        Args:
            cause: The exception raised while reading the body.
        """
        super().__init__(
            f"Stream error {cause!r} when reading response body, "
            "may be caused by closed connection. Please retry."
        )


class UnexpectedReadError(RequestError):
    """Reading the response body failed for an unexpected reason."""

    error_class = RequestErrorClass.STREAM

    def __init__(self, cause: BaseException) -> None:
        """Initialize the error.

        Args:
            cause: The exception raised while reading the body.
        """
        super().__init__(
            f"Unexpected error {cause!r} when reading response body. Please retry."
        )


class StatusError(RequestError):
    """A non-success HTTP status translated into a human-readable message."""

    error_class = RequestErrorClass.STATUS

    def __init__(self, message: str) -> None:
        """Initialize the error.

        Args:
            message: Human-readable status message.
        """
        super().__init__(message)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, StatusError):
            return NotImplemented
        return self.message == other.message

    def __hash__(self) -> int:
        return hash(self.message)


class EmptyResponseError(RequestError):
    """Raised when decoding is attempted on a 0-length body."""

    error_class = RequestErrorClass.DECODE

    def __init__(self) -> None:
        """Initialize the error."""
        super().__init__("0-length response")


class InvalidMediaTypeError(RequestError):
    """Raised when the Content-Type header is not a valid media type."""

    error_class = RequestErrorClass.DECODE

    def __init__(self, content_type: str) -> None:
        """Initialize the error.

        Args:
            content_type: The raw Content-Type header value.
        """
        super().__init__(
            f"invalid media type {content_type!r}",
            details={"content_type": content_type},
        )
        self.content_type = content_type


class UnsupportedMediaTypeError(RequestError):
    """Raised when no decoder is registered for a media type."""

    error_class = RequestErrorClass.DECODE

    def __init__(self, media_type: str) -> None:
        """Initialize the error.

        Args:
            media_type: The media type without parameters.
        """
        super().__init__(
            f"unsupported media type {media_type!r}",
            details={"media_type": media_type},
        )
        self.media_type = media_type
