"""anthropic-stream exceptions."""

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from anthropic_stream.wire.events import ApiError


class MessagesError(Exception):
    """Base exception for anthropic-stream."""

    pass


class ConfigError(MessagesError):
    """Configuration error."""

    pass


class RequestEncodingError(MessagesError):
    """Request content cannot be represented as JSON."""

    pass


class ApiResponseError(MessagesError):
    """Structured error reported by the API.

    Raised for a non-success HTTP status whose body carries an error
    document, and produced as a stream item for an in-stream ``error`` event.
    """

    def __init__(self, error: "ApiError", status_code: int | None = None) -> None:
        self.error = error
        self.status_code = status_code
        super().__init__(
            f"API error. Type: '{error.error_type}', message: '{error.message}'"
        )

    @property
    def error_type(self) -> str:
        return self.error.error_type

    @property
    def message(self) -> str:
        return self.error.message


class MalformedResponseError(MessagesError):
    """Response body did not have the expected shape.

    Carries the raw status code and body text for diagnostics.
    """

    def __init__(self, message: str, status_code: int, body: str) -> None:
        self.status_code = status_code
        self.body = body
        super().__init__(f"{message}: {status_code} {body}")


class StreamError(MessagesError):
    """A failure delivered as an item of an event stream."""

    pass


class FrameDecodeError(StreamError):
    """A single ``data:`` frame could not be decoded into an event."""

    def __init__(self, message: str, line: bytes) -> None:
        self.line = line
        super().__init__(message)


class StreamReadError(StreamError):
    """Reading the response body failed mid-stream."""

    pass


class AccumulationError(MessagesError):
    """Events could not be folded into a complete message."""

    pass


class NotFoundError(MessagesError):
    """Resource not found."""

    pass


class ModelNotFoundError(NotFoundError):
    """Model id or name is not in the catalog."""

    pass
