"""anthropic-stream - Messages API client with a typed streaming event decoder."""

from anthropic_stream.catalog import DEFAULT_MODEL, ModelInfo, custom_model, from_id, get_model
from anthropic_stream.client import MessagesClient
from anthropic_stream.config import ANTHROPIC_API_URL, ClientConfig
from anthropic_stream.exceptions import (
    AccumulationError,
    ApiResponseError,
    ConfigError,
    FrameDecodeError,
    MalformedResponseError,
    MessagesError,
    ModelNotFoundError,
    RequestEncodingError,
    StreamError,
    StreamReadError,
)
from anthropic_stream.observability import (
    LogLevel,
    RequestContext,
    configure_logging,
    get_logger,
    register_metric_callback,
)
from anthropic_stream.streaming import (
    EventStream,
    MessageAccumulator,
    accumulate,
    collect_text,
    decode_events,
    extract_text,
    iter_text,
)
from anthropic_stream.transport import (
    StreamingRequest,
    build_headers,
    complete,
    encode_request,
    stream_completion,
)

__version__ = "0.1.0"
__all__ = [
    # Client
    "ANTHROPIC_API_URL",
    "ClientConfig",
    "MessagesClient",
    # Catalog
    "DEFAULT_MODEL",
    "ModelInfo",
    "custom_model",
    "from_id",
    "get_model",
    # Transport
    "StreamingRequest",
    "build_headers",
    "complete",
    "encode_request",
    "stream_completion",
    # Streaming
    "EventStream",
    "MessageAccumulator",
    "accumulate",
    "collect_text",
    "decode_events",
    "extract_text",
    "iter_text",
    # Errors
    "AccumulationError",
    "ApiResponseError",
    "ConfigError",
    "FrameDecodeError",
    "MalformedResponseError",
    "MessagesError",
    "ModelNotFoundError",
    "RequestEncodingError",
    "StreamError",
    "StreamReadError",
    # Observability
    "LogLevel",
    "RequestContext",
    "configure_logging",
    "get_logger",
    "register_metric_callback",
]
