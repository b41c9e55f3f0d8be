"""Wire data model for the Messages API."""

from anthropic_stream.wire.events import (
    ApiError,
    ContentBlockDeltaEvent,
    ContentBlockStartEvent,
    ContentBlockStopEvent,
    ContentDelta,
    ErrorEvent,
    Event,
    InputJsonDelta,
    MessageDelta,
    MessageDeltaEvent,
    MessageStartEvent,
    MessageStopEvent,
    PingEvent,
    Response,
    TextDelta,
    Usage,
    parse_event,
    parse_response,
)
from anthropic_stream.wire.messages import (
    AnyToolChoice,
    AutoToolChoice,
    Content,
    ImageContent,
    ImageSource,
    Message,
    Metadata,
    NamedToolChoice,
    Request,
    Role,
    TextContent,
    Tool,
    ToolChoice,
    ToolResultContent,
    ToolUseContent,
    text_message,
)

__all__ = [
    # Messages
    "AnyToolChoice",
    "AutoToolChoice",
    "Content",
    "ImageContent",
    "ImageSource",
    "Message",
    "Metadata",
    "NamedToolChoice",
    "Request",
    "Role",
    "TextContent",
    "Tool",
    "ToolChoice",
    "ToolResultContent",
    "ToolUseContent",
    "text_message",
    # Events
    "ApiError",
    "ContentBlockDeltaEvent",
    "ContentBlockStartEvent",
    "ContentBlockStopEvent",
    "ContentDelta",
    "ErrorEvent",
    "Event",
    "InputJsonDelta",
    "MessageDelta",
    "MessageDeltaEvent",
    "MessageStartEvent",
    "MessageStopEvent",
    "PingEvent",
    "Response",
    "TextDelta",
    "Usage",
    "parse_event",
    "parse_response",
]
