"""Inbound wire types: the reply document and the streaming event union.

Every streamed frame carries a ``type`` field that selects exactly one event
class. Decoding goes through a single discriminated step, :func:`parse_event`,
so unknown or missing tags fail in one place.
"""

from typing import Annotated, Literal, Union

from pydantic import Field, TypeAdapter

from anthropic_stream.wire.messages import Content, Role, WireModel


class Usage(WireModel):
    """Token counts. Either field may be missing mid-stream."""

    input_tokens: int | None = None
    output_tokens: int | None = None


class Response(WireModel):
    """A complete (or, inside ``message_start``, partial) reply."""

    id: str
    response_type: str = Field(default="message", alias="type")
    role: Role
    content: list[Content]
    model: str
    stop_reason: str | None = None
    stop_sequence: str | None = None
    usage: Usage = Field(default_factory=Usage)

    @property
    def text(self) -> str:
        """Concatenated text of all text blocks."""
        return "".join(block.text for block in self.content if block.type == "text")


class ApiError(WireModel):
    """Structured error body returned by the API."""

    error_type: str = Field(alias="type")
    message: str


class TextDelta(WireModel):
    type: Literal["text_delta"] = "text_delta"
    text: str


class InputJsonDelta(WireModel):
    """Fragment of a tool input's JSON text; fragments concatenate in order."""

    type: Literal["input_json_delta"] = "input_json_delta"
    partial_json: str


ContentDelta = Annotated[
    Union[TextDelta, InputJsonDelta],
    Field(discriminator="type"),
]


class MessageDelta(WireModel):
    stop_reason: str | None = None
    stop_sequence: str | None = None


class MessageStartEvent(WireModel):
    type: Literal["message_start"] = "message_start"
    message: Response


class ContentBlockStartEvent(WireModel):
    type: Literal["content_block_start"] = "content_block_start"
    index: int
    content_block: Content


class ContentBlockDeltaEvent(WireModel):
    type: Literal["content_block_delta"] = "content_block_delta"
    index: int
    delta: ContentDelta


class ContentBlockStopEvent(WireModel):
    type: Literal["content_block_stop"] = "content_block_stop"
    index: int


class MessageDeltaEvent(WireModel):
    type: Literal["message_delta"] = "message_delta"
    delta: MessageDelta
    usage: Usage


class MessageStopEvent(WireModel):
    type: Literal["message_stop"] = "message_stop"


class PingEvent(WireModel):
    type: Literal["ping"] = "ping"


class ErrorEvent(WireModel):
    type: Literal["error"] = "error"
    error: ApiError


Event = Annotated[
    Union[
        MessageStartEvent,
        ContentBlockStartEvent,
        ContentBlockDeltaEvent,
        ContentBlockStopEvent,
        MessageDeltaEvent,
        MessageStopEvent,
        PingEvent,
        ErrorEvent,
    ],
    Field(discriminator="type"),
]

EVENT_TYPES = (
    "message_start",
    "content_block_start",
    "content_block_delta",
    "content_block_stop",
    "message_delta",
    "message_stop",
    "ping",
    "error",
)

_event_adapter: TypeAdapter[Event] = TypeAdapter(Event)


def parse_event(data: str | bytes) -> Event:
    """Decode one JSON document into its event class.

    Raises:
        pydantic.ValidationError: Malformed JSON, missing or unknown ``type``,
            or fields that do not match the selected variant.
    """
    return _event_adapter.validate_json(data)


def parse_response(data: str | bytes) -> Response:
    """Decode a complete reply document."""
    return Response.model_validate_json(data)
