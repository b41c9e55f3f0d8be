"""Outbound wire types: messages, content blocks, tools and the request."""

from enum import Enum
from typing import Annotated, Any, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, model_serializer


class WireModel(BaseModel):
    """Base for all wire types.

    Instances are immutable. Fields whose wire name is ``type`` but that are
    not union tags use a Python name plus ``alias="type"``.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)


class Role(str, Enum):
    """Author of a conversation turn."""

    USER = "user"
    ASSISTANT = "assistant"


class ImageSource(WireModel):
    """Inline image payload."""

    source_type: str = Field(alias="type")
    media_type: str
    data: str


class TextContent(WireModel):
    type: Literal["text"] = "text"
    text: str


class ImageContent(WireModel):
    type: Literal["image"] = "image"
    source: ImageSource


class ToolUseContent(WireModel):
    """A tool invocation requested by the model.

    ``input`` is opaque structured data and is passed through untouched.
    """

    type: Literal["tool_use"] = "tool_use"
    id: str
    name: str
    input: Any


class ToolResultContent(WireModel):
    type: Literal["tool_result"] = "tool_result"
    tool_use_id: str
    content: str


Content = Annotated[
    Union[TextContent, ImageContent, ToolUseContent, ToolResultContent],
    Field(discriminator="type"),
]


class Message(WireModel):
    """One conversation turn."""

    role: Role
    content: list[Content]


class Tool(WireModel):
    """Tool definition offered to the model."""

    name: str
    description: str
    input_schema: dict[str, Any]


class AutoToolChoice(WireModel):
    type: Literal["auto"] = "auto"


class AnyToolChoice(WireModel):
    type: Literal["any"] = "any"


class NamedToolChoice(WireModel):
    type: Literal["tool"] = "tool"
    name: str


ToolChoice = Annotated[
    Union[AutoToolChoice, AnyToolChoice, NamedToolChoice],
    Field(discriminator="type"),
]


class Metadata(WireModel):
    user_id: str | None = None


# Optional request fields dropped from the payload when None or empty
SPARSE_FIELDS = (
    "tools",
    "tool_choice",
    "system",
    "metadata",
    "stop_sequences",
    "temperature",
    "top_k",
    "top_p",
)


class Request(WireModel):
    """A single Messages API call.

    Serializes sparsely: unset optional fields never appear in the payload.
    """

    model: str
    max_tokens: int
    messages: list[Message]
    tools: list[Tool] = Field(default_factory=list)
    tool_choice: Optional[ToolChoice] = None
    system: str | None = None
    metadata: Metadata | None = None
    stop_sequences: list[str] = Field(default_factory=list)
    temperature: float | None = None
    top_k: int | None = None
    top_p: float | None = None

    @model_serializer(mode="wrap")
    def _serialize_sparse(self, handler: Any) -> dict[str, Any]:
        data = handler(self)
        for name in SPARSE_FIELDS:
            if data.get(name) is None or data.get(name) == []:
                data.pop(name, None)
        return data


def text_message(role: Role | str, text: str) -> Message:
    """Build a message holding a single text block."""
    return Message(role=Role(role), content=[TextContent(text=text)])
