"""Fold a decoded event sequence back into a complete reply."""

import json
from collections.abc import AsyncIterable
from typing import Any, Union

from anthropic_stream.exceptions import AccumulationError, ApiResponseError, MessagesError
from anthropic_stream.wire.events import (
    ContentBlockDeltaEvent,
    ContentBlockStartEvent,
    ContentBlockStopEvent,
    ErrorEvent,
    Event,
    InputJsonDelta,
    MessageDeltaEvent,
    MessageStartEvent,
    Response,
    TextDelta,
    Usage,
)
from anthropic_stream.wire.messages import Content, TextContent, ToolUseContent


class MessageAccumulator:
    """Builds a :class:`Response` from streaming events.

    Text deltas are appended to their block. Tool input arrives as JSON text
    fragments, which are joined and parsed when the block stops.

    Example:
        acc = MessageAccumulator()
        async for item in events:
            acc.add(item)
        print(acc.response.text)
    """

    def __init__(self) -> None:
        self._message: Response | None = None
        self._blocks: dict[int, Content] = {}
        self._text: dict[int, list[str]] = {}
        self._json: dict[int, list[str]] = {}
        self._inputs: dict[int, Any] = {}
        self._stop_reason: str | None = None
        self._stop_sequence: str | None = None
        self._usage = Usage()

    def add(self, event: Event) -> None:
        """Apply one event.

        Raises:
            ApiResponseError: For an ``error`` event
            AccumulationError: For a delta or stop on an unknown block, or
                tool input that is not valid JSON
        """
        if isinstance(event, MessageStartEvent):
            self._message = event.message
            self._stop_reason = event.message.stop_reason
            self._stop_sequence = event.message.stop_sequence
            self._usage = event.message.usage
            for index, block in enumerate(event.message.content):
                self._start_block(index, block)

        elif isinstance(event, ContentBlockStartEvent):
            self._start_block(event.index, event.content_block)

        elif isinstance(event, ContentBlockDeltaEvent):
            if event.index not in self._blocks:
                raise AccumulationError(f"Delta for unknown content block {event.index}")
            block = self._blocks[event.index]
            if isinstance(event.delta, TextDelta):
                if not isinstance(block, TextContent):
                    raise AccumulationError(
                        f"Text delta for {block.type} content block {event.index}"
                    )
                self._text.setdefault(event.index, []).append(event.delta.text)
            elif isinstance(event.delta, InputJsonDelta):
                if not isinstance(block, ToolUseContent):
                    raise AccumulationError(
                        f"Input JSON delta for {block.type} content block {event.index}"
                    )
                self._json.setdefault(event.index, []).append(event.delta.partial_json)

        elif isinstance(event, ContentBlockStopEvent):
            if event.index not in self._blocks:
                raise AccumulationError(f"Stop for unknown content block {event.index}")
            self._finish_block(event.index)

        elif isinstance(event, MessageDeltaEvent):
            self._stop_reason = event.delta.stop_reason
            self._stop_sequence = event.delta.stop_sequence
            self._usage = _merge_usage(self._usage, event.usage)

        elif isinstance(event, ErrorEvent):
            raise ApiResponseError(event.error)

    @property
    def response(self) -> Response:
        """The reply as accumulated so far."""
        if self._message is None:
            raise AccumulationError("No message_start event received")
        return self._message.model_copy(
            update={
                "content": [self._render_block(i) for i in sorted(self._blocks)],
                "stop_reason": self._stop_reason,
                "stop_sequence": self._stop_sequence,
                "usage": self._usage,
            }
        )

    def _start_block(self, index: int, block: Content) -> None:
        self._blocks[index] = block
        if isinstance(block, TextContent):
            self._text[index] = [block.text]

    def _finish_block(self, index: int) -> None:
        fragments = self._json.pop(index, None)
        if fragments is None:
            return
        raw = "".join(fragments)
        try:
            self._inputs[index] = json.loads(raw) if raw else {}
        except json.JSONDecodeError as e:
            raise AccumulationError(f"Invalid tool input JSON for block {index}: {e}") from e

    def _render_block(self, index: int) -> Content:
        block = self._blocks[index]
        if isinstance(block, TextContent):
            return block.model_copy(update={"text": "".join(self._text.get(index, []))})
        if isinstance(block, ToolUseContent) and index in self._inputs:
            return block.model_copy(update={"input": self._inputs[index]})
        return block


def _merge_usage(current: Usage, update: Usage) -> Usage:
    return Usage(
        input_tokens=(
            update.input_tokens if update.input_tokens is not None else current.input_tokens
        ),
        output_tokens=(
            update.output_tokens if update.output_tokens is not None else current.output_tokens
        ),
    )


async def accumulate(items: AsyncIterable[Union[Event, MessagesError]]) -> Response:
    """Consume a decoded stream and return the complete reply.

    Raises:
        MessagesError: The first error item in the stream
    """
    acc = MessageAccumulator()
    async for item in items:
        if isinstance(item, MessagesError):
            raise item
        acc.add(item)
    return acc.response
