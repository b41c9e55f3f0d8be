"""Projection of decoded events into incremental text."""

from collections.abc import AsyncIterable, AsyncIterator
from typing import Union

from anthropic_stream.exceptions import ApiResponseError, MessagesError
from anthropic_stream.wire.events import (
    ContentBlockDeltaEvent,
    ContentBlockStartEvent,
    ErrorEvent,
    Event,
    TextDelta,
)
from anthropic_stream.wire.messages import TextContent


async def extract_text(
    items: AsyncIterable[Union[Event, MessagesError]],
) -> AsyncIterator[str | MessagesError]:
    """Yield text fragments in wire order.

    Text block starts and text deltas produce their text. An ``error`` event
    becomes an :class:`ApiResponseError` item, and error items from upstream
    pass through unchanged. Everything else is dropped.
    """
    async for item in items:
        if isinstance(item, MessagesError):
            yield item
        elif isinstance(item, ContentBlockStartEvent):
            if isinstance(item.content_block, TextContent):
                yield item.content_block.text
        elif isinstance(item, ContentBlockDeltaEvent):
            if isinstance(item.delta, TextDelta):
                yield item.delta.text
        elif isinstance(item, ErrorEvent):
            yield ApiResponseError(item.error)


async def iter_text(items: AsyncIterable[Union[Event, MessagesError]]) -> AsyncIterator[str]:
    """Like :func:`extract_text`, but raise the first error item."""
    async for fragment in extract_text(items):
        if isinstance(fragment, MessagesError):
            raise fragment
        yield fragment


async def collect_text(items: AsyncIterable[Union[Event, MessagesError]]) -> str:
    """Join all text of a stream, raising the first error item."""
    return "".join([fragment async for fragment in iter_text(items)])
