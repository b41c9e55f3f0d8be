"""Server-sent event decoding.

Turns a chunked response body into an ordered sequence of typed events.
Failures are delivered in-band as :class:`StreamError` items so that one bad
frame does not hide the frames after it.
"""

from collections.abc import AsyncIterable, AsyncIterator, Awaitable, Callable
from typing import Any, Optional, Union

import httpx
from pydantic import ValidationError

from anthropic_stream.exceptions import FrameDecodeError, StreamError, StreamReadError
from anthropic_stream.observability import emit_counter, get_logger
from anthropic_stream.streaming.lines import iter_lines
from anthropic_stream.wire.events import Event, parse_event

logger = get_logger(__name__)

DATA_PREFIX = b"data: "

StreamItem = Union[Event, StreamError]


def decode_frame(line: bytes | str) -> Optional[Event]:
    """Decode one line of the stream.

    Returns:
        The event, or None if the line is not a ``data:`` frame (blank
        separators, ``event:`` fields and comments are skipped)

    Raises:
        FrameDecodeError: If the frame payload is not a valid event
    """
    if isinstance(line, str):
        line = line.encode()
    if not line.startswith(DATA_PREFIX):
        return None
    payload = line[len(DATA_PREFIX):]
    try:
        return parse_event(payload)
    except ValidationError as e:
        raise FrameDecodeError(f"Invalid event frame: {_summarize(e)}", line) from e


async def decode_events(chunks: AsyncIterable[bytes]) -> AsyncIterator[StreamItem]:
    """Lazily decode a byte stream into events.

    Frame decode failures are yielded and decoding continues. A failure of
    the byte source is yielded as :class:`StreamReadError` and ends the
    sequence.
    """
    lines = iter_lines(chunks)
    try:
        while True:
            try:
                line = await lines.__anext__()
            except StopAsyncIteration:
                return
            except Exception as e:
                logger.warning("Event stream read failed", error=e)
                error = StreamReadError(f"Failed to read event stream: {e}")
                error.__cause__ = e
                yield error
                return

            try:
                event = decode_frame(line)
            except FrameDecodeError as e:
                emit_counter("stream.frame_errors")
                logger.warning(
                    "Skipping undecodable frame",
                    context={"line": line[:200].decode(errors="replace")},
                )
                yield e
                continue

            if event is not None:
                emit_counter("stream.frames", {"type": event.type})
                yield event
    finally:
        await lines.aclose()


class EventStream:
    """Decoded events of one streaming response.

    Iterate with ``async for``. The underlying connection is released when
    the stream is exhausted, on :meth:`aclose`, or on leaving ``async with``
    (including an early ``break`` or an exception).

    Example:
        async with await client.stream(request) as events:
            async for item in events:
                ...
    """

    def __init__(
        self,
        chunks: AsyncIterable[bytes],
        on_close: Callable[[], Awaitable[Any]] | None = None,
    ) -> None:
        self._items = decode_events(chunks)
        self._on_close = on_close
        self._closed = False

    @classmethod
    def from_response(cls, response: httpx.Response) -> "EventStream":
        """Wrap an open streaming httpx response."""
        return cls(response.aiter_bytes(), on_close=response.aclose)

    @property
    def closed(self) -> bool:
        return self._closed

    def __aiter__(self) -> "EventStream":
        return self

    async def __anext__(self) -> StreamItem:
        if self._closed:
            raise StopAsyncIteration
        try:
            return await self._items.__anext__()
        except StopAsyncIteration:
            await self.aclose()
            raise

    async def aclose(self) -> None:
        """Stop decoding and release the response. Safe to call twice."""
        if self._closed:
            return
        self._closed = True
        try:
            await self._items.aclose()
        finally:
            if self._on_close is not None:
                await self._on_close()

    async def __aenter__(self) -> "EventStream":
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.aclose()


def _summarize(error: ValidationError) -> str:
    first = error.errors()[0]
    location = ".".join(str(part) for part in first["loc"])
    return f"{location}: {first['msg']}" if location else first["msg"]
