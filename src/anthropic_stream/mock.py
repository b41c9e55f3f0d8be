"""Mock Messages API for testing.

Serves canned replies through ``httpx.MockTransport`` so the real encoding,
transport and decoding paths run without network access.
"""

import json
from collections.abc import AsyncIterator, Iterable, Sequence
from typing import Any

import httpx
from pydantic import BaseModel


def frame(event: BaseModel | dict[str, Any]) -> bytes:
    """Render one event as an SSE frame (``event:`` + ``data:`` + blank line)."""
    if isinstance(event, BaseModel):
        data = event.model_dump(mode="json", by_alias=True)
    else:
        data = event
    return (
        f"event: {data.get('type', 'message')}\n"
        f"data: {json.dumps(data)}\n\n"
    ).encode()


def sse_body(events: Iterable[BaseModel | dict[str, Any]]) -> bytes:
    """Render a whole event stream."""
    return b"".join(frame(event) for event in events)


class ChunkedStream(httpx.AsyncByteStream):
    """Response body delivered in the given chunks.

    Optionally raises ``error`` after the last chunk to simulate a
    connection dropping mid-stream.
    """

    def __init__(self, chunks: Sequence[bytes], error: Exception | None = None) -> None:
        self.chunks = list(chunks)
        self.error = error
        self.consumed = 0
        self.closed = False

    async def __aiter__(self) -> AsyncIterator[bytes]:
        for chunk in self.chunks:
            self.consumed += 1
            yield chunk
        if self.error is not None:
            raise self.error

    async def aclose(self) -> None:
        self.closed = True


class MockMessagesAPI:
    """Records requests and answers each with the same canned reply.

    Example:
        api = MockMessagesAPI(body=sse_body(events))
        async with httpx.AsyncClient(transport=api.transport) as http:
            stream = await stream_completion(http, api.url, "key", request)
    """

    url = "https://api.test"

    def __init__(
        self,
        status_code: int = 200,
        body: bytes | str | dict[str, Any] = b"",
        chunks: Sequence[bytes] | None = None,
        error: Exception | None = None,
    ) -> None:
        self.status_code = status_code
        if isinstance(body, dict):
            body = json.dumps(body)
        self.body = body.encode() if isinstance(body, str) else body
        self.chunks = chunks
        self.error = error
        self.requests: list[httpx.Request] = []
        self.streams: list[ChunkedStream] = []

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self._handle)

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=self.transport)

    @property
    def last_payload(self) -> dict[str, Any]:
        """JSON body of the most recent request."""
        return json.loads(self.requests[-1].content)

    def _handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        stream = ChunkedStream(self.chunks if self.chunks is not None else [self.body], self.error)
        self.streams.append(stream)
        return httpx.Response(self.status_code, stream=stream)
