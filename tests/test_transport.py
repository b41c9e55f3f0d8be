"""Tests for request encoding and HTTP invocation."""

import json
from datetime import timedelta

import httpx
import pytest

from anthropic_stream.exceptions import (
    ApiResponseError,
    MalformedResponseError,
    RequestEncodingError,
    StreamReadError,
)
from anthropic_stream.mock import MockMessagesAPI, frame, sse_body
from anthropic_stream.streaming.text import extract_text
from anthropic_stream.transport import (
    StreamingRequest,
    build_headers,
    complete,
    encode_request,
    error_from_body,
    stream_completion,
)
from anthropic_stream.wire.events import PingEvent
from anthropic_stream.wire.messages import Message, Request, Role, ToolUseContent, text_message

REPLY = {
    "id": "msg_01",
    "type": "message",
    "role": "assistant",
    "content": [{"type": "text", "text": "Hi!"}],
    "model": "claude-3-5-sonnet-20240620",
    "stop_reason": "end_turn",
    "stop_sequence": None,
    "usage": {"input_tokens": 3, "output_tokens": 2},
}

INVALID_REQUEST = {
    "type": "error",
    "error": {"type": "invalid_request_error", "message": "bad"},
}


@pytest.fixture
def request_() -> Request:
    """A minimal request."""
    return Request(
        model="claude-3-5-sonnet-20240620",
        max_tokens=64,
        messages=[text_message("user", "Hello")],
    )


class TestEncoding:
    """Tests for headers and body encoding."""

    def test_headers(self) -> None:
        """Protocol, auth and content-type headers are set."""
        assert build_headers("sk-test") == {
            "Anthropic-Version": "2023-06-01",
            "Anthropic-Beta": "tools-2024-04-04",
            "X-Api-Key": "sk-test",
            "Content-Type": "application/json",
        }

    def test_single_shot_body(self, request_: Request) -> None:
        """The body holds only the set fields."""
        payload = json.loads(encode_request(request_))

        assert payload == {
            "model": "claude-3-5-sonnet-20240620",
            "max_tokens": 64,
            "messages": [{"role": "user", "content": [{"type": "text", "text": "Hello"}]}],
        }

    def test_streaming_body(self, request_: Request) -> None:
        """The streaming flag is flattened into the body."""
        payload = json.loads(encode_request(request_, stream=True))

        assert payload["stream"] is True
        assert set(payload) == {"model", "max_tokens", "messages", "stream"}

    def test_streaming_view_does_not_change_request(self, request_: Request) -> None:
        """The view borrows the request without altering it."""
        view = StreamingRequest(request_)

        assert view.to_payload()["stream"] is True
        assert "stream" not in request_.model_dump()

    def test_unserializable_tool_input(self) -> None:
        """Opaque input with no JSON form is a RequestEncodingError."""
        message = Message(
            role=Role.ASSISTANT,
            content=[ToolUseContent(id="t", name="f", input={"when": object()})],
        )
        request = Request(model="m", max_tokens=1, messages=[message])

        with pytest.raises(RequestEncodingError):
            encode_request(request)

    @pytest.mark.parametrize("value", [float("nan"), float("inf"), float("-inf")])
    def test_non_finite_tool_input(self, value: float) -> None:
        """NaN and infinity in tool input are not sent as null."""
        message = Message(
            role=Role.ASSISTANT,
            content=[ToolUseContent(id="t", name="f", input={"x": value})],
        )
        request = Request(model="m", max_tokens=1, messages=[message])

        with pytest.raises(RequestEncodingError):
            encode_request(request)
        with pytest.raises(RequestEncodingError):
            encode_request(request, stream=True)

    @pytest.mark.parametrize("value", [float("nan"), float("inf")])
    def test_non_finite_sampling_parameter(self, request_: Request, value: float) -> None:
        """A non-finite temperature is rejected rather than encoded as null."""
        request = request_.model_copy(update={"temperature": value})

        with pytest.raises(RequestEncodingError):
            encode_request(request)

    def test_role_encodes_as_wire_name(self, request_: Request) -> None:
        """Roles encode as their lowercase names."""
        payload = json.loads(encode_request(request_, stream=True))

        assert payload["messages"][0]["role"] == "user"


class TestErrorFromBody:
    """Tests for non-success body interpretation."""

    def test_error_document(self) -> None:
        """An error event body becomes ApiResponseError with the status."""
        error = error_from_body(400, json.dumps(INVALID_REQUEST).encode())

        assert isinstance(error, ApiResponseError)
        assert error.error_type == "invalid_request_error"
        assert error.message == "bad"
        assert error.status_code == 400

    def test_non_error_event(self) -> None:
        """A decodable non-error event is malformed."""
        error = error_from_body(500, b'{"type":"ping"}')

        assert isinstance(error, MalformedResponseError)
        assert error.status_code == 500
        assert error.body == '{"type":"ping"}'

    def test_undecodable_body(self) -> None:
        """An unparseable body keeps the literal status and text."""
        error = error_from_body(502, b"<html>Bad Gateway</html>")

        assert isinstance(error, MalformedResponseError)
        assert error.status_code == 502
        assert error.body == "<html>Bad Gateway</html>"
        assert "502 <html>Bad Gateway</html>" in str(error)


class TestComplete:
    """Tests for single-shot calls."""

    @pytest.mark.asyncio
    async def test_success(self, request_: Request) -> None:
        """A success body decodes to a Response."""
        api = MockMessagesAPI(body=REPLY)
        async with api.client() as http:
            response = await complete(http, api.url, "sk-test", request_)

        assert response.text == "Hi!"
        sent = api.requests[0]
        assert sent.method == "POST"
        assert str(sent.url) == "https://api.test/v1/messages"
        assert sent.headers["x-api-key"] == "sk-test"
        assert sent.headers["anthropic-version"] == "2023-06-01"
        assert "stream" not in api.last_payload

    @pytest.mark.asyncio
    async def test_trailing_slash_in_url(self, request_: Request) -> None:
        """A base URL ending in a slash still hits /v1/messages."""
        api = MockMessagesAPI(body=REPLY)
        async with api.client() as http:
            await complete(http, api.url + "/", "k", request_)

        assert api.requests[0].url.path == "/v1/messages"

    @pytest.mark.asyncio
    async def test_api_error(self, request_: Request) -> None:
        """A structured error status raises ApiResponseError."""
        api = MockMessagesAPI(status_code=400, body=INVALID_REQUEST)
        async with api.client() as http:
            with pytest.raises(ApiResponseError) as exc_info:
                await complete(http, api.url, "k", request_)

        assert exc_info.value.error_type == "invalid_request_error"
        assert exc_info.value.status_code == 400

    @pytest.mark.asyncio
    async def test_malformed_success_body(self, request_: Request) -> None:
        """A 200 that is not a reply raises MalformedResponseError."""
        api = MockMessagesAPI(body="not json")
        async with api.client() as http:
            with pytest.raises(MalformedResponseError) as exc_info:
                await complete(http, api.url, "k", request_)

        assert exc_info.value.status_code == 200
        assert exc_info.value.body == "not json"

    @pytest.mark.asyncio
    async def test_transport_error_propagates(self, request_: Request) -> None:
        """Connection failures surface unchanged."""

        def refuse(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        async with httpx.AsyncClient(transport=httpx.MockTransport(refuse)) as http:
            with pytest.raises(httpx.ConnectError):
                await complete(http, "https://api.test", "k", request_)


class TestStreamCompletion:
    """Tests for streaming calls."""

    @pytest.mark.asyncio
    async def test_stream_text(self, request_: Request, hello_events) -> None:
        """A streaming call decodes into text fragments."""
        api = MockMessagesAPI(body=sse_body(hello_events))
        async with api.client() as http:
            events = await stream_completion(http, api.url, "k", request_)
            async with events:
                fragments = [f async for f in extract_text(events)]

        assert fragments == ["Hello", " world"]
        assert api.last_payload["stream"] is True
        assert api.streams[0].closed

    @pytest.mark.asyncio
    async def test_split_frame(self, request_: Request) -> None:
        """Frames split across reads decode whole."""
        api = MockMessagesAPI(chunks=[b'data: {"typ', b'e":"ping"}\n'])
        async with api.client() as http:
            async with await stream_completion(http, api.url, "k", request_) as events:
                items = [item async for item in events]

        assert len(items) == 1
        assert isinstance(items[0], PingEvent)

    @pytest.mark.asyncio
    async def test_abandoned_stream_releases_connection(self, request_: Request, hello_events) -> None:
        """Stopping early closes the response body."""
        api = MockMessagesAPI(chunks=[frame(event) for event in hello_events])
        async with api.client() as http:
            async with await stream_completion(http, api.url, "k", request_) as events:
                async for _ in events:
                    break

        assert api.streams[0].closed

    @pytest.mark.asyncio
    async def test_error_status(self, request_: Request) -> None:
        """A 400 with an error document raises before any stream exists."""
        api = MockMessagesAPI(status_code=400, body=INVALID_REQUEST)
        async with api.client() as http:
            with pytest.raises(ApiResponseError) as exc_info:
                await stream_completion(http, api.url, "k", request_)

        assert exc_info.value.error_type == "invalid_request_error"
        assert api.streams[0].closed

    @pytest.mark.asyncio
    async def test_error_status_unparseable(self, request_: Request) -> None:
        """An unparseable error body keeps the literal status and text."""
        api = MockMessagesAPI(status_code=503, body="upstream unavailable")
        async with api.client() as http:
            with pytest.raises(MalformedResponseError) as exc_info:
                await stream_completion(http, api.url, "k", request_)

        assert exc_info.value.status_code == 503
        assert exc_info.value.body == "upstream unavailable"

    @pytest.mark.asyncio
    async def test_error_status_with_other_event(self, request_: Request) -> None:
        """A non-error event in an error body is malformed."""
        api = MockMessagesAPI(status_code=500, body={"type": "message_stop"})
        async with api.client() as http:
            with pytest.raises(MalformedResponseError, match="non-error event"):
                await stream_completion(http, api.url, "k", request_)

    @pytest.mark.asyncio
    async def test_low_speed_timeout_applied(self, request_: Request) -> None:
        """The stall timeout becomes the read timeout of the streaming call."""
        api = MockMessagesAPI(body=b"")
        async with api.client() as http:
            events = await stream_completion(
                http, api.url, "k", request_, low_speed_timeout=timedelta(seconds=7)
            )
            await events.aclose()

        timeout = api.requests[0].extensions["timeout"]
        assert timeout["read"] == 7.0

    @pytest.mark.asyncio
    async def test_read_failure_is_an_item(self, request_: Request, hello_events) -> None:
        """A read timeout mid-stream is delivered as StreamReadError."""
        api = MockMessagesAPI(
            chunks=[sse_body(hello_events[:2])],
            error=httpx.ReadTimeout("stalled"),
        )
        async with api.client() as http:
            async with await stream_completion(http, api.url, "k", request_) as events:
                items = [item async for item in events]

        assert len(items) == 3
        assert isinstance(items[-1], StreamReadError)

    @pytest.mark.asyncio
    async def test_metrics(self, request_: Request, hello_events, metrics) -> None:
        """Requests and frames are counted."""
        api = MockMessagesAPI(body=sse_body(hello_events))
        async with api.client() as http:
            async with await stream_completion(http, api.url, "k", request_) as events:
                async for _ in events:
                    pass

        names = [name for name, _, _ in metrics]
        assert "messages.requests" in names
        assert "messages.latency_ms" in names
        assert names.count("stream.frames") == len(hello_events)
