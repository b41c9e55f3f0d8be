"""Request encoding and HTTP invocation for the Messages API.

Both calls POST to ``{api_url}/v1/messages`` through a caller-supplied
``httpx.AsyncClient``. A non-success status is turned into one error type
whatever the call shape:

* body is an ``error`` event -> :class:`ApiResponseError`
* body is some other event -> :class:`MalformedResponseError`
* body does not decode -> :class:`MalformedResponseError` with the raw
  status and body text

Transport exceptions from httpx propagate unchanged. Nothing is retried.
"""

import json
from dataclasses import dataclass
from datetime import timedelta
from typing import Any

import httpx
from pydantic import ValidationError
from pydantic_core import PydanticSerializationError

from anthropic_stream.exceptions import (
    ApiResponseError,
    MalformedResponseError,
    MessagesError,
    RequestEncodingError,
)
from anthropic_stream.observability import Timer, emit_counter, emit_timer, get_logger
from anthropic_stream.streaming.decoder import EventStream
from anthropic_stream.wire.events import ErrorEvent, Response, parse_event, parse_response
from anthropic_stream.wire.messages import Request

logger = get_logger(__name__)

MESSAGES_PATH = "/v1/messages"
ANTHROPIC_VERSION = "2023-06-01"
ANTHROPIC_BETA = "tools-2024-04-04"


def build_headers(api_key: str) -> dict[str, str]:
    """Protocol headers for a Messages API call."""
    return {
        "Anthropic-Version": ANTHROPIC_VERSION,
        "Anthropic-Beta": ANTHROPIC_BETA,
        "X-Api-Key": api_key,
        "Content-Type": "application/json",
    }


@dataclass
class StreamingRequest:
    """A request viewed as a streaming call.

    Borrows the request for encoding only; the payload is the request's own
    payload with ``stream`` flattened in.
    """

    base: Request
    stream: bool = True

    def to_payload(self) -> dict[str, Any]:
        payload = self.base.model_dump(by_alias=True)
        payload["stream"] = self.stream
        return payload


def encode_request(request: Request, stream: bool = False) -> bytes:
    """Serialize a request body.

    Raises:
        RequestEncodingError: If caller content (e.g. a tool input) has no
            JSON representation, including NaN and infinite floats
    """
    try:
        if stream:
            payload = StreamingRequest(request).to_payload()
        else:
            payload = request.model_dump(by_alias=True)
        # Python-mode dump keeps NaN and infinity for the encoder to reject
        return json.dumps(payload, allow_nan=False).encode()
    except (PydanticSerializationError, TypeError, ValueError) as e:
        raise RequestEncodingError(f"Request is not JSON serializable: {e}") from e


def messages_url(api_url: str) -> str:
    return api_url.rstrip("/") + MESSAGES_PATH


def error_from_body(status_code: int, body: bytes) -> MessagesError:
    """Interpret the body of a non-success response."""
    text = body.decode(errors="replace")
    try:
        event = parse_event(body)
    except ValidationError:
        return MalformedResponseError("Failed to connect to API", status_code, text)
    if isinstance(event, ErrorEvent):
        return ApiResponseError(event.error, status_code=status_code)
    return MalformedResponseError(
        "Unexpected non-error event in error response", status_code, text
    )


async def complete(
    http: httpx.AsyncClient,
    api_url: str,
    api_key: str,
    request: Request,
) -> Response:
    """Send a single-shot request and decode the full reply.

    Raises:
        ApiResponseError: The API reported a structured error
        MalformedResponseError: A body did not have the expected shape
        RequestEncodingError: The request could not be serialized
        httpx.HTTPError: Connection or timeout failure
    """
    http_request = http.build_request(
        "POST",
        messages_url(api_url),
        headers=build_headers(api_key),
        content=encode_request(request),
    )
    emit_counter("messages.requests", {"stream": False})

    with Timer() as timer:
        response = await _send(http, http_request, stream=False)

    if not response.is_success:
        raise _fail(response.status_code, response.content, timer.duration_ms)

    try:
        result = parse_response(response.content)
    except ValidationError as e:
        emit_counter("messages.errors", {"status": response.status_code})
        raise MalformedResponseError(
            "Failed to decode response", response.status_code, response.text
        ) from e

    emit_timer("messages.latency_ms", timer.duration_ms, {"stream": False})
    logger.info(
        "Completion received",
        context={"message_id": result.id, "stop_reason": result.stop_reason},
        duration_ms=timer.duration_ms,
    )
    return result


async def stream_completion(
    http: httpx.AsyncClient,
    api_url: str,
    api_key: str,
    request: Request,
    low_speed_timeout: timedelta | float | None = None,
) -> EventStream:
    """Open a streaming request and return its decoded event stream.

    Args:
        http: Client used to send the request
        api_url: Service base URL
        api_key: Key sent in ``X-Api-Key``
        request: The call to make
        low_speed_timeout: Abort the read when the connection stalls this
            long (seconds or timedelta); applied to this call only

    Returns:
        An open :class:`EventStream`; close it (or use ``async with``) to
        release the connection early

    Raises:
        ApiResponseError: The API rejected the call with an error document
        MalformedResponseError: A non-success body was not an error document
        httpx.HTTPError: Connection failure before the stream opened
    """
    build_kwargs: dict[str, Any] = {}
    if low_speed_timeout is not None:
        build_kwargs["timeout"] = _read_timeout(http.timeout, low_speed_timeout)

    http_request = http.build_request(
        "POST",
        messages_url(api_url),
        headers=build_headers(api_key),
        content=encode_request(request, stream=True),
        **build_kwargs,
    )
    emit_counter("messages.requests", {"stream": True})

    with Timer() as timer:
        response = await _send(http, http_request, stream=True)

    if not response.is_success:
        try:
            body = await response.aread()
        finally:
            await response.aclose()
        raise _fail(response.status_code, body, timer.duration_ms)

    emit_timer("messages.latency_ms", timer.duration_ms, {"stream": True})
    logger.debug(
        "Event stream opened",
        context={"status": response.status_code},
        duration_ms=timer.duration_ms,
    )
    return EventStream.from_response(response)


async def _send(
    http: httpx.AsyncClient,
    http_request: httpx.Request,
    stream: bool,
) -> httpx.Response:
    logger.debug("Sending request", context={"url": str(http_request.url), "stream": stream})
    try:
        return await http.send(http_request, stream=stream)
    except httpx.HTTPError as e:
        emit_counter("messages.errors", {"kind": "transport"})
        logger.warning("Request failed", context={"stream": stream}, error=e)
        raise


def _fail(status_code: int, body: bytes, duration_ms: float) -> MessagesError:
    error = error_from_body(status_code, body)
    emit_counter("messages.errors", {"status": status_code})
    logger.warning(
        "API returned an error status",
        context={"status": status_code, "error": str(error)},
        duration_ms=duration_ms,
    )
    return error


def _read_timeout(base: httpx.Timeout, low_speed_timeout: timedelta | float) -> httpx.Timeout:
    if isinstance(low_speed_timeout, timedelta):
        seconds = low_speed_timeout.total_seconds()
    else:
        seconds = float(low_speed_timeout)
    return httpx.Timeout(connect=base.connect, read=seconds, write=base.write, pool=base.pool)
