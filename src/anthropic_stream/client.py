"""High-level Messages API client."""

from collections.abc import AsyncIterator, Sequence
from datetime import timedelta
from typing import Any

import httpx

from anthropic_stream.catalog import ModelInfo, get_model
from anthropic_stream.config import ANTHROPIC_API_URL, ClientConfig
from anthropic_stream.exceptions import ConfigError
from anthropic_stream.observability import RequestContext, configure_logging, get_logger
from anthropic_stream.streaming.accumulator import accumulate
from anthropic_stream.streaming.decoder import EventStream
from anthropic_stream.streaming.text import iter_text
from anthropic_stream.transport import complete, stream_completion
from anthropic_stream.wire.events import Response
from anthropic_stream.wire.messages import Message, Request, Tool

logger = get_logger(__name__)

DEFAULT_TIMEOUT_SECONDS = 600.0


class MessagesClient:
    """Client for the Anthropic Messages API.

    Owns nothing but configuration unless it has to create its own
    ``httpx.AsyncClient``; an injected client is left open on close.

    Example:
        async with MessagesClient(api_key="sk-...") as client:
            request = client.build_request([text_message("user", "Hello")])
            async for text in client.stream_text(request):
                print(text, end="")
    """

    def __init__(
        self,
        api_key: str,
        api_url: str = ANTHROPIC_API_URL,
        http: httpx.AsyncClient | None = None,
        model: str | ModelInfo = "claude-3-5-sonnet",
        max_tokens: int = 4096,
        low_speed_timeout: timedelta | float | None = None,
        connect_timeout: float = 10.0,
    ) -> None:
        """Initialize the client.

        Args:
            api_key: Key sent in ``X-Api-Key``
            api_url: Service base URL
            http: Shared HTTP client; one is created if omitted
            model: Default model name, wire id or catalog entry
            max_tokens: Default output token limit for built requests
            low_speed_timeout: Stall timeout for streaming reads
            connect_timeout: Connect timeout for a self-created HTTP client
        """
        if not api_key:
            raise ConfigError("MessagesClient requires an api_key")

        self.api_key = api_key
        self.api_url = api_url
        self.model = model if isinstance(model, ModelInfo) else get_model(model)
        self.max_tokens = max_tokens
        self.low_speed_timeout = low_speed_timeout
        self._owns_http = http is None
        self.http = http or httpx.AsyncClient(
            timeout=httpx.Timeout(DEFAULT_TIMEOUT_SECONDS, connect=connect_timeout)
        )

    @classmethod
    def from_config(
        cls,
        config: ClientConfig,
        http: httpx.AsyncClient | None = None,
    ) -> "MessagesClient":
        """Create a client from a :class:`ClientConfig`.

        Also applies the config's logging section to the package logger.
        """
        api_key = config.require_api_key()
        configure_logging(level=config.logging.level, format=config.logging.format)
        return cls(
            api_key=api_key,
            api_url=config.api_url,
            http=http,
            model=config.model,
            max_tokens=config.max_tokens,
            low_speed_timeout=config.low_speed_timeout_seconds,
            connect_timeout=config.connect_timeout_seconds,
        )

    def build_request(
        self,
        messages: Sequence[Message],
        model: str | ModelInfo | None = None,
        max_tokens: int | None = None,
        tools: Sequence[Tool] | None = None,
        **options: Any,
    ) -> Request:
        """Build a request, resolving the model through the catalog.

        Requests carrying tools use the model's tool override when it has one.
        Extra keyword arguments set the remaining optional request fields
        (``system``, ``temperature``, ``tool_choice``, ...).
        """
        if model is None:
            info = self.model
        elif isinstance(model, ModelInfo):
            info = model
        else:
            info = get_model(model)

        return Request(
            model=info.tool_model_id if tools else info.id,
            max_tokens=max_tokens if max_tokens is not None else self.max_tokens,
            messages=list(messages),
            tools=list(tools or []),
            **options,
        )

    async def complete(self, request: Request) -> Response:
        """Make a single-shot call."""
        async with RequestContext(model=request.model):
            return await complete(self.http, self.api_url, self.api_key, request)

    async def stream(self, request: Request) -> EventStream:
        """Open a streaming call and return its events."""
        async with RequestContext(model=request.model):
            return await stream_completion(
                self.http,
                self.api_url,
                self.api_key,
                request,
                low_speed_timeout=self.low_speed_timeout,
            )

    async def stream_text(self, request: Request) -> AsyncIterator[str]:
        """Stream text fragments, raising on the first error."""
        events = await self.stream(request)
        async with events:
            async for fragment in iter_text(events):
                yield fragment

    async def stream_message(self, request: Request) -> Response:
        """Stream a call and fold it into a complete reply."""
        events = await self.stream(request)
        async with events:
            return await accumulate(events)

    async def close(self) -> None:
        """Close the HTTP client if this instance created it."""
        if self._owns_http:
            await self.http.aclose()

    async def __aenter__(self) -> "MessagesClient":
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.close()
