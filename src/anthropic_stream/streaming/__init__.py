"""Streaming response interpretation."""

from anthropic_stream.streaming.accumulator import MessageAccumulator, accumulate
from anthropic_stream.streaming.decoder import (
    EventStream,
    StreamItem,
    decode_events,
    decode_frame,
)
from anthropic_stream.streaming.lines import iter_lines
from anthropic_stream.streaming.text import collect_text, extract_text, iter_text

__all__ = [
    "EventStream",
    "MessageAccumulator",
    "StreamItem",
    "accumulate",
    "collect_text",
    "decode_events",
    "decode_frame",
    "extract_text",
    "iter_lines",
    "iter_text",
]
