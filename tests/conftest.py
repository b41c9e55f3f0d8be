"""Pytest configuration and fixtures."""

import logging

import pytest

from anthropic_stream.observability import clear_metric_callbacks, register_metric_callback


@pytest.fixture
def sample_config_dict():
    """Sample configuration dictionary for testing."""
    return {
        "api_url": "https://api.test",
        "api_key": "test-key",
        "model": "claude-3-opus",
        "max_tokens": 1024,
        "low_speed_timeout_seconds": 30,
        "logging": {"level": "DEBUG", "format": "text"},
    }


@pytest.fixture
def message_start():
    """A message_start event as sent on the wire."""
    return {
        "type": "message_start",
        "message": {
            "id": "msg_01",
            "type": "message",
            "role": "assistant",
            "content": [],
            "model": "claude-3-5-sonnet-20240620",
            "stop_reason": None,
            "stop_sequence": None,
            "usage": {"input_tokens": 12, "output_tokens": 1},
        },
    }


@pytest.fixture
def hello_events(message_start):
    """A complete text reply saying "Hello world"."""
    return [
        message_start,
        {
            "type": "content_block_start",
            "index": 0,
            "content_block": {"type": "text", "text": "Hello"},
        },
        {"type": "ping"},
        {
            "type": "content_block_delta",
            "index": 0,
            "delta": {"type": "text_delta", "text": " world"},
        },
        {"type": "content_block_stop", "index": 0},
        {
            "type": "message_delta",
            "delta": {"stop_reason": "end_turn", "stop_sequence": None},
            "usage": {"output_tokens": 3},
        },
        {"type": "message_stop"},
    ]


@pytest.fixture
def tool_events(message_start):
    """A reply that calls a tool with streamed JSON input."""
    return [
        message_start,
        {
            "type": "content_block_start",
            "index": 0,
            "content_block": {"type": "text", "text": "Checking."},
        },
        {"type": "content_block_stop", "index": 0},
        {
            "type": "content_block_start",
            "index": 1,
            "content_block": {
                "type": "tool_use",
                "id": "toolu_01",
                "name": "get_weather",
                "input": {},
            },
        },
        {
            "type": "content_block_delta",
            "index": 1,
            "delta": {"type": "input_json_delta", "partial_json": '{"city": "Par'},
        },
        {
            "type": "content_block_delta",
            "index": 1,
            "delta": {"type": "input_json_delta", "partial_json": 'is", "days": 2}'},
        },
        {"type": "content_block_stop", "index": 1},
        {
            "type": "message_delta",
            "delta": {"stop_reason": "tool_use", "stop_sequence": None},
            "usage": {"output_tokens": 40},
        },
        {"type": "message_stop"},
    ]


@pytest.fixture
def metrics():
    """Capture emitted metrics as (name, value, labels) tuples."""
    captured: list[tuple[str, float, dict]] = []
    register_metric_callback(lambda name, value, labels: captured.append((name, value, labels)))
    yield captured
    clear_metric_callbacks()


@pytest.fixture
def package_logger():
    """The package logger, restored after the test."""
    logger = logging.getLogger("anthropic_stream")
    level, handlers = logger.level, list(logger.handlers)
    yield logger
    logger.setLevel(level)
    logger.handlers[:] = handlers
