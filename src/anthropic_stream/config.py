"""Configuration loading with environment variable substitution."""

import json
import os
import re
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, ValidationError

from anthropic_stream.exceptions import ConfigError

ANTHROPIC_API_URL = "https://api.anthropic.com"

ENV_VAR_PATTERN = re.compile(r"\$\{([A-Z_][A-Z0-9_]*)\}")


def substitute_env_vars(value: Any) -> Any:
    """Recursively substitute ${VAR_NAME} patterns with environment variables."""
    if isinstance(value, str):
        def replace(match: re.Match[str]) -> str:
            var_name = match.group(1)
            env_value = os.environ.get(var_name)
            if env_value is None:
                raise ConfigError(f"Environment variable {var_name} is not set")
            return env_value

        return ENV_VAR_PATTERN.sub(replace, value)
    elif isinstance(value, dict):
        return {k: substitute_env_vars(v) for k, v in value.items()}
    elif isinstance(value, list):
        return [substitute_env_vars(v) for v in value]
    return value


class LoggingConfig(BaseModel):
    """Logging settings."""

    level: str = "INFO"
    format: str = "json"  # json | text


class ClientConfig(BaseModel):
    """Messages API client configuration."""

    api_url: str = ANTHROPIC_API_URL
    api_key: str | None = None
    model: str = "claude-3-5-sonnet"
    max_tokens: int = 4096
    # Streaming calls abort when no bytes arrive for this long
    low_speed_timeout_seconds: float | None = None
    connect_timeout_seconds: float = 10.0
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    def require_api_key(self) -> str:
        """Return the API key or raise ConfigError."""
        if not self.api_key:
            raise ConfigError("No API key configured (set api_key or ANTHROPIC_API_KEY)")
        return self.api_key

    @classmethod
    def from_file(cls, path: str | Path) -> "ClientConfig":
        """Load configuration from a YAML or JSON file."""
        path = Path(path)
        with path.open() as f:
            if path.suffix in (".yaml", ".yml"):
                data = yaml.safe_load(f)
            else:
                data = json.load(f)
        return cls.from_dict(data or {})

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ClientConfig":
        """Load configuration from a dictionary."""
        data = substitute_env_vars(data)
        try:
            return cls.model_validate(data)
        except ValidationError as e:
            raise ConfigError(f"Invalid client configuration: {e}") from e

    @classmethod
    def from_env(cls, prefix: str = "ANTHROPIC_") -> "ClientConfig":
        """Build configuration from ``<prefix>API_KEY``, ``API_URL`` and ``MODEL``."""
        data: dict[str, Any] = {}
        for key in ("api_key", "api_url", "model"):
            value = os.environ.get(f"{prefix}{key.upper()}")
            if value:
                data[key] = value
        return cls.from_dict(data)
