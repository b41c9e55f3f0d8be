"""Model catalog.

Maps logical model names to wire ids, display names and context ceilings.
"""

from dataclasses import dataclass
from typing import Any

from anthropic_stream.exceptions import ModelNotFoundError


@dataclass(frozen=True)
class ModelInfo:
    """A model selectable for a request."""

    name: str
    id: str
    display_name: str
    max_tokens: int
    # Send tool-bearing requests to a different model id
    tool_override: str | None = None

    @property
    def tool_model_id(self) -> str:
        return self.tool_override or self.id

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for display."""
        return {
            "name": self.name,
            "id": self.id,
            "display_name": self.display_name,
            "max_tokens": self.max_tokens,
            "tool_override": self.tool_override,
        }


CONTEXT_WINDOW = 200_000

# Model definitions, in prefix-match order
MODELS: dict[str, ModelInfo] = {
    "claude-3-5-sonnet": ModelInfo(
        name="claude-3-5-sonnet",
        id="claude-3-5-sonnet-20240620",
        display_name="Claude 3.5 Sonnet",
        max_tokens=CONTEXT_WINDOW,
    ),
    "claude-3-opus": ModelInfo(
        name="claude-3-opus",
        id="claude-3-opus-20240229",
        display_name="Claude 3 Opus",
        max_tokens=CONTEXT_WINDOW,
    ),
    "claude-3-sonnet": ModelInfo(
        name="claude-3-sonnet",
        id="claude-3-sonnet-20240229",
        display_name="Claude 3 Sonnet",
        max_tokens=CONTEXT_WINDOW,
    ),
    "claude-3-haiku": ModelInfo(
        name="claude-3-haiku",
        id="claude-3-haiku-20240307",
        display_name="Claude 3 Haiku",
        max_tokens=CONTEXT_WINDOW,
    ),
}

DEFAULT_MODEL = MODELS["claude-3-5-sonnet"]


def from_id(model_id: str) -> ModelInfo:
    """Resolve a wire id (dated or not) to its model family.

    Raises:
        ModelNotFoundError: If no family prefix matches
    """
    for prefix, info in MODELS.items():
        if model_id.startswith(prefix):
            return info
    raise ModelNotFoundError(f"Invalid model id: {model_id}")


def get_model(name: str) -> ModelInfo:
    """Look up a model by logical name or wire id."""
    if name in MODELS:
        return MODELS[name]
    return from_id(name)


def custom_model(name: str, max_tokens: int, tool_override: str | None = None) -> ModelInfo:
    """Describe a model not in the built-in table."""
    return ModelInfo(
        name=name,
        id=name,
        display_name=name,
        max_tokens=max_tokens,
        tool_override=tool_override,
    )


def list_models() -> list[ModelInfo]:
    """All built-in models."""
    return list(MODELS.values())
