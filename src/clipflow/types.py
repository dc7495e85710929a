"""Small shared types with no internal dependencies."""

from __future__ import annotations

from enum import Enum


class ProviderKind(str, Enum):
    """Remote back-ends clipflow can talk to."""

    OPENAI = "openai"
    ANTHROPIC = "anthropic"
    OPENROUTER = "openrouter"
    OLLAMA = "ollama"
    BEDROCK = "bedrock"

    @property
    def display_name(self) -> str:
        """Human-readable name for messages and history records."""
        return _DISPLAY_NAMES[self]


_DISPLAY_NAMES: dict[ProviderKind, str] = {
    ProviderKind.OPENAI: "OpenAI",
    ProviderKind.ANTHROPIC: "Anthropic",
    ProviderKind.OPENROUTER: "OpenRouter",
    ProviderKind.OLLAMA: "Ollama",
    ProviderKind.BEDROCK: "AWS Bedrock",
}
