"""Domain models for the provider transport layer."""

from __future__ import annotations

from dataclasses import dataclass, field
import uuid

from clipflow.constants import (
    DEFAULT_MAX_TOKENS,
    DEFAULT_REQUEST_TIMEOUT_S,
    DEFAULT_TEMPERATURE,
    TRANSPORT_TIMEOUT_FACTOR,
)
from clipflow.types import ProviderKind

#: System prompt sent by clients that fold the instruction into the user turn.
GENERIC_SYSTEM_PROMPT = (
    "You are a text transformation assistant. Follow the instructions in the "
    "user message and reply with the transformed text only, without commentary."
)


@dataclass(frozen=True)
class ProviderRequest:
    """A unified request payload for one remote transformation."""

    provider: ProviderKind
    model: str
    text: str
    system_prompt: str
    temperature: float = DEFAULT_TEMPERATURE
    max_tokens: int | None = DEFAULT_MAX_TOKENS
    timeout_s: float = DEFAULT_REQUEST_TIMEOUT_S
    request_id: uuid.UUID = field(default_factory=uuid.uuid4)

    @property
    def transport_timeout_s(self) -> float:
        """Client-side HTTP timeout, deliberately longer than ``timeout_s``."""
        return self.timeout_s * TRANSPORT_TIMEOUT_FACTOR

    @property
    def combined_message(self) -> str:
        """Instruction and content as a single user message."""
        return (
            f"Instructions:\n{self.system_prompt}\n\n"
            f"Text to transform:\n{self.text}"
        )


@dataclass(frozen=True)
class ProviderResponse:
    """A standardized response from a provider call."""

    provider: ProviderKind
    model: str
    output: str
    duration_s: float
