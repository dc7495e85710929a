"""OpenAI provider client (Chat Completions over plain HTTP)."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from pydantic import BaseModel

from clipflow.errors import ProviderNotConfiguredError
from clipflow.providers._http import HTTPCall, decode_model, send
from clipflow.providers.models import GENERIC_SYSTEM_PROMPT
from clipflow.types import ProviderKind

if TYPE_CHECKING:
    import httpx

    from clipflow.providers.models import ProviderRequest, ProviderResponse

OPENAI_CHAT_URL = "https://api.openai.com/v1/chat/completions"


class ChatMessage(BaseModel):
    """One message in an OpenAI-compatible chat response."""

    role: str = "assistant"
    content: str | None = None


class ChatChoice(BaseModel):
    message: ChatMessage


class ChatCompletion(BaseModel):
    """The subset of an OpenAI-compatible completion clipflow reads."""

    model: str
    choices: list[ChatChoice]

    @property
    def text(self) -> str:
        if not self.choices:
            return ""
        return self.choices[0].message.content or ""


class OpenAIClient:
    """OpenAI Chat Completions client.

    Sends a fixed generic system message and folds the unit's instruction and
    the clipboard text into a single user message.
    """

    def __init__(
        self,
        api_key: str,
        *,
        url: str = OPENAI_CHAT_URL,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize with an API key."""
        self.api_key = api_key
        self.url = url
        self._transport = transport

    @property
    def kind(self) -> ProviderKind:
        return ProviderKind.OPENAI

    def is_configured(self) -> bool:
        return bool(self.api_key)

    def build_call(self, request: ProviderRequest) -> HTTPCall:
        """Build the provider-specific POST for *request*."""
        body: dict[str, Any] = {
            "model": request.model,
            "messages": [
                {"role": "system", "content": GENERIC_SYSTEM_PROMPT},
                {"role": "user", "content": request.combined_message},
            ],
            "temperature": request.temperature,
        }
        if request.max_tokens is not None:
            body["max_tokens"] = request.max_tokens
        return HTTPCall(
            url=self.url,
            body=body,
            headers={"Authorization": f"Bearer {self.api_key}"},
        )

    def _decode(self, payload: Any) -> tuple[str, str]:
        completion = decode_model(ChatCompletion, payload, provider=self.kind)
        return completion.model, completion.text

    async def transform(self, request: ProviderRequest) -> ProviderResponse:
        """Run one chat completion."""
        if not self.is_configured():
            raise ProviderNotConfiguredError(provider=self.kind.value)
        return await send(
            self.build_call(request),
            request,
            provider=self.kind,
            decode=self._decode,
            transport=self._transport,
        )

    def __repr__(self) -> str:
        return f"OpenAIClient(api_key={'[REDACTED]' if self.api_key else None})"
