"""Anthropic provider client (Messages API over plain HTTP)."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from pydantic import BaseModel

from clipflow.constants import DEFAULT_MAX_TOKENS
from clipflow.errors import ProviderNotConfiguredError
from clipflow.providers._http import HTTPCall, decode_model, send
from clipflow.types import ProviderKind

if TYPE_CHECKING:
    import httpx

    from clipflow.providers.models import ProviderRequest, ProviderResponse

ANTHROPIC_MESSAGES_URL = "https://api.anthropic.com/v1/messages"
ANTHROPIC_API_VERSION = "2023-06-01"


class _ContentBlock(BaseModel):
    type: str
    text: str = ""


class _MessagesResponse(BaseModel):
    model: str
    content: list[_ContentBlock]

    @property
    def text(self) -> str:
        # Only text blocks carry output; tool or thinking blocks are skipped.
        return "".join(b.text for b in self.content if b.type == "text")


class AnthropicClient:
    """Anthropic Messages client: instruction goes in the dedicated ``system`` field."""

    def __init__(
        self,
        api_key: str,
        *,
        url: str = ANTHROPIC_MESSAGES_URL,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize with an API key."""
        self.api_key = api_key
        self.url = url
        self._transport = transport

    @property
    def kind(self) -> ProviderKind:
        return ProviderKind.ANTHROPIC

    def is_configured(self) -> bool:
        return bool(self.api_key)

    def build_call(self, request: ProviderRequest) -> HTTPCall:
        body: dict[str, Any] = {
            "model": request.model,
            # Anthropic requires max_tokens on every request.
            "max_tokens": request.max_tokens or DEFAULT_MAX_TOKENS,
            "system": request.system_prompt,
            "messages": [{"role": "user", "content": request.text}],
            "temperature": request.temperature,
        }
        return HTTPCall(
            url=self.url,
            body=body,
            headers={
                "x-api-key": self.api_key,
                "anthropic-version": ANTHROPIC_API_VERSION,
            },
        )

    def _decode(self, payload: Any) -> tuple[str, str]:
        parsed = decode_model(_MessagesResponse, payload, provider=self.kind)
        return parsed.model, parsed.text

    async def transform(self, request: ProviderRequest) -> ProviderResponse:
        """Run one Messages API call."""
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
        return f"AnthropicClient(api_key={'[REDACTED]' if self.api_key else None})"
