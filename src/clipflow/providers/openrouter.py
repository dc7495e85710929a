"""OpenRouter provider client (OpenAI-compatible API)."""

from __future__ import annotations

import os
from typing import TYPE_CHECKING, Any

from clipflow.constants import DEFAULT_OPENROUTER_REFERER, DEFAULT_OPENROUTER_TITLE
from clipflow.errors import ProviderNotConfiguredError
from clipflow.providers._http import HTTPCall, decode_model, send
from clipflow.providers.openai import ChatCompletion
from clipflow.types import ProviderKind

if TYPE_CHECKING:
    import httpx

    from clipflow.providers.models import ProviderRequest, ProviderResponse

OPENROUTER_CHAT_URL = "https://openrouter.ai/api/v1/chat/completions"


class OpenRouterClient:
    """OpenRouter client.

    OpenRouter attributes traffic to the calling application through the
    ``HTTP-Referer`` and ``X-Title`` headers. When not passed explicitly they
    come from ``CLIPFLOW_OPENROUTER_REFERER`` and ``CLIPFLOW_OPENROUTER_TITLE``,
    then the built-in defaults.
    """

    def __init__(
        self,
        api_key: str,
        *,
        referer: str | None = None,
        title: str | None = None,
        url: str = OPENROUTER_CHAT_URL,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize with an API key and optional attribution headers."""
        self.api_key = api_key
        self.referer = (
            referer
            or os.environ.get("CLIPFLOW_OPENROUTER_REFERER")
            or DEFAULT_OPENROUTER_REFERER
        )
        self.title = (
            title
            or os.environ.get("CLIPFLOW_OPENROUTER_TITLE")
            or DEFAULT_OPENROUTER_TITLE
        )
        self.url = url
        self._transport = transport

    @property
    def kind(self) -> ProviderKind:
        return ProviderKind.OPENROUTER

    def is_configured(self) -> bool:
        return bool(self.api_key)

    def build_call(self, request: ProviderRequest) -> HTTPCall:
        body: dict[str, Any] = {
            "model": request.model,
            "messages": [
                {"role": "system", "content": request.system_prompt},
                {"role": "user", "content": request.text},
            ],
            "temperature": request.temperature,
        }
        if request.max_tokens is not None:
            body["max_tokens"] = request.max_tokens
        return HTTPCall(
            url=self.url,
            body=body,
            headers={
                "Authorization": f"Bearer {self.api_key}",
                "HTTP-Referer": self.referer,
                "X-Title": self.title,
            },
        )

    def _decode(self, payload: Any) -> tuple[str, str]:
        completion = decode_model(ChatCompletion, payload, provider=self.kind)
        return completion.model, completion.text

    async def transform(self, request: ProviderRequest) -> ProviderResponse:
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
        return (
            f"OpenRouterClient(api_key={'[REDACTED]' if self.api_key else None}, "
            f"title={self.title!r})"
        )
