"""Ollama provider client for a local Ollama server."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from pydantic import BaseModel

from clipflow.constants import DEFAULT_OLLAMA_ENDPOINT
from clipflow.providers._errors import top_level_error_message
from clipflow.providers._http import HTTPCall, decode_model, send
from clipflow.types import ProviderKind

if TYPE_CHECKING:
    import httpx

    from clipflow.providers.models import ProviderRequest, ProviderResponse


class _OllamaMessage(BaseModel):
    role: str = "assistant"
    content: str = ""


class _OllamaChatResponse(BaseModel):
    model: str
    message: _OllamaMessage


class OllamaClient:
    """Client for ``POST <endpoint>/api/chat`` with streaming disabled.

    Ollama runs locally without authentication, so the client always reports
    itself as configured; an unreachable server surfaces as a network error.
    """

    def __init__(
        self,
        endpoint: str = DEFAULT_OLLAMA_ENDPOINT,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.endpoint = endpoint.rstrip("/")
        self._transport = transport

    @property
    def kind(self) -> ProviderKind:
        return ProviderKind.OLLAMA

    def is_configured(self) -> bool:
        return True

    def build_call(self, request: ProviderRequest) -> HTTPCall:
        options: dict[str, Any] = {"temperature": request.temperature}
        if request.max_tokens is not None:
            options["num_predict"] = request.max_tokens
        return HTTPCall(
            url=f"{self.endpoint}/api/chat",
            body={
                "model": request.model,
                "messages": [
                    {"role": "system", "content": request.system_prompt},
                    {"role": "user", "content": request.text},
                ],
                "stream": False,
                "options": options,
            },
        )

    def _decode(self, payload: Any) -> tuple[str, str]:
        parsed = decode_model(_OllamaChatResponse, payload, provider=self.kind)
        return parsed.model, parsed.message.content

    async def transform(self, request: ProviderRequest) -> ProviderResponse:
        return await send(
            self.build_call(request),
            request,
            provider=self.kind,
            decode=self._decode,
            error_message=top_level_error_message,
            transport=self._transport,
        )

    def __repr__(self) -> str:
        return f"OllamaClient(endpoint={self.endpoint!r})"
