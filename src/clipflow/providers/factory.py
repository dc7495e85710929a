"""Build provider clients from resolved credentials."""

from __future__ import annotations

from typing import TYPE_CHECKING

from clipflow.config import Config, ProviderCredentials
from clipflow.constants import DEFAULT_BEDROCK_REGION
from clipflow.errors import ConfigurationError
from clipflow.providers.anthropic import AnthropicClient
from clipflow.providers.bedrock import BedrockClient
from clipflow.providers.ollama import OllamaClient
from clipflow.providers.openai import OpenAIClient
from clipflow.providers.openrouter import OpenRouterClient
from clipflow.types import ProviderKind

if TYPE_CHECKING:
    from clipflow.providers.base import ProviderClient


def make_client(
    credentials: ProviderCredentials, *, config: Config | None = None
) -> ProviderClient:
    """Create the client matching ``credentials.kind``.

    Clients are meant to be built once per credential set and reused.
    """
    kind = credentials.kind
    if kind is ProviderKind.OPENAI:
        return OpenAIClient(credentials.api_key or "")
    if kind is ProviderKind.ANTHROPIC:
        return AnthropicClient(credentials.api_key or "")
    if kind is ProviderKind.OPENROUTER:
        return OpenRouterClient(
            credentials.api_key or "",
            referer=config.openrouter_referer if config else None,
            title=config.openrouter_title if config else None,
        )
    if kind is ProviderKind.OLLAMA:
        endpoint = credentials.endpoint or (config or Config()).ollama_endpoint
        return OllamaClient(str(endpoint))
    if kind is ProviderKind.BEDROCK:
        return BedrockClient(
            region=credentials.region or DEFAULT_BEDROCK_REGION,
            bearer_token=credentials.bearer_token,
            access_key=credentials.access_key,
            secret_key=credentials.secret_key,
        )
    raise ConfigurationError(f"Unknown provider: {kind!r}")


def configured_clients(
    kinds: tuple[ProviderKind, ...] = tuple(ProviderKind),
    *,
    config: Config | None = None,
) -> dict[ProviderKind, ProviderClient]:
    """Return clients for every provider with usable credentials in the environment."""
    clients: dict[ProviderKind, ProviderClient] = {}
    for kind in kinds:
        credentials = ProviderCredentials.from_env(kind)
        if credentials is None:
            continue
        client = make_client(credentials, config=config)
        if client.is_configured():
            clients[kind] = client
    return clients
