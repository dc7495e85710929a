"""Provider implementations."""

from .anthropic import AnthropicClient
from .base import ProviderClient, ProviderKind
from .bedrock import BedrockClient
from .factory import configured_clients, make_client
from .mock import MockClient
from .models import ProviderRequest, ProviderResponse
from .ollama import OllamaClient
from .openai import OpenAIClient
from .openrouter import OpenRouterClient

__all__ = [
    "AnthropicClient",
    "BedrockClient",
    "MockClient",
    "OllamaClient",
    "OpenAIClient",
    "OpenRouterClient",
    "ProviderClient",
    "ProviderKind",
    "ProviderRequest",
    "ProviderResponse",
    "configured_clients",
    "make_client",
]
