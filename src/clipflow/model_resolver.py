"""Choose the model an LLM unit sends to its provider.

Precedence, first non-blank wins:

1. the unit's own override;
2. the provider default in ``Config`` (``CLIPFLOW_<PROVIDER>_MODEL``);
3. the built-in fallback for the provider.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
import logging

from clipflow.config import Config
from clipflow.errors import ConfigurationError
from clipflow.types import ProviderKind

logger = logging.getLogger(__name__)

FALLBACK_MODELS: dict[ProviderKind, str] = {
    ProviderKind.OPENAI: "gpt-4o-mini",
    ProviderKind.ANTHROPIC: "claude-3-5-sonnet-20241022",
    ProviderKind.OPENROUTER: "anthropic/claude-3.5-sonnet",
    ProviderKind.OLLAMA: "llama3.1",
    ProviderKind.BEDROCK: "anthropic.claude-3-haiku-20240307-v1:0",
}

_PROVIDER_ALIASES: dict[str, ProviderKind] = {
    "aws": ProviderKind.BEDROCK,
    "awsbedrock": ProviderKind.BEDROCK,
    "aws_bedrock": ProviderKind.BEDROCK,
}


class ModelSource(str, Enum):
    OVERRIDE = "override"
    PROVIDER_DEFAULT = "provider_default"
    FALLBACK = "fallback"


@dataclass(frozen=True)
class ModelResolution:
    provider: ProviderKind
    model: str
    source: ModelSource


def provider_kind(name: ProviderKind | str) -> ProviderKind:
    """Parse a provider name, accepting a few common spellings.

    Raises:
        ConfigurationError: The name matches no provider.
    """
    if isinstance(name, ProviderKind):
        return name
    key = name.strip().lower()
    try:
        return ProviderKind(key)
    except ValueError:
        pass
    if key in _PROVIDER_ALIASES:
        return _PROVIDER_ALIASES[key]
    raise ConfigurationError(
        f"Unknown provider: {name!r}",
        hint=f"Use one of: {', '.join(k.value for k in ProviderKind)}.",
    )


def resolve_model(
    provider: ProviderKind | str,
    override: str | None = None,
    config: Config | None = None,
) -> ModelResolution:
    """Return the model to use for *provider* and where it came from."""
    kind = provider_kind(provider)
    if override and override.strip():
        return ModelResolution(kind, override.strip(), ModelSource.OVERRIDE)

    default = (config if config is not None else Config()).default_model(kind)
    if default:
        return ModelResolution(kind, default, ModelSource.PROVIDER_DEFAULT)

    logger.debug("No model configured for %s, using fallback", kind.value)
    return ModelResolution(kind, FALLBACK_MODELS[kind], ModelSource.FALLBACK)
