"""Configuration: frozen Config plus provider credential resolution."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
import os

from dotenv import load_dotenv

from clipflow.constants import (
    DEFAULT_BEDROCK_REGION,
    DEFAULT_CONTENT_LIMIT_BYTES,
    DEFAULT_OLLAMA_ENDPOINT,
    DEFAULT_OPENROUTER_REFERER,
    DEFAULT_OPENROUTER_TITLE,
    DEFAULT_REQUEST_TIMEOUT_S,
    LLM_PIPELINE_TIMEOUT_S,
)
from clipflow.errors import ConfigurationError
from clipflow.types import ProviderKind

load_dotenv()

# Provider-specific API key environment variable names
_API_KEY_ENV_VARS: dict[ProviderKind, str] = {
    ProviderKind.OPENAI: "OPENAI_API_KEY",
    ProviderKind.ANTHROPIC: "ANTHROPIC_API_KEY",
    ProviderKind.OPENROUTER: "OPENROUTER_API_KEY",
}

# Per-provider default model, used when a unit does not name one
_MODEL_ENV_VARS: dict[ProviderKind, str] = {
    kind: f"CLIPFLOW_{kind.name}_MODEL" for kind in ProviderKind
}


def _env_float(name: str, default: float) -> float:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError as e:
        raise ConfigurationError(
            f"{name} must be a number, got {raw!r}",
            hint=f"Unset {name} or set it to a value like {default}.",
        ) from e


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError as e:
        raise ConfigurationError(
            f"{name} must be an integer, got {raw!r}",
            hint=f"Unset {name} or set it to a value like {default}.",
        ) from e


def _resolve_default_models(
    explicit: Mapping[ProviderKind, str] | None,
) -> dict[ProviderKind, str]:
    """Explicit entries win over ``CLIPFLOW_<PROVIDER>_MODEL``; blanks are dropped."""
    models: dict[ProviderKind, str] = {}
    for kind in ProviderKind:
        candidates = ((explicit or {}).get(kind), os.environ.get(_MODEL_ENV_VARS[kind]))
        for value in candidates:
            if value and value.strip():
                models[kind] = value.strip()
                break
    return models


@dataclass(frozen=True)
class Config:
    """Immutable runtime settings for clipflow.

    Values left as *None* are resolved from the environment (and ``.env``),
    falling back to the defaults in ``clipflow.constants``.

    Example:
        config = Config(request_timeout_s=20)
        unit = LLMTransformation(client=client, model="gpt-4o-mini",
                                 system_prompt="Fix typos",
                                 timeout_s=config.request_timeout_s)
    """

    request_timeout_s: float | None = None
    content_limit_bytes: int | None = None
    pipeline_timeout_s: float | None = None
    openrouter_referer: str | None = None
    openrouter_title: str | None = None
    ollama_endpoint: str | None = None
    default_models: Mapping[ProviderKind, str] | None = field(default=None, hash=False)

    def __post_init__(self) -> None:
        """Resolve unset fields from the environment and validate."""
        request_timeout_s = (
            self.request_timeout_s
            if self.request_timeout_s is not None
            else _env_float("CLIPFLOW_REQUEST_TIMEOUT_S", DEFAULT_REQUEST_TIMEOUT_S)
        )
        pipeline_timeout_s = (
            self.pipeline_timeout_s
            if self.pipeline_timeout_s is not None
            else _env_float("CLIPFLOW_PIPELINE_TIMEOUT_S", LLM_PIPELINE_TIMEOUT_S)
        )
        content_limit_bytes = (
            self.content_limit_bytes
            if self.content_limit_bytes is not None
            else _env_int("CLIPFLOW_CONTENT_LIMIT_BYTES", DEFAULT_CONTENT_LIMIT_BYTES)
        )

        if request_timeout_s <= 0:
            raise ConfigurationError(
                f"request_timeout_s must be > 0, got {request_timeout_s}",
                hint="This is the per-call timeout for remote transformations.",
            )
        if pipeline_timeout_s <= 0:
            raise ConfigurationError(
                f"pipeline_timeout_s must be > 0, got {pipeline_timeout_s}",
                hint="This bounds a whole pipeline run, across all stages.",
            )
        if content_limit_bytes < 1:
            raise ConfigurationError(
                f"content_limit_bytes must be ≥ 1, got {content_limit_bytes}",
                hint="Inputs larger than this are rejected before any network call.",
            )

        object.__setattr__(self, "request_timeout_s", request_timeout_s)
        object.__setattr__(self, "pipeline_timeout_s", pipeline_timeout_s)
        object.__setattr__(self, "content_limit_bytes", content_limit_bytes)
        object.__setattr__(
            self,
            "openrouter_referer",
            self.openrouter_referer
            or os.environ.get("CLIPFLOW_OPENROUTER_REFERER")
            or DEFAULT_OPENROUTER_REFERER,
        )
        object.__setattr__(
            self,
            "openrouter_title",
            self.openrouter_title
            or os.environ.get("CLIPFLOW_OPENROUTER_TITLE")
            or DEFAULT_OPENROUTER_TITLE,
        )
        object.__setattr__(
            self,
            "ollama_endpoint",
            self.ollama_endpoint
            or os.environ.get("OLLAMA_HOST")
            or DEFAULT_OLLAMA_ENDPOINT,
        )
        object.__setattr__(
            self, "default_models", _resolve_default_models(self.default_models)
        )

    def default_model(self, kind: ProviderKind) -> str | None:
        """The configured default model for *kind*, if any."""
        return (self.default_models or {}).get(kind)


@dataclass(frozen=True)
class ProviderCredentials:
    """A resolved credential value for one provider.

    Storage and retrieval of secrets belong to the caller; this type only
    carries what a client needs to be constructed. Build one with the
    per-provider constructors or ``from_env``.
    """

    kind: ProviderKind
    api_key: str | None = None
    endpoint: str | None = None
    region: str | None = None
    bearer_token: str | None = None
    access_key: str | None = None
    secret_key: str | None = None

    @classmethod
    def openai(cls, api_key: str) -> ProviderCredentials:
        """Credentials for the OpenAI API."""
        return cls(ProviderKind.OPENAI, api_key=api_key)

    @classmethod
    def anthropic(cls, api_key: str) -> ProviderCredentials:
        """Credentials for the Anthropic API."""
        return cls(ProviderKind.ANTHROPIC, api_key=api_key)

    @classmethod
    def openrouter(cls, api_key: str) -> ProviderCredentials:
        """Credentials for OpenRouter."""
        return cls(ProviderKind.OPENROUTER, api_key=api_key)

    @classmethod
    def ollama(cls, endpoint: str = DEFAULT_OLLAMA_ENDPOINT) -> ProviderCredentials:
        """A local Ollama endpoint; no secret involved."""
        return cls(ProviderKind.OLLAMA, endpoint=endpoint)

    @classmethod
    def bedrock_bearer(
        cls, bearer_token: str, region: str = DEFAULT_BEDROCK_REGION
    ) -> ProviderCredentials:
        """AWS Bedrock with an API bearer token."""
        return cls(ProviderKind.BEDROCK, bearer_token=bearer_token, region=region)

    @classmethod
    def bedrock_keys(
        cls, access_key: str, secret_key: str, region: str = DEFAULT_BEDROCK_REGION
    ) -> ProviderCredentials:
        """AWS Bedrock with an IAM access key pair (request signing)."""
        return cls(
            ProviderKind.BEDROCK,
            access_key=access_key,
            secret_key=secret_key,
            region=region,
        )

    @classmethod
    def from_env(cls, kind: ProviderKind | str) -> ProviderCredentials | None:
        """Resolve credentials from standard environment variables.

        Returns *None* when nothing usable is set (Ollama always resolves).
        """
        kind = ProviderKind(kind)
        if kind is ProviderKind.OLLAMA:
            return cls.ollama(os.environ.get("OLLAMA_HOST") or DEFAULT_OLLAMA_ENDPOINT)
        if kind is ProviderKind.BEDROCK:
            region = os.environ.get("AWS_REGION") or DEFAULT_BEDROCK_REGION
            token = os.environ.get("AWS_BEARER_TOKEN_BEDROCK")
            if token:
                return cls.bedrock_bearer(token, region)
            access_key = os.environ.get("AWS_ACCESS_KEY_ID")
            secret_key = os.environ.get("AWS_SECRET_ACCESS_KEY")
            if access_key and secret_key:
                return cls.bedrock_keys(access_key, secret_key, region)
            return None
        api_key = os.environ.get(_API_KEY_ENV_VARS[kind])
        if not api_key:
            return None
        return cls(kind, api_key=api_key)

    def __str__(self) -> str:
        """Return a redacted representation."""
        secret = self.api_key or self.bearer_token or self.secret_key
        return (
            f"ProviderCredentials(kind={self.kind.value!r}, "
            f"secret={'[REDACTED]' if secret else None}, "
            f"endpoint={self.endpoint!r}, region={self.region!r})"
        )

    __repr__ = __str__
