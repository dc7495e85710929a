"""LLM-backed transformation: adapts a ``ProviderClient`` to a pipeline unit."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
import logging
from typing import TYPE_CHECKING, Any

from clipflow.constants import (
    DEFAULT_CONTENT_LIMIT_BYTES,
    DEFAULT_MAX_TOKENS,
    DEFAULT_REQUEST_TIMEOUT_S,
    DEFAULT_TEMPERATURE,
)
from clipflow.errors import (
    AuthenticationError,
    ConfigurationError,
    ContentTooLargeError,
    ModelNotFoundError,
    NetworkError,
    ProcessingError,
    ProviderAuthenticationError,
    ProviderError,
    ProviderNetworkError,
    ProviderNotConfiguredError,
    ProviderRateLimitError,
    ProviderTimeoutError,
    RateLimitError,
    TransformError,
    TransformTimeoutError,
)
from clipflow.model_resolver import resolve_model
from clipflow.providers.models import ProviderRequest
from clipflow.transforms.base import TransformMetadata, require_text

if TYPE_CHECKING:
    from clipflow.config import Config
    from clipflow.providers.base import ProviderClient
    from clipflow.providers.models import ProviderResponse

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LLMTransformation:
    """Send the text to a language model with an instruction prompt.

    The provider call races an independent timer of ``timeout_s``; whichever
    finishes first decides the outcome and the other task is cancelled and
    awaited, so nothing keeps running after ``transform`` returns. Provider
    errors are mapped onto ``TransformError`` subclasses with the original
    error chained as ``__cause__``.

    Example:
        unit = LLMTransformation(
            client=OpenAIClient(api_key),
            model="gpt-4o-mini",
            system_prompt="Fix grammar and spelling.",
        )
        fixed = await unit.transform(text)
    """

    client: ProviderClient
    model: str
    system_prompt: str
    id: str = "llm-transformation"
    display_name: str = "LLM Transformation"
    temperature: float = DEFAULT_TEMPERATURE
    max_tokens: int | None = DEFAULT_MAX_TOKENS
    timeout_s: float = DEFAULT_REQUEST_TIMEOUT_S
    content_limit_bytes: int = DEFAULT_CONTENT_LIMIT_BYTES

    def __post_init__(self) -> None:
        if not self.model.strip():
            raise ConfigurationError(
                "model must not be blank",
                hint="Name a model or build the unit with from_config() to resolve one.",
            )
        if self.timeout_s <= 0:
            raise ConfigurationError(
                f"timeout_s must be > 0, got {self.timeout_s}",
                hint="Use a positive per-call timeout in seconds.",
            )
        if self.content_limit_bytes < 1:
            raise ConfigurationError(
                f"content_limit_bytes must be >= 1, got {self.content_limit_bytes}"
            )

    @classmethod
    def from_config(
        cls,
        client: ProviderClient,
        model: str | None,
        system_prompt: str,
        config: Config,
        *,
        display_name: str = "LLM Transformation",
    ) -> LLMTransformation:
        """Build a unit using the timeout and size limit from ``config``.

        A blank or missing *model* is resolved with ``resolve_model``: the
        provider default in ``config``, then the built-in fallback.
        """
        return cls(
            client=client,
            model=resolve_model(client.kind, model, config).model,
            system_prompt=system_prompt,
            display_name=display_name,
            timeout_s=config.request_timeout_s or DEFAULT_REQUEST_TIMEOUT_S,
            content_limit_bytes=config.content_limit_bytes or DEFAULT_CONTENT_LIMIT_BYTES,
        )

    @property
    def metadata(self) -> TransformMetadata:
        return TransformMetadata(
            provider_name=self.client.kind.display_name,
            model=self.model,
            system_prompt=self.system_prompt,
        )

    async def transform(self, text: str) -> str:
        """Return the model's rewrite of ``text``.

        Raises:
            EmptyInputError: Blank input; no request is made.
            ContentTooLargeError: UTF-8 size above ``content_limit_bytes``.
            TransformTimeoutError: The timer won the race.
            TransformError: A mapped provider failure.
        """
        require_text(text)
        size = len(text.encode("utf-8"))
        if size > self.content_limit_bytes:
            raise ContentTooLargeError(size, self.content_limit_bytes)

        request = ProviderRequest(
            provider=self.client.kind,
            model=self.model,
            text=text,
            system_prompt=self.system_prompt,
            temperature=self.temperature,
            max_tokens=self.max_tokens,
            timeout_s=self.timeout_s,
        )
        try:
            response = await self._race(request)
        except TransformError:
            raise
        except ProviderError as e:
            raise self._map_provider_error(e) from e
        except Exception as e:
            logger.warning("Unexpected error from %s: %r", self.client.kind.value, e)
            raise ProcessingError(str(e)) from e

        if not response.output.strip():
            raise ProcessingError("LLM returned empty content")
        return response.output

    async def _race(self, request: ProviderRequest) -> ProviderResponse:
        call = asyncio.create_task(self.client.transform(request))
        timer = asyncio.create_task(asyncio.sleep(self.timeout_s))
        try:
            done, _ = await asyncio.wait(
                {call, timer}, return_when=asyncio.FIRST_COMPLETED
            )
        except asyncio.CancelledError:
            await _cancel_and_wait(call)
            await _cancel_and_wait(timer)
            raise

        if call in done:
            await _cancel_and_wait(timer)
            return call.result()

        await _cancel_and_wait(call)
        logger.warning(
            "request %s to %s timed out after %ss",
            request.request_id,
            request.provider.value,
            self.timeout_s,
        )
        raise TransformTimeoutError(int(self.timeout_s))

    def _map_provider_error(self, err: ProviderError) -> TransformError:
        if isinstance(err, ProviderNotConfiguredError):
            return ProcessingError("Provider is not configured")
        if isinstance(err, ProviderAuthenticationError):
            return AuthenticationError()
        if isinstance(err, ProviderRateLimitError):
            return RateLimitError(err.retry_after_s)
        if isinstance(err, ProviderTimeoutError):
            return TransformTimeoutError(int(self.timeout_s))
        if isinstance(err, ModelNotFoundError):
            return ProcessingError("Model not available")
        if isinstance(err, ProviderNetworkError):
            return NetworkError(str(err))
        # Server failures, invalid responses, and anything unclassified.
        return ProcessingError(str(err))


async def _cancel_and_wait(task: asyncio.Task[Any]) -> None:
    """Cancel ``task`` and wait until it has actually finished."""
    task.cancel()
    await asyncio.wait({task})
    if not task.cancelled():
        # Finished before the cancel landed; consume its outcome.
        task.exception()
