"""Exception hierarchy for clipflow.

Three layers, each a closed set:

- ``ProviderError``: raised by remote provider clients (HTTP outcomes).
- ``TransformError``: raised by text processing units.
- ``PipelineError``: raised by ``Pipeline.execute``.

Each layer is mapped totally onto the next one up. Wrapping always chains the
original exception (``raise ... from ...``) so diagnostics keep the cause.
"""

from __future__ import annotations

import asyncio


class ClipflowError(Exception):
    """Base exception for all clipflow errors."""

    def __init__(self, message: str, *, hint: str | None = None) -> None:
        super().__init__(message)
        self.hint = hint


class ConfigurationError(ClipflowError):
    """Configuration validation or resolution failed."""


# =============================================================================
# Provider layer
# =============================================================================


class ProviderError(ClipflowError):
    """A remote provider call failed.

    ``provider`` and ``status_code`` are attached where known so callers can
    log them without parsing messages.
    """

    default_message = "Provider request failed"

    def __init__(
        self,
        message: str | None = None,
        *,
        hint: str | None = None,
        provider: str | None = None,
        status_code: int | None = None,
    ) -> None:
        super().__init__(message or self.default_message, hint=hint)
        self.provider = provider
        self.status_code = status_code


class ProviderNotConfiguredError(ProviderError):
    """The client has no usable credentials."""

    default_message = "Provider not configured"


class ProviderAuthenticationError(ProviderError):
    """HTTP 401/403 or an unsupported authentication scheme."""

    default_message = "Authentication failed"


class ProviderRateLimitError(ProviderError):
    """HTTP 429. ``retry_after_s`` is a hint only; clipflow never retries."""

    default_message = "Rate limited"

    def __init__(
        self,
        message: str | None = None,
        *,
        retry_after_s: float | None = None,
        hint: str | None = None,
        provider: str | None = None,
        status_code: int | None = 429,
    ) -> None:
        if message is None and retry_after_s is not None:
            message = f"Rate limited. Retry after {int(retry_after_s)} seconds"
        super().__init__(
            message, hint=hint, provider=provider, status_code=status_code
        )
        self.retry_after_s = retry_after_s


class ProviderTimeoutError(ProviderError):
    """The transport gave up waiting for the provider."""

    default_message = "Request timed out"


class ModelNotFoundError(ProviderError):
    """HTTP 404: the requested model does not exist or is not enabled."""

    default_message = "Model not available"


class ProviderNetworkError(ProviderError):
    """Transport-level failure (DNS, refused connection, dropped connection)."""

    default_message = "Network error"


class ProviderServerError(ProviderError):
    """5xx, or any status outside the mapped set."""

    default_message = "Server error"


class InvalidResponseError(ProviderError):
    """A 200 response whose body could not be decoded."""

    default_message = "Invalid response"


# =============================================================================
# Unit layer
# =============================================================================


class TransformError(ClipflowError):
    """A text processing unit failed."""

    #: Shortest human-readable text, suitable for a HUD.
    short_message: str = "Processing error"


class EmptyInputError(TransformError):
    """Input is empty or whitespace-only."""

    short_message = "Empty input"

    def __init__(self, message: str = "No text to transform") -> None:
        super().__init__(message)


class TransformTimeoutError(TransformError):
    """The unit did not finish within its logical timeout."""

    short_message = "Timed out"

    def __init__(self, seconds: int) -> None:
        super().__init__(f"Transformation timed out after {seconds} seconds")
        self.seconds = seconds


class NetworkError(TransformError):
    """The remote service could not be reached."""

    short_message = "Network error"

    def __init__(self, message: str) -> None:
        super().__init__(f"Network error: {message}")
        self.detail = message


class AuthenticationError(TransformError):
    """Credentials were rejected."""

    short_message = "Auth failed"

    def __init__(self) -> None:
        super().__init__(
            "Invalid API key or authentication failed",
            hint="Check the credentials configured for this provider.",
        )


class ProcessingError(TransformError):
    """Generic unit failure carrying a message."""

    short_message = "Processing error"

    def __init__(self, message: str) -> None:
        super().__init__(f"Processing error: {message}")
        self.detail = message


class RateLimitError(TransformError):
    """The remote service is throttling requests."""

    short_message = "Rate limited"

    def __init__(self, retry_after_s: float | None = None) -> None:
        if retry_after_s is not None:
            message = f"Rate limited. Try again in {int(retry_after_s)} seconds"
        else:
            message = "Rate limited. Please wait and try again"
        super().__init__(message)
        self.retry_after_s = retry_after_s


class ContentTooLargeError(TransformError):
    """Input exceeds the configured byte limit."""

    short_message = "Content too large"

    def __init__(self, size_bytes: int, limit_bytes: int) -> None:
        super().__init__(f"Content too large ({size_bytes} bytes, limit {limit_bytes})")
        self.size_bytes = size_bytes
        self.limit_bytes = limit_bytes


# =============================================================================
# Pipeline layer
# =============================================================================


class PipelineError(ClipflowError):
    """Pipeline execution failed."""

    short_message: str = "Pipeline error"


class EmptyPipelineError(PipelineError):
    """The pipeline has no stages."""

    short_message = "No transforms configured"

    def __init__(self) -> None:
        super().__init__("No transformations configured")


class StageFailedError(PipelineError):
    """Stage ``stage`` (0-indexed) failed; ``underlying`` is the unit error."""

    def __init__(self, stage: int, unit_id: str, underlying: BaseException) -> None:
        super().__init__(f"Stage {stage + 1} ({unit_id}) failed: {underlying}")
        self.stage = stage
        self.unit_id = unit_id
        self.underlying = underlying

    @property
    def short_message(self) -> str:  # type: ignore[override]
        """Delegate to the failing unit's error."""
        if isinstance(self.underlying, TransformError):
            return self.underlying.short_message
        desc = str(self.underlying)
        if len(desc) > 40:
            return desc[:37] + "..."
        return desc


class PipelineTimeoutError(PipelineError):
    """The whole traversal exceeded the pipeline timeout."""

    short_message = "Timed out"

    def __init__(self, seconds: int) -> None:
        super().__init__(f"Pipeline timed out after {seconds} seconds")
        self.seconds = seconds


class PipelineCancelledError(PipelineError, asyncio.CancelledError):
    """Execution was cancelled from outside.

    Also an ``asyncio.CancelledError``, so a cancelled task still finishes as
    cancelled and ``except PipelineError`` handlers see it.
    """

    short_message = "Cancelled"

    def __init__(self) -> None:
        super().__init__("Pipeline execution was cancelled")
