"""Shared provider-side error mapping.

Every client maps HTTP outcomes through the same table so callers see one
taxonomy regardless of back-end:

- 401/403 -> ProviderAuthenticationError
- 429 -> ProviderRateLimitError (with Retry-After when present)
- 404 -> ModelNotFoundError
- 5xx -> ProviderServerError("<Provider> server error")
- anything else -> ProviderServerError(structured body message or "HTTP <status>")
"""

from __future__ import annotations

from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
import json
import math
from typing import TYPE_CHECKING, Any

import httpx

from clipflow.errors import (
    ModelNotFoundError,
    ProviderAuthenticationError,
    ProviderError,
    ProviderNetworkError,
    ProviderRateLimitError,
    ProviderServerError,
    ProviderTimeoutError,
)

if TYPE_CHECKING:
    from collections.abc import Callable

    from clipflow.types import ProviderKind

_DNS_MARKERS = (
    "name or service not known",
    "nodename nor servname",
    "getaddrinfo",
    "name resolution",
    "no address associated",
)
_OFFLINE_MARKERS = ("network is unreachable", "no route to host")


def parse_retry_after(value: str | None) -> float | None:
    """Parse a Retry-After header: delta-seconds or an HTTP date."""
    if value is None or not value.strip():
        return None
    raw = value.strip()
    try:
        seconds = float(raw)
    except ValueError:
        seconds = None
    if seconds is not None:
        return seconds if math.isfinite(seconds) and seconds >= 0 else None
    try:
        when = parsedate_to_datetime(raw)
    except (TypeError, ValueError):
        return None
    if when.tzinfo is None:
        when = when.replace(tzinfo=timezone.utc)
    return max(0.0, (when - datetime.now(timezone.utc)).total_seconds())


def openai_error_message(payload: Any) -> str | None:
    """``{"error": {"message": "..."}}`` (OpenAI, OpenRouter, Anthropic)."""
    if not isinstance(payload, dict):
        return None
    error = payload.get("error")
    if isinstance(error, dict):
        message = error.get("message")
        if isinstance(message, str) and message.strip():
            return message
    return None


def top_level_error_message(payload: Any) -> str | None:
    """``{"message": "..."}`` (Bedrock) or ``{"error": "..."}`` (Ollama)."""
    if not isinstance(payload, dict):
        return None
    for key in ("message", "error"):
        value = payload.get(key)
        if isinstance(value, str) and value.strip():
            return value
    return None


def _body_json(response: httpx.Response) -> Any:
    try:
        return json.loads(response.content or b"null")
    except ValueError:
        return None


def error_for_status(
    response: httpx.Response,
    *,
    provider: ProviderKind,
    error_message: Callable[[Any], str | None] = openai_error_message,
) -> ProviderError | None:
    """Return the mapped error for a non-200 response, or *None* for 200."""
    status = response.status_code
    name = provider.display_name
    if status == 200:
        return None
    if status in (401, 403):
        return ProviderAuthenticationError(provider=provider.value, status_code=status)
    if status == 429:
        return ProviderRateLimitError(
            retry_after_s=parse_retry_after(response.headers.get("Retry-After")),
            provider=provider.value,
        )
    if status == 404:
        return ModelNotFoundError(provider=provider.value, status_code=status)
    if 500 <= status <= 599:
        return ProviderServerError(
            f"{name} server error", provider=provider.value, status_code=status
        )
    message = error_message(_body_json(response)) or f"HTTP {status}"
    return ProviderServerError(message, provider=provider.value, status_code=status)


def _network_cause(exc: httpx.RequestError, provider: ProviderKind) -> str:
    text = str(exc).lower()
    if isinstance(exc, httpx.ConnectError):
        if any(marker in text for marker in _DNS_MARKERS):
            return "DNS lookup failed"
        if any(marker in text for marker in _OFFLINE_MARKERS):
            return "No internet connection"
        return f"Cannot connect to {provider.display_name}"
    if isinstance(exc, (httpx.ReadError, httpx.WriteError, httpx.RemoteProtocolError)):
        return "Connection lost"
    return str(exc) or type(exc).__name__


def wrap_transport_error(
    exc: httpx.RequestError, *, provider: ProviderKind
) -> ProviderError:
    """Map an httpx transport exception into the provider taxonomy."""
    if isinstance(exc, httpx.TimeoutException):
        return ProviderTimeoutError(provider=provider.value)
    return ProviderNetworkError(
        _network_cause(exc, provider), provider=provider.value
    )
