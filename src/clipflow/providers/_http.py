"""Shared HTTP/JSON scaffolding for provider clients.

Each client supplies only its differences: the URL, headers and JSON body
(``HTTPCall``), how to decode a 200 body, and where its error bodies keep a
message. Sending, timing, status mapping and transport error mapping live here.
"""

from __future__ import annotations

from dataclasses import dataclass, field
import json
import logging
import time
from typing import TYPE_CHECKING, Any, TypeVar

import httpx
from pydantic import BaseModel, ValidationError

from clipflow.errors import InvalidResponseError
from clipflow.providers._errors import (
    error_for_status,
    openai_error_message,
    wrap_transport_error,
)
from clipflow.providers.models import ProviderResponse

if TYPE_CHECKING:
    from collections.abc import Callable

    from clipflow.providers.models import ProviderRequest
    from clipflow.types import ProviderKind

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)


@dataclass(frozen=True)
class HTTPCall:
    """A provider-specific POST request."""

    url: str
    body: dict[str, Any]
    headers: dict[str, str] = field(default_factory=dict)


def decode_model(model: type[M], payload: Any, *, provider: ProviderKind) -> M:
    """Validate a decoded JSON body against a pydantic response model."""
    try:
        return model.model_validate(payload)
    except ValidationError as e:
        raise InvalidResponseError(
            f"Unexpected {provider.display_name} response shape: "
            f"{e.error_count()} validation error(s)",
            provider=provider.value,
        ) from e


async def send(
    call: HTTPCall,
    request: ProviderRequest,
    *,
    provider: ProviderKind,
    decode: Callable[[Any], tuple[str, str]],
    error_message: Callable[[Any], str | None] = openai_error_message,
    transport: httpx.AsyncBaseTransport | None = None,
) -> ProviderResponse:
    """POST ``call`` as JSON and return a ``ProviderResponse``.

    Args:
        call: URL, headers and body built by the client.
        request: The originating request (timeout, correlation id).
        provider: Back-end identity used for labels and errors.
        decode: Maps the 200 JSON body to ``(model, output_text)``.
        error_message: Extracts a structured message from an error body.
        transport: Optional httpx transport (tests inject ``MockTransport``).

    Raises:
        ProviderError: Mapped from the HTTP status or the transport failure.
    """
    start = time.perf_counter()
    headers = {"Content-Type": "application/json", **call.headers}
    logger.debug(
        "provider request %s -> %s model=%s",
        request.request_id,
        provider.value,
        request.model,
    )
    try:
        async with httpx.AsyncClient(
            timeout=request.transport_timeout_s, transport=transport
        ) as client:
            response = await client.post(call.url, json=call.body, headers=headers)
    except httpx.RequestError as e:
        err = wrap_transport_error(e, provider=provider)
        logger.warning(
            "provider request %s to %s failed in transport: %s",
            request.request_id,
            provider.value,
            err,
        )
        raise err from e

    elapsed = time.perf_counter() - start
    mapped = error_for_status(response, provider=provider, error_message=error_message)
    if mapped is not None:
        logger.warning(
            "provider request %s to %s returned %s (%.3fs): %s",
            request.request_id,
            provider.value,
            response.status_code,
            elapsed,
            mapped,
        )
        raise mapped

    try:
        payload = json.loads(response.content)
    except ValueError as e:
        raise InvalidResponseError(
            f"{provider.display_name} returned a non-JSON body",
            provider=provider.value,
            status_code=response.status_code,
        ) from e

    model, output = decode(payload)
    duration = time.perf_counter() - start
    logger.debug(
        "provider request %s to %s succeeded in %.3fs",
        request.request_id,
        provider.value,
        duration,
    )
    return ProviderResponse(
        provider=provider, model=model, output=output, duration_s=duration
    )
