"""Mock provider client for development and tests."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
import time
from typing import TYPE_CHECKING

from clipflow.providers.models import ProviderResponse
from clipflow.types import ProviderKind

if TYPE_CHECKING:
    from clipflow.errors import ProviderError
    from clipflow.providers.models import ProviderRequest


@dataclass
class MockClient:
    """In-process client that never touches the network.

    Returns ``output`` when set, otherwise echoes the request text. ``delay_s``
    simulates latency (a cancellable sleep); ``error`` is raised instead of
    responding. Requests are recorded in ``requests`` for assertions.
    """

    provider: ProviderKind = ProviderKind.OPENAI
    output: str | None = None
    delay_s: float = 0.0
    error: ProviderError | None = None
    configured: bool = True
    requests: list[ProviderRequest] = field(default_factory=list)
    cancelled: int = 0

    @property
    def kind(self) -> ProviderKind:
        return self.provider

    def is_configured(self) -> bool:
        return self.configured

    async def transform(self, request: ProviderRequest) -> ProviderResponse:
        """Return a deterministic response."""
        self.requests.append(request)
        start = time.perf_counter()
        if self.delay_s > 0:
            try:
                await asyncio.sleep(self.delay_s)
            except asyncio.CancelledError:
                self.cancelled += 1
                raise
        if self.error is not None:
            raise self.error
        text = self.output if self.output is not None else f"echo: {request.text}"
        return ProviderResponse(
            provider=self.provider,
            model=request.model,
            output=text,
            duration_s=time.perf_counter() - start,
        )
