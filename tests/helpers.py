"""Test helpers (small, reusable doubles).

Keep this file tiny and purpose-built: units, a canned HTTP transport and a
request factory cover every suite.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from dataclasses import dataclass, field
import json
from typing import Any

import httpx

from clipflow.errors import ProcessingError
from clipflow.providers.models import ProviderRequest
from clipflow.types import ProviderKind


@dataclass
class FakeUnit:
    """Transformation test double.

    Applies ``fn`` to the input (identity by default), optionally after a
    delay, or raises ``error``. ``calls`` records every input it received.
    """

    id: str = "fake"
    display_name: str = "Fake"
    fn: Callable[[str], str] = lambda text: text
    error: BaseException | None = None
    delay_s: float = 0.0
    calls: list[str] = field(default_factory=list)
    cancelled: bool = False

    async def transform(self, text: str) -> str:
        self.calls.append(text)
        if self.delay_s:
            try:
                await asyncio.sleep(self.delay_s)
            except asyncio.CancelledError:
                self.cancelled = True
                raise
        if self.error is not None:
            raise self.error
        return self.fn(text)


def failing_unit(unit_id: str, message: str = "boom") -> FakeUnit:
    return FakeUnit(id=unit_id, display_name=unit_id, error=ProcessingError(message))


@dataclass
class RecordingTransport:
    """``httpx.MockTransport`` wrapper that replays one canned response.

    Captured requests are kept in ``requests``; ``json_bodies`` decodes them.
    """

    status_code: int = 200
    body: Any = None
    headers: dict[str, str] = field(default_factory=dict)
    content: bytes | None = None
    exc: Exception | None = None
    requests: list[httpx.Request] = field(default_factory=list)

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.exc is not None:
            raise self.exc
        if self.content is not None:
            return httpx.Response(
                self.status_code, content=self.content, headers=self.headers
            )
        return httpx.Response(self.status_code, json=self.body, headers=self.headers)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    @property
    def last(self) -> httpx.Request:
        return self.requests[-1]

    @property
    def json_bodies(self) -> list[dict[str, Any]]:
        return [json.loads(r.content) for r in self.requests]


def make_request(
    provider: ProviderKind = ProviderKind.OPENAI, **overrides: Any
) -> ProviderRequest:
    fields: dict[str, Any] = {
        "provider": provider,
        "model": "test-model",
        "text": "hello world",
        "system_prompt": "Make it shout.",
    }
    fields.update(overrides)
    return ProviderRequest(**fields)

