"""Provider protocol: minimal interface for remote text transformation."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

from clipflow.types import ProviderKind

if TYPE_CHECKING:
    from clipflow.providers.models import ProviderRequest, ProviderResponse

__all__ = ["ProviderClient", "ProviderKind"]


@runtime_checkable
class ProviderClient(Protocol):
    """Uniform contract implemented once per remote back-end.

    Implementations hold credentials only. They must be safe to share across
    concurrently running pipelines without synchronisation.
    """

    @property
    def kind(self) -> ProviderKind:
        """Which back-end this client talks to."""
        ...

    def is_configured(self) -> bool:
        """Whether the client holds usable credentials."""
        ...

    async def transform(self, request: ProviderRequest) -> ProviderResponse:
        """Send one request and return the whole response.

        Raises:
            ProviderError: One of the provider-layer subclasses.
        """
        ...
