"""Transformation protocol: the text-to-text unit every pipeline stage runs."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol, runtime_checkable

from clipflow.errors import EmptyInputError


@dataclass(frozen=True)
class TransformMetadata:
    """Provenance a unit exposes to the pipeline without affecting its output."""

    provider_name: str | None = None
    model: str | None = None
    system_prompt: str | None = None


@runtime_checkable
class Transformation(Protocol):
    """Named, stateless text-to-text operation.

    Implementations are safe to share across concurrent pipeline runs and
    raise ``TransformError`` subclasses on failure.
    """

    @property
    def id(self) -> str: ...

    @property
    def display_name(self) -> str: ...

    async def transform(self, text: str) -> str:
        """Return the transformed text."""
        ...


@runtime_checkable
class ProvidesMetadata(Protocol):
    """Units that can report which provider and model produced their output."""

    @property
    def metadata(self) -> TransformMetadata: ...


def require_text(text: str) -> str:
    """Return ``text`` unchanged, or raise ``EmptyInputError`` if it is blank."""
    if not text.strip():
        raise EmptyInputError()
    return text


def metadata_of(unit: object) -> TransformMetadata | None:
    if isinstance(unit, ProvidesMetadata):
        return unit.metadata
    return None
