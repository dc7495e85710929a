"""Registry mapping transformation ids to units and their enabled state.

Create one ``TransformationRegistry`` at the composition root and pass it to
whatever needs lookups; there is no module-level instance.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import UTC, datetime
from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from clipflow.transforms.base import Transformation


class TransformationCategory(str, Enum):
    LLM = "llm"
    USER_DEFINED = "user_defined"


@dataclass(frozen=True)
class RegistryEntry:
    """A registered unit plus its bookkeeping."""

    transformation: Transformation
    category: TransformationCategory = TransformationCategory.USER_DEFINED
    enabled: bool = True
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))


@dataclass
class TransformationRegistry:
    """Registry of transformations keyed by ``Transformation.id``.

    Ids are unique: registering a second unit with a taken id is refused.
    Listing methods return units in registration order.
    """

    _entries: dict[str, RegistryEntry] = field(default_factory=dict)

    def register(
        self,
        transformation: Transformation,
        *,
        category: TransformationCategory = TransformationCategory.USER_DEFINED,
        enabled: bool = True,
    ) -> bool:
        """Add ``transformation``; return False if its id is already taken."""
        if transformation.id in self._entries:
            return False
        self._entries[transformation.id] = RegistryEntry(
            transformation=transformation, category=category, enabled=enabled
        )
        return True

    def unregister(self, unit_id: str) -> bool:
        return self._entries.pop(unit_id, None) is not None

    def get(self, unit_id: str) -> Transformation | None:
        """Return the unit for ``unit_id`` if it is registered and enabled."""
        entry = self._entries.get(unit_id)
        if entry is None or not entry.enabled:
            return None
        return entry.transformation

    def get_ignoring_enabled(self, unit_id: str) -> Transformation | None:
        entry = self._entries.get(unit_id)
        return entry.transformation if entry is not None else None

    def all(self) -> list[Transformation]:
        return [e.transformation for e in self._entries.values()]

    def in_category(self, category: TransformationCategory) -> list[Transformation]:
        return [e.transformation for e in self._entries.values() if e.category is category]

    def enabled(self) -> list[Transformation]:
        return [e.transformation for e in self._entries.values() if e.enabled]

    def exists(self, unit_id: str) -> bool:
        return unit_id in self._entries

    def set_enabled(self, unit_id: str, enabled: bool) -> bool:
        """Flip the enabled flag; return False for unknown ids."""
        entry = self._entries.get(unit_id)
        if entry is None:
            return False
        self._entries[unit_id] = replace(entry, enabled=enabled)
        return True

    def is_enabled(self, unit_id: str) -> bool:
        entry = self._entries.get(unit_id)
        return entry is not None and entry.enabled

    def enable_all(self) -> None:
        for unit_id in self._entries:
            self.set_enabled(unit_id, True)

    def disable_all(self) -> None:
        for unit_id in self._entries:
            self.set_enabled(unit_id, False)

    def names(self) -> dict[str, str]:
        """Map of id to display name."""
        return {uid: e.transformation.display_name for uid, e in self._entries.items()}

    def entries(self) -> list[RegistryEntry]:
        return list(self._entries.values())

    def entry(self, unit_id: str) -> RegistryEntry | None:
        return self._entries.get(unit_id)

    def ids(self) -> list[str]:
        return list(self._entries)

    @property
    def enabled_count(self) -> int:
        return sum(1 for e in self._entries.values() if e.enabled)

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, unit_id: object) -> bool:
        return unit_id in self._entries
