from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Iterable, Iterator, List, Tuple

from nomex_meta.models.property_entry import PropertyEntry

CUSTOM_SECTION = "Custom"


class ReadTier(str, Enum):
    """Which path produced a section."""
    PROPERTY_STORE = "property_store"   # Tier 1, file read without the application
    APPLICATION = "application"         # Tier 2, document opened in the automation server


@dataclass(frozen=True)
class PropertySection:
    """
    Named, ordered collection of property entries (e.g. the "Custom" set).

    Entries keep the enumeration order of the underlying collection.
    """
    name: str
    entries: Tuple[PropertyEntry, ...] = ()
    source: ReadTier = ReadTier.PROPERTY_STORE

    @classmethod
    def from_pairs(
        cls,
        name: str,
        pairs: Iterable[Tuple[Any, Any]],
        *,
        source: ReadTier,
    ) -> "PropertySection":
        return cls(
            name=name,
            entries=tuple(PropertyEntry.from_raw(n, v) for n, v in pairs),
            source=source,
        )

    @classmethod
    def empty(cls, name: str = CUSTOM_SECTION, *, source: ReadTier = ReadTier.PROPERTY_STORE) -> "PropertySection":
        return cls(name=name, entries=(), source=source)

    def __iter__(self) -> Iterator[PropertyEntry]:
        return iter(self.entries)

    def __len__(self) -> int:
        return len(self.entries)

    def matching(self, prefix: str) -> List[PropertyEntry]:
        return [e for e in self.entries if e.matches_prefix(prefix)]

    def as_dict(self) -> Dict[str, str]:
        """Name -> value; a repeated name keeps its last value."""
        return {e.name: e.value for e in self.entries}

