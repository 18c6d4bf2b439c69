from __future__ import annotations
from dataclasses import dataclass
from typing import Any

from nomex_meta.models.property_value import PropertyValue


@dataclass(frozen=True)
class PropertyEntry:
    """
    Model for a single custom property of a part file.
    `value` is already stringified; `typed_value` keeps what the reader saw.
    """
    name: str
    value: str
    typed_value: PropertyValue

    @classmethod
    def from_raw(cls, name: Any, raw_value: Any) -> "PropertyEntry":
        typed = PropertyValue.from_raw(raw_value)
        return cls(name=str(name), value=typed.to_text(), typed_value=typed)

    def matches_prefix(self, prefix: str) -> bool:
        return self.name.startswith(prefix)

    def format_line(self, identifier: str) -> str:
        return f"{identifier}: {self.name}: {self.value}"
