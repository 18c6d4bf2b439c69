from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any


class ValueKind(str, Enum):
    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"
    DATE = "date"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class PropertyValue:
    """
    Typed value of a single custom property.

    COM hands property values over as VARIANTs, which pywin32 turns into
    str/int/float/bool/datetime or, for anything exotic, bytes or a foreign
    object. `kind` records which of those arrived; `to_text()` is the single
    place where a value becomes the string shown to the user.
    """
    kind: ValueKind
    value: Any

    @classmethod
    def from_raw(cls, raw: Any) -> "PropertyValue":
        if raw is None:
            return cls(ValueKind.STRING, "")
        # bool before int: bool is an int subclass
        if isinstance(raw, bool):
            return cls(ValueKind.BOOLEAN, raw)
        if isinstance(raw, (int, float, Decimal)):
            return cls(ValueKind.NUMBER, raw)
        # pywintypes.TimeType derives from datetime
        if isinstance(raw, (datetime, date)):
            return cls(ValueKind.DATE, raw)
        if isinstance(raw, str):
            return cls(ValueKind.STRING, raw)
        if isinstance(raw, memoryview):
            return cls(ValueKind.UNKNOWN, raw.tobytes())
        if isinstance(raw, bytearray):
            return cls(ValueKind.UNKNOWN, bytes(raw))
        return cls(ValueKind.UNKNOWN, raw)

    def to_text(self) -> str:
        if self.kind is ValueKind.STRING:
            return self.value
        if self.kind is ValueKind.BOOLEAN:
            return "True" if self.value else "False"
        if self.kind is ValueKind.NUMBER:
            return _number_text(self.value)
        if self.kind is ValueKind.DATE:
            if isinstance(self.value, datetime):
                return self.value.isoformat(sep=" ")
            return self.value.isoformat()
        return _best_effort_text(self.value)

    def __str__(self) -> str:
        return self.to_text()


def _number_text(value: Any) -> str:
    # VT_R8 carries whole numbers as 5.0; show them the way they were typed
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def _best_effort_text(value: Any) -> str:
    if isinstance(value, bytes):
        try:
            return value.decode("utf-8")
        except UnicodeDecodeError:
            return value.hex()
    try:
        return str(value)
    except Exception:
        try:
            return repr(value)
        except Exception:
            return f"<{type(value).__name__}>"
