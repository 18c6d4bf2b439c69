from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Iterator, List, Optional


class DiagnosticKind(str, Enum):
    NOT_FOUND = "not_found"
    READ_FAILED = "read_failed"
    CANCELLED = "cancelled"


@dataclass(frozen=True)
class Diagnostic:
    """Why one identifier contributed no result lines."""
    identifier: str
    kind: DiagnosticKind
    message: str
    error: Optional[BaseException] = field(default=None, compare=False, repr=False)


@dataclass
class BatchResult:
    """
    Result lines of a batch, in identifier input order.

    Failed identifiers never produce a line; they show up in `diagnostics`.
    """
    lines: List[str] = field(default_factory=list)
    diagnostics: List[Diagnostic] = field(default_factory=list)

    def __iter__(self) -> Iterator[str]:
        return iter(self.lines)

    def __len__(self) -> int:
        return len(self.lines)

    @property
    def failed_identifiers(self) -> List[str]:
        seen: List[str] = []
        for d in self.diagnostics:
            if d.identifier not in seen:
                seen.append(d.identifier)
        return seen
