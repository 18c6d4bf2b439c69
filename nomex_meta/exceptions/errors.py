"""NOMEX property lookup exceptions."""
from __future__ import annotations

from pathlib import Path
from typing import Optional


class NomexError(Exception):
    """Base exception for the nomex_meta feature."""


class UnavailableError(NomexError):
    """Raised when the automation server can neither be found nor started."""


class ThreadAffinityError(NomexError):
    """Raised when COM work is attempted outside a single-threaded apartment."""


class WorkerThreadError(NomexError):
    """Raised when the dedicated STA worker thread could not be started."""


class NotFoundError(NomexError):
    """Raised when the file derived from an identifier does not exist."""

    def __init__(self, path: Path | str) -> None:
        self.path = Path(path)
        super().__init__(f"File not found: {self.path}")


class PropertyReadError(NomexError):
    """
    Raised when both read tiers failed for one file.

    Keeps both causes so the caller can report what went wrong on each path.
    """

    def __init__(
        self,
        path: Path | str,
        tier1_error: Optional[BaseException],
        tier2_error: Optional[BaseException],
    ) -> None:
        self.path = Path(path)
        self.tier1_error = tier1_error
        self.tier2_error = tier2_error
        super().__init__(
            f"Failed to read custom properties of {self.path} "
            f"(property store: {_describe(tier1_error)}; "
            f"application: {_describe(tier2_error)})"
        )


def _describe(error: Optional[BaseException]) -> str:
    if error is None:
        return "not attempted"
    text = str(error).strip()
    return f"{type(error).__name__}: {text}" if text else type(error).__name__
