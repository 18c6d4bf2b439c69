"""nomex_meta/logic/capabilities.py
=================================

Interfaces (ABCs) for everything outside this process that the lookup talks to:

- the automation server (a running or freshly started CAD application),
- documents opened inside it,
- the lightweight property store that reads a file without the application,
- the process-wide COM concurrency policy slot (message filter),
- COM apartment initialization of a thread.

The pywin32 implementations live in :mod:`nomex_meta.logic.com_automation`;
tests substitute in-memory fakes.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Iterable, List, Optional, Tuple

from nomex_meta.logic.apartment import ApartmentModel

#: (property name, raw value) as handed over by the collaborator
RawProperty = Tuple[Any, Any]
#: (section name, entries) as handed over by the collaborator
RawSection = Tuple[str, List[RawProperty]]


class OpenDocument(ABC):
    """A document opened inside the automation server."""

    @abstractmethod
    def property_sections(self, section: Optional[str] = None) -> Iterable[RawSection]:
        """Enumerate the live property sets of the document, or only *section*."""

    @abstractmethod
    def close(self, save: bool = False) -> None:
        """Close the document inside the server."""


class AutomationServer(ABC):
    """Handle to the single running automation server process."""

    @property
    @abstractmethod
    def visible(self) -> bool:
        ...

    @visible.setter
    @abstractmethod
    def visible(self, value: bool) -> None:
        ...

    @property
    @abstractmethod
    def display_alerts(self) -> bool:
        ...

    @display_alerts.setter
    @abstractmethod
    def display_alerts(self, value: bool) -> None:
        ...

    @abstractmethod
    def open(self, path: str) -> OpenDocument:
        """Open *path* as a document."""

    @abstractmethod
    def is_responsive(self) -> bool:
        """False once the server process went away."""

    @abstractmethod
    def quit(self) -> None:
        """Terminate the server process."""


class AutomationCapability(ABC):
    """Discovery or launch of the automation server."""

    @abstractmethod
    def discover_running(self) -> Optional[AutomationServer]:
        """Return the running instance or None."""

    @abstractmethod
    def launch_new(self) -> AutomationServer:
        """Start a new instance; raise if that is impossible."""


class PropertyStoreCapability(ABC):
    """Reads property sets straight from a file on disk."""

    @abstractmethod
    def open_read_only(self, path: str, section: Optional[str] = None) -> List[RawSection]:
        """
        Return the property sections of *path*, in file order.

        With *section* given, only that section is read; values of the other
        sections are never touched.
        """


class ConcurrencyPolicyHost(ABC):
    """The per-thread slot for a COM message filter."""

    @abstractmethod
    def install(self, policy: Any) -> Any:
        """Install *policy*; return whatever was installed before."""

    @abstractmethod
    def restore(self, previous: Any) -> None:
        """Put *previous* (possibly None) back in place."""


class ComInitializer(ABC):
    """COM (un)initialization of the calling thread."""

    @abstractmethod
    def initialize(self, model: ApartmentModel) -> None:
        ...

    @abstractmethod
    def uninitialize(self) -> None:
        ...
