"""
pywin32 implementations of the capability interfaces.

Requires: Windows + pywin32 + Solid Edge (for the application tier) or the
Solid Edge file properties component (for the property store tier).
pywin32 is imported lazily so the rest of the package stays importable on
machines without it; using an adapter there raises UnavailableError.
"""

from __future__ import annotations

import logging
from typing import Any, Iterator, List, Optional

from nomex_meta.exceptions.errors import UnavailableError
from nomex_meta.logic.apartment import ApartmentModel
from nomex_meta.logic.capabilities import (
    AutomationCapability,
    AutomationServer,
    ComInitializer,
    ConcurrencyPolicyHost,
    OpenDocument,
    PropertyStoreCapability,
    RawProperty,
    RawSection,
)
from nomex_meta.logic.message_filter import RetryPolicy

logger = logging.getLogger(__name__)

APPLICATION_PROG_ID = "SolidEdge.Application"
FILE_PROPERTIES_PROG_ID = "SolidEdge.FileProperties"


# ------------------------------- imports ----------------------------------- #

def _pythoncom() -> Any:
    try:
        import pythoncom  # type: ignore
    except ImportError as exc:
        raise UnavailableError("pywin32 is required for COM automation") from exc
    return pythoncom


def _win32_client() -> Any:
    try:
        import win32com.client  # type: ignore
    except ImportError as exc:
        raise UnavailableError("pywin32 is required for COM automation") from exc
    return win32com.client


# ---------------------------- apartment / filter --------------------------- #

class PythoncomInitializer(ComInitializer):
    def initialize(self, model: ApartmentModel) -> None:
        pythoncom = _pythoncom()
        flags = (
            pythoncom.COINIT_APARTMENTTHREADED
            if model is ApartmentModel.STA
            else pythoncom.COINIT_MULTITHREADED
        )
        pythoncom.CoInitializeEx(flags)

    def uninitialize(self) -> None:
        _pythoncom().CoUninitialize()


class _MessageFilterServer:
    """COM server object exposing IMessageFilter on top of a RetryPolicy."""

    _public_methods_ = ["HandleInComingCall", "RetryRejectedCall", "MessagePending"]

    def __init__(self, policy: RetryPolicy) -> None:
        self._policy = policy

    def HandleInComingCall(self, dwCallType, htaskCaller, dwTickCount, lpInterfaceInfo):
        return self._policy.handle_incoming_call(dwCallType, htaskCaller, dwTickCount, lpInterfaceInfo)

    def RetryRejectedCall(self, htaskCallee, dwTickCount, dwRejectType):
        return self._policy.retry_rejected_call(htaskCallee, dwTickCount, dwRejectType)

    def MessagePending(self, htaskCallee, dwTickCount, dwPendingType):
        return self._policy.message_pending(htaskCallee, dwTickCount, dwPendingType)


class MessageFilterHost(ConcurrencyPolicyHost):
    """Installs a RetryPolicy through CoRegisterMessageFilter."""

    def install(self, policy: RetryPolicy) -> Any:
        pythoncom = _pythoncom()
        from win32com.server.util import wrap  # type: ignore

        server = _MessageFilterServer(policy)
        server._com_interfaces_ = [pythoncom.IID_IMessageFilter]
        com_filter = wrap(server, pythoncom.IID_IMessageFilter)
        return pythoncom.CoRegisterMessageFilter(com_filter)

    def restore(self, previous: Any) -> None:
        _pythoncom().CoRegisterMessageFilter(previous)


# ------------------------------ application -------------------------------- #

def _iter_collection(collection: Any) -> Iterator[Any]:
    """Walk a 1-based COM collection through Count/Item."""
    for index in range(1, int(collection.Count) + 1):
        yield collection.Item(index)


class SolidEdgeDocument(OpenDocument):
    def __init__(self, com_document: Any) -> None:
        self._doc = com_document

    def property_sections(self, section: Optional[str] = None) -> Iterator[RawSection]:
        for prop_set in self._doc.Properties:
            name = str(prop_set.Name)
            if section is not None and name != section:
                continue
            entries: List[RawProperty] = [(prop.Name, prop.Value) for prop in _iter_collection(prop_set)]
            yield name, entries

    def close(self, save: bool = False) -> None:
        self._doc.Close(save)


class SolidEdgeApplication(AutomationServer):
    def __init__(self, com_application: Any) -> None:
        self._app = com_application

    @property
    def visible(self) -> bool:
        return bool(self._app.Visible)

    @visible.setter
    def visible(self, value: bool) -> None:
        self._app.Visible = value

    @property
    def display_alerts(self) -> bool:
        return bool(self._app.DisplayAlerts)

    @display_alerts.setter
    def display_alerts(self, value: bool) -> None:
        self._app.DisplayAlerts = value

    def open(self, path: str) -> SolidEdgeDocument:
        com_document = self._app.Documents.Open(path)
        if com_document is None:
            raise RuntimeError(f"Failed to open the document: {path}")
        return SolidEdgeDocument(com_document)

    def is_responsive(self) -> bool:
        try:
            self._app.Name
        except Exception:
            return False
        return True

    def quit(self) -> None:
        self._app.Quit()


class SolidEdgeAutomation(AutomationCapability):
    def __init__(self, prog_id: str = APPLICATION_PROG_ID) -> None:
        self.prog_id = prog_id

    def discover_running(self) -> Optional[SolidEdgeApplication]:
        client = _win32_client()
        pythoncom = _pythoncom()
        try:
            com_application = client.GetActiveObject(self.prog_id)
        except pythoncom.com_error:
            logger.debug("No running %s instance", self.prog_id)
            return None
        return SolidEdgeApplication(com_application)

    def launch_new(self) -> SolidEdgeApplication:
        client = _win32_client()
        com_application = client.DispatchEx(self.prog_id)
        if com_application is None:
            raise UnavailableError(f"Failed to create a new instance of {self.prog_id}.")
        return SolidEdgeApplication(com_application)


# ------------------------------ property store ----------------------------- #

class SolidEdgeFileProperties(PropertyStoreCapability):
    """Reads property sets through the file properties component, read-only."""

    def __init__(self, prog_id: str = FILE_PROPERTIES_PROG_ID) -> None:
        self.prog_id = prog_id

    def open_read_only(self, path: str, section: Optional[str] = None) -> List[RawSection]:
        client = _win32_client()
        property_sets = client.Dispatch(self.prog_id)
        property_sets.Open(path, True)
        try:
            sections: List[RawSection] = []
            for prop_set in property_sets:
                name = str(prop_set.Name)
                if section is not None and name != section:
                    continue
                entries = [(prop.Name, prop.Value) for prop in prop_set]
                sections.append((name, entries))
            return sections
        finally:
            try:
                property_sets.Close()
            except Exception as exc:
                logger.debug("Closing property store for %s failed: %s", path, exc)
