"""Finds the running automation server or starts one."""

from __future__ import annotations

import logging
from typing import Optional

from nomex_meta.exceptions.errors import UnavailableError
from nomex_meta.logic.capabilities import AutomationCapability, AutomationServer

logger = logging.getLogger(__name__)


class ApplicationLocator:
    """
    Single-instance access to the automation server.

    The handle is shared: a discovered instance belongs to whoever started it
    and is never terminated here. An instance launched by this locator is quit
    on `release()` when `quit_launched_instance` is set.
    """

    def __init__(
        self,
        capability: AutomationCapability,
        *,
        hide_running_instance: bool = False,
        quit_launched_instance: bool = True,
    ) -> None:
        self._capability = capability
        self._hide_running_instance = hide_running_instance
        self._quit_launched_instance = quit_launched_instance
        self._handle: Optional[AutomationServer] = None
        self._launched = False

    @property
    def launched(self) -> bool:
        """True if the current handle belongs to an instance we started."""
        return self._handle is not None and self._launched

    def acquire(self) -> AutomationServer:
        if self._handle is not None:
            if self._is_responsive(self._handle):
                return self._handle
            logger.warning("Automation server stopped responding, locating it again")
            self._handle = None
            self._launched = False

        discovery_error: Optional[BaseException] = None
        try:
            handle = self._capability.discover_running()
        except Exception as exc:
            discovery_error = exc
            handle = None

        if handle is not None:
            logger.info("Attached to running automation server")
            handle.display_alerts = False
            if self._hide_running_instance:
                handle.visible = False
            self._handle, self._launched = handle, False
            return handle

        try:
            handle = self._capability.launch_new()
        except Exception as exc:
            msg = "Failed to create a new instance of the automation server"
            if discovery_error is not None:
                msg += f" (discovery failed too: {discovery_error})"
            raise UnavailableError(f"{msg}: {exc}") from exc

        logger.info("Launched new automation server")
        try:
            handle.visible = False
            handle.display_alerts = False
        except Exception as exc:
            try:
                handle.quit()
            except Exception as quit_exc:
                logger.warning("Could not quit automation server: %s", quit_exc)
            raise UnavailableError(f"Failed to configure the new automation server instance: {exc}") from exc
        self._handle, self._launched = handle, True
        return handle

    def release(self) -> None:
        handle, launched = self._handle, self._launched
        self._handle, self._launched = None, False
        if handle is None or not launched or not self._quit_launched_instance:
            return
        try:
            handle.quit()
            logger.info("Closed the automation server started for this run")
        except Exception as exc:
            logger.warning("Could not quit automation server: %s", exc)

    @staticmethod
    def _is_responsive(handle: AutomationServer) -> bool:
        try:
            return handle.is_responsive()
        except Exception:
            return False
