"""
High-level entry point: look up NOMEX_LAYERS for a batch of part numbers.

Wires the configuration to the COM adapters, runs the whole batch on a
dedicated STA worker thread and releases the automation server afterwards.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Optional

from core.config.config_service import ConfigService
from nomex_meta.logic.apartment import run_in_sta_thread
from nomex_meta.logic.application_locator import ApplicationLocator
from nomex_meta.logic.batch_resolver import BatchResolver
from nomex_meta.logic.capabilities import (
    AutomationCapability,
    ComInitializer,
    ConcurrencyPolicyHost,
    PropertyStoreCapability,
)
from nomex_meta.logic.message_filter import ReentrancyGuard, RetryPolicy
from nomex_meta.logic.property_reader import PropertyReader
from nomex_meta.models.batch_result import BatchResult

logger = logging.getLogger(__name__)


@dataclass
class ServiceSettings:
    extension: str = "psm"
    prefix: str = "NOMEX_LAYERS"
    section: str = "Custom"
    hide_running_instance: bool = False
    quit_launched_instance: bool = True
    retry_delay_ms: int = 99
    max_retry_window_ms: int = 0

    @classmethod
    def from_config(cls, config: ConfigService) -> "ServiceSettings":
        return cls(
            extension=config.search.extension,
            prefix=config.properties.prefix,
            section=config.properties.section,
            hide_running_instance=config.automation.hide_running_instance,
            quit_launched_instance=config.automation.quit_launched_instance,
            retry_delay_ms=config.retry.retry_delay_ms,
            max_retry_window_ms=config.retry.max_retry_window_ms,
        )


class NomexLayerService:
    """Collects NOMEX_LAYERS lines for part files under a search folder."""

    def __init__(
        self,
        *,
        automation: AutomationCapability,
        store: PropertyStoreCapability,
        policy_host: ConcurrencyPolicyHost,
        initializer: Optional[ComInitializer],
        settings: Optional[ServiceSettings] = None,
    ) -> None:
        self._automation = automation
        self._store = store
        self._policy_host = policy_host
        self._initializer = initializer
        self.settings = settings or ServiceSettings()

    @classmethod
    def from_config(cls, config: ConfigService) -> "NomexLayerService":
        from nomex_meta.logic.com_automation import (
            MessageFilterHost,
            PythoncomInitializer,
            SolidEdgeAutomation,
            SolidEdgeFileProperties,
        )

        return cls(
            automation=SolidEdgeAutomation(config.automation.prog_id),
            store=SolidEdgeFileProperties(config.automation.file_properties_prog_id),
            policy_host=MessageFilterHost(),
            initializer=PythoncomInitializer(),
            settings=ServiceSettings.from_config(config),
        )

    def collect(
        self,
        identifiers: Iterable[str],
        search_root: Path | str,
        *,
        cancel_event: Optional[threading.Event] = None,
    ) -> BatchResult:
        """Run the batch on an STA worker thread and wait for it."""
        identifiers = list(identifiers)
        logger.info("Looking up %d identifier(s) under %s", len(identifiers), search_root)
        return run_in_sta_thread(
            self.collect_in_current_thread,
            identifiers,
            search_root,
            cancel_event=cancel_event,
            initializer=self._initializer,
        )

    def collect_in_current_thread(
        self,
        identifiers: Iterable[str],
        search_root: Path | str,
        *,
        cancel_event: Optional[threading.Event] = None,
    ) -> BatchResult:
        """
        Run the batch here, on a thread that already is an STA.

        The fallback tier only accepts threads inside :func:`com_apartment`.
        A thread that initialized COM itself must wrap the call in
        ``com_apartment(ApartmentModel.STA)`` or it gets ThreadAffinityError.
        """
        s = self.settings
        locator = ApplicationLocator(
            self._automation,
            hide_running_instance=s.hide_running_instance,
            quit_launched_instance=s.quit_launched_instance,
        )
        guard = ReentrancyGuard(
            self._policy_host,
            RetryPolicy(retry_delay_ms=s.retry_delay_ms, max_retry_window_ms=s.max_retry_window_ms),
        )
        reader = PropertyReader(store=self._store, locator=locator, guard=guard, section_name=s.section)
        resolver = BatchResolver(reader, prefix=s.prefix, extension=s.extension)
        try:
            result = resolver.resolve(identifiers, search_root, cancel_event=cancel_event)
        finally:
            if locator.launched:
                # Quit() is a call into the server like any other
                with guard.activate():
                    locator.release()
            else:
                locator.release()
        logger.info(
            "Batch finished: %d line(s), %d identifier(s) without result",
            len(result), len(result.failed_identifiers),
        )
        return result
