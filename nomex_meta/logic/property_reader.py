"""
Two-tier custom property reader.

Tier 1 reads the property sets straight from the file through the
lightweight property store. It needs no CAD application and is fast, but it
fails when the file is locked, usually because someone has it open in the
application.

Tier 2 runs only after a Tier 1 failure: inside the reentrancy guard it
attaches to (or starts) the automation server, opens the file as a document,
reads its live property sets and always closes the document again without
saving.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict, Optional, Tuple

from nomex_meta.exceptions.errors import PropertyReadError, ThreadAffinityError
from nomex_meta.logic.application_locator import ApplicationLocator
from nomex_meta.logic.capabilities import PropertyStoreCapability
from nomex_meta.logic.document_properties_reader import (
    opened_document,
    read_document_property_sections,
)
from nomex_meta.logic.file_properties_reader import read_file_property_sections
from nomex_meta.logic.message_filter import ReentrancyGuard
from nomex_meta.models.property_section import CUSTOM_SECTION, PropertySection, ReadTier

logger = logging.getLogger(__name__)


class PropertyReader:
    def __init__(
        self,
        *,
        store: PropertyStoreCapability,
        locator: ApplicationLocator,
        guard: ReentrancyGuard,
        section_name: str = CUSTOM_SECTION,
    ) -> None:
        self._store = store
        self._locator = locator
        self._guard = guard
        self.section_name = section_name

    def read_sections(self, path: Path | str, section: Optional[str] = None) -> Dict[str, PropertySection]:
        """Property sections of *path* (all, or only *section*), from Tier 1 or else Tier 2."""
        sections, _ = self._read(path, section)
        return sections

    def read(self, path: Path | str) -> PropertySection:
        """The custom section of *path*; empty if the file has none."""
        sections, tier = self._read(path, self.section_name)
        found = sections.get(self.section_name)
        if found is None:
            return PropertySection.empty(self.section_name, source=tier)
        return found

    # ------------------------------------------------------------------ #
    def _read(self, path: Path | str, section: Optional[str]) -> Tuple[Dict[str, PropertySection], ReadTier]:
        try:
            return read_file_property_sections(self._store, path, section), ReadTier.PROPERTY_STORE
        except Exception as tier1_error:
            logger.warning(
                "Failed to retrieve file properties without opening the document %s: %s",
                path, tier1_error,
            )
            return self._read_in_application(path, section, tier1_error), ReadTier.APPLICATION

    def _read_in_application(
        self, path: Path | str, section: Optional[str], tier1_error: BaseException,
    ) -> Dict[str, PropertySection]:
        try:
            with self._guard.activate():
                server = self._locator.acquire()
                with opened_document(server, path) as document:
                    sections = read_document_property_sections(document, section)
        except ThreadAffinityError:
            raise
        except Exception as tier2_error:
            logger.warning(
                "Failed to retrieve custom properties by opening the document %s: %s",
                path, tier2_error,
            )
            raise PropertyReadError(path, tier1_error, tier2_error) from tier2_error

        logger.info("Read properties of %s through the automation server", path)
        return sections
