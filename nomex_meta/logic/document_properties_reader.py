from __future__ import annotations

import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Dict, Iterator, Optional

from nomex_meta.logic.capabilities import AutomationServer, OpenDocument
from nomex_meta.models.property_section import PropertySection, ReadTier

logger = logging.getLogger(__name__)


@contextmanager
def opened_document(server: AutomationServer, path: Path | str) -> Iterator[OpenDocument]:
    """Open *path* in the server; close it without saving when the block ends."""
    document = server.open(str(path))
    try:
        yield document
    finally:
        try:
            document.close(save=False)
        except Exception as exc:
            logger.warning("Failed to close %s: %s", path, exc)


def read_document_property_sections(
    document: OpenDocument,
    section: Optional[str] = None,
) -> Dict[str, PropertySection]:
    """Read the live property sets of an opened document, all or only *section*."""
    out: Dict[str, PropertySection] = {}
    for section_name, pairs in document.property_sections(section):
        name = str(section_name)
        if name in out or (section is not None and name != section):
            continue
        out[name] = PropertySection.from_pairs(name, pairs, source=ReadTier.APPLICATION)
    return out
