from __future__ import annotations

from pathlib import Path
from typing import Dict, Optional

from nomex_meta.logic.capabilities import PropertyStoreCapability
from nomex_meta.models.property_section import PropertySection, ReadTier


def read_file_property_sections(
    store: PropertyStoreCapability,
    path: Path | str,
    section: Optional[str] = None,
) -> Dict[str, PropertySection]:
    """
    Read the property sets of a part file without the CAD application,
    all of them or only *section*.
    Sections keep file order; a repeated section name keeps the first one.
    """
    out: Dict[str, PropertySection] = {}
    for section_name, pairs in store.open_read_only(str(path), section):
        name = str(section_name)
        if name in out or (section is not None and name != section):
            continue
        out[name] = PropertySection.from_pairs(name, pairs, source=ReadTier.PROPERTY_STORE)
    return out
