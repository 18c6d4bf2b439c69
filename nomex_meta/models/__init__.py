from .batch_result import BatchResult, Diagnostic, DiagnosticKind
from .property_entry import PropertyEntry
from .property_section import CUSTOM_SECTION, PropertySection, ReadTier
from .property_value import PropertyValue, ValueKind

__all__ = [
    "BatchResult",
    "CUSTOM_SECTION",
    "Diagnostic",
    "DiagnosticKind",
    "PropertyEntry",
    "PropertySection",
    "PropertyValue",
    "ReadTier",
    "ValueKind",
]
