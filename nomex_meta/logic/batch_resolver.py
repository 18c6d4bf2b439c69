"""Resolves a batch of part identifiers to their NOMEX_LAYERS properties."""

from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import Iterable, Optional

from nomex_meta.exceptions.errors import NotFoundError, ThreadAffinityError
from nomex_meta.logic.property_reader import PropertyReader
from nomex_meta.models.batch_result import BatchResult, Diagnostic, DiagnosticKind

logger = logging.getLogger(__name__)

DEFAULT_PREFIX = "NOMEX_LAYERS"
DEFAULT_EXTENSION = "psm"


def file_path_for(identifier: str, search_root: Path | str, extension: str = DEFAULT_EXTENSION) -> Path:
    return Path(search_root) / f"{identifier}.{extension.lstrip('.')}"


class BatchResolver:
    """
    Processes identifiers one after another; one bad file never stops the batch.

    Only ThreadAffinityError escapes `resolve()`, since it means every further
    file would fail the same way.
    """

    def __init__(
        self,
        reader: PropertyReader,
        *,
        prefix: str = DEFAULT_PREFIX,
        extension: str = DEFAULT_EXTENSION,
    ) -> None:
        self._reader = reader
        self.prefix = prefix
        self.extension = extension

    def resolve(
        self,
        identifiers: Iterable[str],
        search_root: Path | str,
        *,
        cancel_event: Optional[threading.Event] = None,
    ) -> BatchResult:
        result = BatchResult()
        pending = list(identifiers)

        for index, identifier in enumerate(pending):
            if cancel_event is not None and cancel_event.is_set():
                for skipped in pending[index:]:
                    result.diagnostics.append(
                        Diagnostic(skipped, DiagnosticKind.CANCELLED, "Batch cancelled before this file")
                    )
                logger.info("Batch cancelled, %d identifier(s) skipped", len(pending) - index)
                break
            self._resolve_one(identifier, search_root, result)

        return result

    def _resolve_one(self, identifier: str, search_root: Path | str, result: BatchResult) -> None:
        path = file_path_for(identifier, search_root, self.extension)
        if not path.is_file():
            error = NotFoundError(path)
            logger.warning("%s", error)
            result.diagnostics.append(Diagnostic(identifier, DiagnosticKind.NOT_FOUND, str(error), error))
            return

        try:
            section = self._reader.read(path)
        except ThreadAffinityError:
            raise
        except Exception as exc:
            message = f"Failed to retrieve {self.prefix} for {identifier}: {exc}"
            logger.warning(message)
            result.diagnostics.append(Diagnostic(identifier, DiagnosticKind.READ_FAILED, message, exc))
            return

        matches = section.matching(self.prefix)
        logger.debug("%s: %d of %d custom properties match %s", identifier, len(matches), len(section), self.prefix)
        result.lines.extend(entry.format_line(identifier) for entry in matches)
