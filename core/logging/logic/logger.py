"""
core/logging/logic/logger.py
============================

Logging bootstrap for command line runs.

All modules log through ``logging.getLogger(__name__)``; this module only
attaches one stderr handler to the root logger so stdout stays reserved for
result lines. Calling :func:`configure_logging` again adjusts level and
format of that same handler instead of stacking a second one.
"""

from __future__ import annotations

import logging
import sys
import threading
from typing import IO, Optional, Union

DEFAULT_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

_HANDLER_NAME = "nomex-stderr"
_lock = threading.Lock()


def _resolve_level(level: Union[str, int]) -> int:
    if isinstance(level, int):
        return level
    value = logging.getLevelName(str(level).strip().upper())
    if not isinstance(value, int):
        raise ValueError(f"Unknown log level: {level!r}")
    return value


def configure_logging(
    level: Union[str, int] = "INFO",
    fmt: Optional[str] = None,
    *,
    stream: Optional[IO[str]] = None,
) -> logging.Handler:
    """Install (or update) the stderr handler on the root logger."""
    resolved = _resolve_level(level)
    formatter = logging.Formatter(fmt or DEFAULT_FORMAT)
    root = logging.getLogger()

    with _lock:
        handler = next((h for h in root.handlers if h.get_name() == _HANDLER_NAME), None)
        if handler is None:
            handler = logging.StreamHandler(stream or sys.stderr)
            handler.set_name(_HANDLER_NAME)
            root.addHandler(handler)
        elif stream is not None and isinstance(handler, logging.StreamHandler):
            handler.setStream(stream)
        handler.setFormatter(formatter)
        handler.setLevel(resolved)
        root.setLevel(resolved)
    return handler
