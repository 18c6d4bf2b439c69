"""
COM apartment bookkeeping and the dedicated STA worker thread.

COM does not offer a portable "which apartment am I in" query through
pywin32, so every thread that initializes COM through :func:`com_apartment`
records its model in thread-local state. The reentrancy guard checks that
record before installing a message filter.

:func:`run_in_sta_thread` runs a callable on a fresh thread that has been
initialized as a single-threaded apartment and joins it, handing the result
(or the exception) back to the caller.
"""

from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from enum import Enum
from typing import TYPE_CHECKING, Any, Callable, Iterator, Optional, TypeVar

from nomex_meta.exceptions.errors import WorkerThreadError

if TYPE_CHECKING:  # pragma: no cover
    from nomex_meta.logic.capabilities import ComInitializer

logger = logging.getLogger(__name__)

T = TypeVar("T")


class ApartmentModel(str, Enum):
    NONE = "none"   # COM not initialized by us on this thread
    STA = "sta"
    MTA = "mta"


_state = threading.local()


def current_apartment() -> ApartmentModel:
    """
    Apartment recorded by :func:`com_apartment` for the calling thread.

    A thread that called CoInitializeEx on its own reports NONE here. Such a
    thread can enter ``com_apartment(ApartmentModel.STA)`` without an
    initializer to record the apartment it is already in.
    """
    stack = getattr(_state, "stack", None)
    if not stack:
        return ApartmentModel.NONE
    return stack[-1]


@contextmanager
def com_apartment(
    model: ApartmentModel = ApartmentModel.STA,
    initializer: Optional["ComInitializer"] = None,
) -> Iterator[ApartmentModel]:
    """Initialize COM on the calling thread for the duration of the block."""
    if model is ApartmentModel.NONE:
        raise ValueError("com_apartment() needs STA or MTA")

    if initializer is not None:
        initializer.initialize(model)
    stack = getattr(_state, "stack", None)
    if stack is None:
        stack = _state.stack = []
    stack.append(model)
    try:
        yield model
    finally:
        stack.pop()
        if initializer is not None:
            initializer.uninitialize()


def run_in_sta_thread(
    func: Callable[..., T],
    *args: Any,
    initializer: Optional["ComInitializer"] = None,
    name: str = "nomex-sta-worker",
    **kwargs: Any,
) -> T:
    """
    Run *func* on a new STA thread and wait for it.

    Exceptions raised by *func* are re-raised in the calling thread.
    WorkerThreadError is raised when the thread cannot be started at all.
    """
    outcome: dict[str, Any] = {}

    def _target() -> None:
        try:
            with com_apartment(ApartmentModel.STA, initializer):
                outcome["result"] = func(*args, **kwargs)
        except BaseException as exc:  # handed back to the caller below
            outcome["error"] = exc

    worker = threading.Thread(target=_target, name=name, daemon=True)
    try:
        worker.start()
    except RuntimeError as exc:
        raise WorkerThreadError(f"Could not start worker thread {name!r}: {exc}") from exc

    logger.debug("Started %s", worker.name)
    worker.join()

    if "error" in outcome:
        raise outcome["error"]
    return outcome["result"]
