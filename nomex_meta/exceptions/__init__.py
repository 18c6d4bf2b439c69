from .errors import (
    NomexError,
    NotFoundError,
    PropertyReadError,
    ThreadAffinityError,
    UnavailableError,
    WorkerThreadError,
)

__all__ = [
    "NomexError",
    "NotFoundError",
    "PropertyReadError",
    "ThreadAffinityError",
    "UnavailableError",
    "WorkerThreadError",
]
