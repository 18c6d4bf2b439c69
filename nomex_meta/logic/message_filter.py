"""
Reentrancy guard for calls into the automation server.

While a COM call into the CAD application is outstanding, the application may
call back into our apartment, or reject the call because it is busy. The
`RetryPolicy` answers the three IMessageFilter questions:

    HandleInComingCall  -> always SERVERCALL_ISHANDLED
    RetryRejectedCall   -> retry after `retry_delay_ms` for SERVERCALL_RETRYLATER,
                           cancel (-1) for anything else
    MessagePending      -> PENDINGMSG_WAITDEFPROCESS

`ReentrancyGuard.activate()` installs the policy for the calling thread and
puts the previous one back on exit.
"""

from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Iterator

from nomex_meta.exceptions.errors import ThreadAffinityError
from nomex_meta.logic.apartment import ApartmentModel, current_apartment
from nomex_meta.logic.capabilities import ConcurrencyPolicyHost

logger = logging.getLogger(__name__)

# SERVERCALL
SERVERCALL_ISHANDLED = 0
SERVERCALL_REJECTED = 1
SERVERCALL_RETRYLATER = 2

# PENDINGMSG
PENDINGMSG_CANCELCALL = 0
PENDINGMSG_WAITNOPROCESS = 1
PENDINGMSG_WAITDEFPROCESS = 2

CANCEL_CALL = -1


@dataclass(frozen=True)
class RetryPolicy:
    """
    Constant-backoff retry for calls the server rejected as busy.

    max_retry_window_ms: stop retrying once a call has been pending that
    long (0 disables the cap).
    """
    retry_delay_ms: int = 99
    max_retry_window_ms: int = 0

    def __post_init__(self) -> None:
        # RetryRejectedCall: 0..99 retries at once, >= 100 waits that many ms, -1 cancels
        if self.retry_delay_ms < 0:
            raise ValueError("retry_delay_ms must be >= 0")
        if self.max_retry_window_ms < 0:
            raise ValueError("max_retry_window_ms must be >= 0")

    def handle_incoming_call(self, call_type: int, caller: Any, tick_count: int, interface_info: Any) -> int:
        return SERVERCALL_ISHANDLED

    def retry_rejected_call(self, callee: Any, tick_count: int, reject_type: int) -> int:
        if reject_type != SERVERCALL_RETRYLATER:
            return CANCEL_CALL
        if self.max_retry_window_ms and tick_count >= self.max_retry_window_ms:
            logger.warning("Automation server still busy after %d ms, giving up", tick_count)
            return CANCEL_CALL
        return self.retry_delay_ms

    def message_pending(self, callee: Any, tick_count: int, pending_type: int) -> int:
        return PENDINGMSG_WAITDEFPROCESS


class ReentrancyGuard:
    """Scoped installation of a `RetryPolicy` on the calling STA thread."""

    def __init__(self, host: ConcurrencyPolicyHost, policy: RetryPolicy | None = None) -> None:
        self._host = host
        self.policy = policy or RetryPolicy()
        self._local = threading.local()

    @property
    def active(self) -> bool:
        return getattr(self._local, "depth", 0) > 0

    @contextmanager
    def activate(self) -> Iterator["ReentrancyGuard"]:
        apartment = current_apartment()
        if apartment is not ApartmentModel.STA:
            raise ThreadAffinityError(
                "Unable to register message filter because the current thread "
                f"apartment state is not STA (got {apartment.value})."
            )

        depth = getattr(self._local, "depth", 0)
        if depth == 0:
            self._local.previous = self._host.install(self.policy)
            logger.debug("Message filter installed on %s", threading.current_thread().name)
        self._local.depth = depth + 1
        try:
            yield self
        finally:
            self._local.depth -= 1
            if self._local.depth == 0:
                previous = self._local.previous
                self._local.previous = None
                self._host.restore(previous)
                logger.debug("Message filter revoked on %s", threading.current_thread().name)
