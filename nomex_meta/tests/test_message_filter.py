"""
nomex_meta/tests/test_message_filter.py

Retry policy answers, guard activation rules and the STA worker thread.
"""

from __future__ import annotations

import threading
import unittest

from nomex_meta.exceptions.errors import ThreadAffinityError
from nomex_meta.logic.apartment import (
    ApartmentModel,
    com_apartment,
    current_apartment,
    run_in_sta_thread,
)
from nomex_meta.logic.message_filter import (
    CANCEL_CALL,
    PENDINGMSG_WAITDEFPROCESS,
    SERVERCALL_ISHANDLED,
    SERVERCALL_REJECTED,
    SERVERCALL_RETRYLATER,
    ReentrancyGuard,
    RetryPolicy,
)
from nomex_meta.tests.fakes import FakeInitializer, FakePolicyHost


class TestRetryPolicy(unittest.TestCase):
    def test_incoming_calls_are_always_handled(self) -> None:
        policy = RetryPolicy()
        self.assertEqual(policy.handle_incoming_call(0, None, 0, None), SERVERCALL_ISHANDLED)
        self.assertEqual(policy.handle_incoming_call(3, None, 5000, None), SERVERCALL_ISHANDLED)

    def test_retry_later_is_retried_with_constant_delay(self) -> None:
        policy = RetryPolicy(retry_delay_ms=99)
        self.assertEqual(policy.retry_rejected_call(None, 10, SERVERCALL_RETRYLATER), 99)
        self.assertEqual(policy.retry_rejected_call(None, 60_000, SERVERCALL_RETRYLATER), 99)

    def test_other_rejections_cancel(self) -> None:
        policy = RetryPolicy()
        self.assertEqual(policy.retry_rejected_call(None, 10, SERVERCALL_REJECTED), CANCEL_CALL)

    def test_retry_window_cap(self) -> None:
        policy = RetryPolicy(retry_delay_ms=150, max_retry_window_ms=1000)
        self.assertEqual(policy.retry_rejected_call(None, 999, SERVERCALL_RETRYLATER), 150)
        self.assertEqual(policy.retry_rejected_call(None, 1000, SERVERCALL_RETRYLATER), CANCEL_CALL)

    def test_message_pending_waits(self) -> None:
        self.assertEqual(RetryPolicy().message_pending(None, 0, 0), PENDINGMSG_WAITDEFPROCESS)

    def test_negative_delay_rejected(self) -> None:
        with self.assertRaises(ValueError):
            RetryPolicy(retry_delay_ms=-1)


class TestReentrancyGuard(unittest.TestCase):
    def test_requires_sta(self) -> None:
        host = FakePolicyHost()
        guard = ReentrancyGuard(host)
        self.assertIs(current_apartment(), ApartmentModel.NONE)
        with self.assertRaises(ThreadAffinityError):
            with guard.activate():
                pass
        with com_apartment(ApartmentModel.MTA):
            with self.assertRaises(ThreadAffinityError):
                with guard.activate():
                    pass
        self.assertEqual(host.installs, [])

    def test_installs_and_restores_previous(self) -> None:
        host = FakePolicyHost(existing="old-filter")
        guard = ReentrancyGuard(host)
        with com_apartment(ApartmentModel.STA):
            with guard.activate():
                self.assertIs(host.current, guard.policy)
                self.assertTrue(guard.active)
        self.assertEqual(host.current, "old-filter")
        self.assertEqual(host.restores, ["old-filter"])
        self.assertFalse(guard.active)

    def test_restores_on_exception(self) -> None:
        host = FakePolicyHost()
        guard = ReentrancyGuard(host)
        with com_apartment(ApartmentModel.STA):
            with self.assertRaises(RuntimeError):
                with guard.activate():
                    raise RuntimeError("call failed")
        self.assertIsNone(host.current)
        self.assertEqual(len(host.restores), 1)

    def test_nested_activation_installs_once(self) -> None:
        host = FakePolicyHost()
        guard = ReentrancyGuard(host)
        with com_apartment(ApartmentModel.STA):
            with guard.activate():
                with guard.activate():
                    self.assertIs(host.current, guard.policy)
                self.assertIs(host.current, guard.policy)
        self.assertEqual(len(host.installs), 1)
        self.assertEqual(len(host.restores), 1)


class TestStaWorker(unittest.TestCase):
    def test_runs_on_separate_sta_thread(self) -> None:
        init = FakeInitializer()
        caller = threading.current_thread().name

        def work(value: int) -> tuple:
            return value * 2, current_apartment(), threading.current_thread().name

        doubled, apartment, thread_name = run_in_sta_thread(work, 21, initializer=init)
        self.assertEqual(doubled, 42)
        self.assertIs(apartment, ApartmentModel.STA)
        self.assertNotEqual(thread_name, caller)
        self.assertEqual(init.calls, ["init:sta", "uninit"])
        self.assertIs(current_apartment(), ApartmentModel.NONE)

    def test_exception_is_reraised_in_caller(self) -> None:
        def work() -> None:
            raise ThreadAffinityError("boom")

        with self.assertRaises(ThreadAffinityError):
            run_in_sta_thread(work)

    def test_failed_initialization_surfaces(self) -> None:
        init = FakeInitializer(fail=True)
        with self.assertRaises(OSError):
            run_in_sta_thread(lambda: None, initializer=init)
        self.assertEqual(init.calls, [])


if __name__ == "__main__":
    unittest.main()
