"""
nomex_meta/tests/test_application_locator.py
"""

from __future__ import annotations

import unittest

from nomex_meta.exceptions.errors import UnavailableError
from nomex_meta.logic.application_locator import ApplicationLocator
from nomex_meta.tests.fakes import FakeAutomation, FakeServer


class _StartingServer(FakeServer):
    """Rejects calls while it is still starting up."""

    @property
    def display_alerts(self) -> bool:
        return True

    @display_alerts.setter
    def display_alerts(self, value: bool) -> None:
        raise RuntimeError("Call was rejected by callee")


class TestApplicationLocator(unittest.TestCase):
    def test_attaches_to_running_instance_without_hiding_it(self) -> None:
        running = FakeServer(visible=True)
        automation = FakeAutomation(running=running, launchable=FakeServer())
        locator = ApplicationLocator(automation)

        self.assertIs(locator.acquire(), running)
        self.assertTrue(running.visible)
        self.assertFalse(running.display_alerts)
        self.assertEqual(automation.launch_calls, 0)
        self.assertFalse(locator.launched)

    def test_hides_running_instance_when_configured(self) -> None:
        running = FakeServer(visible=True)
        locator = ApplicationLocator(FakeAutomation(running=running), hide_running_instance=True)
        locator.acquire()
        self.assertFalse(running.visible)

    def test_launches_hidden_instance_when_none_running(self) -> None:
        new = FakeServer(visible=True)
        automation = FakeAutomation(launchable=new)
        locator = ApplicationLocator(automation)

        self.assertIs(locator.acquire(), new)
        self.assertFalse(new.visible)
        self.assertFalse(new.display_alerts)
        self.assertTrue(locator.launched)

    def test_discovery_error_falls_back_to_launch(self) -> None:
        new = FakeServer()
        automation = FakeAutomation(launchable=new, discover_error=OSError("ole32 hiccup"))
        self.assertIs(ApplicationLocator(automation).acquire(), new)

    def test_unavailable_when_neither_works(self) -> None:
        locator = ApplicationLocator(FakeAutomation())
        with self.assertRaises(UnavailableError) as ctx:
            locator.acquire()
        self.assertIsInstance(ctx.exception.__cause__, OSError)

    def test_handle_is_reused(self) -> None:
        automation = FakeAutomation(launchable=FakeServer())
        locator = ApplicationLocator(automation)
        first = locator.acquire()
        self.assertIs(locator.acquire(), first)
        self.assertEqual(automation.discover_calls, 1)
        self.assertEqual(automation.launch_calls, 1)

    def test_unresponsive_handle_is_replaced(self) -> None:
        stale = FakeServer()
        fresh = FakeServer()
        automation = FakeAutomation(running=stale)
        locator = ApplicationLocator(automation)
        locator.acquire()
        stale.responsive = False
        automation.running = fresh
        self.assertIs(locator.acquire(), fresh)

    def test_release_quits_only_launched_instance(self) -> None:
        running = FakeServer()
        locator = ApplicationLocator(FakeAutomation(running=running))
        locator.acquire()
        locator.release()
        self.assertEqual(running.quit_calls, 0)

        new = FakeServer()
        locator = ApplicationLocator(FakeAutomation(launchable=new))
        locator.acquire()
        locator.release()
        self.assertEqual(new.quit_calls, 1)
        self.assertFalse(locator.launched)

    def test_release_keeps_launched_instance_when_configured(self) -> None:
        new = FakeServer()
        locator = ApplicationLocator(FakeAutomation(launchable=new), quit_launched_instance=False)
        locator.acquire()
        locator.release()
        self.assertEqual(new.quit_calls, 0)

    def test_launched_instance_rejecting_setup_is_quit(self) -> None:
        new = _StartingServer()
        automation = FakeAutomation(launchable=new)
        locator = ApplicationLocator(automation)

        with self.assertRaises(UnavailableError):
            locator.acquire()
        locator.release()

        self.assertEqual(new.quit_calls, 1)
        self.assertFalse(locator.launched)

        # the next file starts over instead of reusing a half-configured instance
        with self.assertRaises(UnavailableError):
            locator.acquire()
        self.assertEqual(automation.launch_calls, 2)
        self.assertEqual(new.quit_calls, 2)


if __name__ == "__main__":
    unittest.main()
