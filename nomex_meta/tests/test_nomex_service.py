"""
nomex_meta/tests/test_nomex_service.py

End-to-end wiring on the STA worker thread, with fake COM collaborators.
"""

from __future__ import annotations

import tempfile
import unittest
from pathlib import Path

from core.config.config_service import ConfigService
from nomex_meta.exceptions.errors import ThreadAffinityError
from nomex_meta.logic.apartment import ApartmentModel, com_apartment
from nomex_meta.logic.batch_resolver import file_path_for
from nomex_meta.logic.nomex_service import NomexLayerService, ServiceSettings
from nomex_meta.tests.fakes import (
    FakeAutomation,
    FakeDocument,
    FakeInitializer,
    FakePolicyHost,
    FakeServer,
    FakeStore,
)


class TestNomexLayerService(unittest.TestCase):
    def setUp(self) -> None:
        tmp = tempfile.TemporaryDirectory()
        self.addCleanup(tmp.cleanup)
        self.root = Path(tmp.name)
        self.store = FakeStore()
        self.launched = FakeServer()
        self.automation = FakeAutomation(launchable=self.launched)
        self.host = FakePolicyHost()
        self.init = FakeInitializer()
        self.service = NomexLayerService(
            automation=self.automation,
            store=self.store,
            policy_host=self.host,
            initializer=self.init,
        )

    def test_collect_runs_on_sta_worker(self) -> None:
        path = file_path_for("7xxxyy01", self.root)
        path.write_bytes(b"")
        self.store.files[str(path)] = [("Custom", [("NOMEX_LAYERS_TOP", "3")])]

        result = self.service.collect(["7xxxyy01", "7xxxyy99"], self.root)

        self.assertEqual(result.lines, ["7xxxyy01: NOMEX_LAYERS_TOP: 3"])
        self.assertEqual(result.failed_identifiers, ["7xxxyy99"])
        self.assertEqual(self.init.calls, ["init:sta", "uninit"])
        self.assertEqual(self.automation.launch_calls, 0)

    def test_launched_instance_is_quit_after_batch(self) -> None:
        a = file_path_for("A1", self.root)
        b = file_path_for("B2", self.root)
        for p, value in ((a, 1), (b, 2)):
            p.write_bytes(b"")
            self.launched.documents[str(p)] = FakeDocument([("Custom", [("NOMEX_LAYERS", value)])])

        result = self.service.collect(["A1", "B2"], self.root)

        self.assertEqual(result.lines, ["A1: NOMEX_LAYERS: 1", "B2: NOMEX_LAYERS: 2"])
        self.assertEqual(self.automation.launch_calls, 1)
        self.assertEqual(self.launched.quit_calls, 1)
        # one install per Tier 2 read plus one around Quit()
        self.assertEqual(len(self.host.installs), 3)
        self.assertIsNone(self.host.current)

    def test_current_thread_needs_recorded_apartment(self) -> None:
        path = file_path_for("A1", self.root)
        path.write_bytes(b"")
        self.launched.documents[str(path)] = FakeDocument([("Custom", [("NOMEX_LAYERS", 4)])])

        with self.assertRaises(ThreadAffinityError):
            self.service.collect_in_current_thread(["A1"], self.root)
        self.assertEqual(self.automation.launch_calls, 0)

        # COM already initialized by the caller: only record the apartment
        with com_apartment(ApartmentModel.STA):
            result = self.service.collect_in_current_thread(["A1"], self.root)
        self.assertEqual(result.lines, ["A1: NOMEX_LAYERS: 4"])
        self.assertEqual(self.init.calls, [])

    def test_settings_from_config(self) -> None:
        config = ConfigService(
            environ={"NOMEX_PROPERTIES__PREFIX": "COAT", "NOMEX_RETRY__RETRY_DELAY_MS": "250"},
            defaults_ini=self.root / "none.ini",
            machine_ini=self.root / "none.ini",
            user_ini=self.root / "none.ini",
        )
        settings = ServiceSettings.from_config(config)
        self.assertEqual(settings.prefix, "COAT")
        self.assertEqual(settings.retry_delay_ms, 250)
        self.assertEqual(settings.extension, "psm")
        self.assertTrue(settings.quit_launched_instance)


if __name__ == "__main__":
    unittest.main()
