from __future__ import annotations

import tempfile
import unittest
from pathlib import Path
from unittest import mock

from PySide6.QtCore import QCoreApplication

from palets.core.config import AppConfig
from palets.main import build_services, main, shutdown_services, start_services
from palets.services.stack_inventory import INVENTORY_SNAPSHOT_NAME


class BootstrapTests(unittest.TestCase):
    @classmethod
    def setUpClass(cls) -> None:
        cls._app = QCoreApplication.instance() or QCoreApplication([])

    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.data_dir = Path(self._tmp.name)

    def tearDown(self) -> None:
        self._tmp.cleanup()

    def test_services_start_from_bundled_catalog(self) -> None:
        services = build_services(AppConfig(data_dir=str(self.data_dir)), save_config=False)
        start_services(services)
        self.assertEqual(services.store.directory, self.data_dir)
        self.assertTrue(services.albaran.selected_client)
        self.assertTrue(services.albaran.line_items.lines)
        self.assertTrue(services.cash.is_persistent)

        shutdown_services(services)
        self.assertTrue(services.store.exists(INVENTORY_SNAPSHOT_NAME))

    def test_cash_tally_session_scoped_when_disabled(self) -> None:
        config = AppConfig(data_dir=str(self.data_dir), persist_cash_tally=False)
        services = build_services(config, save_config=False)
        self.assertFalse(services.cash.is_persistent)

    def test_main_loads_logs_and_exits(self) -> None:
        config = AppConfig(data_dir=str(self.data_dir))
        with mock.patch("palets.main.setup_logging"), mock.patch(
            "palets.main._install_exception_hook"
        ), mock.patch("palets.main._install_crash_logging"), mock.patch(
            "palets.main._install_thread_exception_hook"
        ), mock.patch("palets.main._install_unraisable_hook"), mock.patch(
            "palets.main.AppConfig.load", return_value=config
        ):
            with self.assertLogs("AppLifecycle", level="INFO") as logs:
                self.assertEqual(main(), 0)
        self.assertIn("delivery notes", logs.output[0])
        self.assertTrue((self.data_dir / INVENTORY_SNAPSHOT_NAME).is_file())


if __name__ == "__main__":
    unittest.main()
