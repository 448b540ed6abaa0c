"""
core/tests/test_config_service.py

Layering and typing of the INI/env configuration.
"""

from __future__ import annotations

import tempfile
import unittest
from pathlib import Path

from core.config.config_service import ConfigService
from signing.models.editor_config import EditorConfig
from signing.models.signing_enums import CoordinateMode


class TestConfigService(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.dir = Path(self._tmp.name)
        self.defaults = self.dir / "defaults.ini"
        self.machine = self.dir / "config.ini"
        self.user = self.dir / "user.ini"

    def tearDown(self) -> None:
        self._tmp.cleanup()

    def _service(self, environ=None) -> ConfigService:
        return ConfigService(defaults_ini=self.defaults, machine_ini=self.machine, user_ini=self.user,
                             environ=environ or {})

    def test_embedded_defaults(self) -> None:
        svc = self._service()
        self.assertEqual(svc.placement.signature_width, 130.0)
        self.assertEqual(svc.placement.signature_height, 65.0)
        self.assertEqual(svc.placement.date_format, "%m/%d/%Y")
        self.assertTrue(svc.placement.enable_undo)
        self.assertEqual(svc.api.base_url, "")
        self.assertEqual(svc.meta_source("Placement", "date_format")["layer"], "code")

    def test_layer_precedence(self) -> None:
        self.defaults.write_text("[Api]\nbase_url = https://defaults.test\ntimeout_seconds = 5\n", encoding="utf-8")
        self.machine.write_text("[Api]\nbase_url = https://machine.test\n", encoding="utf-8")
        self.user.write_text("[Placement]\nenable_undo = no\ndate_format = %d.%m.%Y\n", encoding="utf-8")
        svc = self._service({"PDFSIGNER_API__BASE_URL": "https://env.test", "PDFSIGNER_API__TIMEOUT_SECONDS": "12"})

        self.assertEqual(svc.api.base_url, "https://machine.test")
        self.assertEqual(svc.api.timeout_seconds, 12.0)
        self.assertFalse(svc.placement.enable_undo)
        self.assertEqual(svc.placement.date_format, "%d.%m.%Y")
        self.assertEqual(svc.meta_source("Api", "timeout_seconds")["layer"], "env")
        self.assertEqual(svc.meta_source("Api", "base_url")["layer"], "machine")

    def test_get_with_cast(self) -> None:
        svc = self._service({"PDFSIGNER_PLACEMENT__SIGNATURE_WIDTH": "150"})
        self.assertEqual(svc.get("Placement", "signature_width", cast=float), 150.0)
        self.assertIsNone(svc.get("Placement", "missing"))

    def test_reload_picks_up_changes(self) -> None:
        svc = self._service()
        self.machine.write_text("[Placement]\ntemplate_coordinate_mode = normalized\n", encoding="utf-8")
        svc.reload()
        self.assertEqual(svc.placement.template_coordinate_mode, "normalized")

    def test_editor_config_from_settings(self) -> None:
        self.machine.write_text(
            "[Api]\nbase_url = https://api.test\n[Placement]\nfixed_coordinate_mode = percent\n", encoding="utf-8")
        cfg = EditorConfig.from_settings(self._service(), signer_name="Ann", enable_undo=False)
        self.assertEqual(cfg.fetch_config.base_url, "https://api.test")
        self.assertEqual(cfg.fixed_coordinate_mode, CoordinateMode.PERCENT)
        self.assertEqual(cfg.template_coordinate_mode, CoordinateMode.PERCENT)
        self.assertEqual(cfg.signer_name, "Ann")
        self.assertFalse(cfg.enable_undo)


if __name__ == "__main__":
    unittest.main()
