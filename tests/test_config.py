import unittest
from dataclasses import FrozenInstanceError
from unittest.mock import patch

from tests._test_path import SRC  # noqa: F401

from magickcmd.engine import config as cfg
from magickcmd.engine.config import EngineConfig


class TestEngineConfig(unittest.TestCase):
    def test_defaults(self):
        c = EngineConfig()
        self.assertIsNone(c.binary)
        self.assertIsNone(c.timeout)
        self.assertEqual(c.command_for("convert"), ["convert"])

    def test_frozen(self):
        with self.assertRaises(FrozenInstanceError):
            EngineConfig().timeout = 3  # type: ignore[misc]

    def test_prefix_only_for_engine_commands(self):
        c = EngineConfig(binary="magick")
        self.assertEqual(c.command_for("identify"), ["magick", "identify"])
        self.assertEqual(c.command_for("mogrify"), ["magick", "mogrify"])
        self.assertEqual(c.command_for("file"), ["file"])

    def test_from_env(self):
        c = EngineConfig.from_env({"MAGICKCMD_BINARY": "/opt/im7/magick", "MAGICKCMD_TIMEOUT": "2.5"})
        self.assertEqual(c.binary, "/opt/im7/magick")
        self.assertEqual(c.timeout, 2.5)

    def test_bad_timeout(self):
        for raw in ["soon", "0", "-1"]:
            with self.subTest(raw=raw):
                with self.assertRaises(ValueError) as ctx:
                    EngineConfig.from_env({"MAGICKCMD_BINARY": "magick", "MAGICKCMD_TIMEOUT": raw})
                self.assertIn("MAGICKCMD_TIMEOUT", str(ctx.exception))

    def test_detect_prefers_legacy_binaries(self):
        with patch.object(cfg.shutil, "which", side_effect=lambda name: f"/usr/bin/{name}"):
            self.assertIsNone(EngineConfig.detect())

    def test_detect_falls_back_to_magick(self):
        with patch.object(cfg.shutil, "which", side_effect=lambda name: "/usr/bin/magick" if name == "magick" else None):
            self.assertEqual(EngineConfig.detect(), "magick")
            self.assertEqual(EngineConfig.from_env({}).binary, "magick")

    def test_detect_nothing_installed(self):
        with patch.object(cfg.shutil, "which", return_value=None):
            self.assertIsNone(EngineConfig.detect())
