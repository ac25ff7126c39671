"""Tests for pipeline.config -- defaults file and Settings."""

import dataclasses
import json
import os
import tempfile
import unittest
from unittest import mock

from pipeline.config import DEFAULTS, Settings, config_path, load_config
from pipeline.errors import ConfigError
from pipeline.request import Credentials
from pipeline.scheduler import ErrorPolicy


class TestConfigDefaults(unittest.TestCase):
    def test_defaults_have_required_keys(self):
        for key in ("interval", "remote_write_url", "ping_count", "download_bytes",
                    "connections", "server", "server_limit", "on_error",
                    "strict_status", "log_level"):
            self.assertIn(key, DEFAULTS)

    def test_default_values(self):
        self.assertEqual(DEFAULTS["interval"], 30)
        self.assertEqual(DEFAULTS["remote_write_url"], "http://localhost:9090/api/v1/write")
        self.assertEqual(DEFAULTS["ping_count"], 25)
        self.assertEqual(DEFAULTS["download_bytes"], 10_000_000)
        self.assertEqual(DEFAULTS["on_error"], "stop")

    def test_no_credentials_in_defaults(self):
        self.assertNotIn("username", DEFAULTS)
        self.assertNotIn("password", DEFAULTS)


class TestLoadConfig(unittest.TestCase):
    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.path = os.path.join(self._tmp.name, "config.json")

    def tearDown(self):
        self._tmp.cleanup()

    def _write(self, data):
        with open(self.path, "w", encoding="utf-8") as f:
            f.write(data if isinstance(data, str) else json.dumps(data))

    def test_load_defaults_when_missing(self):
        with mock.patch("pipeline.config._config_path", return_value=self.path):
            self.assertEqual(load_config(), DEFAULTS)

    def test_file_overrides_defaults(self):
        self._write({"interval": 5, "server": 42})
        with mock.patch("pipeline.config._config_path", return_value=self.path):
            cfg = load_config()
        self.assertEqual(cfg["interval"], 5)
        self.assertEqual(cfg["server"], 42)
        # untouched keys keep their defaults
        self.assertEqual(cfg["ping_count"], 25)

    def test_explicit_path(self):
        self._write({"on_error": "continue"})
        self.assertEqual(load_config(self.path)["on_error"], "continue")

    def test_unknown_keys_ignored(self):
        self._write({"password": "hunter2", "username": "alice", "plan": 100})
        cfg = load_config(self.path)
        self.assertNotIn("password", cfg)
        self.assertNotIn("username", cfg)
        self.assertNotIn("plan", cfg)

    def test_corrupt_file_returns_defaults(self):
        self._write("NOT JSON")
        with mock.patch("pipeline.config._config_path", return_value=self.path):
            self.assertEqual(load_config(), DEFAULTS)

    def test_non_object_returns_defaults(self):
        self._write([1, 2, 3])
        with mock.patch("pipeline.config._config_path", return_value=self.path):
            self.assertEqual(load_config(), DEFAULTS)

    def test_explicit_missing_file(self):
        with self.assertRaises(ConfigError):
            load_config(os.path.join(self._tmp.name, "nope.json"))

    def test_explicit_corrupt_file(self):
        self._write("NOT JSON")
        with self.assertRaises(ConfigError) as ctx:
            load_config(self.path)
        self.assertIsInstance(ctx.exception.__cause__, json.JSONDecodeError)

    def test_explicit_non_object(self):
        self._write("[1, 2, 3]")
        with self.assertRaises(ConfigError):
            load_config(self.path)

    def test_explicit_file_rejects_wrong_types(self):
        cases = [
            {"log_level": None},
            {"ping_count": None},
            {"server_limit": "5"},
            {"download_bytes": 1.5},
            {"connections": True},
            {"strict_status": "false"},
            {"interval": "30"},
        ]
        for data in cases:
            with self.subTest(data=data):
                self._write(data)
                with self.assertRaises(ConfigError):
                    load_config(self.path)

    def test_default_file_drops_wrong_types(self):
        self._write({"ping_count": None, "strict_status": "false", "interval": 7})
        with mock.patch("pipeline.config._config_path", return_value=self.path):
            with self.assertLogs("pipeline.config", level="WARNING"):
                cfg = load_config()
        self.assertEqual(cfg["ping_count"], DEFAULTS["ping_count"])
        self.assertIs(cfg["strict_status"], False)
        self.assertEqual(cfg["interval"], 7)

    def test_server_may_be_null(self):
        self._write({"server": None, "strict_status": True})
        cfg = load_config(self.path)
        self.assertIsNone(cfg["server"])
        self.assertIs(cfg["strict_status"], True)

    def test_defaults_not_mutated(self):
        self._write({"interval": 7})
        load_config(self.path)
        self.assertEqual(DEFAULTS["interval"], 30)

    def test_config_path(self):
        self.assertTrue(config_path().endswith(os.path.join(".speedwatch", "config.json")))


class TestSettings(unittest.TestCase):
    def _settings(self):
        return Settings(
            remote_write_url="http://localhost:9090/api/v1/write",
            credentials=Credentials("alice", "hunter2"),
        )

    def test_defaults(self):
        s = self._settings()
        self.assertEqual(s.interval, 30)
        self.assertIs(s.on_error, ErrorPolicy.STOP)
        self.assertFalse(s.strict_status)
        self.assertIsNone(s.server)

    def test_frozen(self):
        with self.assertRaises(dataclasses.FrozenInstanceError):
            self._settings().interval = 1

    def test_repr_hides_password(self):
        self.assertNotIn("hunter2", repr(self._settings()))


if __name__ == "__main__":
    unittest.main()
