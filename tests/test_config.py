"""Tests for netspeed.config -- configuration persistence and run settings."""

import os
import tempfile
import unittest
from unittest import mock

from netspeed.config import (
    DEFAULTS,
    Settings,
    get_config_value,
    load_config,
    save_config,
    set_config_value,
)
from netspeed.constants import DOWNLOAD_SIZES, UPLOAD_SIZES
from netspeed.errors import InvalidParameter
from netspeed.stats import Algorithm


class TestConfigDefaults(unittest.TestCase):
    def test_defaults_have_required_keys(self):
        for key in ("algorithm", "num_closest", "num_latency_tests", "report_char",
                    "server", "concurrency", "latency_timeout", "transfer_timeout"):
            self.assertIn(key, DEFAULTS)


class TestLoadSaveConfig(unittest.TestCase):
    def _patched(self, tmpdir):
        path = os.path.join(tmpdir, "config.json")
        return mock.patch("netspeed.config._config_path", return_value=path), path

    def test_load_defaults_when_missing(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            patch, _ = self._patched(tmpdir)
            with patch:
                cfg = load_config()
                self.assertEqual(cfg["num_closest"], 3)
                self.assertEqual(cfg["algorithm"], "max")

    def test_save_and_load(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            patch, _ = self._patched(tmpdir)
            with patch:
                save_config({"algorithm": "avg", "server": 42})
                cfg = load_config()
                self.assertEqual(cfg["algorithm"], "avg")
                self.assertEqual(cfg["server"], 42)
                # Defaults still present
                self.assertEqual(cfg["num_latency_tests"], 5)

    def test_corrupt_file_returns_defaults(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            patch, path = self._patched(tmpdir)
            with open(path, "w") as f:
                f.write("NOT JSON")
            with patch:
                with self.assertLogs("netspeed.config", level="WARNING"):
                    cfg = load_config()
                self.assertEqual(cfg["concurrency"], 4)

    def test_non_object_returns_defaults(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            patch, path = self._patched(tmpdir)
            with open(path, "w") as f:
                f.write("[1, 2, 3]")
            with patch:
                self.assertEqual(load_config(), DEFAULTS)

    def test_get_set_value(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            patch, _ = self._patched(tmpdir)
            with patch:
                set_config_value("report_char", ",")
                self.assertEqual(get_config_value("report_char"), ",")


class TestSettings(unittest.TestCase):
    def test_defaults(self):
        s = Settings()
        self.assertIs(s.algorithm, Algorithm.MAX)
        self.assertEqual(s.num_closest, 3)
        self.assertEqual(s.num_latency_tests, 5)
        self.assertEqual(s.report_char, "|")
        self.assertEqual(s.download_sizes, DOWNLOAD_SIZES)
        self.assertEqual(s.upload_sizes, UPLOAD_SIZES)

    def test_immutable(self):
        with self.assertRaises(AttributeError):
            Settings().num_closest = 10

    def test_algorithm_string_accepted(self):
        self.assertIs(Settings(algorithm="avg").algorithm, Algorithm.AVG)

    def test_invalid_algorithm(self):
        with self.assertRaises(InvalidParameter):
            Settings(algorithm="median")

    def test_range_checks(self):
        for kwargs in (
            {"num_latency_tests": 0},
            {"num_latency_tests": -3},
            {"concurrency": 0},
            {"concurrency": 33},
            {"latency_timeout": 0},
            {"transfer_timeout": -1},
            {"report_char": ""},
            {"upload_sizes": (100, 0)},
        ):
            with self.subTest(**kwargs):
                with self.assertRaises(InvalidParameter):
                    Settings(**kwargs)

    def test_invalid_parameter_is_value_error(self):
        with self.assertRaises(ValueError):
            Settings(num_latency_tests=-1)

    def test_zero_closest_accepted(self):
        self.assertEqual(Settings(num_closest=0).num_closest, 0)

    def test_no_upper_limit_on_counts(self):
        s = Settings(num_closest=500, num_latency_tests=250)
        self.assertEqual((s.num_closest, s.num_latency_tests), (500, 250))

    def test_from_config_overrides(self):
        config = dict(DEFAULTS, algorithm="avg", num_closest=7)
        s = Settings.from_config(config, num_closest=2, report_char=None)
        self.assertIs(s.algorithm, Algorithm.AVG)
        self.assertEqual(s.num_closest, 2)
        self.assertEqual(s.report_char, "|")

    def test_from_config_coerces_types(self):
        s = Settings.from_config({"num_latency_tests": "8", "latency_timeout": "2"})
        self.assertEqual(s.num_latency_tests, 8)
        self.assertEqual(s.latency_timeout, 2.0)

    def test_from_config_bad_value(self):
        with self.assertRaises(InvalidParameter):
            Settings.from_config({"num_closest": "many"})

    def test_from_config_reads_user_file(self):
        with mock.patch("netspeed.config.load_config", return_value=dict(DEFAULTS, report_char=";")):
            self.assertEqual(Settings.from_config().report_char, ";")


if __name__ == "__main__":
    unittest.main()
