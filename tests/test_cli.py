"""Tests for the CLI: flag parsing, settings merge, and end-to-end runs."""

import contextlib
import io
import json
import unittest
from unittest import mock

from helpers import FakeTransport, make_server

import speedtest
from netspeed.api import ClientInfo
from netspeed.catalog import ServerCatalog
from netspeed.config import DEFAULTS, Settings
from netspeed.errors import NoServersAvailable, ServerNotFound
from netspeed.stats import Algorithm, TransferSample


class TestParser(unittest.TestCase):
    def test_defaults_are_unset(self):
        args = speedtest.build_parser().parse_args([])
        self.assertIsNone(args.algo)
        self.assertIsNone(args.numclosest)
        self.assertIsNone(args.server)
        self.assertFalse(args.report)

    def test_short_and_long_aliases(self):
        args = speedtest.build_parser().parse_args(
            ["-a", "avg", "--nc", "5", "--nl", "7", "--rc", ",", "-r", "-s", "Berlin", "--do"]
        )
        self.assertEqual(args.algo, "avg")
        self.assertEqual(args.numclosest, 5)
        self.assertEqual(args.numlatency, 7)
        self.assertEqual(args.reportchar, ",")
        self.assertTrue(args.report)
        self.assertEqual(args.server, "Berlin")
        self.assertTrue(args.downloadonly)

    def test_invalid_algorithm_rejected(self):
        with contextlib.redirect_stderr(io.StringIO()):
            with self.assertRaises(SystemExit):
                speedtest.build_parser().parse_args(["--algo", "median"])

    def test_download_and_upload_only_exclusive(self):
        with contextlib.redirect_stderr(io.StringIO()):
            with self.assertRaises(SystemExit):
                speedtest.build_parser().parse_args(["--downloadonly", "--uploadonly"])

    def test_output_modes(self):
        parser = speedtest.build_parser()
        self.assertEqual(speedtest._output_mode(parser.parse_args([])), speedtest.DASHBOARD)
        self.assertEqual(speedtest._output_mode(parser.parse_args(["-r"])), speedtest.REPORT)
        self.assertEqual(speedtest._output_mode(parser.parse_args(["-q"])), speedtest.QUIET)
        self.assertEqual(speedtest._output_mode(parser.parse_args(["-j"])), speedtest.JSON)
        self.assertEqual(speedtest._output_mode(parser.parse_args(["--simple"])), speedtest.SIMPLE)


class TestBuildSettings(unittest.TestCase):
    def test_flags_override_config(self):
        args = speedtest.build_parser().parse_args(["--algo", "avg", "--nc", "4"])
        config = dict(DEFAULTS, algorithm="max", num_closest=9, report_char=";")
        settings = speedtest._build_settings(args, config)
        self.assertIs(settings.algorithm, Algorithm.AVG)
        self.assertEqual(settings.num_closest, 4)
        self.assertEqual(settings.report_char, ";")

    def test_server_query_falls_back_to_config(self):
        parser = speedtest.build_parser()
        self.assertEqual(speedtest._server_query(parser.parse_args([]), {"server": 1234}), "1234")
        self.assertEqual(speedtest._server_query(parser.parse_args(["-s", "Oslo"]), {"server": 1}), "Oslo")
        self.assertIsNone(speedtest._server_query(parser.parse_args([]), {"server": None}))


# ---------------------------------------------------------------------------
# End-to-end with fake network
# ---------------------------------------------------------------------------

CLIENT = ClientInfo(ip="203.0.113.7", isp="Example ISP", lat=0.0, lon=0.0, country="TL")


class _FakeAPI:
    def __init__(self, catalog):
        self._catalog = catalog

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        return None

    async def get_client_info(self):
        return CLIENT

    async def fetch_servers(self):
        return self._catalog


class TestRunSpeedtest(unittest.IsolatedAsyncioTestCase):
    def setUp(self):
        self.server = make_server(1, name="Oslo")
        self.settings = Settings(
            download_sizes=(350,),
            upload_sizes=(1000,),
            latency_timeout=0.05,
            transfer_timeout=0.05,
        )
        self.transport = FakeTransport(
            latencies={self.server.latency_url: [0.010] * 5},
            downloads={self.server.download_url(350): TransferSample(1_250_000, 1.0)},
            uploads={1000: TransferSample(625_000, 1.0)},
        )

    async def _run(self, catalog=None, **kwargs):
        catalog = ServerCatalog([self.server]) if catalog is None else catalog
        out = io.StringIO()
        with mock.patch.object(speedtest, "SpeedtestAPI", lambda: _FakeAPI(catalog)), \
                mock.patch.object(speedtest, "HttpTransport", lambda limit: self.transport), \
                contextlib.redirect_stdout(out), \
                contextlib.redirect_stderr(io.StringIO()):
            code = await speedtest.run_speedtest(self.settings, **kwargs)
        return code, out.getvalue().splitlines()

    async def test_report_mode(self):
        code, lines = await self._run(mode=speedtest.REPORT)
        self.assertEqual(code, 0)
        self.assertEqual(lines, ["1|ISP 1 (Oslo, Testland)|0.00", "10.00|10000|5000"])

    async def test_report_mode_upload_failure_keeps_download(self):
        self.transport.uploads.clear()
        code, lines = await self._run(mode=speedtest.REPORT)
        self.assertEqual(code, 7)
        self.assertEqual(lines[-1], "10.00|10000|")

    async def test_download_only(self):
        code, lines = await self._run(mode=speedtest.REPORT, run_upload=False)
        self.assertEqual(code, 0)
        self.assertEqual(lines[-1], "10.00|10000|0")
        self.assertFalse(any(c[0] == "upload" for c in self.transport.calls))

    async def test_ping_only(self):
        code, lines = await self._run(mode=speedtest.QUIET, ping_only=True)
        self.assertEqual(code, 0)
        self.assertEqual(lines, ["Ping (Lowest): 10.00 ms"])
        self.assertTrue(all(c[0] == "latency" for c in self.transport.calls))

    async def test_quiet_mode(self):
        _, lines = await self._run(mode=speedtest.QUIET)
        self.assertEqual(
            lines,
            ["Ping (Lowest): 10.00 ms | Download (Max): 10.00 Mbps | Upload (Max): 5.00 Mbps"],
        )

    async def test_json_mode(self):
        code, lines = await self._run(mode=speedtest.JSON)
        data = json.loads("\n".join(lines))
        self.assertEqual(code, 0)
        self.assertEqual(data["server"]["id"], 1)
        self.assertAlmostEqual(data["download"]["speed_mbps"], 10.0)
        self.assertAlmostEqual(data["upload"]["speed_mbps"], 5.0)
        self.assertNotIn("errors", data)

    async def test_explicit_server_not_found(self):
        with self.assertRaises(ServerNotFound):
            await self._run(mode=speedtest.REPORT, server_query="Tokyo")

    async def test_empty_catalog(self):
        with self.assertRaises(NoServersAvailable):
            await self._run(catalog=ServerCatalog(), mode=speedtest.REPORT)


class TestMain(unittest.TestCase):
    def test_invalid_setting_exit_code(self):
        with mock.patch.object(speedtest, "configure_logging"), \
                mock.patch.object(speedtest, "load_config", return_value=dict(DEFAULTS)), \
                contextlib.redirect_stderr(io.StringIO()):
            with self.assertRaises(SystemExit) as ctx:
                speedtest.main(["--nl", "0"])
        self.assertEqual(ctx.exception.code, 2)

    def test_error_exit_code(self):
        async def _fail(*args, **kwargs):
            raise NoServersAvailable("none")

        with mock.patch.object(speedtest, "configure_logging"), \
                mock.patch.object(speedtest, "load_config", return_value=dict(DEFAULTS)), \
                mock.patch.object(speedtest, "run_speedtest", _fail), \
                contextlib.redirect_stderr(io.StringIO()):
            with self.assertRaises(SystemExit) as ctx:
                speedtest.main(["-r"])
        self.assertEqual(ctx.exception.code, NoServersAvailable.exit_code)

    def test_zero_closest_exits_no_servers(self):
        catalog = ServerCatalog([make_server(1)])
        with mock.patch.object(speedtest, "configure_logging"), \
                mock.patch.object(speedtest, "load_config", return_value=dict(DEFAULTS)), \
                mock.patch.object(speedtest, "SpeedtestAPI", lambda: _FakeAPI(catalog)), \
                mock.patch.object(speedtest, "HttpTransport", lambda limit: FakeTransport()), \
                contextlib.redirect_stdout(io.StringIO()), \
                contextlib.redirect_stderr(io.StringIO()):
            with self.assertRaises(SystemExit) as ctx:
                speedtest.main(["-r", "--nc", "0"])
        self.assertEqual(ctx.exception.code, 5)


if __name__ == "__main__":
    unittest.main()
