#!/usr/bin/env python3
"""
netspeed CLI -- latency, download and upload against speedtest.net servers.

Usage::

    python speedtest.py                     # rich dashboard
    python speedtest.py --simple            # plain text
    python speedtest.py --quiet             # one summary line
    python speedtest.py --report --rc ','   # machine-parsable line
    python speedtest.py --json              # JSON to stdout
    python speedtest.py --ping              # latency only
    python speedtest.py --server 1234       # explicit server (id or name)
    python speedtest.py --algo avg          # averages instead of best samples
    python speedtest.py --list              # list servers by distance
"""
from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from typing import Dict, Optional

from netspeed.api import ClientInfo, SpeedtestAPI
from netspeed.catalog import ServerCatalog
from netspeed.config import Settings, load_config
from netspeed.download import DownloadTester
from netspeed.errors import SpeedtestError, TransferFailed
from netspeed.latency import LatencyTester
from netspeed.logging_config import configure_logging
from netspeed.selector import ServerSelection, ServerSelector
from netspeed.throughput import ThroughputResult, ThroughputTester
from netspeed.transport import HttpTransport
from netspeed.upload import UploadTester
from ui.dashboard import (
    TransferProgress,
    console,
    err_console,
    print_client_info,
    print_final_results,
    print_header,
    print_latency_details,
    print_server_list,
    print_server_selection,
    print_speed_result,
)
from ui.output import (
    create_result_json,
    format_ping_line,
    format_report_line,
    format_server_report,
    format_summary_line,
    format_text_result,
)

logger = logging.getLogger("netspeed.cli")

DASHBOARD = "dashboard"
SIMPLE = "simple"
QUIET = "quiet"
REPORT = "report"
JSON = "json"


# ---------------------------------------------------------------------------
# Settings
# ---------------------------------------------------------------------------

def _build_settings(args: argparse.Namespace, config: Optional[dict] = None) -> Settings:
    """Merge CLI flags over the config file.  Raises ``InvalidParameter``."""
    return Settings.from_config(
        config,
        algorithm=args.algo,
        num_closest=args.numclosest,
        num_latency_tests=args.numlatency,
        report_char=args.reportchar,
    )


def _server_query(args: argparse.Namespace, config: dict) -> Optional[str]:
    """The --server flag, else the config file's preferred server."""
    query = args.server if args.server else config.get("server")
    return str(query) if query not in (None, "") else None


def _output_mode(args: argparse.Namespace) -> str:
    if args.json:
        return JSON
    if args.report:
        return REPORT
    if args.quiet:
        return QUIET
    if args.simple:
        return SIMPLE
    return DASHBOARD


# ---------------------------------------------------------------------------
# Core test runner
# ---------------------------------------------------------------------------

async def _run_direction(
    tester: ThroughputTester,
    selection: ServerSelection,
    mode: str,
    title: str,
    color: str,
) -> ThroughputResult:
    if mode != DASHBOARD:
        if mode == SIMPLE:
            print(f"Testing {tester.direction} speed...")
        return await tester.test(selection.server)

    console.print(f"\n[bold]Testing {tester.direction} speed...[/bold]")
    with TransferProgress(tester.direction, tester.window_count) as progress:
        tester.on_progress = progress.update
        result = await tester.test(selection.server)
    print_speed_result(result, title, color)
    return result


def _print_selection(
    selection: ServerSelection,
    client: ClientInfo,
    settings: Settings,
    mode: str,
) -> None:
    server = selection.server
    if mode == DASHBOARD:
        print_server_selection(selection, client.coordinate)
        console.print(f"\n[green]Selected server:[/green] {server}")
        print_latency_details(selection)
    elif mode == SIMPLE:
        print(f"Selected server: {server} [{server.distance_to(client.coordinate):.2f} km]")
    elif mode == REPORT:
        print(format_server_report(server, server.distance_to(client.coordinate), settings.report_char))


async def run_speedtest(
    settings: Settings,
    *,
    mode: str = DASHBOARD,
    server_query: Optional[str] = None,
    ping_only: bool = False,
    run_download: bool = True,
    run_upload: bool = True,
) -> int:
    """Execute the full speedtest sequence and return the process exit code."""

    if mode == DASHBOARD:
        print_header()
        console.print("[dim]Fetching client info and server list...[/dim]")

    async with SpeedtestAPI() as api:
        client = await api.get_client_info()
        catalog = await api.fetch_servers()

    if mode == DASHBOARD:
        print_client_info(client.ip, client.isp, client.lat, client.lon)
        console.print(f"[dim]{len(catalog)} servers known[/dim]")

    async with HttpTransport(limit=settings.concurrency * settings.concurrency) as transport:

        # -- Server selection -----------------------------------------------
        if mode == DASHBOARD:
            console.print("\n[bold]Selecting server...[/bold]")

        selector = ServerSelector(LatencyTester(transport, settings), settings)
        selection = await selector.select(catalog, client.coordinate, server_query)
        _print_selection(selection, client, settings, mode)

        if ping_only:
            if mode == JSON:
                print(json.dumps(create_result_json(client.to_dict(), selection.to_dict()), indent=2))
            elif mode == DASHBOARD:
                console.print(f"\n[bold yellow]{format_ping_line(selection.latency_ms, settings.algorithm)}[/bold yellow]")
            else:
                print(format_ping_line(selection.latency_ms, settings.algorithm, report=mode == REPORT))
            return 0

        # -- Throughput -----------------------------------------------------
        # A skipped direction reports 0.0; a failed one reports None.
        speeds: Dict[str, Optional[float]] = {"download": 0.0, "upload": 0.0}
        results: Dict[str, ThroughputResult] = {}
        failures: Dict[str, TransferFailed] = {}

        testers = []
        if run_download:
            testers.append((DownloadTester(transport, settings), "Download Results", "green"))
        if run_upload:
            testers.append((UploadTester(transport, settings), "Upload Results", "blue"))

        for tester, title, color in testers:
            try:
                result = await _run_direction(tester, selection, mode, title, color)
            except TransferFailed as exc:
                logger.debug("%s test failed", tester.direction, exc_info=True)
                failures[tester.direction] = exc
                speeds[tester.direction] = None
                err_console.print(f"[red]Error: {exc}[/red]")
                continue
            results[tester.direction] = result
            speeds[tester.direction] = result.speed_mbps

    # -- Output -------------------------------------------------------------
    dl, ul = speeds["download"], speeds["upload"]
    if mode == DASHBOARD:
        print_final_results(
            ping_ms=selection.latency_ms,
            download_mbps=dl,
            upload_mbps=ul,
            algorithm=settings.algorithm,
            server_name=selection.server.name,
            server_sponsor=selection.server.sponsor,
        )
    elif mode == SIMPLE:
        print(
            format_text_result(
                selection.latency_ms, dl, ul, settings.algorithm,
                server_name=str(selection.server),
                isp=client.isp,
                ip=client.ip,
            )
        )
    elif mode == QUIET:
        print(format_summary_line(selection.latency_ms, dl, ul, settings.algorithm))
    elif mode == REPORT:
        print(format_report_line(selection.latency_ms, dl, ul, settings.report_char))
    elif mode == JSON:
        result_json = create_result_json(
            client_info=client.to_dict(),
            selection=selection.to_dict(),
            download_results=results["download"].to_dict() if "download" in results else None,
            upload_results=results["upload"].to_dict() if "upload" in results else None,
            candidates=[r.to_dict() for r in selection.candidates],
            errors={k: str(v) for k, v in failures.items()},
        )
        print(json.dumps(result_json, indent=2))

    if failures:
        return next(iter(failures.values())).exit_code
    return 0


async def list_servers() -> int:
    async with SpeedtestAPI() as api:
        client = await api.get_client_info()
        catalog: ServerCatalog = await api.fetch_servers()
    print_server_list(catalog.sorted_by_distance(client.coordinate))
    return 0


# ---------------------------------------------------------------------------
# CLI
# ---------------------------------------------------------------------------

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="netspeed",
        description="Command line speed test against speedtest.net servers",
    )
    # Output modes
    output = parser.add_mutually_exclusive_group()
    output.add_argument("--json", "-j", action="store_true", help="Output results as JSON")
    output.add_argument("--simple", action="store_true", help="Simple output mode (no dashboard)")
    output.add_argument("--quiet", "-q", action="store_true", help="Quiet mode: a single summary line")
    output.add_argument(
        "--report", "-r", action="store_true",
        help="Reporting mode: server line, then 'ping|download kbps|upload kbps' "
             "(use --reportchar to change the separator)",
    )
    parser.add_argument("--reportchar", "--rc", type=str, metavar="CHAR", help="Report separator (default: '|')")
    parser.add_argument("--debug", "-d", action="store_true", help="Turn on debug logging")

    # Server selection
    parser.add_argument("--server", "-s", type=str, metavar="ID|NAME", help="Use a specific server")
    parser.add_argument("--list", "-l", action="store_true", help="List available servers and exit")
    parser.add_argument("--numclosest", "--nc", type=int, metavar="N", help="Number of closest servers to probe (default: 3)")
    parser.add_argument("--numlatency", "--nl", type=int, metavar="N", help="Number of latency probes per server (default: 5)")

    # Measurement
    parser.add_argument("--algo", "-a", type=str, choices=["max", "avg"], help="Measurement method (default: max)")
    parser.add_argument("--ping", "-p", action="store_true", help="Ping only mode")
    direction = parser.add_mutually_exclusive_group()
    direction.add_argument("--downloadonly", "--do", action="store_true", help="Only perform download test")
    direction.add_argument("--uploadonly", "--uo", action="store_true", help="Only perform upload test")

    return parser


def main(argv: Optional[list] = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)

    configure_logging(debug=args.debug)
    config = load_config()

    try:
        settings = _build_settings(args, config)
    except SpeedtestError as exc:
        err_console.print(f"[red]Error: {exc}[/red]")
        sys.exit(exc.exit_code)

    try:
        if args.list:
            code = asyncio.run(list_servers())
        else:
            code = asyncio.run(
                run_speedtest(
                    settings,
                    mode=_output_mode(args),
                    server_query=_server_query(args, config),
                    ping_only=args.ping,
                    run_download=not args.uploadonly,
                    run_upload=not args.downloadonly,
                )
            )
    except KeyboardInterrupt:
        err_console.print("\n[yellow]Test cancelled by user[/yellow]")
        sys.exit(130)
    except SpeedtestError as exc:
        logger.debug("Run failed", exc_info=True)
        err_console.print(f"[red]Error: {exc}[/red]")
        sys.exit(exc.exit_code)

    sys.exit(code)


if __name__ == "__main__":
    main()
