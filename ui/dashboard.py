"""
Rich-based terminal dashboard for speedtest results.

All formatting helpers live in ``netspeed.stats`` -- this module only does
presentation via the ``rich`` library.
"""
from __future__ import annotations

import statistics
from typing import Optional, Sequence, Tuple

from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.progress import (
    BarColumn,
    MofNCompleteColumn,
    Progress,
    SpinnerColumn,
    TextColumn,
    TimeElapsedColumn,
)
from rich.table import Table

from netspeed.stats import Algorithm, format_distance, format_latency, format_speed

console = Console()
err_console = Console(stderr=True)


# ---------------------------------------------------------------------------
# Sample sparkline
# ---------------------------------------------------------------------------

_LEVELS = "▁▂▃▄▅▆▇█"


def sparkline(values: Sequence[float]) -> str:
    """One glyph per sample, scaled between the smallest and largest value."""
    if not values:
        return "No data"
    lo, hi = min(values), max(values)
    if hi <= lo:
        return _LEVELS[0] * len(values)
    top = len(_LEVELS) - 1
    return "".join(_LEVELS[round((v - lo) / (hi - lo) * top)] for v in values)


# ---------------------------------------------------------------------------
# Print helpers
# ---------------------------------------------------------------------------

def print_header() -> None:
    console.print()
    console.print(
        Panel.fit(
            "[bold cyan]netspeed[/bold cyan]\n"
            "[dim]Latency and throughput against the nearest speedtest.net servers[/dim]",
            border_style="cyan",
        )
    )
    console.print()


def print_client_info(ip: str, isp: str, lat: float, lon: float) -> None:
    table = Table(show_header=False, box=None, padding=(0, 1))
    table.add_column(style="dim")
    table.add_column(style="bold")
    table.add_row("IP Address:", ip)
    table.add_row("ISP:", isp)
    table.add_row("Location:", f"{lat:.4f}, {lon:.4f}")
    console.print(Panel(table, title="[bold]Client Info[/bold]", border_style="blue"))


def print_server_selection(selection, tester) -> None:  # noqa: ANN001 (ServerSelection, Coordinate)
    label = selection.algorithm.latency_label
    table = Table(title="Server Selection", box=box.ROUNDED)
    table.add_column("#", style="dim", width=4)
    table.add_column("Server", style="bold")
    table.add_column("Sponsor")
    table.add_column("Distance", justify="right")
    table.add_column(f"Latency ({label})", justify="right")
    table.add_column("Loss", justify="right")

    for i, result in enumerate(selection.candidates):
        chosen = result.server.id == selection.server.id
        table.add_row(
            f"{'>' if chosen else ' '}{i + 1}",
            result.server.name,
            result.server.sponsor,
            format_distance(result.server.distance_to(tester)),
            format_latency(result.latency_ms) if result.success else "N/A",
            f"{result.packet_loss:.0f}%",
            style="green" if chosen else None,
        )

    console.print(table)


def print_latency_details(selection) -> None:  # noqa: ANN001 (ServerSelection)
    """Latency spread of the chosen server with a per-probe sparkline."""
    pings = list(selection.pings)
    if not pings:
        return

    table = Table(title="Latency Details", box=box.ROUNDED)
    table.add_column("Metric", style="bold")
    table.add_column("Value", justify="right")
    table.add_row("Min", format_latency(min(pings)))
    table.add_row("Max", format_latency(max(pings)))
    table.add_row("Mean", format_latency(statistics.mean(pings)))
    table.add_row("Jitter", f"{selection.jitter_ms:.2f} ms")
    table.add_row("Samples", str(len(pings)))
    console.print(table)

    console.print(
        Panel(
            f"[cyan]{sparkline(pings)}[/cyan]\n"
            f"[dim]Min: {min(pings):.1f} ms  Max: {max(pings):.1f} ms[/dim]",
            title="Probes",
        )
    )


def print_speed_result(result, title: str, color: str = "green") -> None:  # noqa: ANN001
    """Print a download or upload result panel."""
    table = Table(title=title, box=box.ROUNDED)
    table.add_column("Metric", style="bold")
    table.add_column("Value", justify="right")

    label = result.algorithm.speed_label
    table.add_row(f"Speed ({label})", f"[bold {color}]{format_speed(result.speed_mbps)}[/bold {color}]")
    table.add_row("Data Transferred", f"{result.bytes_total / 1_000_000:.1f} MB")
    table.add_row("Duration", f"{result.duration_ms / 1000:.1f} s")
    table.add_row("Windows", f"{len(result.windows)}/{result.attempts}")
    console.print(table)

    if result.samples:
        console.print(
            Panel(
                f"[{color}]{sparkline(result.samples)}[/{color}]\n"
                f"[dim]Min: {min(result.samples):.1f} Mbps  "
                f"Max: {max(result.samples):.1f} Mbps[/dim]",
                title="Speed Per Window",
            )
        )


def print_final_results(
    ping_ms: float,
    download_mbps: Optional[float],
    upload_mbps: Optional[float],
    algorithm: Algorithm,
    server_name: str,
    server_sponsor: str,
) -> None:
    speed = algorithm.speed_label

    def _fmt(value: Optional[float]) -> str:
        return "[red]failed[/red]" if value is None else format_speed(value)

    console.print()
    console.print(
        Panel.fit(
            f"[bold cyan]Server:[/bold cyan] {server_name} ({server_sponsor})\n\n"
            f"[bold white]   Ping ({algorithm.latency_label}):[/bold white]  "
            f"[bold yellow]{ping_ms:.2f} ms[/bold yellow]\n"
            f"[bold white]   Download ({speed}):[/bold white]  [bold green]{_fmt(download_mbps)}[/bold green]\n"
            f"[bold white]   Upload ({speed}):[/bold white]  [bold blue]{_fmt(upload_mbps)}[/bold blue]",
            title="[bold]Results[/bold]",
            border_style="cyan",
        )
    )
    console.print()


def print_server_list(servers: Sequence[Tuple[object, float]]) -> None:
    """Print every server with its distance, nearest first."""
    table = Table(title="Available Servers", box=box.SIMPLE)
    table.add_column("ID", justify="right", style="dim")
    table.add_column("Sponsor")
    table.add_column("Location")
    table.add_column("Country")
    table.add_column("Distance", justify="right")
    for server, km in servers:
        table.add_row(
            str(server.id),
            server.sponsor,
            server.name,
            server.country,
            format_distance(km),
        )
    console.print(table)


# ---------------------------------------------------------------------------
# Transfer progress
# ---------------------------------------------------------------------------

class TransferProgress:
    """Live ``rich`` bar counting finished transfer windows for one direction."""

    def __init__(self, direction: str, windows: int) -> None:
        self.windows = windows
        self.progress = Progress(
            SpinnerColumn(),
            TextColumn(f"[bold]{direction.capitalize()}[/bold]"),
            BarColumn(bar_width=40),
            MofNCompleteColumn(),
            TextColumn("windows  [bold cyan]{task.fields[speed]}[/bold cyan]"),
            TimeElapsedColumn(),
            console=console,
            transient=True,
        )
        self._task_id = self.progress.add_task(direction, total=windows, speed="...")

    def __enter__(self) -> TransferProgress:
        self.progress.start()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:  # noqa: ANN001
        self.progress.stop()

    def update(self, fraction: float, speed_mbps: float) -> None:
        """``on_progress`` callback: *fraction* of windows done, best/avg Mbps so far."""
        speed = format_speed(speed_mbps) if speed_mbps > 0 else "..."
        self.progress.update(self._task_id, completed=round(fraction * self.windows), speed=speed)
