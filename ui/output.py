"""
Output formatting -- report-mode lines, plain text, and JSON.
"""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from netspeed.stats import Algorithm


def _kbps(speed_mbps: Optional[float]) -> str:
    """Truncated integer kbps; empty when the direction failed."""
    if speed_mbps is None:
        return ""
    return str(int(speed_mbps * 1000))


# ---------------------------------------------------------------------------
# Report mode
# ---------------------------------------------------------------------------

def format_report_line(
    latency_ms: float,
    download_mbps: Optional[float],
    upload_mbps: Optional[float],
    sep: str = "|",
) -> str:
    """``latency<sep>download_kbps<sep>upload_kbps``.

    A skipped direction is passed as ``0.0``; a failed one as ``None`` and
    leaves its field empty.
    """
    return f"{latency_ms:.2f}{sep}{_kbps(download_mbps)}{sep}{_kbps(upload_mbps)}"


def format_server_report(server, distance_km: float, sep: str = "|") -> str:  # noqa: ANN001
    return (
        f"{server.id}{sep}{server.sponsor} ({server.name}, {server.country})"
        f"{sep}{distance_km:.2f}"
    )


def format_ping_line(latency_ms: float, algorithm: Algorithm, report: bool = False) -> str:
    label = algorithm.latency_label
    if report:
        return f"{latency_ms:.2f} ({label})"
    return f"Ping ({label}): {latency_ms:.2f} ms"


# ---------------------------------------------------------------------------
# Plain text
# ---------------------------------------------------------------------------

def format_summary_line(
    latency_ms: float,
    download_mbps: Optional[float],
    upload_mbps: Optional[float],
    algorithm: Algorithm,
) -> str:
    """One-line human summary, as printed in quiet mode."""
    speed = algorithm.speed_label

    def _fmt(value: Optional[float]) -> str:
        return "failed" if value is None else f"{value:.2f} Mbps"

    return (
        f"Ping ({algorithm.latency_label}): {latency_ms:.2f} ms | "
        f"Download ({speed}): {_fmt(download_mbps)} | "
        f"Upload ({speed}): {_fmt(upload_mbps)}"
    )


def format_text_result(
    latency_ms: float,
    download_mbps: Optional[float],
    upload_mbps: Optional[float],
    algorithm: Algorithm,
    server_name: str,
    isp: str,
    ip: str,
) -> str:
    sep = "=" * 50
    mid = "-" * 50
    speed = algorithm.speed_label

    def _fmt(value: Optional[float]) -> str:
        return "failed" if value is None else f"{value:.2f} Mbps"

    return (
        f"{sep}\n"
        f"Speedtest Results\n"
        f"{sep}\n"
        f"Server: {server_name}\n"
        f"ISP: {isp}\n"
        f"IP: {ip}\n"
        f"{mid}\n"
        f"Ping ({algorithm.latency_label}): {latency_ms:.2f} ms\n"
        f"Download ({speed}): {_fmt(download_mbps)}\n"
        f"Upload ({speed}): {_fmt(upload_mbps)}\n"
        f"{sep}"
    )


# ---------------------------------------------------------------------------
# JSON
# ---------------------------------------------------------------------------

def create_result_json(
    client_info: Dict[str, Any],
    selection: Dict[str, Any],
    download_results: Optional[Dict[str, Any]] = None,
    upload_results: Optional[Dict[str, Any]] = None,
    candidates: Optional[List[dict]] = None,
    errors: Optional[Dict[str, str]] = None,
) -> Dict[str, Any]:
    """Build a JSON-serialisable result dict."""
    result: Dict[str, Any] = {
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "algorithm": selection.get("algorithm", Algorithm.MAX.value),
        "client": client_info,
        "server": selection.get("server", {}),
        "ping": selection.get("latency_ms", 0),
        "jitter": selection.get("jitter_ms", 0),
        "packetLoss": selection.get("packet_loss", 0),
        "pings": selection.get("pings", []),
    }

    if download_results is not None:
        result["download"] = download_results
    if upload_results is not None:
        result["upload"] = upload_results
    if candidates:
        result["serverSelection"] = {"closestPingDetails": candidates}
    if errors:
        result["errors"] = errors

    return result
