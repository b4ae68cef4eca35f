"""
HTTP latency measurement.

Each probe is one GET of the server's ``latency.txt``.  Probes run
concurrently under a semaphore, each with its own timeout; a failed or
timed-out probe is dropped from the sample set instead of failing the
whole measurement.
"""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import List, Optional

from .api import Server
from .config import Settings
from .errors import InvalidParameter, NoReachableServer, TransportError
from .stats import Algorithm, calculate_jitter, calculate_loss, reduce_latency

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Result dataclass
# ---------------------------------------------------------------------------

@dataclass
class ServerLatencyResult:
    """Aggregated latency data for one server."""

    server: Server
    algorithm: Algorithm = Algorithm.MAX
    pings: List[float] = field(default_factory=list)
    ping_attempts: int = 0
    latency_ms: float = 0.0
    jitter_ms: float = 0.0
    packet_loss: float = 0.0
    success: bool = True
    error: Optional[str] = None

    def calculate(self) -> None:
        """Reduce collected pings under the configured algorithm."""
        self.packet_loss = calculate_loss(len(self.pings), self.ping_attempts)
        if self.pings:
            self.latency_ms = reduce_latency(self.pings, self.algorithm)
            self.jitter_ms = calculate_jitter(self.pings)
        else:
            self.success = False
            self.error = self.error or "All latency probes failed"

    def to_dict(self) -> dict:
        return {
            "server_id": self.server.id,
            "server_name": self.server.name,
            "sponsor": self.server.sponsor,
            "algorithm": self.algorithm.value,
            "pings": [round(p, 3) for p in self.pings],
            "latency_ms": round(self.latency_ms, 3),
            "jitter_ms": round(self.jitter_ms, 3),
            "packet_loss": round(self.packet_loss, 1),
            "success": self.success,
        }


# ---------------------------------------------------------------------------
# Tester
# ---------------------------------------------------------------------------

class LatencyTester:
    """Probe round-trip latency to a server over plain HTTP."""

    def __init__(self, transport, settings: Optional[Settings] = None) -> None:  # noqa: ANN001
        self.transport = transport
        self.settings = settings or Settings()

    async def measure(self, server: Server, count: Optional[int] = None) -> ServerLatencyResult:
        """
        Run *count* probes (default ``settings.num_latency_tests``).

        Never raises for network failures: a server with no successful probe
        comes back with ``success=False``.
        """
        count = self.settings.num_latency_tests if count is None else count
        if count <= 0:
            raise InvalidParameter(f"Latency probe count must be positive, got {count}")

        sem = asyncio.Semaphore(self.settings.concurrency)

        async def _guarded(seq: int) -> Optional[float]:
            async with sem:
                return await self._probe_once(server, seq)

        outcomes = await asyncio.gather(*[_guarded(i) for i in range(count)])

        result = ServerLatencyResult(
            server=server,
            algorithm=self.settings.algorithm,
            pings=[ms for ms in outcomes if ms is not None],
            ping_attempts=count,
        )
        result.calculate()
        logger.debug(
            "Latency to %s: %d/%d probes ok, %s=%.2f ms",
            server.host, len(result.pings), count,
            self.settings.algorithm.value, result.latency_ms,
        )
        return result

    async def probe(self, server: Server, count: Optional[int] = None) -> float:
        """Reduced latency in milliseconds; raises if every probe failed."""
        result = await self.measure(server, count)
        if not result.success:
            raise NoReachableServer(
                f"All {result.ping_attempts} latency probes to {server.host or server.url} failed"
            )
        return result.latency_ms

    # -- Internals ----------------------------------------------------------

    async def _probe_once(self, server: Server, seq: int) -> Optional[float]:
        """One probe in milliseconds, or ``None`` if it failed."""
        try:
            elapsed = await asyncio.wait_for(
                self.transport.get_latency(server.latency_url),
                timeout=self.settings.latency_timeout,
            )
        except asyncio.TimeoutError:
            logger.debug("Probe %d to %s timed out", seq, server.host)
            return None
        except TransportError as exc:
            logger.debug("Probe %d to %s failed: %s", seq, server.host, exc)
            return None
        return elapsed * 1000
