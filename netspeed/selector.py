"""
Server selection.

Either the caller names a server (explicit mode) or the closest
``num_closest`` servers are probed and the one with the lowest latency
wins (automatic mode).  "Lowest" holds under both aggregation policies;
the policy only changes how each server's own probes are reduced.
"""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from .api import Server
from .catalog import ServerCatalog
from .config import Settings
from .errors import NoReachableServer, NoServersAvailable, ServerNotFound
from .geo import Coordinate
from .latency import LatencyTester, ServerLatencyResult
from .stats import Algorithm

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ServerSelection:
    """The chosen server together with its measured latency."""

    server: Server
    latency_ms: float
    algorithm: Algorithm
    jitter_ms: float = 0.0
    packet_loss: float = 0.0
    pings: Tuple[float, ...] = ()
    candidates: Tuple[ServerLatencyResult, ...] = field(default=(), compare=False)

    @classmethod
    def from_result(
        cls,
        result: ServerLatencyResult,
        candidates: Tuple[ServerLatencyResult, ...] = (),
    ) -> ServerSelection:
        return cls(
            server=result.server,
            latency_ms=result.latency_ms,
            algorithm=result.algorithm,
            jitter_ms=result.jitter_ms,
            packet_loss=result.packet_loss,
            pings=tuple(result.pings),
            candidates=candidates or (result,),
        )

    def to_dict(self) -> dict:
        return {
            "server": self.server.to_dict(),
            "latency_ms": round(self.latency_ms, 3),
            "jitter_ms": round(self.jitter_ms, 3),
            "packet_loss": round(self.packet_loss, 1),
            "algorithm": self.algorithm.value,
            "pings": [round(p, 3) for p in self.pings],
        }


class ServerSelector:
    """Pick the server to run throughput tests against."""

    def __init__(self, prober: LatencyTester, settings: Optional[Settings] = None) -> None:
        self.prober = prober
        self.settings = settings or prober.settings

    async def select(
        self,
        catalog: ServerCatalog,
        tester: Coordinate,
        query: Optional[str] = None,
    ) -> ServerSelection:
        if query:
            return await self.select_explicit(catalog, query)
        return await self.select_automatic(catalog, tester)

    # -- Explicit -----------------------------------------------------------

    async def select_explicit(self, catalog: ServerCatalog, query: str) -> ServerSelection:
        server = catalog.find(query)
        if server is None:
            raise ServerNotFound(query)
        logger.info("Using requested server %s", server)

        result = await self.prober.measure(server)
        if not result.success:
            raise NoReachableServer(
                f"All {result.ping_attempts} latency probes to {server} failed"
            )
        return ServerSelection.from_result(result)

    # -- Automatic ----------------------------------------------------------

    async def select_automatic(self, catalog: ServerCatalog, tester: Coordinate) -> ServerSelection:
        candidates = catalog.closest(tester, self.settings.num_closest)
        if not candidates:
            raise NoServersAvailable("No servers available to test against")
        logger.info(
            "Probing %d closest servers: %s",
            len(candidates), ", ".join(str(s.id) for s in candidates),
        )

        results = await self._measure_all(candidates)
        reachable = [r for r in results if r.success]
        if not reachable:
            raise NoReachableServer(
                f"Could not reach any of the {len(candidates)} closest servers"
            )

        # min() keeps the first of equal keys, i.e. the nearer server.
        best = min(reachable, key=lambda r: r.latency_ms)
        logger.info("Fastest server: %s (%.2f ms)", best.server, best.latency_ms)
        return ServerSelection.from_result(best, candidates=tuple(results))

    async def _measure_all(self, servers: List[Server]) -> List[ServerLatencyResult]:
        sem = asyncio.Semaphore(self.settings.concurrency)

        async def _guarded(srv: Server) -> ServerLatencyResult:
            async with sem:
                return await self.prober.measure(srv)

        # gather preserves input order, which is the closest-first order.
        return list(await asyncio.gather(*[_guarded(s) for s in servers]))
