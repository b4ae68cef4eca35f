"""
Shared machinery for the download and upload testers.

A direction is a set of independent transfer windows, one per configured
size.  Windows run concurrently under a semaphore with their own
timeouts; failed windows are dropped, and the survivors' Mbps values are
reduced with the run's aggregation policy.
"""
from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Sequence

from .api import Server
from .config import Settings
from .errors import InvalidParameter, TransferFailed, TransportError
from .stats import Algorithm, TransferSample, reduce_throughput

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Result
# ---------------------------------------------------------------------------

@dataclass
class ThroughputResult:
    """Result of one direction."""

    direction: str = ""
    algorithm: Algorithm = Algorithm.MAX
    speed_mbps: float = 0.0
    bytes_total: int = 0
    duration_ms: float = 0.0
    attempts: int = 0
    windows: List[TransferSample] = field(default_factory=list)

    @property
    def samples(self) -> List[float]:
        """Per-window Mbps, in completion order."""
        return [w.mbps for w in self.windows]

    @property
    def speed_bps(self) -> float:
        return self.speed_mbps * 1_000_000

    @property
    def failed(self) -> int:
        return self.attempts - len(self.windows)

    def calculate(self) -> None:
        self.bytes_total = sum(w.bytes_transferred for w in self.windows)
        if self.windows:
            self.speed_mbps = reduce_throughput(self.samples, self.algorithm)

    def to_dict(self) -> dict:
        return {
            "direction": self.direction,
            "algorithm": self.algorithm.value,
            "speed_bps": round(self.speed_bps, 2),
            "speed_mbps": round(self.speed_mbps, 2),
            "bytes_total": self.bytes_total,
            "duration_ms": round(self.duration_ms, 2),
            "windows": [w.to_dict() for w in self.windows],
            "failed_windows": self.failed,
        }


# ---------------------------------------------------------------------------
# Tester
# ---------------------------------------------------------------------------

class ThroughputTester:
    """
    Base class: subclasses set ``direction`` and implement
    :meth:`_transfer` and :meth:`_sizes`.
    """

    direction = ""
    result_class = ThroughputResult

    def __init__(self, transport, settings: Optional[Settings] = None) -> None:  # noqa: ANN001
        self.transport = transport
        self.settings = settings or Settings()
        self.on_progress: Optional[Callable[[float, float], None]] = None

    def _sizes(self) -> Sequence[int]:
        raise NotImplementedError

    async def _transfer(self, server: Server, size: int) -> TransferSample:
        raise NotImplementedError

    @property
    def window_count(self) -> int:
        return len(self._sizes())

    async def test(self, server: Server) -> ThroughputResult:
        """Run every window; raise :class:`TransferFailed` if none succeeded."""
        sizes = list(self._sizes())
        if not sizes:
            raise InvalidParameter(f"No {self.direction} window sizes configured")

        sem = asyncio.Semaphore(self.settings.concurrency)
        completed: List[TransferSample] = []
        finished = 0

        async def _guarded(seq: int, size: int) -> None:
            nonlocal finished
            async with sem:
                sample = await self._window(server, seq, size)
            finished += 1
            if sample is not None:
                completed.append(sample)
            self._report(finished / len(sizes), completed)

        start = time.perf_counter()
        await asyncio.gather(*[_guarded(i, s) for i, s in enumerate(sizes)])

        result = self.result_class(
            direction=self.direction,
            algorithm=self.settings.algorithm,
            attempts=len(sizes),
            windows=completed,
            duration_ms=(time.perf_counter() - start) * 1000,
        )
        if not completed:
            raise TransferFailed(self.direction, len(sizes))

        result.calculate()
        logger.info(
            "%s: %d/%d windows ok, %s=%.2f Mbps",
            self.direction.capitalize(), len(completed), len(sizes),
            self.settings.algorithm.value, result.speed_mbps,
        )
        return result

    # -- Internals ----------------------------------------------------------

    async def _window(self, server: Server, seq: int, size: int) -> Optional[TransferSample]:
        """One window, or ``None`` if it failed or moved nothing measurable."""
        try:
            sample = await asyncio.wait_for(
                self._transfer(server, size),
                timeout=self.settings.transfer_timeout,
            )
        except asyncio.TimeoutError:
            logger.debug("%s window %d (size %d) timed out", self.direction, seq, size)
            return None
        except TransportError as exc:
            logger.debug("%s window %d (size %d) failed: %s", self.direction, seq, size, exc)
            return None

        if sample.bytes_transferred <= 0 or sample.elapsed <= 0:
            logger.debug("%s window %d (size %d) moved no data", self.direction, seq, size)
            return None
        logger.debug(
            "%s window %d: %d bytes in %.3f s (%.2f Mbps)",
            self.direction, seq, sample.bytes_transferred, sample.elapsed, sample.mbps,
        )
        return sample

    def _report(self, fraction: float, completed: List[TransferSample]) -> None:
        if not self.on_progress:
            return
        current = (
            reduce_throughput([w.mbps for w in completed], self.settings.algorithm)
            if completed else 0.0
        )
        self.on_progress(min(fraction, 1.0), current)
