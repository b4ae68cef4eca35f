"""
Measurement statistics and aggregation policy.

Pure functions and lightweight dataclasses -- no I/O, no side effects.
Everything here is deterministic and easy to unit-test.
"""
from __future__ import annotations

import enum
import statistics
from dataclasses import dataclass
from typing import List, Sequence, Union

from .errors import InvalidParameter


# ---------------------------------------------------------------------------
# Aggregation policy
# ---------------------------------------------------------------------------

class Algorithm(str, enum.Enum):
    """
    How a set of samples is reduced to one reported number.

    ``MAX`` reports the most favourable sample: the *lowest* latency and the
    *highest* throughput.  ``AVG`` reports the arithmetic mean.
    """

    MAX = "max"
    AVG = "avg"

    @classmethod
    def parse(cls, value: Union[str, Algorithm]) -> Algorithm:
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).lower())
        except ValueError:
            raise InvalidParameter(
                f"Invalid algorithm '{value}' (expected 'max' or 'avg')"
            ) from None

    @property
    def latency_label(self) -> str:
        return "Lowest" if self is Algorithm.MAX else "Avg"

    @property
    def speed_label(self) -> str:
        return "Max" if self is Algorithm.MAX else "Avg"


def reduce_latency(samples: Sequence[float], algorithm: Algorithm) -> float:
    """Lowest (``max`` policy) or mean (``avg``) of non-empty *samples*."""
    if not samples:
        raise ValueError("cannot reduce an empty sample set")
    if algorithm is Algorithm.MAX:
        return min(samples)
    return statistics.fmean(samples)


def reduce_throughput(samples: Sequence[float], algorithm: Algorithm) -> float:
    """Highest (``max`` policy) or mean (``avg``) of non-empty *samples*."""
    if not samples:
        raise ValueError("cannot reduce an empty sample set")
    if algorithm is Algorithm.MAX:
        return max(samples)
    return statistics.fmean(samples)


# ---------------------------------------------------------------------------
# Samples
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class TransferSample:
    """One completed transfer window."""

    bytes_transferred: int
    elapsed: float  # seconds

    @property
    def mbps(self) -> float:
        return mbps(self.bytes_transferred, self.elapsed)

    def to_dict(self) -> dict:
        return {
            "bytes": self.bytes_transferred,
            "elapsed_ms": round(self.elapsed * 1000, 2),
            "speed_mbps": round(self.mbps, 2),
        }


def mbps(bytes_transferred: int, elapsed_seconds: float) -> float:
    """Megabits per second; 0.0 when no time elapsed."""
    if elapsed_seconds <= 0:
        return 0.0
    return bytes_transferred * 8 / elapsed_seconds / 1_000_000


# ---------------------------------------------------------------------------
# Pure helper functions
# ---------------------------------------------------------------------------

def calculate_jitter(samples: List[float]) -> float:
    """Mean absolute difference between consecutive samples."""
    if len(samples) < 2:
        return 0.0
    diffs = [abs(samples[i] - samples[i - 1]) for i in range(1, len(samples))]
    return statistics.mean(diffs)


def calculate_loss(successes: int, attempts: int) -> float:
    """Percentage of *attempts* that did not succeed."""
    if attempts <= 0:
        return 0.0
    return (attempts - successes) / attempts * 100


# ---------------------------------------------------------------------------
# Formatting helpers
# ---------------------------------------------------------------------------

def format_speed(speed_mbps: float) -> str:
    """Human-readable speed string."""
    if speed_mbps >= 1000:
        return f"{speed_mbps / 1000:.2f} Gbps"
    return f"{speed_mbps:.2f} Mbps"


def format_latency(latency_ms: float) -> str:
    """Human-readable latency string."""
    if latency_ms >= 1000:
        return f"{latency_ms / 1000:.2f} s"
    return f"{latency_ms:.1f} ms"


def format_distance(km: float) -> str:
    return f"{km:.0f} km"
