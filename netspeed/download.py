"""
Download speed test.

Each window fetches one ``random{N}x{N}.jpg`` image from the server's
directory; the window sizes come from ``Settings.download_sizes``.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Sequence

from .api import Server
from .config import Settings
from .stats import TransferSample
from .throughput import ThroughputResult, ThroughputTester


@dataclass
class DownloadResult(ThroughputResult):
    """Download test result."""

    direction: str = "download"


class DownloadTester(ThroughputTester):
    """Parallel download tester."""

    direction = "download"
    result_class = DownloadResult

    def _sizes(self) -> Sequence[int]:
        return self.settings.download_sizes

    async def _transfer(self, server: Server, size: int) -> TransferSample:
        return await self.transport.download(server.download_url(size))


async def download_test(server: Server, transport, settings: Optional[Settings] = None) -> float:  # noqa: ANN001
    """Download speed in Mbps under the settings' aggregation policy."""
    result = await DownloadTester(transport, settings).test(server)
    return result.speed_mbps
