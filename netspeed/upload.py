"""
Upload speed test.

Each window POSTs a block of random bytes to the server's upload URL.
One random buffer, sized for the largest window, is generated per tester
and sliced for every window.
"""
from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional, Sequence

from .api import Server
from .config import Settings
from .stats import TransferSample
from .throughput import ThroughputResult, ThroughputTester


@dataclass
class UploadResult(ThroughputResult):
    """Upload test result."""

    direction: str = "upload"


class UploadTester(ThroughputTester):
    """Parallel upload tester."""

    direction = "upload"
    result_class = UploadResult

    def __init__(self, transport, settings: Optional[Settings] = None) -> None:  # noqa: ANN001
        super().__init__(transport, settings)
        self._data_buffer = os.urandom(max(self.settings.upload_sizes, default=0))

    def _sizes(self) -> Sequence[int]:
        return self.settings.upload_sizes

    async def _transfer(self, server: Server, size: int) -> TransferSample:
        return await self.transport.upload(server.upload_url, self._data_buffer[:size])


async def upload_test(server: Server, transport, settings: Optional[Settings] = None) -> float:  # noqa: ANN001
    """Upload speed in Mbps under the settings' aggregation policy."""
    result = await UploadTester(transport, settings).test(server)
    return result.speed_mbps
