"""
HTTP transport for latency probes and transfer windows.

One request per probe / window.  Every method either returns a timing or
raises :class:`~netspeed.errors.TransportError`; timeouts are applied by
the caller so that each probe or window carries its own deadline.
"""
from __future__ import annotations

import logging
import time
from typing import Optional

import aiohttp

from .constants import CHUNK_SIZE, COMMON_HEADERS, CONNECT_TIMEOUT, MAX_CONCURRENCY
from .errors import TransportError
from .stats import TransferSample

logger = logging.getLogger(__name__)


def _bust_cache(url: str) -> str:
    sep = "&" if "?" in url else "?"
    return f"{url}{sep}x={int(time.time() * 1000)}"


class HttpTransport:
    """
    aiohttp-backed transport.

    Use as an async context manager (``async with HttpTransport() as t:``)
    so the connection pool is shared by every probe and window of a run.
    """

    def __init__(self, limit: int = MAX_CONCURRENCY) -> None:
        self._limit = limit
        self._session: Optional[aiohttp.ClientSession] = None

    # -- Context manager ----------------------------------------------------

    async def __aenter__(self) -> HttpTransport:
        connector = aiohttp.TCPConnector(
            limit=self._limit,
            limit_per_host=self._limit,
            force_close=False,
            enable_cleanup_closed=True,
        )
        self._session = aiohttp.ClientSession(
            headers={**COMMON_HEADERS, "Accept-Encoding": "identity"},
            connector=connector,
            timeout=aiohttp.ClientTimeout(total=None, connect=CONNECT_TIMEOUT),
        )
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:  # noqa: ANN001
        if self._session:
            await self._session.close()
            self._session = None

    def _ensure_session(self) -> aiohttp.ClientSession:
        if self._session is None:
            raise RuntimeError(
                "HttpTransport must be used as an async context manager "
                "(async with HttpTransport() as transport: ...)"
            )
        return self._session

    # -- Operations ---------------------------------------------------------

    async def get_latency(self, url: str) -> float:
        """Round-trip time of one small GET, in seconds."""
        session = self._ensure_session()
        try:
            start = time.perf_counter()
            async with session.get(_bust_cache(url)) as resp:
                await resp.read()
                elapsed = time.perf_counter() - start
                resp.raise_for_status()
        except (aiohttp.ClientError, OSError) as exc:
            raise TransportError(f"GET {url}: {exc}") from exc
        return elapsed

    async def download(self, url: str) -> TransferSample:
        """Stream one file and time it."""
        session = self._ensure_session()
        logger.debug("GET %s", url)
        received = 0
        try:
            start = time.perf_counter()
            async with session.get(_bust_cache(url)) as resp:
                resp.raise_for_status()
                while True:
                    chunk = await resp.content.read(CHUNK_SIZE)
                    if not chunk:
                        break
                    received += len(chunk)
            elapsed = time.perf_counter() - start
        except (aiohttp.ClientError, OSError) as exc:
            raise TransportError(f"GET {url}: {exc}") from exc
        return TransferSample(bytes_transferred=received, elapsed=elapsed)

    async def upload(self, url: str, payload: bytes) -> TransferSample:
        """POST *payload* and time it until the response is read."""
        session = self._ensure_session()
        logger.debug("POST %s (%d bytes)", url, len(payload))
        headers = {"Content-Type": "application/octet-stream"}
        try:
            start = time.perf_counter()
            async with session.post(url, data=payload, headers=headers) as resp:
                await resp.read()
                elapsed = time.perf_counter() - start
                resp.raise_for_status()
        except (aiohttp.ClientError, OSError) as exc:
            raise TransportError(f"POST {url}: {exc}") from exc
        return TransferSample(bytes_transferred=len(payload), elapsed=elapsed)
