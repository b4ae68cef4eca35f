"""Shared fakes for the test suite -- no real network I/O."""

import asyncio

from netspeed.api import Server
from netspeed.errors import TransportError

# Outcome marker: the call hangs until the caller's timeout fires.
TIMEOUT = object()


def make_server(sid, lat=0.0, lon=0.0, name=None, sponsor=None):
    host = f"srv{sid}.example.net"
    return Server(
        id=sid,
        name=name or f"City {sid}",
        sponsor=sponsor or f"ISP {sid}",
        country="Testland",
        cc="TL",
        host=f"{host}:8080",
        lat=lat,
        lon=lon,
        url=f"http://{host}:8080/speedtest/upload.php",
    )


class FakeTransport:
    """
    Scripted stand-in for ``HttpTransport``.

    *latencies* maps a latency URL to a list of outcomes consumed in call
    order; *downloads* maps a download URL and *uploads* a payload length to
    a single outcome.  An outcome is a value, an exception instance, or
    :data:`TIMEOUT`.  Missing entries fail with ``TransportError``.
    """

    def __init__(self, latencies=None, downloads=None, uploads=None):
        self.latencies = {url: list(seq) for url, seq in (latencies or {}).items()}
        self.downloads = dict(downloads or {})
        self.uploads = dict(uploads or {})
        self.calls = []

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        return None

    @staticmethod
    async def _resolve(outcome):
        if outcome is TIMEOUT:
            await asyncio.Event().wait()
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome

    async def get_latency(self, url):
        self.calls.append(("latency", url))
        outcomes = self.latencies.get(url)
        if not outcomes:
            raise TransportError(f"GET {url}: connection refused")
        return await self._resolve(outcomes.pop(0))

    async def download(self, url):
        self.calls.append(("download", url))
        if url not in self.downloads:
            raise TransportError(f"GET {url}: 404")
        return await self._resolve(self.downloads[url])

    async def upload(self, url, payload):
        self.calls.append(("upload", url, len(payload)))
        if len(payload) not in self.uploads:
            raise TransportError(f"POST {url}: 500")
        return await self._resolve(self.uploads[len(payload)])
