"""
Speedtest.net API client.

Handles client-config and server-list fetching.  All HTTP work goes
through a single ``aiohttp.ClientSession`` managed via async-context-manager
protocol (``async with SpeedtestAPI() as api: ...``).
"""
from __future__ import annotations

import asyncio
import logging
import xml.etree.ElementTree as ET
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional

import aiohttp

from .catalog import ServerCatalog
from .constants import (
    COMMON_HEADERS,
    CONFIG_URL,
    DOWNLOAD_FILE,
    LATENCY_FILE,
    SERVERS_URL,
)
from .errors import ConfigFetchError
from .geo import Coordinate, distance

logger = logging.getLogger(__name__)

_FETCH_TIMEOUT = 30.0


# ---------------------------------------------------------------------------
# Data models
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Server:
    """A single speedtest.net server."""

    id: int
    name: str
    sponsor: str
    country: str
    cc: str
    host: str
    lat: float
    lon: float
    url: str

    # -- Constructors -------------------------------------------------------

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Server:
        """Build from a server-list XML attribute map (or any similar dict)."""
        return cls(
            id=int(data.get("id", 0)),
            name=data.get("name", ""),
            sponsor=data.get("sponsor", ""),
            country=data.get("country", ""),
            cc=data.get("cc", ""),
            host=data.get("host", ""),
            lat=float(data.get("lat", 0)),
            lon=float(data.get("lon", 0)),
            url=data.get("url", ""),
        )

    # -- Geography ----------------------------------------------------------

    @property
    def coordinate(self) -> Coordinate:
        return Coordinate(self.lat, self.lon)

    def distance_to(self, point: Coordinate) -> float:
        """Kilometres from *point*; never cached."""
        return distance(self.coordinate, point)

    # -- Derived URLs -------------------------------------------------------

    @property
    def base_url(self) -> str:
        """Directory holding the upload script and test files."""
        return self.url.rsplit("/", 1)[0]

    @property
    def latency_url(self) -> str:
        return f"{self.base_url}/{LATENCY_FILE}"

    @property
    def upload_url(self) -> str:
        return self.url

    def download_url(self, size: int) -> str:
        return f"{self.base_url}/{DOWNLOAD_FILE.format(size=size)}"

    # -- Serialisation ------------------------------------------------------

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "sponsor": self.sponsor,
            "country": self.country,
            "cc": self.cc,
            "host": self.host,
            "lat": self.lat,
            "lon": self.lon,
            "url": self.url,
        }

    def __str__(self) -> str:
        return f"{self.id} - {self.sponsor} ({self.name}, {self.country})"


@dataclass(frozen=True)
class ClientInfo:
    """Information about the tester fetched from speedtest.net."""

    ip: str
    isp: str
    lat: float
    lon: float
    country: str

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> ClientInfo:
        return cls(
            ip=data.get("ip", ""),
            isp=data.get("isp", ""),
            lat=float(data.get("lat", 0)),
            lon=float(data.get("lon", 0)),
            country=data.get("country", ""),
        )

    @property
    def coordinate(self) -> Coordinate:
        return Coordinate(self.lat, self.lon)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "ip": self.ip,
            "isp": self.isp,
            "lat": self.lat,
            "lon": self.lon,
            "country": self.country,
        }


# ---------------------------------------------------------------------------
# XML parsing
# ---------------------------------------------------------------------------

def _parse_xml(text: str, what: str) -> ET.Element:
    try:
        return ET.fromstring(text)
    except ET.ParseError as exc:
        raise ConfigFetchError(f"Malformed {what} document: {exc}") from exc


def parse_client_info(text: str) -> ClientInfo:
    """Parse the ``<client .../>`` element of the speedtest config XML."""
    root = _parse_xml(text, "config")
    node = root if root.tag == "client" else root.find(".//client")
    if node is None:
        raise ConfigFetchError("Config document has no <client> element")
    try:
        return ClientInfo.from_dict(node.attrib)
    except ValueError as exc:
        raise ConfigFetchError(f"Bad client coordinates: {exc}") from exc


def parse_servers(text: str) -> List[Server]:
    """Parse every ``<server .../>`` element, skipping malformed ones."""
    root = _parse_xml(text, "server list")
    servers: List[Server] = []
    for node in root.iter("server"):
        try:
            servers.append(Server.from_dict(node.attrib))
        except ValueError as exc:
            logger.debug("Skipping malformed server entry %r: %s", node.attrib, exc)
    return servers


# ---------------------------------------------------------------------------
# API client
# ---------------------------------------------------------------------------

class SpeedtestAPI:
    """Async context-manager wrapping the speedtest.net config endpoints."""

    def __init__(self) -> None:
        self._session: Optional[aiohttp.ClientSession] = None
        self.catalog: Optional[ServerCatalog] = None
        self.client_info: Optional[ClientInfo] = None

    # -- Context manager ----------------------------------------------------

    async def __aenter__(self) -> SpeedtestAPI:
        self._session = aiohttp.ClientSession(
            headers=COMMON_HEADERS,
            timeout=aiohttp.ClientTimeout(total=_FETCH_TIMEOUT),
        )
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:  # noqa: ANN001
        if self._session:
            await self._session.close()
            self._session = None

    # -- Internal helpers ---------------------------------------------------

    def _ensure_session(self) -> aiohttp.ClientSession:
        if self._session is None:
            raise RuntimeError(
                "SpeedtestAPI must be used as an async context manager "
                "(async with SpeedtestAPI() as api: ...)"
            )
        return self._session

    async def _get_text(self, url: str) -> str:
        session = self._ensure_session()
        logger.debug("GET %s", url)
        try:
            async with session.get(url) as resp:
                resp.raise_for_status()
                return await resp.text()
        except (aiohttp.ClientError, asyncio.TimeoutError, OSError) as exc:
            raise ConfigFetchError(f"Could not fetch {url}: {exc or type(exc).__name__}") from exc

    # -- Public methods -----------------------------------------------------

    async def get_client_info(self) -> ClientInfo:
        """Fetch the tester's IP / ISP / coordinates."""
        self.client_info = parse_client_info(await self._get_text(CONFIG_URL))
        logger.debug("Client info: %s", self.client_info)
        return self.client_info

    async def fetch_servers(self) -> ServerCatalog:
        """Fetch the full server list."""
        self.catalog = ServerCatalog(parse_servers(await self._get_text(SERVERS_URL)))
        logger.debug("Fetched %d servers", len(self.catalog))
        return self.catalog
