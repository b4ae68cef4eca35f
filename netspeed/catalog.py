"""
The set of known test servers and the distance-based operations over it.
"""
from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Dict, Iterable, Iterator, List, Optional, Tuple

from .geo import Coordinate

if TYPE_CHECKING:
    from .api import Server

logger = logging.getLogger(__name__)


def filter_closest(servers: Iterable[Server], tester: Coordinate, k: int) -> List[Server]:
    """
    The *k* servers nearest to *tester*, nearest first.

    The sort is stable, so servers at equal distance keep their input order.
    ``k <= 0`` yields an empty list.  *servers* is not modified.
    """
    if k <= 0:
        return []
    return sorted(servers, key=lambda s: s.distance_to(tester))[:k]


class ServerCatalog:
    """Ordered, read-only collection of servers with unique ids."""

    def __init__(self, servers: Iterable[Server] = ()) -> None:
        seen: Dict[int, Server] = {}
        for server in servers:
            if server.id in seen:
                logger.debug("Dropping duplicate server id %s", server.id)
                continue
            seen[server.id] = server
        self._servers: Tuple[Server, ...] = tuple(seen.values())

    def __len__(self) -> int:
        return len(self._servers)

    def __iter__(self) -> Iterator[Server]:
        return iter(self._servers)

    def __bool__(self) -> bool:
        return bool(self._servers)

    @property
    def servers(self) -> List[Server]:
        return list(self._servers)

    def closest(self, tester: Coordinate, k: int) -> List[Server]:
        return filter_closest(self._servers, tester, k)

    def sorted_by_distance(self, tester: Coordinate) -> List[Tuple[Server, float]]:
        """Every server with its distance from *tester*, nearest first."""
        pairs = [(s, s.distance_to(tester)) for s in self._servers]
        pairs.sort(key=lambda p: p[1])
        return pairs

    def find(self, query: str) -> Optional[Server]:
        """
        First server, in catalog order, whose id equals *query* or whose
        name or sponsor contains it (case-insensitive).
        """
        needle = str(query).strip()
        if not needle:
            return None
        lowered = needle.lower()
        for server in self._servers:
            if str(server.id) == needle:
                return server
            if lowered in server.name.lower() or lowered in server.sponsor.lower():
                return server
        return None
