"""Geographic coordinates and great-circle distance."""
from __future__ import annotations

import math
from dataclasses import dataclass

from .constants import EARTH_RADIUS_KM


@dataclass(frozen=True)
class Coordinate:
    """A point on the globe, in decimal degrees."""

    lat: float
    lon: float

    def to_dict(self) -> dict:
        return {"lat": self.lat, "lon": self.lon}


def distance(a: Coordinate, b: Coordinate) -> float:
    """Haversine distance between *a* and *b* in kilometres."""
    dlat = math.radians(b.lat - a.lat)
    dlon = math.radians(b.lon - a.lon)
    h = (
        math.sin(dlat / 2) ** 2
        + math.cos(math.radians(a.lat)) * math.cos(math.radians(b.lat)) * math.sin(dlon / 2) ** 2
    )
    # Rounding can push h a hair past 1 for antipodal points.
    if h > 1.0:
        h = 1.0
    return 2 * EARTH_RADIUS_KM * math.asin(math.sqrt(h))
