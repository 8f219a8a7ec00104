from __future__ import annotations
from dataclasses import dataclass
from math import atan2, cos, radians, sin, sqrt

"""
Geospatial helpers.

Movement gating only needs great-circle distance, so we keep a tiny geometry layer
here instead of pulling in heavier GIS dependencies. Elevation is ignored.
"""

EARTH_RADIUS_M = 6_371_000


@dataclass(frozen=True)
class GeoPoint:
    """A latitude/longitude pair in decimal degrees."""

    lat: float
    lon: float


def distance(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Compute great-circle distance in meters between two coordinates (haversine).

    NaN inputs yield NaN.
    """
    phi1 = radians(lat1)
    phi2 = radians(lat2)
    dlat = radians(lat2 - lat1)
    dlon = radians(lon2 - lon1)

    h = sin(dlat / 2) ** 2 + cos(phi1) * cos(phi2) * sin(dlon / 2) ** 2
    # Rounding can push h just outside [0, 1]; max() keeps NaN when h is NaN.
    return 2 * EARTH_RADIUS_M * atan2(sqrt(max(h, 0.0)), sqrt(max(0.0, 1 - h)))


def haversine_m(a: GeoPoint, b: GeoPoint) -> float:
    """Compute great-circle distance in meters between two points."""
    return distance(a.lat, a.lon, b.lat, b.lon)
