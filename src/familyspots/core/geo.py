"""
Geospatial helpers.

We keep a tiny geometry layer here so the filter engine can do radius checks
without pulling in heavier GIS dependencies.
"""

from __future__ import annotations

from math import asin, cos, radians, sin, sqrt
from typing import Protocol

EARTH_RADIUS_KM = 6371.0


class HasLatLng(Protocol):
    """Anything with decimal-degree `lat` / `lng` attributes."""

    lat: float
    lng: float


def haversine_km(a: HasLatLng, b: HasLatLng) -> float:
    """Compute great-circle distance in kilometers between two points."""
    lat1 = radians(a.lat)
    lon1 = radians(a.lng)
    lat2 = radians(b.lat)
    lon2 = radians(b.lng)

    dlat = lat2 - lat1
    dlon = lon2 - lon1

    h = sin(dlat / 2) ** 2 + cos(lat1) * cos(lat2) * sin(dlon / 2) ** 2
    return 2 * EARTH_RADIUS_KM * asin(sqrt(min(1.0, h)))
