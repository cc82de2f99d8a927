"""
Geo helpers — great-circle distance and straight-line route interpolation.

The frontend owns the actual map; this module only provides the coordinates
and distances the safe-route scorer needs. Interpolation is linear in lat/lng
space (not great-circle accurate), which is plenty for city-scale routes.
"""

from __future__ import annotations

import math
from typing import List, NamedTuple

EARTH_RADIUS_M = 6_371_000.0


class LatLng(NamedTuple):
    lat: float
    lng: float


def validate_coordinate(lat: float, lng: float) -> LatLng:
    """Return a LatLng, raising ValueError when either value is out of range."""
    lat = float(lat)
    lng = float(lng)
    if not -90.0 <= lat <= 90.0:
        raise ValueError(f"latitude {lat} outside [-90, 90]")
    if not -180.0 <= lng <= 180.0:
        raise ValueError(f"longitude {lng} outside [-180, 180]")
    return LatLng(lat, lng)


def distance_meters(p1: LatLng, p2: LatLng) -> float:
    """Geodesic distance between two points in metres (Haversine formula)."""
    phi1 = math.radians(p1.lat)
    phi2 = math.radians(p2.lat)
    dphi = math.radians(p2.lat - p1.lat)
    dlambda = math.radians(p2.lng - p1.lng)
    a = (
        math.sin(dphi / 2) ** 2
        + math.cos(phi1) * math.cos(phi2) * math.sin(dlambda / 2) ** 2
    )
    return 2 * EARTH_RADIUS_M * math.atan2(math.sqrt(a), math.sqrt(1 - a))


def interpolate(start: LatLng, end: LatLng, steps: int = 8) -> List[LatLng]:
    """Return ``steps + 1`` evenly spaced points from start to end (both included)."""
    if steps < 1:
        raise ValueError("steps must be >= 1")
    points: List[LatLng] = []
    for i in range(steps + 1):
        t = i / steps
        # (1 - t)·a + t·b so both endpoints come out exact
        points.append(
            LatLng(
                start.lat * (1 - t) + end.lat * t,
                start.lng * (1 - t) + end.lng * t,
            )
        )
    return points
