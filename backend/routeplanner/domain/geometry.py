from __future__ import annotations

from math import atan2, cos, radians, sin, sqrt
from typing import Sequence

from routeplanner.domain.delivery import Coordinate


EARTH_RADIUS_METERS = 6_371_000.0


def haversine_distance(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """
    Calculate the great circle distance between two points
    on the earth (specified in decimal degrees).
    """
    lat1_rad, lon1_rad = radians(lat1), radians(lon1)
    lat2_rad, lon2_rad = radians(lat2), radians(lon2)

    dlat = lat2_rad - lat1_rad
    dlon = lon2_rad - lon1_rad

    a = sin(dlat / 2) ** 2 + cos(lat1_rad) * cos(lat2_rad) * sin(dlon / 2) ** 2
    # rounding can push near-antipodal points past 1; NaN passes through
    a = min(a, 1.0)
    c = 2 * atan2(sqrt(a), sqrt(1 - a))
    return EARTH_RADIUS_METERS * c


def distance_meters(a: Coordinate, b: Coordinate) -> float:
    return haversine_distance(a.latitude, a.longitude, b.latitude, b.longitude)


def path_length_meters(points: Sequence[Coordinate]) -> float:
    """Sum of great-circle hops along ``points``."""
    return sum(distance_meters(points[i], points[i + 1]) for i in range(len(points) - 1))
