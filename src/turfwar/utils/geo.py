"""Geographic helpers for territory lookups.

Coordinates are WGS84 degrees. Distances use the haversine formula on a
spherical earth, which is accurate to well under one percent at the radii
territory searches use.
"""

from __future__ import annotations

import math
from dataclasses import dataclass

EARTH_RADIUS_KM = 6371.0
MAX_SEARCH_RADIUS_KM = 161.0  # ~100 miles
DEFAULT_SEARCH_RADIUS_KM = 16.0


@dataclass(frozen=True, slots=True)
class BoundingBox:
    """Axis-aligned latitude/longitude rectangle."""

    min_lat: float
    min_lng: float
    max_lat: float
    max_lng: float

    def __post_init__(self) -> None:
        if self.min_lat > self.max_lat:
            raise ValueError(f"min_lat ({self.min_lat}) exceeds max_lat ({self.max_lat})")
        if self.min_lng > self.max_lng:
            raise ValueError(f"min_lng ({self.min_lng}) exceeds max_lng ({self.max_lng})")

    def contains(self, lat: float, lng: float) -> bool:
        return self.min_lat <= lat <= self.max_lat and self.min_lng <= lng <= self.max_lng


def haversine_km(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    """Great-circle distance between two points in kilometres.

    Examples:
        >>> haversine_km(0.0, 0.0, 0.0, 0.0)
        0.0
        >>> round(haversine_km(0.0, 0.0, 1.0, 0.0), 2)
        111.19
    """
    d_lat = math.radians(lat2 - lat1)
    d_lng = math.radians(lng2 - lng1)
    a = (
        math.sin(d_lat / 2) ** 2
        + math.cos(math.radians(lat1)) * math.cos(math.radians(lat2)) * math.sin(d_lng / 2) ** 2
    )
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_KM * c


def bounding_box_around(lat: float, lng: float, radius_km: float) -> BoundingBox:
    """Return a box that fully contains the circle of ``radius_km`` around a point.

    Used to pre-filter candidates in SQL before the exact haversine check.
    """
    lat_delta = math.degrees(radius_km / EARTH_RADIUS_KM)
    cos_lat = math.cos(math.radians(lat))
    if cos_lat < 1e-6:
        lng_delta = 180.0
    else:
        lng_delta = min(180.0, math.degrees(radius_km / (EARTH_RADIUS_KM * cos_lat)))
    return BoundingBox(
        min_lat=max(-90.0, lat - lat_delta),
        min_lng=max(-180.0, lng - lng_delta),
        max_lat=min(90.0, lat + lat_delta),
        max_lng=min(180.0, lng + lng_delta),
    )


def clamp_radius(radius_km: float | None) -> float:
    """Apply the default and the upper cap to a requested search radius."""

    if radius_km is None or radius_km <= 0:
        return DEFAULT_SEARCH_RADIUS_KM
    return min(radius_km, MAX_SEARCH_RADIUS_KM)
