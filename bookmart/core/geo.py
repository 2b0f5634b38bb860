from __future__ import annotations

import math
from math import atan2, cos, radians, sin, sqrt

from bookmart.core.models import GeoPoint, Listing


EARTH_RADIUS_KM = 6371.0


def haversine_distance_km(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    """
    Great-circle distance on a spherical Earth. Non-finite input yields nan.
    """
    if not all(math.isfinite(value) for value in (lat1, lng1, lat2, lng2)):
        return math.nan
    dlat = radians(lat2 - lat1)
    dlng = radians(lng2 - lng1)
    a = sin(dlat / 2) ** 2 + cos(radians(lat1)) * cos(radians(lat2)) * sin(dlng / 2) ** 2
    # Rounding can push a a hair outside [0, 1] for antipodal points.
    a = min(1.0, max(0.0, a))
    return 2 * EARTH_RADIUS_KM * atan2(sqrt(a), sqrt(1 - a))


def distance_to(viewer: GeoPoint, listing: Listing) -> float | None:
    if listing.latitude is None or listing.longitude is None:
        return None
    try:
        return haversine_distance_km(
            float(viewer.lat), float(viewer.lng), float(listing.latitude), float(listing.longitude)
        )
    except (TypeError, ValueError):
        return math.nan


def is_missing(value: float | None) -> bool:
    return value is None or math.isnan(value)


def format_coordinates(lat: float, lng: float, precision: int = 5) -> str:
    return f"{lat:.{precision}f}, {lng:.{precision}f}"
