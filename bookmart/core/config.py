from __future__ import annotations

import os

from bookmart.core.models import GeoPoint


NOMINATIM_URL = "https://nominatim.openstreetmap.org"
DEFAULT_USER_AGENT = "bookmart/0.1 (local book marketplace)"
DEFAULT_LAT = 13.0827
DEFAULT_LNG = 80.2707
DEFAULT_LOCATION_LABEL = "Chennai, India"


def default_location() -> tuple[GeoPoint, str]:
    point = GeoPoint(
        env_float("DEFAULT_LAT", DEFAULT_LAT),
        env_float("DEFAULT_LNG", DEFAULT_LNG),
    )
    return point, env_str("DEFAULT_LOCATION_LABEL", DEFAULT_LOCATION_LABEL)


def env_str(name: str, default: str) -> str:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    return raw.strip()


def env_int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None:
        return default
    try:
        return int(raw.strip())
    except (TypeError, ValueError):
        return default


def env_float(name: str, default: float) -> float:
    raw = os.environ.get(name)
    if raw is None:
        return default
    try:
        return float(raw.strip())
    except (TypeError, ValueError):
        return default

