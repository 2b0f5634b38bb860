from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass

from bookmart.core.geo import format_coordinates
from bookmart.core.models import GeoPoint


LOGGER = logging.getLogger(__name__)


@dataclass(slots=True, frozen=True)
class GeocodeResult:
    point: GeoPoint
    label: str


class Geocoder(ABC):
    service_name: str

    @abstractmethod
    def forward(self, query: str) -> GeocodeResult | None:
        """Best match for free-text address, or None when nothing matches."""

    @abstractmethod
    def reverse(self, lat: float, lng: float) -> str | None:
        """Human-readable label for a coordinate, or None when unknown."""

    def reverse_or_fallback(self, lat: float, lng: float) -> str:
        try:
            label = self.reverse(lat, lng)
        except Exception as exc:  # noqa: BLE001
            LOGGER.warning("Reverse geocoding failed service=%s lat=%s lng=%s error=%s", self.service_name, lat, lng, exc)
            label = None
        return label or format_coordinates(lat, lng)
