from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable

from bookmart.core.config import default_location
from bookmart.core.errors import LocationNotFoundError
from bookmart.core.models import GeoPoint
from bookmart.geocoders.base import Geocoder


LOGGER = logging.getLogger(__name__)

Locator = Callable[[], GeoPoint]


@dataclass(slots=True, frozen=True)
class ViewerLocation:
    point: GeoPoint
    label: str
    source: str  # device | default | search | map


class LocationResolver:
    """
    Tracks the viewer's location across competing interactions.

    Each interaction claims a ticket when it starts and may only commit while
    its ticket is still the newest, so a slow device lookup cannot overwrite a
    later map pick or address search.
    """

    def __init__(
        self,
        geocoder: Geocoder,
        locate: Locator | None = None,
        default: tuple[GeoPoint, str] | None = None,
    ) -> None:
        self.geocoder = geocoder
        self.locate = locate
        self.default_point, self.default_label = default or default_location()
        self.current: ViewerLocation | None = None
        self._ticket = 0
        self._listeners: list[Callable[[ViewerLocation | None], None]] = []

    @property
    def point(self) -> GeoPoint | None:
        return self.current.point if self.current else None

    def subscribe(self, listener: Callable[[ViewerLocation | None], None]) -> None:
        self._listeners.append(listener)

    def claim(self) -> int:
        self._ticket += 1
        return self._ticket

    def is_current(self, ticket: int) -> bool:
        return ticket == self._ticket

    def commit(self, ticket: int, location: ViewerLocation | None) -> bool:
        if not self.is_current(ticket):
            LOGGER.info("Discarding stale location update ticket=%s latest=%s", ticket, self._ticket)
            return False
        self.current = location
        for listener in self._listeners:
            listener(location)
        return True

    def resolve_initial(self) -> ViewerLocation | None:
        ticket = self.claim()
        try:
            if self.locate is None:
                raise RuntimeError("no location provider")
            point = self.locate()
        except Exception as exc:  # noqa: BLE001
            LOGGER.warning("Device location unavailable, using default %s: %s", self.default_label, exc)
            self.commit(ticket, ViewerLocation(self.default_point, self.default_label, "default"))
            return self.current

        label = self.geocoder.reverse_or_fallback(point.lat, point.lng)
        self.commit(ticket, ViewerLocation(point, label, "device"))
        return self.current

    def search(self, text: str) -> ViewerLocation | None:
        """
        Forward-geocode free text. Blank input is ignored; no match raises
        LocationNotFoundError and service failures raise GeocodingError.
        """
        query = (text or "").strip()
        if not query:
            return self.current
        ticket = self.claim()
        try:
            result = self.geocoder.forward(query)
            if result is None:
                raise LocationNotFoundError(query)
        except Exception:
            self._release(ticket)
            raise
        self.commit(ticket, ViewerLocation(result.point, query, "search"))
        return self.current

    def pick(self, lat: float, lng: float) -> ViewerLocation | None:
        ticket = self.claim()
        label = self.geocoder.reverse_or_fallback(lat, lng)
        self.commit(ticket, ViewerLocation(GeoPoint(lat, lng), label, "map"))
        return self.current

    def clear(self) -> None:
        self.commit(self.claim(), None)

    def _release(self, ticket: int) -> None:
        # A failed interaction hands the slot back to the one it superseded.
        if self.is_current(ticket):
            self._ticket -= 1
