from __future__ import annotations

from typing import Any

import httpx

from bookmart.core.config import DEFAULT_USER_AGENT, NOMINATIM_URL, env_float, env_str
from bookmart.core.errors import GeocodingError
from bookmart.core.models import GeoPoint
from bookmart.geocoders.base import GeocodeResult, Geocoder


class NominatimGeocoder(Geocoder):
    service_name = "nominatim"

    def __init__(
        self,
        base_url: str | None = None,
        user_agent: str | None = None,
        timeout_seconds: float | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.base_url = (base_url or env_str("NOMINATIM_URL", NOMINATIM_URL)).rstrip("/")
        self.user_agent = user_agent or env_str("GEOCODER_USER_AGENT", DEFAULT_USER_AGENT)
        self.timeout_seconds = (
            timeout_seconds if timeout_seconds is not None else env_float("GEOCODER_TIMEOUT_SECONDS", 10.0)
        )
        self.transport = transport

    def forward(self, query: str) -> GeocodeResult | None:
        cleaned = (query or "").strip()
        if not cleaned:
            return None
        payload = self._get("/search", {"format": "json", "q": cleaned, "limit": 1})
        if not isinstance(payload, list) or not payload:
            return None
        first = payload[0] if isinstance(payload[0], dict) else {}
        lat = _safe_float(first.get("lat"))
        lng = _safe_float(first.get("lon"))
        if lat is None or lng is None:
            return None
        return GeocodeResult(point=GeoPoint(lat, lng), label=str(first.get("display_name") or cleaned))

    def reverse(self, lat: float, lng: float) -> str | None:
        payload = self._get("/reverse", {"format": "json", "lat": lat, "lon": lng})
        if not isinstance(payload, dict):
            return None
        label = payload.get("display_name")
        return str(label) if label else None

    def _get(self, path: str, params: dict[str, Any]) -> Any:
        headers = {"User-Agent": self.user_agent, "Accept": "application/json"}
        try:
            with httpx.Client(
                base_url=self.base_url,
                timeout=self.timeout_seconds,
                headers=headers,
                transport=self.transport,
            ) as client:
                response = client.get(path, params=params)
                response.raise_for_status()
                return response.json()
        except (httpx.HTTPError, ValueError) as exc:
            raise GeocodingError(f"{self.service_name} {path} failed: {exc}") from exc


def _safe_float(value: Any) -> float | None:
    try:
        return float(value) if value is not None else None
    except (TypeError, ValueError):
        return None
