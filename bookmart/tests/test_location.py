import pytest

from bookmart.core.errors import LocationNotFoundError
from bookmart.core.location import LocationResolver
from bookmart.core.models import GeoPoint
from bookmart.geocoders.base import GeocodeResult
from bookmart.tests.fakes import FakeGeocoder


DEFAULT = (GeoPoint(13.0827, 80.2707), "Chennai, India")


def test_denied_geolocation_falls_back_to_default():
    def denied():
        raise PermissionError("User denied Geolocation")

    resolver = LocationResolver(FakeGeocoder(), locate=denied, default=DEFAULT)
    location = resolver.resolve_initial()
    assert location.point == DEFAULT[0]
    assert location.label == "Chennai, India"
    assert location.source == "default"


def test_missing_locator_falls_back_to_default():
    resolver = LocationResolver(FakeGeocoder(), default=DEFAULT)
    assert resolver.resolve_initial().source == "default"


def test_device_location_is_reverse_geocoded():
    geocoder = FakeGeocoder(labels={(12.97, 77.59): "Bengaluru, Karnataka"})
    resolver = LocationResolver(geocoder, locate=lambda: GeoPoint(12.97, 77.59), default=DEFAULT)
    location = resolver.resolve_initial()
    assert location.point == GeoPoint(12.97, 77.59)
    assert location.label == "Bengaluru, Karnataka"


def test_reverse_failure_uses_numeric_label():
    resolver = LocationResolver(FakeGeocoder(), default=DEFAULT)
    location = resolver.pick(12.9716, 77.5946)
    assert location.label == "12.97160, 77.59460"
    assert location.source == "map"


def test_search_sets_point_and_keeps_typed_label():
    geocoder = FakeGeocoder(places={"Mumbai": GeocodeResult(GeoPoint(19.07, 72.87), "Mumbai, Maharashtra, India")})
    resolver = LocationResolver(geocoder, default=DEFAULT)
    location = resolver.search(" Mumbai ")
    assert location.point == GeoPoint(19.07, 72.87)
    assert location.label == "Mumbai"


def test_search_miss_raises_and_keeps_previous_location():
    resolver = LocationResolver(FakeGeocoder(), default=DEFAULT)
    resolver.resolve_initial()
    with pytest.raises(LocationNotFoundError):
        resolver.search("Atlantis")
    assert resolver.point == DEFAULT[0]


def test_blank_search_is_ignored():
    resolver = LocationResolver(FakeGeocoder(), default=DEFAULT)
    assert resolver.search("   ") is None


def test_map_pick_during_device_lookup_wins():
    geocoder = FakeGeocoder(labels={(10.0, 10.0): "Device spot", (20.0, 20.0): "Picked spot"})
    resolver = LocationResolver(geocoder, locate=lambda: GeoPoint(10.0, 10.0), default=DEFAULT)

    def pick_while_resolving(lat, lng):
        if (lat, lng) == (10.0, 10.0):
            geocoder.on_reverse = None
            resolver.pick(20.0, 20.0)

    geocoder.on_reverse = pick_while_resolving
    resolver.resolve_initial()
    assert resolver.current.point == GeoPoint(20.0, 20.0)
    assert resolver.current.label == "Picked spot"


def test_listeners_see_committed_changes():
    seen = []
    resolver = LocationResolver(FakeGeocoder(), default=DEFAULT)
    resolver.subscribe(seen.append)
    resolver.resolve_initial()
    resolver.clear()
    assert [item.source if item else None for item in seen] == ["default", None]


def test_failed_search_during_device_lookup_keeps_device_fix():
    geocoder = FakeGeocoder(labels={(10.0, 10.0): "Device spot"})
    resolver = LocationResolver(geocoder, locate=lambda: GeoPoint(10.0, 10.0), default=DEFAULT)

    def search_while_resolving(lat, lng):
        geocoder.on_reverse = None
        with pytest.raises(LocationNotFoundError):
            resolver.search("Atlantis")

    geocoder.on_reverse = search_while_resolving
    resolver.resolve_initial()
    assert resolver.current.point == GeoPoint(10.0, 10.0)
    assert resolver.current.label == "Device spot"


def test_failed_search_leaves_location_unchanged():
    resolver = LocationResolver(FakeGeocoder(), default=DEFAULT)
    resolver.resolve_initial()
    with pytest.raises(LocationNotFoundError):
        resolver.search("Atlantis")
    assert resolver.current.label == "Chennai, India"
    resolver.pick(20.0, 20.0)
    assert resolver.current.source == "map"
