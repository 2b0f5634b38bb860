from __future__ import annotations

import math
from dataclasses import replace
from datetime import datetime, timezone
from typing import Any, Callable, Iterable

from bookmart.core.geo import distance_to, is_missing
from bookmart.core.models import ALL, FilterSortConfig, GeoPoint, Listing


DEFAULT_SORT = "newest"
SORT_ALIASES = {
    "price_low": "price_asc",
    "price_high": "price_desc",
}


def rank_listings(
    listings: Iterable[Listing],
    viewer_location: GeoPoint | None,
    config: FilterSortConfig | None = None,
) -> list[Listing]:
    """
    Filter and order a catalog snapshot for the browse view.

    Returns fresh Listing copies; when viewer_location is given each copy
    carries distance_km, otherwise distance_km is None on every copy. The
    input is never mutated and the function never raises, so it is safe to
    call again on every catalog, location or config change.
    """
    config = config or FilterSortConfig()
    annotated = annotate_distances(listings, viewer_location)
    filtered = [listing for listing in annotated if matches_all(listing, config)]
    return sort_listings(filtered, resolve_sort_key(config.sort, viewer_location))


def annotate_distances(listings: Iterable[Listing], viewer_location: GeoPoint | None) -> list[Listing]:
    if viewer_location is None:
        return [replace(listing, images=list(listing.images), distance_km=None) for listing in listings]
    return [
        replace(listing, images=list(listing.images), distance_km=distance_to(viewer_location, listing))
        for listing in listings
    ]


def matches_all(listing: Listing, config: FilterSortConfig) -> bool:
    return (
        matches_search(listing, config.search)
        and matches_genre(listing, config.genre)
        and matches_condition(listing, config.condition)
        and matches_price(listing, config.price_min, config.price_max)
        and matches_distance(listing, config.max_distance_km)
    )


def matches_search(listing: Listing, search: str | None) -> bool:
    needle = (search or "").strip().casefold()
    if not needle:
        return True
    return needle in (listing.title or "").casefold() or needle in (listing.author or "").casefold()


def matches_genre(listing: Listing, genre: str | None) -> bool:
    if _is_wildcard(genre):
        return True
    return (listing.genre or "").casefold() == str(genre).strip().casefold()


def matches_condition(listing: Listing, condition: str | None) -> bool:
    if _is_wildcard(condition):
        return True
    return listing.condition == condition


def matches_price(listing: Listing, price_min: float | None, price_max: float | None) -> bool:
    price = effective_price(listing)
    if price is None:
        # Unpriced listings cannot be excluded by a numeric range.
        return True
    if price_min is not None and not math.isnan(price_min) and price < price_min:
        return False
    if price_max is not None and not math.isnan(price_max) and price > price_max:
        return False
    return True


def matches_distance(listing: Listing, max_distance_km: float | None) -> bool:
    # A zero or negative cutoff means "no cutoff".
    if not max_distance_km or math.isnan(max_distance_km) or max_distance_km < 0:
        return True
    if is_missing(listing.distance_km):
        return True
    return listing.distance_km <= max_distance_km


def effective_price(listing: Listing) -> float | None:
    """Price used for filtering and sorting; None when the listing is unpriced."""
    if listing.is_price_on_call or is_missing(listing.price):
        return None
    return listing.price


def resolve_sort_key(sort: str | None, viewer_location: GeoPoint | None) -> str:
    key = SORT_ALIASES.get(sort or "", sort or "")
    if key not in _SORTERS:
        return DEFAULT_SORT
    if key == "distance" and viewer_location is None:
        return DEFAULT_SORT
    return key


def sort_listings(listings: list[Listing], sort_key: str) -> list[Listing]:
    return _SORTERS.get(sort_key, _SORTERS[DEFAULT_SORT])(listings)


def _sort_by_price(descending: bool) -> Callable[[list[Listing]], list[Listing]]:
    def sorter(listings: list[Listing]) -> list[Listing]:
        priced = [listing for listing in listings if effective_price(listing) is not None]
        unpriced = [listing for listing in listings if effective_price(listing) is None]
        priced.sort(key=lambda listing: effective_price(listing), reverse=descending)
        return priced + unpriced

    return sorter


def _sort_by_distance(listings: list[Listing]) -> list[Listing]:
    known = [listing for listing in listings if not is_missing(listing.distance_km)]
    unknown = [listing for listing in listings if is_missing(listing.distance_km)]
    known.sort(key=lambda listing: listing.distance_km)
    return known + unknown


def _sort_by_created(descending: bool) -> Callable[[list[Listing]], list[Listing]]:
    def sorter(listings: list[Listing]) -> list[Listing]:
        return sorted(listings, key=lambda listing: _timestamp(listing.created_at), reverse=descending)

    return sorter


def _sort_by_title(listings: list[Listing]) -> list[Listing]:
    return sorted(listings, key=lambda listing: (listing.title or "").casefold())


def _timestamp(value: datetime) -> float:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.timestamp()


def _is_wildcard(value: Any) -> bool:
    return value is None or str(value).strip().lower() in {"", ALL}


_SORTERS: dict[str, Callable[[list[Listing]], list[Listing]]] = {
    "newest": _sort_by_created(descending=True),
    "oldest": _sort_by_created(descending=False),
    "price_asc": _sort_by_price(descending=False),
    "price_desc": _sort_by_price(descending=True),
    "distance": _sort_by_distance,
    "title": _sort_by_title,
}
