import math

from bookmart.core.models import FilterSortConfig, GeoPoint
from bookmart.core.ranking import (
    effective_price,
    matches_condition,
    matches_distance,
    matches_genre,
    matches_price,
    matches_search,
    rank_listings,
)
from bookmart.tests.fakes import make_listing


CHENNAI = GeoPoint(13.0827, 80.2707)
MUMBAI = GeoPoint(19.0760, 72.8777)
BANGALORE = GeoPoint(12.9716, 77.5946)


def _titles(listings):
    return [listing.title for listing in listings]


def _catalog():
    return [
        make_listing("Dune", minutes=1, price=500, author="Frank Herbert", genre="Science Fiction", point=MUMBAI),
        make_listing("Foundation", minutes=2, price=None, price_type="price_on_call", author="Isaac Asimov", point=BANGALORE),
        make_listing("Emma", minutes=3, price=150, author="Jane Austen", genre="Romance", condition="like_new", point=CHENNAI),
        make_listing("Hyperion", minutes=4, price=900, price_type="negotiable", author="Dan Simmons", genre="science fiction"),
        make_listing("Atlas", minutes=5, price=0, author="Unknown", genre=None, condition="poor", point=BANGALORE),
    ]


def test_price_asc_puts_price_on_call_last():
    listings = [
        make_listing("Dune", minutes=1, price=500),
        make_listing("Foundation", minutes=2, price=None, price_type="price_on_call"),
    ]
    ranked = rank_listings(listings, None, FilterSortConfig(sort="price_asc"))
    assert _titles(ranked) == ["Dune", "Foundation"]


def test_newest_orders_by_creation_descending():
    listings = [
        make_listing("Dune", minutes=1, price=500),
        make_listing("Foundation", minutes=2, price=None, price_type="price_on_call"),
    ]
    ranked = rank_listings(listings, None, FilterSortConfig(sort="newest"))
    assert _titles(ranked) == ["Foundation", "Dune"]


def test_oldest_orders_by_creation_ascending():
    ranked = rank_listings(_catalog(), None, FilterSortConfig(sort="oldest"))
    assert _titles(ranked) == ["Dune", "Foundation", "Emma", "Hyperion", "Atlas"]


def test_price_sorts_keep_unpriced_last_in_both_directions():
    catalog = _catalog()
    catalog.append(make_listing("Stored Price On Call", minutes=6, price=1, price_type="price_on_call"))
    for sort, expected in (("price_asc", [0, 150, 500, 900]), ("price_desc", [900, 500, 150, 0])):
        ranked = rank_listings(catalog, None, FilterSortConfig(sort=sort))
        assert [listing.price for listing in ranked[:4]] == expected
        assert {listing.title for listing in ranked[4:]} == {"Foundation", "Stored Price On Call"}


def test_price_sort_is_stable_for_ties():
    listings = [
        make_listing("First", minutes=1, price=100),
        make_listing("Second", minutes=2, price=100),
        make_listing("Third", minutes=3, price=100),
    ]
    assert _titles(rank_listings(listings, None, FilterSortConfig(sort="price_asc"))) == ["First", "Second", "Third"]
    assert _titles(rank_listings(listings, None, FilterSortConfig(sort="price_desc"))) == ["First", "Second", "Third"]


def test_distance_sort_puts_unknown_distances_last():
    ranked = rank_listings(_catalog(), CHENNAI, FilterSortConfig(sort="distance"))
    assert _titles(ranked) == ["Emma", "Foundation", "Atlas", "Dune", "Hyperion"]
    assert ranked[0].distance_km == 0.0
    assert ranked[-1].distance_km is None


def test_distance_sort_without_viewer_matches_newest():
    catalog = _catalog()
    by_distance = rank_listings(catalog, None, FilterSortConfig(sort="distance"))
    by_newest = rank_listings(catalog, None, FilterSortConfig(sort="newest"))
    assert _titles(by_distance) == _titles(by_newest)
    assert all(listing.distance_km is None for listing in by_distance)


def test_unknown_sort_key_falls_back_to_newest():
    ranked = rank_listings(_catalog(), None, FilterSortConfig(sort="popularity"))
    assert _titles(ranked) == ["Atlas", "Hyperion", "Emma", "Foundation", "Dune"]


def test_price_aliases_are_accepted():
    ranked = rank_listings(_catalog(), None, FilterSortConfig(sort="price_high"))
    assert ranked[0].title == "Hyperion"


def test_title_sort_ignores_case():
    listings = [make_listing("banana"), make_listing("Apple"), make_listing("cherry")]
    assert _titles(rank_listings(listings, None, FilterSortConfig(sort="title"))) == ["Apple", "banana", "cherry"]


def test_nan_distance_sorts_last():
    broken = make_listing("Broken", minutes=9, point=GeoPoint(math.nan, 80.0))
    ranked = rank_listings([broken, *_catalog()], CHENNAI, FilterSortConfig(sort="distance"))
    assert _titles(ranked[-2:]) == ["Broken", "Hyperion"]
    assert math.isnan(ranked[-2].distance_km)
    known = [listing.distance_km for listing in ranked[:-2]]
    assert known == sorted(known)


def test_nan_price_is_treated_as_unpriced():
    listings = [make_listing("Odd", minutes=1, price=math.nan), make_listing("Even", minutes=2, price=10)]
    ranked = rank_listings(listings, None, FilterSortConfig(sort="price_asc", price_min=50, price_max=60))
    assert _titles(ranked) == ["Odd"]


def test_search_matches_title_or_author_case_insensitively():
    ranked = rank_listings(_catalog(), None, FilterSortConfig(search="  ASIMOV "))
    assert _titles(ranked) == ["Foundation"]
    ranked = rank_listings(_catalog(), None, FilterSortConfig(search="dun"))
    assert _titles(ranked) == ["Dune"]


def test_genre_filter_is_case_insensitive_and_all_bypasses():
    ranked = rank_listings(_catalog(), None, FilterSortConfig(genre="Science Fiction", sort="oldest"))
    assert _titles(ranked) == ["Dune", "Hyperion"]
    assert len(rank_listings(_catalog(), None, FilterSortConfig(genre="all"))) == 5


def test_condition_filter():
    ranked = rank_listings(_catalog(), None, FilterSortConfig(condition="like_new"))
    assert _titles(ranked) == ["Emma"]


def test_price_on_call_survives_empty_range():
    ranked = rank_listings(_catalog(), None, FilterSortConfig(price_min=0, price_max=0))
    assert set(_titles(ranked)) == {"Foundation", "Atlas"}


def test_price_range_is_inclusive():
    ranked = rank_listings(_catalog(), None, FilterSortConfig(price_min=150, price_max=500, sort="price_asc"))
    assert _titles(ranked) == ["Emma", "Dune", "Foundation"]


def test_max_distance_keeps_listings_without_distance():
    ranked = rank_listings(_catalog(), CHENNAI, FilterSortConfig(max_distance_km=400, sort="distance"))
    assert _titles(ranked) == ["Emma", "Foundation", "Atlas", "Hyperion"]


def test_filtered_output_satisfies_every_predicate():
    config = FilterSortConfig(search="a", genre="all", condition="all", price_min=100, price_max=600, max_distance_km=1200)
    catalog = _catalog()
    ranked = rank_listings(catalog, CHENNAI, config)
    assert {listing.id for listing in ranked} <= {listing.id for listing in catalog}
    for listing in ranked:
        assert matches_search(listing, config.search)
        assert matches_genre(listing, config.genre)
        assert matches_condition(listing, config.condition)
        assert matches_price(listing, config.price_min, config.price_max)
        assert matches_distance(listing, config.max_distance_km)


def test_ranking_is_idempotent_and_does_not_mutate_input():
    catalog = _catalog()
    config = FilterSortConfig(sort="distance", max_distance_km=2000)
    first = rank_listings(catalog, CHENNAI, config)
    second = rank_listings(catalog, CHENNAI, config)
    assert first == second
    assert all(listing.distance_km is None for listing in catalog)


def test_effective_price_ignores_stored_price_when_on_call():
    assert effective_price(make_listing("Stored", price=250, price_type="price_on_call")) is None
    assert effective_price(make_listing("Priced", price=250)) == 250


def test_ranked_copies_do_not_share_image_lists():
    listing = make_listing("Dune")
    listing.images.append("a")
    ranked = rank_listings([listing], CHENNAI)
    ranked[0].images.append("b")
    assert listing.images == ["a"]
