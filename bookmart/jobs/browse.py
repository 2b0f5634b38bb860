from __future__ import annotations

import argparse
import logging
import os
import time
from typing import Any, Callable

from bookmart.core.browse import BrowseSession, RequestBoard
from bookmart.core.config import env_int
from bookmart.core.contact import listing_contact_links, request_contact_links
from bookmart.core.display import format_condition, format_distance, format_price
from bookmart.core.errors import AuthError, CatalogError, GeocodingError, LocationNotFoundError
from bookmart.core.location import LocationResolver
from bookmart.core.models import ALL, CONDITIONS, GENRES, SORT_KEYS, FilterSortConfig
from bookmart.core.notices import Notifier
from bookmart.core.session import SessionProvider, Viewer
from bookmart.core.supabase_repo import SupabaseRepo
from bookmart.geocoders.nominatim.geocoder import NominatimGeocoder


logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(message)s")
LOGGER = logging.getLogger(__name__)


def browse_listings(args: argparse.Namespace) -> int:
    notifier = Notifier()
    repo = SupabaseRepo()
    viewer = _sign_in(SessionProvider(repo.client), notifier)

    resolver = LocationResolver(NominatimGeocoder())
    if not args.no_location:
        resolver.resolve_initial()
    try:
        if args.location:
            resolver.search(args.location)
        if args.lat is not None and args.lng is not None:
            resolver.pick(args.lat, args.lng)
    except LocationNotFoundError as exc:
        LOGGER.warning("Location lookup failed: %s", exc)
        notifier.error("Location not found")
    except GeocodingError as exc:
        LOGGER.warning("Location lookup failed: %s", exc)
        notifier.error("Failed to search location")

    session = BrowseSession(
        repo,
        notifier,
        FilterSortConfig(
            search=args.search,
            genre=args.genre,
            condition=args.condition,
            price_min=args.min_price,
            price_max=args.max_price,
            max_distance_km=args.max_distance,
            sort=args.sort,
        ),
    )
    session.set_location(resolver.point)
    seq = session.begin_fetch()
    try:
        listings = _fetch_with_retry(repo.fetch_available_listings, label="books")
    except CatalogError as exc:
        session.fail_fetch(seq, exc)
    else:
        session.apply_catalog(seq, listings)

    if resolver.current:
        LOGGER.info("Viewer location: %s (%s)", resolver.current.label, resolver.current.source)
    LOGGER.info("Listings fetched=%s shown=%s sort=%s", len(session.listings), len(session.view), args.sort)

    for listing in session.view[: args.limit]:
        distance = format_distance(listing.distance_km)
        print(
            f"{listing.title} by {listing.author} | {format_price(listing)} | "
            f"{format_condition(listing.condition)} | {listing.location}" + (f" | {distance}" if distance else "")
        )
        links = listing_contact_links(listing).for_viewer(viewer)
        for link in (links.email, links.whatsapp):
            if link:
                print(f"    {link}")
    return 1 if notifier.errors() else 0


def browse_requests(args: argparse.Namespace) -> int:
    notifier = Notifier()
    repo = SupabaseRepo()
    viewer = _sign_in(SessionProvider(repo.client), notifier)
    board = RequestBoard(repo, notifier)
    board.set_search(args.search)
    board.refresh()

    for request in board.view[: args.limit]:
        max_price = f" | up to {request.max_price:g}" if request.max_price is not None else ""
        author = f" by {request.author}" if request.author else ""
        print(f"{request.title}{author} | {request.location}{max_price}")
        links = request_contact_links(request).for_viewer(viewer)
        for link in (links.email, links.whatsapp):
            if link:
                print(f"    {link}")
    return 1 if notifier.errors() else 0


def _sign_in(session: SessionProvider, notifier: Notifier) -> Viewer | None:
    email = os.environ.get("BOOKMART_EMAIL")
    password = os.environ.get("BOOKMART_PASSWORD")
    if not email or not password:
        return session.current_user()
    try:
        return session.sign_in(email, password)
    except AuthError as exc:
        LOGGER.warning("Sign in failed for %s: %s", email, exc)
        notifier.error("Failed to sign in")
        return None


def _fetch_with_retry(fetch_func: Callable[[], Any], label: str, max_attempts: int | None = None) -> Any:
    attempts = max_attempts or max(1, env_int("BROWSE_FETCH_ATTEMPTS", 3))
    for attempt in range(1, attempts + 1):
        try:
            return fetch_func()
        except CatalogError as exc:
            if attempt >= attempts:
                raise
            wait_seconds = attempt * 2
            LOGGER.warning(
                "Fetch retry target=%s attempt=%s/%s wait=%ss error=%s",
                label,
                attempt,
                attempts,
                wait_seconds,
                exc,
            )
            time.sleep(wait_seconds)
    return []


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Browse local book listings and requests.")
    subparsers = parser.add_subparsers(dest="command", required=True)

    listings = subparsers.add_parser("listings", help="Ranked books for sale.")
    listings.add_argument("--search", default="", help="Match title or author.")
    listings.add_argument("--genre", choices=(ALL, *GENRES), default=ALL)
    listings.add_argument("--condition", choices=(ALL, *CONDITIONS), default=ALL)
    listings.add_argument("--min-price", type=float, default=0.0)
    listings.add_argument("--max-price", type=float, default=5000.0)
    listings.add_argument("--max-distance", type=float, default=None, help="Cutoff in km.")
    listings.add_argument("--sort", choices=SORT_KEYS, default="newest")
    listings.add_argument("--location", default="", help="Free-text address to rank distances from.")
    listings.add_argument("--lat", type=float, default=None)
    listings.add_argument("--lng", type=float, default=None)
    listings.add_argument("--no-location", action="store_true", help="Skip the default viewer location.")
    listings.add_argument("--limit", type=int, default=50)
    listings.set_defaults(handler=browse_listings)

    requests = subparsers.add_parser("requests", help="Active wanted posts.")
    requests.add_argument("--search", default="")
    requests.add_argument("--limit", type=int, default=50)
    requests.set_defaults(handler=browse_requests)
    return parser


if __name__ == "__main__":
    parsed = build_parser().parse_args()
    raise SystemExit(parsed.handler(parsed))
