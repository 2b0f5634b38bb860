from __future__ import annotations

import logging
from dataclasses import replace
from typing import Any

from bookmart.core.errors import CatalogError
from bookmart.core.models import BookRequest, FilterSortConfig, GeoPoint, Listing
from bookmart.core.notices import Notifier
from bookmart.core.ranking import rank_listings


LOGGER = logging.getLogger(__name__)


class BrowseSession:
    """
    Browse view state: catalog snapshot, viewer location and filter config.

    The ranked view is recomputed whenever any of the three changes. Catalog
    fetches are sequenced; only the most recently started fetch may replace
    the snapshot.
    """

    def __init__(self, repo: Any, notifier: Notifier | None = None, config: FilterSortConfig | None = None) -> None:
        self.repo = repo
        self.notifier = notifier or Notifier()
        self.config = config or FilterSortConfig()
        self.listings: list[Listing] = []
        self.viewer_location: GeoPoint | None = None
        self.view: list[Listing] = []
        self.loading = False
        self._fetch_seq = 0

    def refresh(self) -> list[Listing]:
        seq = self.begin_fetch()
        try:
            listings = self.repo.fetch_available_listings()
        except CatalogError as exc:
            self.fail_fetch(seq, exc)
            return self.view
        self.apply_catalog(seq, listings)
        return self.view

    def begin_fetch(self) -> int:
        self._fetch_seq += 1
        self.loading = True
        return self._fetch_seq

    def apply_catalog(self, seq: int, listings: list[Listing]) -> bool:
        if seq != self._fetch_seq:
            LOGGER.info("Discarding stale catalog response seq=%s latest=%s", seq, self._fetch_seq)
            return False
        self.loading = False
        self.listings = list(listings)
        self._recompute()
        return True

    def fail_fetch(self, seq: int, exc: Exception) -> None:
        if seq != self._fetch_seq:
            return
        self.loading = False
        LOGGER.error("Catalog fetch failed: %s", exc, exc_info=exc)
        self.notifier.error("Failed to fetch books")

    def set_location(self, point: GeoPoint | None) -> list[Listing]:
        self.viewer_location = point
        return self._recompute()

    def clear_location(self) -> list[Listing]:
        self.viewer_location = None
        if self.config.sort == "distance":
            self.config = replace(self.config, sort="newest")
        return self._recompute()

    def update_config(self, **changes: Any) -> list[Listing]:
        self.config = replace(self.config, **changes)
        return self._recompute()

    def reset_filters(self) -> list[Listing]:
        self.config = FilterSortConfig(sort=self.config.sort, view_mode=self.config.view_mode)
        return self._recompute()

    def _recompute(self) -> list[Listing]:
        self.view = rank_listings(self.listings, self.viewer_location, self.config)
        return self.view


class RequestBoard:
    """Active "wanted" posts, newest first, narrowed by a text search."""

    def __init__(self, repo: Any, notifier: Notifier | None = None) -> None:
        self.repo = repo
        self.notifier = notifier or Notifier()
        self.requests: list[BookRequest] = []
        self.search = ""
        self._fetch_seq = 0

    @property
    def view(self) -> list[BookRequest]:
        return filter_requests(self.requests, self.search)

    def refresh(self) -> list[BookRequest]:
        self._fetch_seq += 1
        seq = self._fetch_seq
        try:
            requests = self.repo.fetch_active_requests()
        except CatalogError as exc:
            if seq == self._fetch_seq:
                LOGGER.exception("Request fetch failed: %s", exc)
                self.notifier.error("Failed to fetch requests")
            return self.view
        if seq == self._fetch_seq:
            self.requests = list(requests)
        return self.view

    def set_search(self, search: str) -> list[BookRequest]:
        self.search = search
        return self.view


def filter_requests(requests: list[BookRequest], search: str | None) -> list[BookRequest]:
    needle = (search or "").strip().casefold()
    if not needle:
        return list(requests)
    return [
        request
        for request in requests
        if needle in request.title.casefold() or needle in (request.author or "").casefold()
    ]
