from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Any, Iterable

from bookmart.core.errors import AuthError, CatalogError, OwnershipError, ValidationError
from bookmart.core.images import ImageFile, remove_image, upload_images
from bookmart.core.models import BookRequest, Listing, Profile
from bookmart.core.notices import Notifier
from bookmart.core.payloads import (
    ListingForm,
    RequestForm,
    build_listing_row,
    build_listing_update,
    build_request_row,
    build_request_update,
)
from bookmart.core.session import SessionProvider, Viewer
from bookmart.core.supabase_repo import SupabaseRepo


LOGGER = logging.getLogger(__name__)

INVALID_ENUM_CODE = "22P02"
PROFILE_EDITABLE_COLUMNS = ("full_name", "phone", "bio", "location", "avatar_url")


@dataclass(slots=True)
class PublicProfile:
    profile: Profile
    listings: list[Listing] = field(default_factory=list)


class Marketplace:
    """
    Owner-facing operations. Every failure is caught here and turned into a
    notice; callers get None or False back instead of an exception.
    """

    def __init__(self, repo: SupabaseRepo, session: SessionProvider, notifier: Notifier | None = None) -> None:
        self.repo = repo
        self.session = session
        self.notifier = notifier or Notifier()

    # listings

    def listing_details(self, listing_id: str) -> Listing | None:
        try:
            listing = self.repo.get_listing(listing_id)
        except CatalogError as exc:
            LOGGER.exception("Listing fetch failed id=%s: %s", listing_id, exc)
            listing = None
        if listing is None:
            self.notifier.error("Failed to fetch book details")
        return listing

    def my_listings(self) -> list[Listing]:
        viewer = self._require_viewer()
        if viewer is None:
            return []
        try:
            return self.repo.fetch_listings_by_seller(viewer.id)
        except CatalogError as exc:
            LOGGER.exception("Seller listings fetch failed seller=%s: %s", viewer.id, exc)
            self.notifier.error("Failed to fetch listings")
            return []

    def list_book(self, form: ListingForm, images: Iterable[ImageFile] = ()) -> Listing | None:
        viewer = self._require_viewer()
        if viewer is None:
            return None
        try:
            row = build_listing_row(form, viewer.id)
            row["images"] = upload_images(self.repo, viewer.id, images, existing=row["images"])
            listing = self.repo.insert_listing(row)
        except ValidationError as exc:
            self.notifier.error(str(exc))
            return None
        except CatalogError as exc:
            LOGGER.exception("Listing insert failed seller=%s: %s", viewer.id, exc)
            if exc.code == INVALID_ENUM_CODE and "book_condition" in str(exc):
                self.notifier.error("Please select a valid book condition")
            else:
                self.notifier.error("Failed to create listing")
            return None
        self.notifier.success("Book listed successfully!")
        return listing

    def edit_listing(
        self,
        listing_id: str,
        changes: dict[str, Any],
        new_images: Iterable[ImageFile] = (),
        remove_indexes: Iterable[int] = (),
    ) -> Listing | None:
        viewer = self._require_viewer()
        if viewer is None:
            return None
        listing = self._owned_listing(listing_id, viewer)
        if listing is None:
            return None
        try:
            update = build_listing_update(changes)
            images = list(update.get("images", listing.images))
            for index in sorted(set(remove_indexes), reverse=True):
                images = remove_image(images, index)
            update["images"] = upload_images(self.repo, viewer.id, new_images, existing=images)
            updated = self.repo.update_listing(listing_id, viewer.id, update)
        except ValidationError as exc:
            self.notifier.error(str(exc))
            return None
        except OwnershipError:
            self.notifier.error("You do not have permission to edit this listing")
            return None
        except CatalogError as exc:
            LOGGER.exception("Listing update failed id=%s: %s", listing_id, exc)
            self.notifier.error("Failed to update listing")
            return None
        self.notifier.success("Listing updated successfully")
        return updated

    def delete_listing(self, listing_id: str) -> bool:
        viewer = self._require_viewer()
        if viewer is None:
            return False
        try:
            self.repo.delete_listing(listing_id, viewer.id)
        except OwnershipError:
            self.notifier.error("You do not have permission to delete this listing")
            return False
        except CatalogError as exc:
            LOGGER.exception("Listing delete failed id=%s: %s", listing_id, exc)
            self.notifier.error("Failed to delete listing")
            return False
        self.notifier.success("Listing deleted successfully")
        return True

    # requests

    def my_requests(self) -> list[BookRequest]:
        viewer = self._require_viewer()
        if viewer is None:
            return []
        try:
            return self.repo.fetch_requests_by_requester(viewer.id)
        except CatalogError as exc:
            LOGGER.exception("Requester requests fetch failed requester=%s: %s", viewer.id, exc)
            self.notifier.error("Failed to load your requests")
            return []

    def post_request(self, form: RequestForm) -> BookRequest | None:
        viewer = self._require_viewer()
        if viewer is None:
            return None
        if not form.contact_email and viewer.email:
            form = replace(form, contact_email=viewer.email)
        try:
            request = self.repo.insert_request(build_request_row(form, viewer.id))
        except ValidationError as exc:
            self.notifier.error(str(exc))
            return None
        except CatalogError as exc:
            LOGGER.exception("Request insert failed requester=%s: %s", viewer.id, exc)
            self.notifier.error("Failed to create request")
            return None
        self.notifier.success("Book request created successfully!")
        return request

    def edit_request(self, request_id: str, changes: dict[str, Any]) -> BookRequest | None:
        viewer = self._require_viewer()
        if viewer is None:
            return None
        request = self._owned_request(request_id, viewer)
        if request is None:
            return None
        try:
            updated = self.repo.update_request(request_id, viewer.id, build_request_update(changes))
        except ValidationError as exc:
            self.notifier.error(str(exc))
            return None
        except OwnershipError:
            self.notifier.error("You do not have permission to edit this request")
            return None
        except CatalogError as exc:
            LOGGER.exception("Request update failed id=%s: %s", request_id, exc)
            self.notifier.error("Failed to update request")
            return None
        self.notifier.success("Request updated successfully")
        return updated

    def toggle_request(self, request_id: str, is_active: bool) -> BookRequest | None:
        viewer = self._require_viewer()
        if viewer is None:
            return None
        try:
            updated = self.repo.set_request_active(request_id, viewer.id, not is_active)
        except CatalogError as exc:
            LOGGER.exception("Request status update failed id=%s: %s", request_id, exc)
            self.notifier.error("Failed to update request status")
            return None
        self.notifier.success("Request deactivated" if is_active else "Request activated")
        return updated

    def delete_request(self, request_id: str) -> bool:
        viewer = self._require_viewer()
        if viewer is None:
            return False
        try:
            self.repo.delete_request(request_id, viewer.id)
        except OwnershipError:
            self.notifier.error("You do not have permission to delete this request")
            return False
        except CatalogError as exc:
            LOGGER.exception("Request delete failed id=%s: %s", request_id, exc)
            self.notifier.error("Failed to delete request")
            return False
        self.notifier.success("Request deleted successfully")
        return True

    # profiles

    def public_profile(self, user_id: str) -> PublicProfile | None:
        try:
            profile = self.repo.get_profile(user_id)
        except CatalogError as exc:
            LOGGER.exception("Profile fetch failed id=%s: %s", user_id, exc)
            profile = None
        if profile is None:
            self.notifier.error("Failed to fetch profile")
            return None
        try:
            listings = self.repo.fetch_available_listings_by_seller(user_id)
        except CatalogError as exc:
            LOGGER.exception("Profile books fetch failed id=%s: %s", user_id, exc)
            self.notifier.error("Failed to fetch books")
            listings = []
        return PublicProfile(profile=public_view(profile), listings=listings)

    def update_profile(self, changes: dict[str, Any]) -> Profile | None:
        viewer = self._require_viewer()
        if viewer is None:
            return None
        update = {key: value for key, value in changes.items() if key in PROFILE_EDITABLE_COLUMNS}
        update["updated_at"] = _now_iso()
        try:
            profile = self.repo.update_profile(viewer.id, update)
        except CatalogError as exc:
            LOGGER.exception("Profile update failed id=%s: %s", viewer.id, exc)
            self.notifier.error("Failed to update profile")
            return None
        self.notifier.success("Profile updated successfully")
        return profile

    def update_settings(self, **settings: bool) -> Profile | None:
        viewer = self._require_viewer()
        if viewer is None:
            return None
        try:
            profile = self.repo.get_profile(viewer.id)
            if profile is None:
                raise OwnershipError("profiles", viewer.id)
            merged = replace(profile.settings, **settings)
            updated = self.repo.update_profile_settings(viewer.id, merged, _now_iso())
        except (CatalogError, TypeError) as exc:
            LOGGER.exception("Settings update failed id=%s: %s", viewer.id, exc)
            self.notifier.error("Failed to update settings")
            return None
        self.notifier.success("Settings updated successfully")
        return updated

    def change_password(self, new_password: str, confirm_password: str) -> bool:
        try:
            self.session.change_password(new_password, confirm_password)
        except (ValidationError, AuthError) as exc:
            self.notifier.error(str(exc))
            return False
        self.notifier.success("Password updated successfully")
        return True

    def _require_viewer(self) -> Viewer | None:
        viewer = self.session.current_user()
        if viewer is None:
            self.notifier.error("Please sign in to continue")
        return viewer

    def _owned_listing(self, listing_id: str, viewer: Viewer) -> Listing | None:
        try:
            listing = self.repo.get_listing(listing_id)
        except CatalogError as exc:
            LOGGER.exception("Listing fetch failed id=%s: %s", listing_id, exc)
            self.notifier.error("Failed to fetch book details")
            return None
        if listing is None:
            self.notifier.error("Failed to fetch book details")
            return None
        if listing.seller_id != viewer.id:
            self.notifier.error("You do not have permission to edit this listing")
            return None
        return listing

    def _owned_request(self, request_id: str, viewer: Viewer) -> BookRequest | None:
        try:
            request = self.repo.get_request(request_id)
        except CatalogError as exc:
            LOGGER.exception("Request fetch failed id=%s: %s", request_id, exc)
            self.notifier.error("Failed to fetch request details")
            return None
        if request is None:
            self.notifier.error("Failed to fetch request details")
            return None
        if request.requester_id != viewer.id:
            self.notifier.error("You do not have permission to edit this request")
            return None
        return request


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def public_view(profile: Profile) -> Profile:
    """Copy of profile with fields hidden by its visibility settings blanked."""
    settings = profile.settings
    return replace(
        profile,
        email=profile.email if settings.show_email else "",
        phone=profile.phone if settings.show_phone else None,
        location=profile.location if settings.show_location else None,
    )
