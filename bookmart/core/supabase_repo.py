from __future__ import annotations

import os
from typing import Any, Callable

from supabase import Client, create_client

from bookmart.core.errors import CatalogError, OwnershipError
from bookmart.core.models import (
    BookRequest,
    Listing,
    Profile,
    ProfileSettings,
    listing_from_row,
    profile_from_row,
    request_from_row,
)


BOOKS_TABLE = "books"
REQUESTS_TABLE = "book_requests"
PROFILES_TABLE = "profiles"
IMAGES_BUCKET = "book-images"


class SupabaseRepo:
    def __init__(self, url: str | None = None, anon_key: str | None = None, client: Client | None = None) -> None:
        self.client: Client
        if client is not None:
            self.client = client
            return
        supabase_url = url or os.environ.get("SUPABASE_URL")
        supabase_key = anon_key or os.environ.get("SUPABASE_ANON_KEY")
        if not supabase_url or not supabase_key:
            raise ValueError("SUPABASE_URL and SUPABASE_ANON_KEY are required.")
        self.client = create_client(supabase_url, supabase_key)

    # books

    def fetch_available_listings(self, limit: int | None = None) -> list[Listing]:
        def query() -> list[dict[str, Any]]:
            builder = (
                self.client.table(BOOKS_TABLE)
                .select("*")
                .eq("is_available", True)
                .order("created_at", desc=True)
            )
            if limit is not None:
                builder = builder.limit(limit)
            return builder.execute().data or []

        return [listing_from_row(row) for row in _run("fetch available books", query)]

    def fetch_listings_by_seller(self, seller_id: str) -> list[Listing]:
        rows = _run(
            "fetch seller books",
            lambda: self.client.table(BOOKS_TABLE)
            .select("*")
            .eq("seller_id", seller_id)
            .order("created_at", desc=True)
            .execute()
            .data
            or [],
        )
        return [listing_from_row(row) for row in rows]

    def fetch_available_listings_by_seller(self, seller_id: str) -> list[Listing]:
        rows = _run(
            "fetch seller available books",
            lambda: self.client.table(BOOKS_TABLE)
            .select("*")
            .eq("seller_id", seller_id)
            .eq("is_available", True)
            .order("created_at", desc=True)
            .execute()
            .data
            or [],
        )
        return [listing_from_row(row) for row in rows]

    def get_listing(self, listing_id: str) -> Listing | None:
        rows = _run(
            "get book",
            lambda: self.client.table(BOOKS_TABLE).select("*").eq("id", listing_id).limit(1).execute().data or [],
        )
        return listing_from_row(rows[0]) if rows else None

    def insert_listing(self, row: dict[str, Any]) -> Listing:
        rows = _run("insert book", lambda: self.client.table(BOOKS_TABLE).insert(row).execute().data or [])
        return listing_from_row(rows[0] if rows else row)

    def update_listing(self, listing_id: str, seller_id: str, changes: dict[str, Any]) -> Listing:
        rows = _run(
            "update book",
            lambda: self.client.table(BOOKS_TABLE)
            .update(changes)
            .eq("id", listing_id)
            .eq("seller_id", seller_id)
            .execute()
            .data
            or [],
        )
        if not rows:
            raise OwnershipError(BOOKS_TABLE, listing_id)
        return listing_from_row(rows[0])

    def delete_listing(self, listing_id: str, seller_id: str) -> None:
        rows = _run(
            "delete book",
            lambda: self.client.table(BOOKS_TABLE)
            .delete()
            .eq("id", listing_id)
            .eq("seller_id", seller_id)
            .execute()
            .data
            or [],
        )
        if not rows:
            raise OwnershipError(BOOKS_TABLE, listing_id)

    # book_requests

    def fetch_active_requests(self) -> list[BookRequest]:
        rows = _run(
            "fetch active requests",
            lambda: self.client.table(REQUESTS_TABLE)
            .select("*")
            .eq("is_active", True)
            .order("created_at", desc=True)
            .execute()
            .data
            or [],
        )
        return [request_from_row(row) for row in rows]

    def fetch_requests_by_requester(self, requester_id: str) -> list[BookRequest]:
        rows = _run(
            "fetch requester requests",
            lambda: self.client.table(REQUESTS_TABLE)
            .select("*")
            .eq("requester_id", requester_id)
            .order("created_at", desc=True)
            .execute()
            .data
            or [],
        )
        return [request_from_row(row) for row in rows]

    def get_request(self, request_id: str) -> BookRequest | None:
        rows = _run(
            "get request",
            lambda: self.client.table(REQUESTS_TABLE).select("*").eq("id", request_id).limit(1).execute().data
            or [],
        )
        return request_from_row(rows[0]) if rows else None

    def insert_request(self, row: dict[str, Any]) -> BookRequest:
        rows = _run("insert request", lambda: self.client.table(REQUESTS_TABLE).insert(row).execute().data or [])
        return request_from_row(rows[0] if rows else row)

    def update_request(self, request_id: str, requester_id: str, changes: dict[str, Any]) -> BookRequest:
        rows = _run(
            "update request",
            lambda: self.client.table(REQUESTS_TABLE)
            .update(changes)
            .eq("id", request_id)
            .eq("requester_id", requester_id)
            .execute()
            .data
            or [],
        )
        if not rows:
            raise OwnershipError(REQUESTS_TABLE, request_id)
        return request_from_row(rows[0])

    def set_request_active(self, request_id: str, requester_id: str, is_active: bool) -> BookRequest:
        return self.update_request(request_id, requester_id, {"is_active": is_active})

    def delete_request(self, request_id: str, requester_id: str) -> None:
        rows = _run(
            "delete request",
            lambda: self.client.table(REQUESTS_TABLE)
            .delete()
            .eq("id", request_id)
            .eq("requester_id", requester_id)
            .execute()
            .data
            or [],
        )
        if not rows:
            raise OwnershipError(REQUESTS_TABLE, request_id)

    # profiles

    def get_profile(self, user_id: str) -> Profile | None:
        rows = _run(
            "get profile",
            lambda: self.client.table(PROFILES_TABLE).select("*").eq("id", user_id).limit(1).execute().data or [],
        )
        return profile_from_row(rows[0]) if rows else None

    def update_profile(self, user_id: str, changes: dict[str, Any]) -> Profile:
        rows = _run(
            "update profile",
            lambda: self.client.table(PROFILES_TABLE).update(changes).eq("id", user_id).execute().data or [],
        )
        if not rows:
            raise OwnershipError(PROFILES_TABLE, user_id)
        return profile_from_row(rows[0])

    def update_profile_settings(self, user_id: str, settings: ProfileSettings, updated_at: str) -> Profile:
        return self.update_profile(user_id, {"settings": settings.to_row(), "updated_at": updated_at})

    # storage

    def upload_image(self, path: str, content: bytes, content_type: str | None = None) -> None:
        options = {"content-type": content_type} if content_type else None
        _run(
            "upload image",
            lambda: self.client.storage.from_(IMAGES_BUCKET).upload(path, content, file_options=options),
        )

    def public_image_url(self, path: str) -> str:
        return str(self.client.storage.from_(IMAGES_BUCKET).get_public_url(path))


def _run(action: str, call: Callable[[], Any]) -> Any:
    try:
        return call()
    except CatalogError:
        raise
    except Exception as exc:  # noqa: BLE001
        code = getattr(exc, "code", None)
        message = getattr(exc, "message", None) or str(exc)
        raise CatalogError(f"{action} failed: {message}", code=str(code) if code else None) from exc
