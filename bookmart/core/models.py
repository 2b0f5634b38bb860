from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any


ALL = "all"
CONDITIONS = ("new", "like_new", "good", "fair", "poor")
PRICE_TYPES = ("fixed", "negotiable", "price_on_call")
SORT_KEYS = ("newest", "oldest", "price_asc", "price_desc", "distance", "title")
GENRES = (
    "Fiction",
    "Non-Fiction",
    "Mystery",
    "Romance",
    "Science Fiction",
    "Fantasy",
    "Biography",
    "History",
    "Self-Help",
    "Business",
    "Textbook",
    "Children",
    "Young Adult",
    "Poetry",
    "Drama",
    "Other",
)
DEFAULT_PRICE_MIN = 0.0
DEFAULT_PRICE_MAX = 5000.0

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


@dataclass(slots=True, frozen=True)
class GeoPoint:
    lat: float
    lng: float


@dataclass(slots=True)
class Listing:
    id: str
    seller_id: str | None
    title: str
    author: str
    condition: str  # new | like_new | good | fair | poor
    price: float | None
    price_type: str  # fixed | negotiable | price_on_call
    location: str
    seller_contact_email: str
    created_at: datetime
    description: str | None = None
    genre: str | None = None
    year_published: int | None = None
    language: str | None = None
    images: list[str] = field(default_factory=list)
    latitude: float | None = None
    longitude: float | None = None
    seller_contact_phone: str | None = None
    is_available: bool = True
    updated_at: datetime | None = None
    distance_km: float | None = None

    @property
    def is_price_on_call(self) -> bool:
        return self.price_type == "price_on_call"

    @property
    def coordinates(self) -> GeoPoint | None:
        if self.latitude is None or self.longitude is None:
            return None
        return GeoPoint(self.latitude, self.longitude)


@dataclass(slots=True)
class BookRequest:
    id: str
    requester_id: str | None
    title: str
    location: str
    contact_email: str
    created_at: datetime
    author: str | None = None
    description: str | None = None
    max_price: float | None = None
    preferred_condition: str | None = None
    genre: str | None = None
    latitude: float | None = None
    longitude: float | None = None
    contact_phone: str | None = None
    is_active: bool = True
    updated_at: datetime | None = None


@dataclass(slots=True)
class ProfileSettings:
    email_notifications: bool = True
    show_phone: bool = True
    show_email: bool = True
    show_location: bool = True

    def to_row(self) -> dict[str, bool]:
        return {
            "email_notifications": self.email_notifications,
            "show_phone": self.show_phone,
            "show_email": self.show_email,
            "show_location": self.show_location,
        }


@dataclass(slots=True)
class Profile:
    id: str
    email: str
    full_name: str | None = None
    phone: str | None = None
    avatar_url: str | None = None
    location: str | None = None
    bio: str | None = None
    settings: ProfileSettings = field(default_factory=ProfileSettings)
    created_at: datetime | None = None
    updated_at: datetime | None = None


@dataclass(slots=True)
class FilterSortConfig:
    """
    Transient browse controls. None on either price bound means unbounded.
    """

    search: str = ""
    genre: str = ALL
    condition: str = ALL
    price_min: float | None = DEFAULT_PRICE_MIN
    price_max: float | None = DEFAULT_PRICE_MAX
    max_distance_km: float | None = None
    sort: str = "newest"
    view_mode: str = "grid"  # grid | list, presentational only


def listing_from_row(row: dict[str, Any]) -> Listing:
    return Listing(
        id=str(row.get("id") or ""),
        seller_id=_optional_str(row.get("seller_id")),
        title=str(row.get("title") or ""),
        author=str(row.get("author") or ""),
        description=_optional_str(row.get("description")),
        condition=str(row.get("condition") or ""),
        price=_safe_float(row.get("price")),
        price_type=str(row.get("price_type") or "fixed"),
        genre=_optional_str(row.get("genre")),
        year_published=_safe_int(row.get("year_published")),
        language=_optional_str(row.get("language")),
        images=[str(url) for url in (row.get("images") or []) if url],
        location=str(row.get("location") or ""),
        latitude=_valid_coordinate(row.get("latitude"), 90.0),
        longitude=_valid_coordinate(row.get("longitude"), 180.0),
        seller_contact_email=str(row.get("seller_contact_email") or ""),
        seller_contact_phone=_optional_str(row.get("seller_contact_phone")),
        is_available=bool(row.get("is_available", True)),
        created_at=parse_timestamp(row.get("created_at")),
        updated_at=parse_timestamp(row["updated_at"]) if row.get("updated_at") else None,
    )


def request_from_row(row: dict[str, Any]) -> BookRequest:
    return BookRequest(
        id=str(row.get("id") or ""),
        requester_id=_optional_str(row.get("requester_id")),
        title=str(row.get("title") or ""),
        author=_optional_str(row.get("author")),
        description=_optional_str(row.get("description")),
        max_price=_safe_float(row.get("max_price")),
        preferred_condition=_optional_str(row.get("preferred_condition")),
        genre=_optional_str(row.get("genre")),
        location=str(row.get("location") or ""),
        latitude=_valid_coordinate(row.get("latitude"), 90.0),
        longitude=_valid_coordinate(row.get("longitude"), 180.0),
        contact_email=str(row.get("contact_email") or ""),
        contact_phone=_optional_str(row.get("contact_phone")),
        is_active=bool(row.get("is_active", True)),
        created_at=parse_timestamp(row.get("created_at")),
        updated_at=parse_timestamp(row["updated_at"]) if row.get("updated_at") else None,
    )


def profile_from_row(row: dict[str, Any]) -> Profile:
    raw_settings = row.get("settings")
    settings = ProfileSettings()
    if isinstance(raw_settings, dict):
        settings = ProfileSettings(
            email_notifications=bool(raw_settings.get("email_notifications", True)),
            show_phone=bool(raw_settings.get("show_phone", True)),
            show_email=bool(raw_settings.get("show_email", True)),
            show_location=bool(raw_settings.get("show_location", True)),
        )
    return Profile(
        id=str(row.get("id") or ""),
        email=str(row.get("email") or ""),
        full_name=_optional_str(row.get("full_name")),
        phone=_optional_str(row.get("phone")),
        avatar_url=_optional_str(row.get("avatar_url")),
        location=_optional_str(row.get("location")),
        bio=_optional_str(row.get("bio")),
        settings=settings,
        created_at=parse_timestamp(row["created_at"]) if row.get("created_at") else None,
        updated_at=parse_timestamp(row["updated_at"]) if row.get("updated_at") else None,
    )


def parse_timestamp(value: Any) -> datetime:
    if isinstance(value, datetime):
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value
    if isinstance(value, str) and value.strip():
        try:
            parsed = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
        except ValueError:
            return EPOCH
        if parsed.tzinfo is None:
            return parsed.replace(tzinfo=timezone.utc)
        return parsed
    return EPOCH


def _valid_coordinate(value: Any, bound: float) -> float | None:
    number = _safe_float(value)
    if number is None or math.isnan(number) or not -bound <= number <= bound:
        return None
    return number


def _optional_str(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _safe_float(value: Any) -> float | None:
    try:
        return float(value) if value is not None else None
    except (TypeError, ValueError):
        return None


def _safe_int(value: Any) -> int | None:
    try:
        return int(value) if value is not None else None
    except (TypeError, ValueError):
        return None
