from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any

from bookmart.core.errors import ValidationError
from bookmart.core.models import CONDITIONS, PRICE_TYPES


DEFAULT_LANGUAGE = "English"

LISTING_EDITABLE_COLUMNS = (
    "title",
    "author",
    "description",
    "condition",
    "price",
    "price_type",
    "genre",
    "images",
    "location",
    "latitude",
    "longitude",
    "seller_contact_email",
    "seller_contact_phone",
)
REQUEST_EDITABLE_COLUMNS = (
    "title",
    "author",
    "description",
    "preferred_condition",
    "max_price",
    "genre",
    "location",
    "latitude",
    "longitude",
    "contact_email",
    "contact_phone",
)


@dataclass(slots=True)
class ListingForm:
    title: str
    author: str
    condition: str
    location: str
    latitude: float | None
    longitude: float | None
    seller_contact_email: str
    price: str | float | None = None
    price_type: str = "fixed"
    description: str = ""
    genre: str = ""
    year_published: str | int | None = None
    language: str = DEFAULT_LANGUAGE
    seller_contact_phone: str = ""
    images: list[str] = field(default_factory=list)


@dataclass(slots=True)
class RequestForm:
    title: str
    location: str
    latitude: float | None
    longitude: float | None
    contact_email: str
    author: str = ""
    description: str = ""
    max_price: str | float | None = None
    preferred_condition: str = ""
    genre: str = ""
    contact_phone: str = ""


def build_listing_row(form: ListingForm, seller_id: str) -> dict[str, Any]:
    price_type = _require_choice("price_type", form.price_type, PRICE_TYPES)
    row = {
        "seller_id": seller_id,
        "title": _require_text("title", form.title),
        "author": _require_text("author", form.author),
        "description": _blank_to_none(form.description),
        "condition": _require_choice("condition", form.condition, CONDITIONS),
        "price": _listing_price(form.price, price_type),
        "price_type": price_type,
        "genre": _blank_to_none(form.genre),
        "year_published": _parse_year(form.year_published),
        "language": _blank_to_none(form.language),
        "images": list(form.images),
        "seller_contact_phone": _blank_to_none(form.seller_contact_phone),
        "seller_contact_email": _require_text("seller_contact_email", form.seller_contact_email),
    }
    row.update(_location_columns(form.location, form.latitude, form.longitude))
    return row


def build_listing_update(changes: dict[str, Any]) -> dict[str, Any]:
    """
    Keep only owner-editable columns and normalize them like the sell form.
    """
    update = {key: value for key, value in changes.items() if key in LISTING_EDITABLE_COLUMNS}
    if "title" in update:
        update["title"] = _require_text("title", update["title"])
    if "author" in update:
        update["author"] = _require_text("author", update["author"])
    if "condition" in update:
        update["condition"] = _require_choice("condition", update["condition"], CONDITIONS)
    if "price_type" in update:
        update["price_type"] = _require_choice("price_type", update["price_type"], PRICE_TYPES)
        if update["price_type"] == "price_on_call":
            update["price"] = None
    if update.get("price") is not None:
        update["price"] = _listing_price(update["price"], update.get("price_type", "fixed"))
    for key in ("description", "genre", "seller_contact_phone"):
        if key in update:
            update[key] = _blank_to_none(update[key])
    if "images" in update:
        update["images"] = list(update["images"] or [])
    return update


def build_request_row(form: RequestForm, requester_id: str) -> dict[str, Any]:
    row = {
        "requester_id": requester_id,
        "title": _require_text("title", form.title),
        "author": _blank_to_none(form.author),
        "description": _blank_to_none(form.description),
        "max_price": _optional_amount("max_price", form.max_price),
        "preferred_condition": _optional_choice("preferred_condition", form.preferred_condition, CONDITIONS),
        "genre": _blank_to_none(form.genre),
        "contact_phone": _blank_to_none(form.contact_phone),
        "contact_email": _require_text("contact_email", form.contact_email),
        "is_active": True,
    }
    row.update(_location_columns(form.location, form.latitude, form.longitude))
    return row


def build_request_update(changes: dict[str, Any]) -> dict[str, Any]:
    update = {key: value for key, value in changes.items() if key in REQUEST_EDITABLE_COLUMNS}
    if "title" in update:
        update["title"] = _require_text("title", update["title"])
    if "max_price" in update:
        update["max_price"] = _optional_amount("max_price", update["max_price"])
    if "preferred_condition" in update:
        update["preferred_condition"] = _optional_choice(
            "preferred_condition", update["preferred_condition"], CONDITIONS
        )
    for key in ("author", "description", "genre", "contact_phone"):
        if key in update:
            update[key] = _blank_to_none(update[key])
    return update


def _listing_price(value: Any, price_type: str) -> float | None:
    if price_type == "price_on_call":
        return None
    amount = _optional_amount("price", value)
    if amount is None:
        raise ValidationError("price", "Enter a price or choose price on call.")
    return amount


def _optional_amount(field_name: str, value: Any) -> float | None:
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    try:
        amount = float(value)
    except (TypeError, ValueError):
        raise ValidationError(field_name, f"{field_name} must be a number.") from None
    if math.isnan(amount) or math.isinf(amount) or amount < 0:
        raise ValidationError(field_name, f"{field_name} must be a non-negative number.")
    return amount


def _parse_year(value: Any) -> int | None:
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    try:
        return int(str(value).strip())
    except ValueError:
        raise ValidationError("year_published", "Year published must be a whole number.") from None


def _location_columns(location: str, latitude: float | None, longitude: float | None) -> dict[str, Any]:
    label = _require_text("location", location)
    if latitude is None or longitude is None:
        raise ValidationError("location", "Pick a location on the map.")
    try:
        lat = float(latitude)
        lng = float(longitude)
    except (TypeError, ValueError):
        raise ValidationError("location", "Coordinates must be numbers.") from None
    if not (-90 <= lat <= 90 and -180 <= lng <= 180):
        raise ValidationError("location", "Coordinates are out of range.")
    return {"location": label, "latitude": lat, "longitude": lng}


def _require_text(field_name: str, value: Any) -> str:
    text = str(value or "").strip()
    if not text:
        raise ValidationError(field_name, f"{field_name} is required.")
    return text


def _require_choice(field_name: str, value: Any, choices: tuple[str, ...]) -> str:
    text = str(value or "").strip()
    if text not in choices:
        raise ValidationError(field_name, f"{field_name} must be one of: {', '.join(choices)}.")
    return text


def _optional_choice(field_name: str, value: Any, choices: tuple[str, ...]) -> str | None:
    if not str(value or "").strip():
        return None
    return _require_choice(field_name, value, choices)


def _blank_to_none(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None
