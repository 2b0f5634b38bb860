from __future__ import annotations

import re

from bookmart.core.geo import is_missing
from bookmart.core.models import Listing


DEFAULT_CURRENCY = "₹"


def format_price(listing: Listing, currency: str = DEFAULT_CURRENCY) -> str:
    if listing.is_price_on_call:
        return "Price on Call"
    price_text = "Free"
    if not is_missing(listing.price) and listing.price:
        price_text = f"{currency}{_format_amount(listing.price)}"
    if listing.price_type == "negotiable":
        return f"{price_text} (Negotiable)"
    return price_text


def format_condition(condition: str | None) -> str:
    text = (condition or "").replace("_", " ")
    return re.sub(r"\b\w", lambda match: match.group(0).upper(), text)


def format_distance(distance_km: float | None) -> str:
    if is_missing(distance_km):
        return ""
    if distance_km < 1:
        return f"{round(distance_km * 1000)} m"
    return f"{distance_km:.1f} km"


def _format_amount(value: float) -> str:
    if float(value).is_integer():
        return str(int(value))
    return f"{value:.2f}"
