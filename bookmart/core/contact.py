from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any
from urllib.parse import quote

from bookmart.core.models import BookRequest, Listing, Profile


WHATSAPP_BASE_URL = "https://wa.me"
# Characters left unescaped by JavaScript's encodeURIComponent.
_URI_COMPONENT_SAFE = "-_.!~*'()"
_NON_DIGITS = re.compile(r"\D")


@dataclass(slots=True, frozen=True)
class ContactLinks:
    email: str | None
    whatsapp: str | None

    def for_viewer(self, viewer: Any | None) -> ContactLinks:
        """Contact details are only shown to signed-in viewers."""
        if viewer is None:
            return ContactLinks(email=None, whatsapp=None)
        return self


def encode_component(value: str) -> str:
    return quote(value, safe=_URI_COMPONENT_SAFE)


def digits_only(phone: str | None) -> str:
    return _NON_DIGITS.sub("", phone or "")


def mailto_uri(email: str, subject: str, body: str) -> str:
    return f"mailto:{email}?subject={encode_component(subject)}&body={encode_component(body)}"


def whatsapp_uri(phone: str | None, text: str) -> str | None:
    digits = digits_only(phone)
    if not digits:
        return None
    return f"{WHATSAPP_BASE_URL}/{digits}?text={encode_component(text)}"


def listing_interest_message(listing: Listing) -> str:
    return f'Hi! I\'m interested in your book "{listing.title}" by {listing.author}. Is it still available?'


def request_offer_message(request: BookRequest) -> str:
    by_author = f" by {request.author}" if request.author else ""
    return f'Hi! I have the book "{request.title}"{by_author} that you requested. Are you still interested?'


def profile_message(profile: Profile) -> str:
    name = profile.full_name or "there"
    return f"Hi {name}! I'm interested in some of your books. Are they still available?"


def listing_contact_links(listing: Listing) -> ContactLinks:
    message = listing_interest_message(listing)
    email = None
    if listing.seller_contact_email:
        email = mailto_uri(listing.seller_contact_email, f'Interested in "{listing.title}"', message)
    return ContactLinks(email=email, whatsapp=whatsapp_uri(listing.seller_contact_phone, message))


def request_contact_links(request: BookRequest) -> ContactLinks:
    message = request_offer_message(request)
    email = None
    if request.contact_email:
        email = mailto_uri(request.contact_email, f'Book Available: "{request.title}"', message)
    return ContactLinks(email=email, whatsapp=whatsapp_uri(request.contact_phone, message))


def profile_contact_links(profile: Profile) -> ContactLinks:
    message = profile_message(profile)
    email = None
    if profile.email and profile.settings.show_email:
        email = mailto_uri(profile.email, "Interested in your books", message)
    whatsapp = whatsapp_uri(profile.phone, message) if profile.settings.show_phone else None
    return ContactLinks(email=email, whatsapp=whatsapp)
