from bookmart.core.contact import (
    digits_only,
    listing_contact_links,
    mailto_uri,
    profile_contact_links,
    profile_message,
    request_contact_links,
    whatsapp_uri,
)
from bookmart.core.models import BookRequest, Profile, ProfileSettings
from bookmart.core.session import Viewer
from bookmart.tests.fakes import BASE_TIME, make_listing


def test_mailto_encodes_subject_and_body():
    uri = mailto_uri("seller@example.com", 'Interested in "Dune"', "Hi! Is it still available?")
    assert uri == (
        "mailto:seller@example.com?subject=Interested%20in%20%22Dune%22"
        "&body=Hi!%20Is%20it%20still%20available%3F"
    )


def test_whatsapp_strips_phone_to_digits():
    assert digits_only("+91 (98765) 43-210") == "919876543210"
    assert whatsapp_uri("+91 98765 43210", "Hello there") == "https://wa.me/919876543210?text=Hello%20there"


def test_whatsapp_without_digits_is_none():
    assert whatsapp_uri(None, "hi") is None
    assert whatsapp_uri("call me", "hi") is None


def test_listing_links_use_interest_message():
    listing = make_listing("Dune", author="Frank Herbert")
    listing.seller_contact_phone = "98400-12345"
    links = listing_contact_links(listing)
    assert links.email.startswith("mailto:seller@example.com?subject=Interested%20in%20%22Dune%22&body=")
    assert "by%20Frank%20Herbert" in links.email
    assert links.whatsapp.startswith("https://wa.me/9840012345?text=Hi!%20I'm%20interested")


def test_request_links_mention_author_only_when_known():
    request = BookRequest(
        id="r1",
        requester_id="u1",
        title="Emma",
        location="Chennai",
        contact_email="reader@example.com",
        created_at=BASE_TIME,
    )
    links = request_contact_links(request)
    assert "subject=Book%20Available%3A%20%22Emma%22" in links.email
    assert "%20by%20" not in links.email
    assert links.whatsapp is None

    request.author = "Jane Austen"
    assert "%20by%20Jane%20Austen" in request_contact_links(request).email


def test_profile_links_respect_visibility_settings():
    profile = Profile(
        id="u1",
        email="seller@example.com",
        full_name="Asha",
        phone="+91 90000 00000",
        settings=ProfileSettings(show_email=False, show_phone=True),
    )
    links = profile_contact_links(profile)
    assert links.email is None
    assert links.whatsapp.startswith("https://wa.me/919000000000?text=Hi%20Asha!")


def test_links_hidden_from_anonymous_viewers():
    links = listing_contact_links(make_listing("Dune"))
    assert links.for_viewer(None).email is None
    assert links.for_viewer(Viewer(id="u2", email="buyer@example.com")) == links


def test_profile_message_asks_about_some_books():
    profile = Profile(id="u1", email="seller@example.com", full_name="Asha")
    assert profile_message(profile) == "Hi Asha! I'm interested in some of your books. Are they still available?"
