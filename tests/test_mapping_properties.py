"""
Property-based tests for mapping raw provider records into PropertyListing.
"""

from hypothesis import given, settings, strategies as st

from homesearch.models import ListingsSource
from homesearch.services.repliers.mapping import (
    as_numeric,
    extract_source_id,
    format_address,
    get_listing_array,
    listing_to_property,
    to_cdn_url,
)


CDN = "https://cdn.repliers.io"


def test_full_record_mapping():
    raw = {
        "mlsNumber": "N123",
        "listPrice": "1,250,000",
        "address": {
            "streetNumber": "12",
            "streetName": "Main",
            "streetSuffix": "St",
            "unitNumber": "4",
            "city": "Austin",
            "state": "TX",
            "zip": "78701",
        },
        "details": {"numBedrooms": 3, "numBathrooms": "2.5", "sqft": "1,800"},
        "images": ["sandbox/IMG-1.jpg", {"url": "https://example.com/a.jpg"}],
    }

    prop = listing_to_property(raw, CDN)

    assert prop.source == ListingsSource.REPLIERS
    assert prop.source_id == "N123"
    assert prop.address == "12 Main St #4, Austin, TX 78701"
    assert prop.price == 1250000
    assert prop.beds == 3
    assert prop.baths == 2.5
    assert prop.sqft == 1800
    assert prop.photos == [
        "https://cdn.repliers.io/sandbox/IMG-1.jpg?class=medium",
        "https://example.com/a.jpg",
    ]


def test_oversized_integers_map_to_unknown():
    prop = listing_to_property({"id": "x", "listPrice": 10 ** 400, "sqft": 1200})

    assert prop.price is None
    assert prop.sqft == 1200


def test_details_take_precedence_over_top_level():
    prop = listing_to_property({"id": "x", "beds": 9, "details": {"bedrooms": 2}})
    assert prop.beds == 2


def test_missing_fields_are_none():
    prop = listing_to_property({"id": "x"})

    assert prop.address == ""
    assert prop.price is None
    assert prop.beds is None
    assert prop.baths is None
    assert prop.sqft is None
    assert prop.photos == []


def test_non_dict_record_maps_to_placeholder():
    prop = listing_to_property("garbage")
    assert prop.address == ""
    assert prop.source_id


def test_string_address_fallbacks():
    assert listing_to_property({"id": "a", "address": "  1  Elm  St "}).address == "1 Elm St"
    assert listing_to_property({"id": "a", "fullAddress": "2 Oak Rd"}).address == "2 Oak Rd"


def test_format_address_skips_blank_parts():
    assert format_address({"streetNumber": "5", "streetName": " ", "city": "Reno"}) == "5, Reno"
    assert format_address({"city": "Reno", "state": "NV", "postalCode": "89501"}) == "Reno, NV 89501"


def test_source_id_precedence():
    assert extract_source_id({"id": "  ", "listingId": "L1"}) == "L1"
    assert extract_source_id({"id": 42}) == "42"
    assert extract_source_id({"id": 42.0}) == "42"
    assert extract_source_id({"id": "A", "mlsNumber": "B"}) == "A"


def test_source_id_booleans_are_not_ids():
    generated = extract_source_id({"id": True})
    assert generated != "True"
    assert len(generated) == 36


def test_records_without_ids_get_distinct_ids():
    assert extract_source_id({}) != extract_source_id({})


def test_numeric_coercion_edge_cases():
    assert as_numeric(True) is None
    assert as_numeric("") is None
    assert as_numeric("abc") is None
    assert as_numeric("nan") is None
    assert as_numeric(float("inf")) is None
    assert as_numeric(10 ** 400) is None
    assert as_numeric(" 3 ") == 3
    assert as_numeric("2.5") == 2.5


def test_cdn_url_rewriting():
    assert to_cdn_url("/a/b.jpg", CDN) == "https://cdn.repliers.io/a/b.jpg?class=medium"
    assert to_cdn_url("a/b.jpg?w=1", CDN + "/") == "https://cdn.repliers.io/a/b.jpg?w=1&class=medium"
    assert to_cdn_url("a/b.jpg?class=small", CDN) == "https://cdn.repliers.io/a/b.jpg?class=small"
    assert to_cdn_url("HTTP://x.test/p.jpg", CDN) == "HTTP://x.test/p.jpg"


def test_get_listing_array_shapes():
    assert get_listing_array([{"id": 1}]) == [{"id": 1}]
    assert get_listing_array({"listings": [1]}) == [1]
    assert get_listing_array({"results": [2]}) == [2]
    assert get_listing_array({"data": [3]}) == [3]
    assert get_listing_array({"listings": "nope"}) == []
    assert get_listing_array(None) == []


@given(value=st.integers(min_value=0, max_value=10**9))
@settings(max_examples=100)
def test_comma_grouped_numbers_parse(value):
    """For any integer, its comma-grouped rendering parses back to it."""
    assert as_numeric(f"{value:,}") == value


@given(value=st.floats(allow_nan=False, allow_infinity=False, min_value=-1e12, max_value=1e12))
@settings(max_examples=100)
def test_finite_floats_pass_through(value):
    assert as_numeric(value) == value


@given(path=st.text(alphabet="abcdefghijklmnopqrstuvwxyz0123456789-_/", min_size=1, max_size=30))
@settings(max_examples=100)
def test_relative_paths_become_absolute(path):
    """For any relative path, the result is an absolute CDN URL with a size hint."""
    url = to_cdn_url(path, CDN)
    assert url.startswith(CDN + "/")
    assert url.endswith("?class=medium")
    assert not url[len(CDN) + 1:].startswith("/")
