"""
Cache keys for search requests.

Two requests are cache-equivalent when they have the same mode and the same
normalized key. The city limit is part of the key: a result fetched with a
smaller limit cannot answer a request for more listings.
"""

from typing import Union

from homesearch.models import AddressSearchRequest, CitySearchRequest
from homesearch.services.repliers.address import normalize_whitespace


def make_address_query_key(address: str) -> str:
    return f"address:{normalize_whitespace(address).lower()}"


def make_city_query_key(city: str, state: str, limit: int) -> str:
    return (
        f"city:{normalize_whitespace(city).lower()}"
        f"|state:{normalize_whitespace(state).upper()}"
        f"|limit:{limit}"
    )


def normalize_key(request: Union[AddressSearchRequest, CitySearchRequest]) -> str:
    """Derive the cache key for a validated search request."""
    if isinstance(request, AddressSearchRequest):
        return make_address_query_key(request.address)
    return make_city_query_key(request.city, request.state, request.effective_limit)
