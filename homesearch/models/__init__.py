"""Data models for Home Search API"""

from .listing import ListingsSource, PropertyListing, StoredPropertyListing
from .search import (
    AddressSearchRequest,
    CitySearchRequest,
    SearchListResponse,
    SearchMode,
    SearchRecord,
    SearchRequest,
    SearchResponse,
    SearchSummary,
)

__all__ = [
    "ListingsSource",
    "PropertyListing",
    "StoredPropertyListing",
    "AddressSearchRequest",
    "CitySearchRequest",
    "SearchListResponse",
    "SearchMode",
    "SearchRecord",
    "SearchRequest",
    "SearchResponse",
    "SearchSummary",
]
