"""Repliers listings provider integration"""

from .client import RepliersClient, select_best_match
from .address import AddressQuery, parse_address_query, street_name_candidates
from .mapping import get_listing_array, listing_to_property

__all__ = [
    "RepliersClient",
    "select_best_match",
    "AddressQuery",
    "parse_address_query",
    "street_name_candidates",
    "get_listing_array",
    "listing_to_property",
]
