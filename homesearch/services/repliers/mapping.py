"""
Mapping of raw provider listing records into PropertyListing.

Provider payloads vary in shape between endpoints and over time. Every
canonical field is described as an ordered list of (path, coercion) attempts;
the first attempt that yields a coerced value wins.
"""

import math
import re
import uuid
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple
from urllib.parse import parse_qsl, urlsplit

from homesearch.models import ListingsSource, PropertyListing
from .address import normalize_whitespace


DEFAULT_CDN_BASE_URL = "https://cdn.repliers.io"
IMAGE_SIZE_PARAM = "class"
IMAGE_SIZE_HINT = "medium"

_ABSOLUTE_URL = re.compile(r"^https?://", re.IGNORECASE)

Coercion = Callable[[Any], Any]
Attempt = Tuple[Tuple[str, ...], Coercion]


def as_string(value: Any) -> Optional[str]:
    return value if isinstance(value, str) else None


def as_numeric(value: Any) -> Optional[float]:
    """Accept a finite number or a numeric string such as ``"1,250"``."""
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        try:
            finite = math.isfinite(value)
        except OverflowError:
            # Integers beyond float range
            return None
        return value if finite else None
    if isinstance(value, str):
        trimmed = value.strip()
        if not trimmed:
            return None
        try:
            number = float(trimmed.replace(",", ""))
        except ValueError:
            return None
        if not math.isfinite(number):
            return None
        return int(number) if number.is_integer() else number
    return None


def as_id_string(value: Any) -> Optional[str]:
    if isinstance(value, str):
        return value if value.strip() else None
    return None


def as_id_number(value: Any) -> Optional[str]:
    number = as_numeric(value) if not isinstance(value, str) else None
    if number is None:
        return None
    if isinstance(number, float) and number.is_integer():
        number = int(number)
    return str(number)


def lookup_path(record: Dict[str, Any], path: Sequence[str]) -> Any:
    current: Any = record
    for key in path:
        if not isinstance(current, dict):
            return None
        current = current.get(key)
    return current


def first_value(record: Dict[str, Any], attempts: Sequence[Attempt]) -> Any:
    """Return the first successfully coerced value among ``attempts``."""
    for path, coerce in attempts:
        value = coerce(lookup_path(record, path))
        if value is not None:
            return value
    return None


# Nested ``details`` values take precedence over top-level duplicates
BEDS: List[Attempt] = [
    (("details", "numBedrooms"), as_numeric),
    (("details", "bedrooms"), as_numeric),
    (("numBedrooms",), as_numeric),
    (("bedrooms",), as_numeric),
    (("beds",), as_numeric),
]

BATHS: List[Attempt] = [
    (("details", "numBathrooms"), as_numeric),
    (("details", "bathrooms"), as_numeric),
    (("numBathrooms",), as_numeric),
    (("bathrooms",), as_numeric),
    (("baths",), as_numeric),
]

SQFT: List[Attempt] = [
    (("details", "sqft"), as_numeric),
    (("details", "livingArea"), as_numeric),
    (("sqft",), as_numeric),
    (("livingArea",), as_numeric),
]

PRICE: List[Attempt] = [
    (("listPrice",), as_numeric),
    (("price",), as_numeric),
    (("listingPrice",), as_numeric),
]

SOURCE_ID: List[Attempt] = [
    (("id",), as_id_string),
    (("listingId",), as_id_string),
    (("mlsId",), as_id_string),
    (("mlsNumber",), as_id_string),
    (("id",), as_id_number),
    (("listingId",), as_id_number),
]

PHOTO_URL: List[Attempt] = [
    (("url",), as_string),
    (("href",), as_string),
    (("path",), as_string),
]


def to_cdn_url(path_or_url: str, cdn_base_url: str = DEFAULT_CDN_BASE_URL) -> str:
    """Rewrite a relative image path to an absolute CDN URL with a size hint."""
    trimmed = path_or_url.strip()
    if _ABSOLUTE_URL.match(trimmed):
        return trimmed

    clean = trimmed.lstrip("/")
    url = f"{cdn_base_url.rstrip('/')}/{clean}"

    query = urlsplit(url).query
    if any(key == IMAGE_SIZE_PARAM for key, _ in parse_qsl(query, keep_blank_values=True)):
        return url
    separator = "&" if "?" in url else "?"
    return f"{url}{separator}{IMAGE_SIZE_PARAM}={IMAGE_SIZE_HINT}"


def extract_photos(record: Dict[str, Any], cdn_base_url: str = DEFAULT_CDN_BASE_URL) -> List[str]:
    images = record.get("images")
    if not isinstance(images, list):
        return []

    photos = []
    for image in images:
        if isinstance(image, str):
            photos.append(to_cdn_url(image, cdn_base_url))
        elif isinstance(image, dict):
            url = first_value(image, PHOTO_URL)
            if url:
                photos.append(to_cdn_url(url, cdn_base_url))
    return photos


def _present(*values: Optional[str]) -> List[str]:
    return [v for v in values if isinstance(v, str) and v.strip()]


def format_address(address: Dict[str, Any]) -> str:
    """Format the provider's structured address as a single line."""
    unit = as_string(address.get("unitNumber"))
    street_line = normalize_whitespace(" ".join(_present(
        as_string(address.get("streetNumber")),
        as_string(address.get("streetName")),
        as_string(address.get("streetSuffix")),
        as_string(address.get("streetDirectionPrefix")),
        as_string(address.get("streetDirection")),
        f"#{unit}" if unit else None,
    )))
    locale = normalize_whitespace(", ".join(_present(
        as_string(address.get("city")),
        as_string(address.get("state")),
    )))
    base = normalize_whitespace(", ".join(p for p in (street_line, locale) if p))

    postal = as_string(address.get("postalCode")) or as_string(address.get("zip"))
    return normalize_whitespace(f"{base} {postal}") if postal else base


def extract_address(record: Dict[str, Any]) -> str:
    address = record.get("address")
    if isinstance(address, dict):
        return format_address(address)

    fallback = as_string(address) or as_string(record.get("fullAddress"))
    return normalize_whitespace(fallback) if fallback else ""


def extract_source_id(record: Dict[str, Any]) -> str:
    # Records without any id get a fresh one, so repeats are not de-duplicated
    return first_value(record, SOURCE_ID) or str(uuid.uuid4())


def listing_to_property(raw: Any, cdn_base_url: str = DEFAULT_CDN_BASE_URL) -> PropertyListing:
    """Map one raw provider record into the canonical listing shape."""
    record = raw if isinstance(raw, dict) else {}

    return PropertyListing(
        source=ListingsSource.REPLIERS,
        source_id=extract_source_id(record),
        address=extract_address(record),
        price=first_value(record, PRICE),
        beds=first_value(record, BEDS),
        baths=first_value(record, BATHS),
        sqft=first_value(record, SQFT),
        photos=extract_photos(record, cdn_base_url),
    )


def get_listing_array(payload: Any) -> List[Any]:
    """Locate the listing array in a bare-array or wrapped response."""
    if isinstance(payload, list):
        return payload
    if not isinstance(payload, dict):
        return []
    for key in ("listings", "results", "data"):
        value = payload.get(key)
        if isinstance(value, list):
            return value
    return []
