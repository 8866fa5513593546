"""
Address query parsing for provider lookups.

The provider matches on structured ``(streetNumber, streetName, city, state)``
fields, so a free-text address is broken into those parts and the street name
is expanded into progressively looser candidates.
"""

import re
from dataclasses import dataclass, field
from typing import List, Optional


ROAD_SUFFIXES = frozenset({
    "st", "street",
    "rd", "road",
    "dr", "drive",
    "ave", "avenue",
    "blvd", "boulevard",
    "ln", "lane",
    "ct", "court",
    "cir", "circle",
    "pl", "place",
    "way",
    "pkwy", "parkway",
    "hwy", "highway",
    "ter", "terrace",
    "trl", "trail",
})

DIRECTIONS = frozenset({"n", "s", "e", "w", "ne", "nw", "se", "sw"})

_WHITESPACE = re.compile(r"\s+")
_STREET_LINE = re.compile(r"^\s*(\d+)\s+(.*?)\s*$")
_STATE_CODE = re.compile(r"^[A-Za-z]{2}$")
_HASH_UNIT = re.compile(r"\s+#\s*[A-Za-z0-9-]+\s*$")
_KEYWORD_UNIT = re.compile(
    r"\s+(apt|apartment|unit|ste|suite|fl|floor)\s+[A-Za-z0-9-]+\s*$",
    re.IGNORECASE
)


@dataclass
class AddressQuery:
    """Structured form of a free-text address.

    Attributes:
        street_number: Leading house number
        street_name: Street name with any unit designator removed
        city: City segment, when the query had one
        state: Uppercase 2-letter state code, when recognizable
    """
    street_number: str
    street_name: str
    city: Optional[str] = None
    state: Optional[str] = None
    candidates: List[str] = field(default_factory=list)


def normalize_whitespace(value: str) -> str:
    return _WHITESPACE.sub(" ", value).strip()


def strip_unit_designator(street: str) -> str:
    """Drop a trailing ``#B`` / ``Apt 2`` / ``Unit 3`` / ``Ste 300`` / ``Fl 4``."""
    normalized = normalize_whitespace(street)

    hash_stripped = _HASH_UNIT.sub("", normalized).strip()
    if hash_stripped != normalized:
        return hash_stripped

    return _KEYWORD_UNIT.sub("", normalized).strip()


def parse_city_state(address_query: str) -> tuple:
    """
    Pull city and state out of ``"<street>, <city>, <ST> [zip]"``.

    Returns:
        (city, state) where either may be None
    """
    parts = [normalize_whitespace(p) for p in address_query.split(",")]
    parts = [p for p in parts if p]
    if len(parts) < 3:
        return None, None

    city = parts[1]
    state_token = parts[2].split(" ")[0]
    state = state_token.upper() if _STATE_CODE.match(state_token) else None
    return city, state


def _is_droppable(token: str) -> bool:
    bare = token.lower().replace(".", "")
    return bare in ROAD_SUFFIXES or bare in DIRECTIONS


def street_name_candidates(street_name: str) -> List[str]:
    """
    Street names to try against the provider, most specific first.

    Order: full name, name without trailing suffix/direction tokens, its
    first two tokens, its first token. Case-insensitive duplicates are dropped.
    """
    tokens = street_name.split()
    stripped = list(tokens)
    while len(stripped) > 1 and _is_droppable(stripped[-1]):
        stripped.pop()

    raw = [
        street_name,
        " ".join(stripped),
        " ".join(stripped[:2]) if len(stripped) >= 2 else None,
        " ".join(stripped[:1]) if stripped else None,
    ]

    candidates: List[str] = []
    seen = set()
    for value in raw:
        if not value or not value.strip():
            continue
        value = normalize_whitespace(value)
        if value.lower() in seen:
            continue
        seen.add(value.lower())
        candidates.append(value)
    return candidates


def parse_address_query(address_query: str) -> Optional[AddressQuery]:
    """
    Parse a free-text address into provider query fields.

    Args:
        address_query: e.g. ``"123 Main St #4, Austin, TX 78701"``

    Returns:
        AddressQuery, or None when the street line has no leading number
    """
    first_line = address_query.split(",")[0].strip()
    match = _STREET_LINE.match(first_line)
    if not match:
        return None

    street_name = strip_unit_designator(match.group(2))
    city, state = parse_city_state(address_query)

    return AddressQuery(
        street_number=match.group(1),
        street_name=street_name,
        city=city,
        state=state,
        candidates=street_name_candidates(street_name),
    )
