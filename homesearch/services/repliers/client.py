"""
Repliers listings API client - searches for-sale, active MLS listings by
city/state or by a single street address.
"""

import logging
import aiohttp
from typing import Any, Dict, List, Optional, Union

from homesearch.config import RepliersConfig
from homesearch.error_handling import ProviderError
from homesearch.models import PropertyListing
from .address import normalize_whitespace, parse_address_query
from .mapping import get_listing_array, listing_to_property

logger = logging.getLogger(__name__)

QueryValue = Optional[Union[str, int]]

# Leases/rentals and inactive listings are excluded on every request
SALE_FILTERS = {"type": "sale", "status": "A"}

MIN_CITY_LIMIT = 1
MAX_CITY_LIMIT = 100


class RepliersClient:
    """
    Repliers listings API client.

    Owns an aiohttp session, created lazily on first request and released by
    ``close()``. A session may be injected instead, in which case the caller
    keeps ownership of it.
    """

    LISTINGS_PATH = "/listings"

    def __init__(
        self,
        config: RepliersConfig,
        session: Optional[aiohttp.ClientSession] = None
    ):
        if not config.api_key:
            raise ValueError("Repliers credentials not configured. Set REPLIERS_API_KEY in .env")

        self.base_url = config.base_url.rstrip("/")
        self.api_key = config.api_key
        self.cdn_base_url = config.cdn_base_url
        self._session = session
        self._owns_session = session is None

    async def __aenter__(self):
        await self._ensure_session()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    async def close(self):
        """Close the session if this client created it"""
        if self._owns_session and self._session and not self._session.closed:
            await self._session.close()
            self._session = None

    async def _ensure_session(self):
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession()
            self._owns_session = True

    async def _post(self, path: str, query: Dict[str, QueryValue]) -> Any:
        """
        POST to the provider with query-string parameters.

        Raises:
            ProviderError: non-2xx status or a body that is not JSON
        """
        await self._ensure_session()

        params = {key: str(value) for key, value in query.items() if value is not None}
        headers = {
            "Accept": "application/json",
            "REPLIERS-API-KEY": self.api_key,
        }
        url = f"{self.base_url}{path}"

        async with self._session.post(url, params=params, headers=headers) as response:
            if not 200 <= response.status < 300:
                error_text = await response.text()
                logger.error(f"Repliers error: {response.status} - {error_text[:200]}")
                raise ProviderError(response.status, error_text)

            try:
                return await response.json(content_type=None)
            except ValueError as e:
                raise ProviderError(response.status, f"Invalid JSON payload: {e}") from e

    async def search_by_city(
        self,
        city: str,
        state: str,
        limit: int = MAX_CITY_LIMIT
    ) -> List[PropertyListing]:
        """
        Search active for-sale listings in a city.

        Args:
            city: City name
            state: State code
            limit: Max results, clamped to 1-100

        Returns:
            Listings in provider order
        """
        capped_limit = min(max(limit, MIN_CITY_LIMIT), MAX_CITY_LIMIT)

        payload = await self._post(self.LISTINGS_PATH, {
            "city": city,
            "state": state,
            **SALE_FILTERS,
            "pageSize": capped_limit,
            "pageNum": 1,
        })

        listings = get_listing_array(payload)[:capped_limit]
        logger.info(f"[REPLIERS] City search {city}, {state}: {len(listings)} listings")
        return [listing_to_property(raw, self.cdn_base_url) for raw in listings]

    async def search_by_address(self, address_query: str) -> Optional[PropertyListing]:
        """
        Find the single listing best matching a free-text address.

        Street-name candidates are tried from most to least specific; the first
        candidate that returns any listings decides the result.

        Returns:
            Best matching listing, or None when nothing matches
        """
        parsed = parse_address_query(address_query)
        if parsed is None:
            logger.info(f"[REPLIERS] No street number in address query: '{address_query}'")
            return None

        normalized_query = normalize_whitespace(address_query).lower()

        for street_name in parsed.candidates:
            payload = await self._post(self.LISTINGS_PATH, {
                "streetNumber": parsed.street_number,
                "streetName": street_name,
                "city": parsed.city,
                "state": parsed.state,
                **SALE_FILTERS,
                "pageNum": 1,
            })

            listings = get_listing_array(payload)
            if not listings:
                logger.debug(f"[REPLIERS] No listings for streetName='{street_name}'")
                continue

            logger.info(
                f"[REPLIERS] {len(listings)} listings for {parsed.street_number} '{street_name}'"
            )
            return select_best_match(
                [listing_to_property(raw, self.cdn_base_url) for raw in listings],
                normalized_query
            )

        return None


def select_best_match(
    properties: List[PropertyListing],
    normalized_query: str
) -> Optional[PropertyListing]:
    """Exact address match, else substring match, else the first listing."""
    with_addresses = [p for p in properties if p.address]

    for prop in with_addresses:
        if prop.address.lower() == normalized_query:
            return prop

    for prop in with_addresses:
        if normalized_query in prop.address.lower():
            return prop

    return with_addresses[0] if with_addresses else None
