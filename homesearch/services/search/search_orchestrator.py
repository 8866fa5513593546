"""
Search orchestrator - coordinates cache lookup, provider search and persistence.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Union

from homesearch.models import (
    AddressSearchRequest,
    CitySearchRequest,
    ListingsSource,
    PropertyListing,
    SearchMode,
)
from .cache import CacheStatus, RecencyCache
from .query_key import normalize_key
from .repository import SearchRepository, dedupe_by_source_id

logger = logging.getLogger(__name__)


class OutcomeKind(str, Enum):
    """Terminal outcome of a search request"""
    CACHE_HIT = "cache_hit"
    CREATED = "created"
    NOT_FOUND = "not_found"


@dataclass
class SearchOutcome:
    kind: OutcomeKind
    search_id: Optional[str] = None
    properties: List[PropertyListing] = field(default_factory=list)

    @property
    def cached(self) -> bool:
        return self.kind == OutcomeKind.CACHE_HIT


class SearchOrchestrator:
    """
    Run one search request: cache check, provider call on a miss, persist.

    Provider and store failures propagate to the caller unchanged; nothing is
    retried here. A not-found address result is neither stored nor cached.
    """

    def __init__(
        self,
        provider,
        repository: SearchRepository,
        cache: RecencyCache,
        source: ListingsSource = ListingsSource.REPLIERS
    ):
        self.provider = provider
        self.repository = repository
        self.cache = cache
        self.source = source

    async def search(
        self,
        request: Union[AddressSearchRequest, CitySearchRequest]
    ) -> SearchOutcome:
        """
        Args:
            request: Validated address or city request

        Returns:
            SearchOutcome with the stored (or cached) search id and listings
        """
        mode = SearchMode(request.mode)
        query_key = normalize_key(request)

        lookup = await self.cache.lookup(mode, query_key)
        if lookup.hit:
            return SearchOutcome(OutcomeKind.CACHE_HIT, lookup.search_id, lookup.properties)
        if lookup.status == CacheStatus.DEGRADED:
            logger.warning(f"Cache unavailable for {query_key}, searching provider: {lookup.reason}")
        else:
            logger.info(f"Cache miss for {query_key}: {lookup.reason}")

        properties = await self._fetch(request)
        if properties is None:
            logger.info(f"No listing found for address '{request.display_query}'")
            return SearchOutcome(OutcomeKind.NOT_FOUND)

        # sourceId is unique within a search, in the response as in the store
        unique = dedupe_by_source_id(properties)
        if len(unique) < len(properties):
            logger.debug(
                f"{query_key}: dropped {len(properties) - len(unique)} duplicate provider listings"
            )
        properties = unique

        search_id = await self.repository.create(
            mode=mode,
            query=request.display_query,
            properties=properties,
            query_key=query_key,
            source=self.source,
        )
        return SearchOutcome(OutcomeKind.CREATED, search_id, properties)

    async def _fetch(
        self,
        request: Union[AddressSearchRequest, CitySearchRequest]
    ) -> Optional[List[PropertyListing]]:
        if isinstance(request, AddressSearchRequest):
            match = await self.provider.search_by_address(request.address)
            return [match] if match is not None else None

        return await self.provider.search_by_city(
            request.city,
            request.state,
            request.effective_limit
        )
