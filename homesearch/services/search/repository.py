"""
Search repository - durable store of searches and their listings.

Searches and their listings live in PostgreSQL. ``search_properties`` has no
ON DELETE CASCADE, so ``delete`` removes the listings itself, in bounded
chunks, before removing the search. Cache pointers live in Redis and are
maintained best-effort alongside the primary writes.
"""

import logging
import uuid
from typing import Dict, List, Optional, Sequence

import asyncpg

from homesearch.error_handling import (
    ErrorContext,
    MalformedCachePointer,
    StoreError,
    run_best_effort,
)
from homesearch.models import (
    ListingsSource,
    PropertyListing,
    SearchMode,
    SearchRecord,
    SearchSummary,
    StoredPropertyListing,
)
from .cache import CachePointer, CachePointerStore, Clock, utc_now

logger = logging.getLogger(__name__)

# Upper bound on listings removed per DELETE statement
DELETE_BATCH_SIZE = 450

STORE_ERRORS = (asyncpg.PostgresError, asyncpg.InterfaceError, OSError)


INSERT_SEARCH = """
    INSERT INTO searches (
        id, mode, query, query_key, source, result_count, created_at, retrieved_at
    )
    VALUES ($1, $2, $3, $4, $5, $6, $7, $8)
"""

INSERT_PROPERTY = """
    INSERT INTO search_properties (
        search_id, source_id, position, source, address,
        price, beds, baths, sqft, photos, retrieved_at
    )
    VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $9, $10, $11)
"""

SELECT_SEARCH = """
    SELECT id, mode, query, query_key, source, result_count, created_at, retrieved_at
    FROM searches
    WHERE id = $1
"""

SELECT_PROPERTIES = """
    SELECT source_id, source, address, price, beds, baths, sqft, photos, retrieved_at
    FROM search_properties
    WHERE search_id = $1
    ORDER BY position
"""

SELECT_RECENT_SEARCHES = """
    SELECT id, mode, query, query_key, source, result_count, created_at, retrieved_at
    FROM searches
    ORDER BY created_at DESC
    LIMIT $1
"""

SELECT_PROPERTY_IDS = """
    SELECT source_id FROM search_properties WHERE search_id = $1
"""

DELETE_PROPERTIES = """
    DELETE FROM search_properties
    WHERE search_id = $1 AND source_id = ANY($2::text[])
"""

DELETE_SEARCH = """
    DELETE FROM searches WHERE id = $1
"""


def chunked(items: Sequence, size: int) -> List[Sequence]:
    return [items[i:i + size] for i in range(0, len(items), size)]


def dedupe_by_source_id(properties: Sequence[PropertyListing]) -> List[PropertyListing]:
    """One listing per sourceId: later duplicates replace earlier ones in place."""
    by_id: Dict[str, PropertyListing] = {}
    for prop in properties:
        by_id[prop.source_id] = prop
    return list(by_id.values())


def _summary_fields(row) -> dict:
    return {
        "id": row["id"],
        "mode": SearchMode(row["mode"]),
        "query": row["query"],
        "query_key": row["query_key"],
        "source": ListingsSource(row["source"]),
        "result_count": row["result_count"],
        "created_at": row["created_at"],
        "retrieved_at": row["retrieved_at"],
    }


def _row_to_property(row) -> StoredPropertyListing:
    return StoredPropertyListing(
        source=ListingsSource(row["source"]),
        source_id=row["source_id"],
        address=row["address"],
        price=row["price"],
        beds=row["beds"],
        baths=row["baths"],
        sqft=row["sqft"],
        photos=list(row["photos"] or []),
        retrieved_at=row["retrieved_at"],
    )


class SearchRepository:
    """
    Durable store of searches and their listings.

    Primary-path failures raise StoreError. Cache-pointer upkeep is
    best-effort and only logged.
    """

    def __init__(
        self,
        pool: asyncpg.Pool,
        pointers: Optional[CachePointerStore] = None,
        clock: Clock = utc_now
    ):
        self.pool = pool
        self.pointers = pointers
        self.clock = clock

    async def create(
        self,
        mode: SearchMode,
        query: str,
        properties: Sequence[PropertyListing],
        query_key: Optional[str] = None,
        source: ListingsSource = ListingsSource.REPLIERS
    ) -> str:
        """
        Store a search with its full listing set in one transaction.

        Args:
            mode: Search mode
            query: User-facing query string
            properties: Listings, keyed by sourceId within the search
            query_key: Normalized cache key; when given, the cache pointer is
                moved to this search after the commit
            source: Provider tag

        Returns:
            The new search id
        """
        search_id = str(uuid.uuid4())
        now = self.clock()
        mode = SearchMode(mode)
        listings = dedupe_by_source_id(properties)
        if len(listings) < len(properties):
            logger.debug(
                f"Search {search_id}: dropped {len(properties) - len(listings)} duplicate listings"
            )

        rows = [
            (
                search_id, p.source_id, position, ListingsSource(p.source).value, p.address,
                p.price, p.beds, p.baths, p.sqft, list(p.photos), now
            )
            for position, p in enumerate(listings)
        ]

        try:
            async with self.pool.acquire() as conn:
                async with conn.transaction():
                    await conn.execute(
                        INSERT_SEARCH,
                        search_id, mode.value, query, query_key,
                        ListingsSource(source).value, len(listings), now, now
                    )
                    if rows:
                        await conn.executemany(INSERT_PROPERTY, rows)
        except STORE_ERRORS as e:
            logger.error(f"Failed to store search {search_id} ({query_key}): {e}")
            raise StoreError("create", e) from e

        logger.info(f"Stored search {search_id} with {len(listings)} listings")

        if query_key and self.pointers is not None:
            await run_best_effort(
                lambda: self.pointers.write(mode, query_key, CachePointer(search_id, now)),
                ErrorContext("cache_pointer_write", {"searchId": search_id, "queryKey": query_key})
            )

        return search_id

    async def get(self, search_id: str) -> Optional[SearchRecord]:
        """Fetch a search with its listings, or None when it does not exist."""
        try:
            async with self.pool.acquire() as conn:
                row = await conn.fetchrow(SELECT_SEARCH, search_id)
                if row is None:
                    return None
                property_rows = await conn.fetch(SELECT_PROPERTIES, search_id)
        except STORE_ERRORS as e:
            raise StoreError("get", e) from e

        return SearchRecord(
            **_summary_fields(row),
            properties=[_row_to_property(r) for r in property_rows],
        )

    async def list_recent(self, limit: int = 10) -> List[SearchSummary]:
        """Search metadata, newest first."""
        try:
            async with self.pool.acquire() as conn:
                rows = await conn.fetch(SELECT_RECENT_SEARCHES, limit)
        except STORE_ERRORS as e:
            raise StoreError("list_recent", e) from e

        return [SearchSummary(**_summary_fields(row)) for row in rows]

    async def delete(self, search_id: str) -> bool:
        """
        Delete a search and every listing under it.

        Listings are removed in chunks of DELETE_BATCH_SIZE, then the search
        row. The cache pointer is cleaned up afterwards if it still names this
        search; that cleanup never fails the delete.

        Returns:
            True when the search existed
        """
        try:
            async with self.pool.acquire() as conn:
                async with conn.transaction():
                    row = await conn.fetchrow(SELECT_SEARCH, search_id)
                    id_rows = await conn.fetch(SELECT_PROPERTY_IDS, search_id)
                    source_ids = [r["source_id"] for r in id_rows]

                    for chunk in chunked(source_ids, DELETE_BATCH_SIZE):
                        await conn.execute(DELETE_PROPERTIES, search_id, list(chunk))

                    await conn.execute(DELETE_SEARCH, search_id)
        except STORE_ERRORS as e:
            logger.error(f"Failed to delete search {search_id}: {e}")
            raise StoreError("delete", e) from e

        if row is None:
            logger.info(f"Delete requested for unknown search {search_id}")
            return False

        logger.info(f"Deleted search {search_id} and {len(source_ids)} listings")

        if row["query_key"] and self.pointers is not None:
            await run_best_effort(
                lambda: self._forget_pointer(SearchMode(row["mode"]), row["query_key"], search_id),
                ErrorContext("cache_pointer_cleanup", {"searchId": search_id, "queryKey": row["query_key"]})
            )

        return True

    async def _forget_pointer(self, mode: SearchMode, query_key: str, search_id: str) -> None:
        try:
            pointer = await self.pointers.read(mode, query_key)
        except MalformedCachePointer:
            await self.pointers.delete(mode, query_key)
            return
        # A newer search may own the pointer by now; leave it alone
        if pointer is not None and pointer.search_id == search_id:
            await self.pointers.delete(mode, query_key)
