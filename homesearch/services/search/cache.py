"""
Recent-search cache.

A Redis pointer per ``(mode, queryKey)`` names the latest search stored for
that key. A lookup is a hit only when the pointer is fresh and the search it
names can still be read from the repository. Every failure along the way is a
miss, never an error.
"""

import json
import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Callable, List, Optional

import redis.asyncio as redis

from homesearch.error_handling import (
    BestEffort,
    ErrorContext,
    MalformedCachePointer,
    run_best_effort,
)
from homesearch.models import PropertyListing, SearchMode

logger = logging.getLogger(__name__)

POINTER_PREFIX = "searchCache"

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def pointer_key(mode: SearchMode, query_key: str) -> str:
    return f"{POINTER_PREFIX}:{SearchMode(mode).value}:{query_key}"


@dataclass
class CachePointer:
    """Latest search for a cache key"""
    search_id: str
    updated_at: datetime

    def to_json(self) -> str:
        return json.dumps({
            "searchId": self.search_id,
            "updatedAt": self.updated_at.isoformat(),
        })

    @classmethod
    def from_json(cls, raw: str) -> 'CachePointer':
        """
        Parse a stored pointer.

        Raises:
            MalformedCachePointer: payload is not an object with a non-blank
                searchId and a parseable updatedAt
        """
        try:
            data = json.loads(raw)
        except (TypeError, ValueError) as e:
            raise MalformedCachePointer(f"Pointer is not JSON: {e}") from e

        if not isinstance(data, dict):
            raise MalformedCachePointer("Pointer is not an object")

        search_id = data.get("searchId")
        if not isinstance(search_id, str) or not search_id.strip():
            raise MalformedCachePointer("Pointer has no searchId")

        updated_raw = data.get("updatedAt")
        if not isinstance(updated_raw, str):
            raise MalformedCachePointer("Pointer has no updatedAt")
        try:
            updated_at = datetime.fromisoformat(updated_raw)
        except ValueError as e:
            raise MalformedCachePointer(f"Invalid updatedAt: {updated_raw!r}") from e
        if updated_at.tzinfo is None:
            updated_at = updated_at.replace(tzinfo=timezone.utc)

        return cls(search_id=search_id, updated_at=updated_at)


class CachePointerStore:
    """Redis-backed pointer collection. Methods raise on store failure."""

    def __init__(self, redis_client: redis.Redis, ttl_seconds: int = 24 * 60 * 60):
        self.redis = redis_client
        self.ttl_seconds = ttl_seconds

    async def read(self, mode: SearchMode, query_key: str) -> Optional[CachePointer]:
        raw = await self.redis.get(pointer_key(mode, query_key))
        if raw is None:
            return None
        return CachePointer.from_json(raw)

    async def write(self, mode: SearchMode, query_key: str, pointer: CachePointer) -> None:
        # Last write wins; there is no history per key
        await self.redis.set(
            pointer_key(mode, query_key),
            pointer.to_json(),
            ex=self.ttl_seconds
        )

    async def delete(self, mode: SearchMode, query_key: str) -> None:
        await self.redis.delete(pointer_key(mode, query_key))


class CacheStatus(str, Enum):
    HIT = "hit"
    MISS = "miss"
    DEGRADED = "degraded"


@dataclass
class CacheLookup:
    """Result of a cache lookup. DEGRADED is a miss caused by a failure."""
    status: CacheStatus
    search_id: Optional[str] = None
    properties: List[PropertyListing] = field(default_factory=list)
    reason: str = ""

    @property
    def hit(self) -> bool:
        return self.status == CacheStatus.HIT

    @classmethod
    def miss(cls, reason: str) -> 'CacheLookup':
        return cls(status=CacheStatus.MISS, reason=reason)

    @classmethod
    def degraded(cls, outcome: BestEffort) -> 'CacheLookup':
        return cls(status=CacheStatus.DEGRADED, reason=f"{type(outcome.error).__name__}: {outcome.error}")


class RecencyCache:
    """
    Best-effort lookup of a prior identical search within a freshness window.

    Attributes:
        pointers: Pointer store
        repository: Source of the stored listings for a hit
        max_age: Freshness window measured from the pointer's updatedAt
    """

    DEFAULT_MAX_AGE = timedelta(minutes=15)

    def __init__(
        self,
        pointers: CachePointerStore,
        repository,
        max_age: timedelta = DEFAULT_MAX_AGE,
        clock: Clock = utc_now
    ):
        self.pointers = pointers
        self.repository = repository
        self.max_age = max_age
        self.clock = clock

    async def lookup(self, mode: SearchMode, query_key: str) -> CacheLookup:
        context = ErrorContext("cache_lookup", {"mode": SearchMode(mode).value, "queryKey": query_key})

        pointer_read = await run_best_effort(lambda: self.pointers.read(mode, query_key), context)
        if pointer_read.degraded:
            return CacheLookup.degraded(pointer_read)

        pointer: Optional[CachePointer] = pointer_read.value
        if pointer is None:
            return CacheLookup.miss("no pointer")

        age = self.clock() - pointer.updated_at
        if age > self.max_age:
            return CacheLookup.miss(f"pointer expired ({int(age.total_seconds())}s old)")

        context.identifiers["searchId"] = pointer.search_id
        record_read = await run_best_effort(lambda: self.repository.get(pointer.search_id), context)
        if record_read.degraded:
            return CacheLookup.degraded(record_read)

        record = record_read.value
        if record is None:
            return CacheLookup.miss(f"search {pointer.search_id} no longer exists")

        logger.info(f"[CACHE HIT] {query_key} -> search {pointer.search_id}")
        return CacheLookup(
            status=CacheStatus.HIT,
            search_id=pointer.search_id,
            properties=[PropertyListing(**p.model_dump(exclude={"retrieved_at"})) for p in record.properties],
        )
