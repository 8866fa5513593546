"""Search services"""

from .query_key import make_address_query_key, make_city_query_key, normalize_key
from .cache import (
    CacheLookup,
    CachePointer,
    CachePointerStore,
    CacheStatus,
    RecencyCache,
    pointer_key,
)
from .repository import DELETE_BATCH_SIZE, SearchRepository
from .search_orchestrator import OutcomeKind, SearchOrchestrator, SearchOutcome

__all__ = [
    "make_address_query_key",
    "make_city_query_key",
    "normalize_key",
    "CacheLookup",
    "CachePointer",
    "CachePointerStore",
    "CacheStatus",
    "RecencyCache",
    "pointer_key",
    "DELETE_BATCH_SIZE",
    "SearchRepository",
    "OutcomeKind",
    "SearchOrchestrator",
    "SearchOutcome",
]
