"""
Tests for the recent-search cache: pointer serialization, freshness window,
and degradation to a miss on any store failure.
"""

import asyncio
import json
from datetime import datetime, timedelta, timezone

import pytest
from hypothesis import given, settings, strategies as st

from homesearch.error_handling import MalformedCachePointer, StoreError
from homesearch.models import SearchMode
from homesearch.services.search import (
    CachePointer,
    CachePointerStore,
    CacheStatus,
    RecencyCache,
    SearchRepository,
    pointer_key,
)
from homesearch.services.search import repository as repo_sql

from fakes import FakeClock, FakePool, FakeRedis, make_listing


CITY_KEY = "city:nashville|state:TN|limit:100"


def build(clock=None, max_age=timedelta(minutes=15)):
    clock = clock or FakeClock()
    pool = FakePool()
    fake_redis = FakeRedis()
    pointers = CachePointerStore(fake_redis, ttl_seconds=3600)
    repository = SearchRepository(pool, pointers, clock=clock)
    cache = RecencyCache(pointers, repository, max_age=max_age, clock=clock)
    return cache, repository, pool, fake_redis, clock


def store_city_search(repository, listings=None):
    listings = listings if listings is not None else [make_listing("A"), make_listing("B")]
    return asyncio.run(repository.create(SearchMode.CITY, "Nashville, TN", listings, query_key=CITY_KEY))


def test_pointer_key_format():
    assert pointer_key(SearchMode.ADDRESS, "address:1 main st") == "searchCache:address:address:1 main st"
    assert pointer_key("city", CITY_KEY) == f"searchCache:city:{CITY_KEY}"


@given(
    search_id=st.uuids().map(str),
    offset=st.integers(min_value=-10**6, max_value=10**6),
)
@settings(max_examples=100)
def test_pointer_json_roundtrip(search_id, offset):
    """For any pointer, serialization preserves the id and the instant."""
    updated_at = datetime(2026, 1, 1, tzinfo=timezone.utc) + timedelta(seconds=offset)
    parsed = CachePointer.from_json(CachePointer(search_id, updated_at).to_json())

    assert parsed.search_id == search_id
    assert parsed.updated_at == updated_at


@pytest.mark.parametrize("raw", [
    "not json",
    "[]",
    json.dumps({"updatedAt": "2026-01-01T00:00:00+00:00"}),
    json.dumps({"searchId": "  ", "updatedAt": "2026-01-01T00:00:00+00:00"}),
    json.dumps({"searchId": "abc"}),
    json.dumps({"searchId": "abc", "updatedAt": "yesterday"}),
])
def test_malformed_pointer_payloads(raw):
    with pytest.raises(MalformedCachePointer):
        CachePointer.from_json(raw)


def test_naive_timestamp_read_as_utc():
    parsed = CachePointer.from_json(json.dumps({"searchId": "a", "updatedAt": "2026-01-01T00:00:00"}))
    assert parsed.updated_at.tzinfo is not None


def test_miss_without_pointer():
    cache, *_ = build()

    lookup = asyncio.run(cache.lookup(SearchMode.CITY, CITY_KEY))

    assert lookup.status == CacheStatus.MISS
    assert not lookup.hit


def test_hit_returns_stored_listings_in_order():
    cache, repository, _, fake_redis, clock = build()
    search_id = store_city_search(repository)
    clock.advance(minutes=5)

    lookup = asyncio.run(cache.lookup(SearchMode.CITY, CITY_KEY))

    assert lookup.hit
    assert lookup.search_id == search_id
    assert [p.source_id for p in lookup.properties] == ["A", "B"]
    assert fake_redis.expiry[pointer_key(SearchMode.CITY, CITY_KEY)] == 3600


def test_hit_on_empty_result_set():
    cache, repository, *_ = build()
    search_id = store_city_search(repository, listings=[])

    lookup = asyncio.run(cache.lookup(SearchMode.CITY, CITY_KEY))

    assert lookup.hit
    assert lookup.search_id == search_id
    assert lookup.properties == []


def test_hit_at_exact_window_boundary():
    cache, repository, _, _, clock = build()
    store_city_search(repository)
    clock.advance(minutes=15)

    assert asyncio.run(cache.lookup(SearchMode.CITY, CITY_KEY)).hit


def test_expired_pointer_is_a_miss():
    cache, repository, _, _, clock = build()
    store_city_search(repository)
    clock.advance(minutes=15, seconds=1)

    lookup = asyncio.run(cache.lookup(SearchMode.CITY, CITY_KEY))

    assert lookup.status == CacheStatus.MISS
    assert "expired" in lookup.reason


def test_modes_do_not_share_pointers():
    cache, repository, *_ = build()
    store_city_search(repository)

    assert not asyncio.run(cache.lookup(SearchMode.ADDRESS, CITY_KEY)).hit


def test_redis_failure_degrades_to_miss():
    cache, repository, _, fake_redis, _ = build()
    store_city_search(repository)
    fake_redis.fail = True

    lookup = asyncio.run(cache.lookup(SearchMode.CITY, CITY_KEY))

    assert lookup.status == CacheStatus.DEGRADED
    assert not lookup.hit


def test_malformed_pointer_degrades_to_miss():
    cache, _, _, fake_redis, _ = build()
    fake_redis.data[pointer_key(SearchMode.CITY, CITY_KEY)] = "{broken"

    lookup = asyncio.run(cache.lookup(SearchMode.CITY, CITY_KEY))

    assert lookup.status == CacheStatus.DEGRADED
    assert "MalformedCachePointer" in lookup.reason


def test_pointer_to_deleted_search_is_a_miss():
    cache, repository, _, fake_redis, clock = build()
    search_id = store_city_search(repository)
    # Simulate a stale pointer surviving its search
    pointer = CachePointer(search_id, clock())
    asyncio.run(repository.delete(search_id))
    fake_redis.data[pointer_key(SearchMode.CITY, CITY_KEY)] = pointer.to_json()

    lookup = asyncio.run(cache.lookup(SearchMode.CITY, CITY_KEY))

    assert lookup.status == CacheStatus.MISS


def test_store_failure_during_record_read_degrades():
    cache, repository, pool, *_ = build()
    store_city_search(repository)
    pool.fail_on.add(repo_sql.SELECT_SEARCH)

    lookup = asyncio.run(cache.lookup(SearchMode.CITY, CITY_KEY))

    assert lookup.status == CacheStatus.DEGRADED
    assert StoreError.__name__ in lookup.reason


def test_hit_listings_drop_retrieval_timestamp():
    cache, repository, *_ = build()
    store_city_search(repository)

    lookup = asyncio.run(cache.lookup(SearchMode.CITY, CITY_KEY))

    assert "retrievedAt" not in lookup.properties[0].model_dump(by_alias=True)


@given(age_seconds=st.integers(min_value=0, max_value=3600))
@settings(max_examples=50)
def test_freshness_window(age_seconds):
    """For any pointer age, the lookup hits exactly when age <= 15 minutes."""
    cache, repository, _, _, clock = build()
    store_city_search(repository)
    clock.advance(seconds=age_seconds)

    lookup = asyncio.run(cache.lookup(SearchMode.CITY, CITY_KEY))

    assert lookup.hit == (age_seconds <= 15 * 60)
