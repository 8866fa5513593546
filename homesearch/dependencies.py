"""
FastAPI dependencies wiring the per-app store handle and provider client
into the search services.
"""

from datetime import timedelta

from fastapi import Depends, Request

from homesearch.config import ApiSettings
from homesearch.db import Database
from homesearch.services.repliers import RepliersClient
from homesearch.services.search import (
    CachePointerStore,
    RecencyCache,
    SearchOrchestrator,
    SearchRepository,
)


def get_settings(request: Request) -> ApiSettings:
    return request.app.state.settings


def get_database(request: Request) -> Database:
    return request.app.state.db


def get_provider(request: Request) -> RepliersClient:
    return request.app.state.provider


def get_pointer_store(
    db: Database = Depends(get_database),
    settings: ApiSettings = Depends(get_settings)
) -> CachePointerStore:
    return CachePointerStore(db.redis, ttl_seconds=settings.cache.pointer_ttl_seconds)


def get_search_repository(
    db: Database = Depends(get_database),
    pointers: CachePointerStore = Depends(get_pointer_store)
) -> SearchRepository:
    return SearchRepository(db.pool, pointers)


def get_search_orchestrator(
    repository: SearchRepository = Depends(get_search_repository),
    pointers: CachePointerStore = Depends(get_pointer_store),
    provider: RepliersClient = Depends(get_provider),
    settings: ApiSettings = Depends(get_settings)
) -> SearchOrchestrator:
    cache = RecencyCache(
        pointers,
        repository,
        max_age=timedelta(seconds=settings.cache.max_age_seconds)
    )
    return SearchOrchestrator(provider, repository, cache)
