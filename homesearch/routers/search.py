"""
Search routes: run a listing search and manage stored searches.
"""

import logging
from typing import Annotated
from fastapi import APIRouter, Body, Depends, Response
from fastapi.responses import JSONResponse

from homesearch.config import ApiSettings
from homesearch.dependencies import (
    get_search_orchestrator,
    get_search_repository,
    get_settings,
)
from homesearch.models import (
    SearchListResponse,
    SearchRecord,
    SearchRequest,
    SearchResponse,
)
from homesearch.services.search import OutcomeKind, SearchOrchestrator, SearchRepository

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/v1/search", response_model=SearchResponse)
async def search_listings(
    payload: Annotated[SearchRequest, Body(discriminator="mode")],
    response: Response,
    orchestrator: SearchOrchestrator = Depends(get_search_orchestrator)
):
    """
    Search listings by address or by city/state.

    1. Checks for an identical search from the last 15 minutes
    2. On a miss, queries the listings provider
    3. Stores the search with its listings
    4. Returns the search id and listings; ``X-Cache: HIT`` marks cached results
    """
    try:
        outcome = await orchestrator.search(payload)
    except Exception as e:
        logger.error(f"Search failed ({payload.mode}: {payload.display_query}): {e}")
        return JSONResponse(
            status_code=500,
            content={"error": "SEARCH_FAILED", "message": str(e)}
        )

    if outcome.kind == OutcomeKind.NOT_FOUND:
        return JSONResponse(
            status_code=404,
            content={"error": "NOT_FOUND", "message": "Address not found"}
        )

    if outcome.cached:
        response.headers["X-Cache"] = "HIT"
        logger.info(f"Cache hit for query: {payload.display_query}")

    return SearchResponse(
        search_id=outcome.search_id,
        properties=outcome.properties,
        cached=outcome.cached
    )


@router.get("/v1/searches", response_model=SearchListResponse)
async def list_searches(
    repository: SearchRepository = Depends(get_search_repository),
    settings: ApiSettings = Depends(get_settings)
):
    """List the most recent searches, newest first."""
    try:
        searches = await repository.list_recent(settings.recent_searches_limit)
    except Exception as e:
        logger.error(f"Failed to list searches: {e}")
        return JSONResponse(
            status_code=500,
            content={"error": "STORE_ERROR", "message": str(e)}
        )
    return SearchListResponse(searches=searches)


@router.get("/v1/searches/{search_id}", response_model=SearchRecord)
async def get_search(
    search_id: str,
    repository: SearchRepository = Depends(get_search_repository)
):
    """Get a stored search with its listings."""
    try:
        record = await repository.get(search_id)
    except Exception as e:
        logger.error(f"Failed to load search {search_id}: {e}")
        return JSONResponse(
            status_code=500,
            content={"error": "STORE_ERROR", "message": str(e)}
        )

    if record is None:
        return JSONResponse(status_code=404, content={"error": "NOT_FOUND"})
    return record


@router.delete("/v1/searches/{search_id}")
async def delete_search(
    search_id: str,
    repository: SearchRepository = Depends(get_search_repository)
):
    """Delete a stored search and all of its listings."""
    try:
        await repository.delete(search_id)
    except Exception as e:
        logger.error(f"Failed to delete search {search_id}: {e}")
        return JSONResponse(
            status_code=500,
            content={"ok": False, "error": "DELETE_FAILED", "message": str(e)}
        )
    return {"ok": True}
