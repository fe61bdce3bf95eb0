"""
Search API routes.

Searches Rakuten and Yahoo! Shopping for sake matching a free-text
description, merges and ranks the results for the caller's intent.
"""
from typing import Optional

import structlog
from fastapi import APIRouter, Depends, Query

from sake_finder.api.deps import get_app_settings, get_rakuten_adapter, get_search_pipeline
from sake_finder.collectors.rakuten import RakutenAdapter
from sake_finder.core.config import Settings
from sake_finder.models.schemas import (
    ErrorResponse,
    QueryContext,
    SearchHealthResponse,
    SearchMode,
    SearchRequest,
    SearchResponse,
)
from sake_finder.services.search_pipeline import SearchPipeline

logger = structlog.get_logger()

router = APIRouter(prefix="/api/search", tags=["search"])

ERROR_RESPONSES = {
    400: {"model": ErrorResponse, "description": "Missing keyword or invalid price range"},
    500: {"model": ErrorResponse, "description": "Unexpected internal failure"},
}


# ==================== API Endpoints ====================

@router.get("", response_model=SearchResponse, responses=ERROR_RESPONSES)
async def search_products(
    q: Optional[str] = Query(None, max_length=200, description="Search keyword"),
    mode: SearchMode = Query(SearchMode.NORMAL, description="normal or gift"),
    min_price: Optional[int] = Query(None, ge=0, description="Price floor (JPY)"),
    max_price: Optional[int] = Query(None, ge=0, description="Price ceiling (JPY)"),
    pipeline: SearchPipeline = Depends(get_search_pipeline),
):
    """
    Search both marketplaces.
    
    **Examples:**
    - `GET /api/search?q=獺祭`
    - `GET /api/search?q=純米吟醸 ギフト&mode=gift&min_price=3000&max_price=8000`
    """
    context = QueryContext.build(q, mode=mode, min_price=min_price, max_price=max_price)
    outcome = await pipeline.run(context)
    return outcome.to_response()


@router.post("", response_model=SearchResponse, responses=ERROR_RESPONSES)
async def search_products_post(
    request: SearchRequest,
    pipeline: SearchPipeline = Depends(get_search_pipeline),
):
    """Same as GET, with a JSON body."""
    context = QueryContext.build(
        request.keyword,
        mode=request.mode,
        min_price=request.min_price,
        max_price=request.max_price,
    )
    outcome = await pipeline.run(context)
    return outcome.to_response()


@router.get("/health", response_model=SearchHealthResponse)
async def search_health(
    settings: Settings = Depends(get_app_settings),
    rakuten: RakutenAdapter = Depends(get_rakuten_adapter),
):
    """Configuration and Rakuten liveness report."""
    env_ok = settings.rakuten_api_configured and settings.moshimo_configured
    rakuten_alive = await rakuten.probe() if env_ok else False
    
    return SearchHealthResponse(
        env_ok=env_ok,
        rakuten_alive=rakuten_alive,
        yahoo_configured=settings.yahoo_api_configured,
        filters_enabled=not settings.no_filter,
    )
