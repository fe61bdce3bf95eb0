"""
Popularity ranking route.
"""
from fastapi import APIRouter, Depends

from sake_finder.api.deps import get_ranking_service
from sake_finder.models.schemas import RankingResponse
from sake_finder.services.ranking import RankingService

router = APIRouter(prefix="/api/ranking", tags=["ranking"])


@router.get("", response_model=RankingResponse)
async def get_ranking(service: RankingService = Depends(get_ranking_service)):
    """Top sake by Rakuten review popularity, cached for a few minutes."""
    items, cached = await service.top()
    return RankingResponse(items=items, cached=cached)
