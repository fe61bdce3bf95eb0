"""
Popularity ranking service.

Builds a short "popular sake" list from Rakuten using review count x average
rating as the popularity signal. Results are cached in-process.
"""
import time
from typing import Optional

import structlog
from tenacity import retry, stop_after_attempt, wait_exponential

from sake_finder.collectors.rakuten import RakutenAdapter, RakutenHit
from sake_finder.core.config import Settings
from sake_finder.models.schemas import Item

logger = structlog.get_logger()


class RankingService:
    """
    Popularity ranking with a TTL cache.
    
    Each keyword is fetched with a bounded retry; a keyword that still fails
    is skipped rather than failing the whole ranking.
    """
    
    def __init__(self, settings: Settings, rakuten: RakutenAdapter):
        self.settings = settings
        self.rakuten = rakuten
        self._cached_items: Optional[list[Item]] = None
        self._cached_at: Optional[float] = None
    
    def _is_cache_valid(self) -> bool:
        if self._cached_items is None or self._cached_at is None:
            return False
        age = time.monotonic() - self._cached_at
        return age < self.settings.ranking_cache_ttl_seconds
    
    def invalidate(self) -> None:
        self._cached_items = None
        self._cached_at = None
    
    @retry(
        stop=stop_after_attempt(2),
        wait=wait_exponential(multiplier=0.5, min=0.5, max=2),
        reraise=True,
    )
    async def _fetch_keyword(self, keyword: str) -> list[RakutenHit]:
        return await self.rakuten.search(keyword, hits=self.settings.ranking_hits)
    
    async def _collect(self) -> list[RakutenHit]:
        collected: list[RakutenHit] = []
        for keyword in self.settings.ranking_keywords:
            try:
                collected.extend(await self._fetch_keyword(keyword))
            except Exception as e:
                logger.warning("Ranking keyword fetch failed", keyword=keyword, error=str(e))
        return collected
    
    @staticmethod
    def select_top(hits: list[RakutenHit], size: int) -> list[Item]:
        """Drop items without title or image, dedup by id keeping the more popular, take top N."""
        best: dict[str, RakutenHit] = {}
        for hit in hits:
            if not hit.item.title or not hit.item.image:
                continue
            current = best.get(hit.item.id)
            if current is None or current.popularity < hit.popularity:
                best[hit.item.id] = hit
        
        ordered = sorted(best.values(), key=lambda h: h.popularity, reverse=True)
        return [
            hit.item.model_copy(update={"order": order})
            for order, hit in enumerate(ordered[:size])
        ]
    
    async def top(self) -> tuple[list[Item], bool]:
        """
        Get the popularity ranking.
        
        Returns:
            (items, cached) where cached tells whether the cache was used
        """
        if self._is_cache_valid():
            return list(self._cached_items), True
        
        if not self.rakuten.configured:
            logger.warning("Rakuten not configured, ranking is empty")
            return [], False
        
        items = self.select_top(await self._collect(), self.settings.ranking_size)
        self._cached_items = items
        self._cached_at = time.monotonic()
        return list(items), False
