"""
Yahoo! Shopping item search adapter.

Drives the staged query plan against the V3 endpoint and falls back once to
the deprecated V1 endpoint when every stage comes back empty.
"""
from dataclasses import dataclass, field
from typing import Any

import httpx
import structlog

from sake_finder.collectors.base import BaseMarketplaceAdapter, MarketplaceApiError
from sake_finder.collectors.yahoo.parsers import RawHit, parse_response
from sake_finder.collectors.yahoo.stages import YahooBaseParams, build_stages
from sake_finder.models.schemas import Item, Marketplace, QueryContext

logger = structlog.get_logger()

LEGACY_STAGE = "legacy"


@dataclass(frozen=True)
class StageAttempt:
    """One upstream call made while searching."""
    stage: str
    endpoint: str
    query: str
    hits: int


@dataclass
class StagedSearchResult:
    """Items plus the ordered trail of attempts that produced them."""
    items: list[Item] = field(default_factory=list)
    attempts: list[StageAttempt] = field(default_factory=list)
    
    @property
    def winning_stage(self) -> str | None:
        for attempt in self.attempts:
            if attempt.hits > 0:
                return attempt.stage
        return None


class YahooAdapter(BaseMarketplaceAdapter):
    """
    Adapter for Yahoo! Shopping.
    
    Stages A, B, C are tried strictly in order and the search stops at the
    first stage with at least one hit. Only when all three are empty is the
    legacy endpoint called, once, with stage C's parameters.
    """
    
    @property
    def marketplace(self) -> Marketplace:
        return Marketplace.YAHOO
    
    @property
    def configured(self) -> bool:
        return self.settings.yahoo_api_configured
    
    def base_params(self, context: QueryContext) -> YahooBaseParams:
        s = self.settings
        return YahooBaseParams(
            appid=s.yahoo_app_id,
            genre_category_id=s.yahoo_genre_category_id,
            in_stock=s.yahoo_in_stock,
            results=s.yahoo_results,
            image_size=s.yahoo_image_size,
            price_from=context.min_price,
            price_to=context.max_price,
            affiliate_type=s.yahoo_affiliate_type,
            affiliate_id=s.yahoo_affiliate_id,
        )
    
    async def _call(self, endpoint: str, params: dict[str, Any], stage: str) -> list[RawHit]:
        """One upstream call. Failures and non-JSON bodies count as zero hits."""
        try:
            data = await self._get_json(endpoint, params)
        except httpx.TimeoutException:
            logger.warning("Yahoo stage timed out", stage=stage)
            return []
        except (MarketplaceApiError, httpx.HTTPError) as e:
            logger.warning("Yahoo stage failed", stage=stage, error=str(e))
            return []
        
        if data is None:
            logger.warning("Yahoo stage returned a non-JSON body", stage=stage)
            return []
        return parse_response(data)
    
    def _to_item(self, hit: RawHit) -> Item:
        return Item(
            id=f"yahoo:{hit.code or hit.url}",
            title=hit.title,
            price=hit.price,
            image=hit.image,
            shop=hit.shop,
            source=Marketplace.YAHOO,
            url=self.wrapper.wrap(hit.url, Marketplace.YAHOO),
        )
    
    async def search_staged(self, context: QueryContext) -> StagedSearchResult:
        """
        Run the staged plan for a query context.
        
        Args:
            context: Validated search input
            
        Returns:
            StagedSearchResult with the items of the first non-empty attempt
        """
        result = StagedSearchResult()
        stages = build_stages(context.keyword, self.base_params(context))
        
        for staged in stages:
            hits = await self._call(self.settings.yahoo_api_v3_url, staged.params, staged.stage)
            result.attempts.append(
                StageAttempt(
                    stage=staged.stage,
                    endpoint=self.settings.yahoo_api_v3_url,
                    query=staged.query_for_view,
                    hits=len(hits),
                )
            )
            if hits:
                result.items = [self._to_item(hit) for hit in hits]
                logger.debug("Yahoo stage hit", stage=staged.stage, hits=len(hits))
                return result
        
        loosest = stages[-1]
        hits = await self._call(self.settings.yahoo_api_v1_url, loosest.params, LEGACY_STAGE)
        result.attempts.append(
            StageAttempt(
                stage=LEGACY_STAGE,
                endpoint=self.settings.yahoo_api_v1_url,
                query=loosest.query_for_view,
                hits=len(hits),
            )
        )
        result.items = [self._to_item(hit) for hit in hits]
        if not hits:
            logger.info("Yahoo returned no hits at any stage", keyword=context.keyword)
        return result
    
    async def _fetch(self, context: QueryContext) -> list[Item]:
        result = await self.search_staged(context)
        return result.items
