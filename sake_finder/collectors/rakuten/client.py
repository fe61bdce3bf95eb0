"""
Rakuten Ichiba Item Search API adapter.
https://webservice.rakuten.co.jp/documentation/ichiba-item-search
"""
from dataclasses import dataclass
from typing import Any, Optional

import structlog

from sake_finder.collectors.base import BaseMarketplaceAdapter, MarketplaceApiError, to_price
from sake_finder.models.schemas import Item, Marketplace, QueryContext
from sake_finder.services.query_normalizer import normalize_query

logger = structlog.get_logger()


@dataclass(frozen=True)
class RakutenHit:
    """Mapped item plus its popularity signal (review count x average rating)."""
    item: Item
    popularity: float


class RakutenAdapter(BaseMarketplaceAdapter):
    """
    Adapter for Rakuten Ichiba.
    
    Single HTTP call per search; responses are mapped from the `Items`
    array, accepting both the wrapped (`{"Item": {...}}`) and flat element
    layouts.
    """
    
    @property
    def marketplace(self) -> Marketplace:
        return Marketplace.RAKUTEN
    
    @property
    def configured(self) -> bool:
        return self.settings.rakuten_api_configured
    
    def _build_search_params(
        self,
        keyword: str,
        hits: int,
        min_price: Optional[int] = None,
        max_price: Optional[int] = None,
    ) -> dict[str, Any]:
        """Build request parameters."""
        params: dict[str, Any] = {
            "applicationId": self.settings.rakuten_app_id,
            "keyword": keyword,
            "hits": hits,
            "imageFlag": 1,
        }
        if min_price is not None:
            params["minPrice"] = min_price
        if max_price is not None:
            params["maxPrice"] = max_price
        if self.settings.rakuten_genre_id is not None:
            params["genreId"] = self.settings.rakuten_genre_id
        return params
    
    def parse_response(self, data: Any) -> list[RakutenHit]:
        """
        Map a Rakuten response document to hits.
        
        Raises:
            MarketplaceApiError: document is not a Rakuten search response
        """
        if not isinstance(data, dict):
            raise MarketplaceApiError("Response is not a JSON object", code="PARSE_ERROR")
        if "error" in data:
            raise MarketplaceApiError(
                f"{data.get('error')}: {data.get('error_description', '')}",
                code="API_ERROR",
            )
        
        raw_items = data.get("Items")
        if not isinstance(raw_items, list):
            return []
        
        hits = []
        for entry in raw_items:
            raw = entry.get("Item", entry) if isinstance(entry, dict) else None
            if not isinstance(raw, dict):
                continue
            hit = self._parse_item(raw)
            if hit is not None:
                hits.append(hit)
        return hits
    
    def _parse_item(self, raw: dict[str, Any]) -> Optional[RakutenHit]:
        title = str(raw.get("itemName") or "").strip()
        item_url = raw.get("itemUrl") or ""
        if not title or not item_url:
            return None
        
        item_code = raw.get("itemCode") or item_url
        
        popularity = _to_float(raw.get("reviewCount")) * _to_float(raw.get("reviewAverage"))
        
        # affiliateUrl is ignored; all links go through the configured partner
        item = Item(
            id=f"rakuten:{item_code}",
            title=title,
            price=to_price(raw.get("itemPrice")),
            image=_first_image(raw.get("mediumImageUrls")) or _first_image(raw.get("smallImageUrls")),
            shop=raw.get("shopName") or None,
            source=Marketplace.RAKUTEN,
            url=self.wrapper.wrap(item_url, Marketplace.RAKUTEN),
        )
        return RakutenHit(item=item, popularity=popularity)
    
    async def search(
        self,
        keyword: str,
        hits: Optional[int] = None,
        min_price: Optional[int] = None,
        max_price: Optional[int] = None,
    ) -> list[RakutenHit]:
        """
        Run one keyword search.
        
        Raises on upstream failure; use `fetch` for the non-raising variant.
        """
        params = self._build_search_params(
            keyword=keyword,
            hits=hits or self.settings.rakuten_hits,
            min_price=min_price,
            max_price=max_price,
        )
        data = await self._get_json(self.settings.rakuten_api_url, params)
        if data is None:
            raise MarketplaceApiError("Response body is not JSON", code="PARSE_ERROR")
        return self.parse_response(data)
    
    async def _fetch(self, context: QueryContext) -> list[Item]:
        keyword = normalize_query(context.keyword) or context.keyword
        hits = await self.search(
            keyword,
            min_price=context.min_price,
            max_price=context.max_price,
        )
        logger.debug("Rakuten search done", keyword=keyword, hits=len(hits))
        return [hit.item for hit in hits]
    
    async def probe(self) -> bool:
        """One-hit liveness check used by the health endpoint."""
        if not self.configured:
            return False
        try:
            hits = await self.search("獺祭 39", hits=1)
        except Exception as e:
            logger.warning("Rakuten probe failed", error=str(e))
            return False
        return len(hits) > 0


def _first_image(images: Any) -> Optional[str]:
    if not isinstance(images, list) or not images:
        return None
    first = images[0]
    if isinstance(first, dict):
        return first.get("imageUrl") or None
    if isinstance(first, str):
        return first or None
    return None


def _to_float(value: Any) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0.0
