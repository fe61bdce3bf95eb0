"""
Search aggregation pipeline.

keyword + mode
  -> both marketplace adapters, concurrently
  -> merge / dedup
  -> rule filter (unless the no-filter debug bypass is on)
  -> mode-aware ranking
  -> fallback items when nothing survives
"""
import asyncio
from dataclasses import dataclass, field
from typing import Optional, Sequence

import structlog

from sake_finder.collectors.base import BaseMarketplaceAdapter
from sake_finder.core.config import Settings
from sake_finder.models.schemas import Item, QueryContext, SearchMode, SearchResponse
from sake_finder.services.affiliate import AffiliateLinkWrapper
from sake_finder.services.aggregator import merge
from sake_finder.services.fallback import fallback_items
from sake_finder.services.rules import RuleFilter
from sake_finder.services.scoring import DEFAULT_SCORING, ScoringConfig, rank

logger = structlog.get_logger()


@dataclass
class SearchOutcome:
    """Result of one pipeline pass."""
    items: list[Item] = field(default_factory=list)
    total: int = 0
    after_filter: int = 0
    no_filter: bool = False
    mode: SearchMode = SearchMode.NORMAL
    used_fallback: bool = False
    
    def to_response(self) -> SearchResponse:
        return SearchResponse(
            items=self.items,
            total=self.total,
            after_filter=self.after_filter,
            no_filter=self.no_filter,
            mode=self.mode,
        )


class SearchPipeline:
    """
    Stateless per-request aggregation over the configured adapters.
    
    Adapters never raise, so one slow or failing marketplace only removes
    its own items from the result.
    """
    
    def __init__(
        self,
        settings: Settings,
        adapters: Sequence[BaseMarketplaceAdapter],
        wrapper: AffiliateLinkWrapper,
        rule_filter: Optional[RuleFilter] = None,
        scoring: ScoringConfig = DEFAULT_SCORING,
    ):
        self.settings = settings
        self.adapters = list(adapters)
        self.wrapper = wrapper
        self.rule_filter = rule_filter or RuleFilter.from_settings(settings)
        self.scoring = scoring
    
    async def _gather(self, context: QueryContext) -> list[list[Item]]:
        results = await asyncio.gather(
            *(adapter.fetch(context) for adapter in self.adapters),
            return_exceptions=True,
        )
        
        per_source = []
        for adapter, result in zip(self.adapters, results):
            if isinstance(result, BaseException):
                logger.warning(
                    "Adapter raised unexpectedly",
                    marketplace=adapter.marketplace.value,
                    error=str(result),
                )
                per_source.append([])
            else:
                per_source.append(result)
        return per_source
    
    async def run(self, context: QueryContext) -> SearchOutcome:
        """
        Execute one search.
        
        Args:
            context: Validated search input
            
        Returns:
            SearchOutcome, never empty
        """
        per_source = await self._gather(context)
        
        merged: list[Item] = []
        for items in per_source:
            merged = merge(
                merged,
                items,
                abs_tolerance=self.settings.dedup_abs_tolerance,
                rel_tolerance=self.settings.dedup_rel_tolerance,
            )
        total = len(merged)
        
        no_filter = self.settings.no_filter
        filtered = merged if no_filter else self.rule_filter.apply(merged, context)
        after_filter = len(filtered)
        
        ranked = rank(filtered, context.mode, self.scoring)[: self.settings.result_limit]
        used_fallback = not ranked
        if used_fallback:
            ranked = fallback_items(self.wrapper)
        
        logger.info(
            "Search completed",
            q=context.keyword,
            mode=context.mode.value,
            per_source=[len(items) for items in per_source],
            total=total,
            after_filter=after_filter,
            no_filter=no_filter,
            fallback=used_fallback,
        )
        
        return SearchOutcome(
            items=ranked,
            total=total,
            after_filter=after_filter,
            no_filter=no_filter,
            mode=context.mode,
            used_fallback=used_fallback,
        )
