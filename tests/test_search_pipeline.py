"""
Tests for the search aggregation pipeline.
"""
import asyncio

import pytest

from sake_finder.collectors.base import BaseMarketplaceAdapter
from sake_finder.models.schemas import Item, Marketplace, QueryContext, SearchMode
from sake_finder.services.affiliate import AffiliateLinkWrapper
from sake_finder.services.fallback import FALLBACK_PRODUCTS
from sake_finder.services.search_pipeline import SearchPipeline

from tests.conftest import make_item, make_settings


class FakeAdapter(BaseMarketplaceAdapter):
    """Adapter returning canned items, optionally after a delay or failure."""
    
    def __init__(self, settings, items=None, source=Marketplace.RAKUTEN, delay=0.0, error=None, before=None):
        super().__init__(settings, AffiliateLinkWrapper(settings))
        self.items = items or []
        self.source = source
        self.delay = delay
        self.error = error
        self.before = before
        self.calls = 0
    
    @property
    def marketplace(self) -> Marketplace:
        return self.source
    
    @property
    def configured(self) -> bool:
        return True
    
    async def _fetch(self, context: QueryContext) -> list[Item]:
        self.calls += 1
        if self.before is not None:
            await self.before()
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return list(self.items)


class ExplodingAdapter(FakeAdapter):
    """Breaks the never-raises contract to exercise the pipeline's own guard."""
    
    async def fetch(self, context: QueryContext) -> list[Item]:
        raise RuntimeError("adapter bug")


def make_pipeline(settings, *adapters) -> SearchPipeline:
    return SearchPipeline(settings, adapters, AffiliateLinkWrapper(settings))


class TestSearchPipeline:
    """Test cases for SearchPipeline."""
    
    @pytest.mark.asyncio
    async def test_gift_search_end_to_end(self):
        settings = make_settings()
        rakuten = FakeAdapter(
            settings,
            [
                make_item("Junmai Ginjo gift box 720ml", 4000, item_id="r1"),
                make_item("Junmai Ginjo 720ml", 4000, item_id="r2"),
                make_item("Junmai Ginjo 300ml", 2000, item_id="r3"),
                make_item("梅酒 Junmai 720ml", 4000, item_id="r4"),
            ],
        )
        yahoo = FakeAdapter(
            settings,
            [make_item("JUNMAI GINJO (720ml)", 3900, source=Marketplace.YAHOO, item_id="y1")],
            source=Marketplace.YAHOO,
        )
        context = QueryContext.build(
            "Junmai Ginjo gift", mode=SearchMode.GIFT, min_price=3000, max_price=8000
        )
        
        outcome = await make_pipeline(settings, rakuten, yahoo).run(context)
        
        assert outcome.total == 4
        assert outcome.after_filter == 2
        assert outcome.no_filter is False
        assert outcome.mode == SearchMode.GIFT
        assert [item.id for item in outcome.items] == ["r1", "y1"]
        assert outcome.items[1].source == Marketplace.YAHOO
        assert outcome.used_fallback is False
    
    @pytest.mark.asyncio
    async def test_empty_results_use_fallback(self):
        settings = make_settings()
        pipeline = make_pipeline(settings, FakeAdapter(settings), FakeAdapter(settings, source=Marketplace.YAHOO))
        
        outcome = await pipeline.run(QueryContext.build("存在しない銘柄"))
        
        assert outcome.total == 0
        assert outcome.after_filter == 0
        assert outcome.used_fallback is True
        assert [item.id for item in outcome.items] == [p[0] for p in FALLBACK_PRODUCTS]
        assert [item.order for item in outcome.items] == list(range(len(FALLBACK_PRODUCTS)))
        assert all(item.price is None and item.image is None for item in outcome.items)
    
    @pytest.mark.asyncio
    async def test_everything_filtered_uses_fallback(self):
        settings = make_settings()
        adapter = FakeAdapter(settings, [make_item("梅酒 紀州", 2000), make_item("純米酒", 2000, image=None)])
        
        outcome = await make_pipeline(settings, adapter).run(QueryContext.build("梅酒"))
        
        assert outcome.total == 2
        assert outcome.after_filter == 0
        assert outcome.used_fallback is True
    
    @pytest.mark.asyncio
    async def test_failing_adapter_keeps_other_results(self):
        settings = make_settings()
        broken = FakeAdapter(settings, error=ValueError("unexpected payload"))
        healthy = FakeAdapter(settings, [make_item("久保田 萬寿 720ml", 3500, source=Marketplace.YAHOO)], source=Marketplace.YAHOO)
        
        outcome = await make_pipeline(settings, broken, healthy).run(QueryContext.build("久保田"))
        
        assert [item.title for item in outcome.items] == ["久保田 萬寿 720ml"]
        assert outcome.used_fallback is False
    
    @pytest.mark.asyncio
    async def test_exploding_adapter_is_contained(self):
        settings = make_settings()
        exploding = ExplodingAdapter(settings)
        healthy = FakeAdapter(settings, [make_item("久保田 萬寿 720ml", 3500)])
        
        outcome = await make_pipeline(settings, exploding, healthy).run(QueryContext.build("久保田"))
        
        assert [item.title for item in outcome.items] == ["久保田 萬寿 720ml"]
    
    @pytest.mark.asyncio
    async def test_slow_adapter_hits_deadline(self):
        settings = make_settings(adapter_deadline=0.1)
        slow = FakeAdapter(settings, [make_item("遅い 純米 720ml", 3000)], delay=5.0)
        fast = FakeAdapter(settings, [make_item("速い 純米 720ml", 3000)], source=Marketplace.YAHOO)
        
        loop = asyncio.get_running_loop()
        started = loop.time()
        outcome = await make_pipeline(settings, slow, fast).run(QueryContext.build("純米"))
        elapsed = loop.time() - started
        
        assert [item.title for item in outcome.items] == ["速い 純米 720ml"]
        assert elapsed < 2.0
    
    @pytest.mark.asyncio
    async def test_adapters_run_concurrently(self):
        settings = make_settings(adapter_deadline=1.0)
        released = asyncio.Event()
        
        async def wait_for_peer():
            await released.wait()
        
        async def release_peer():
            released.set()
        
        # Would time out if the second adapter only started after the first finished
        waiting = FakeAdapter(settings, [make_item("待機 純米 720ml", 3000)], before=wait_for_peer)
        releasing = FakeAdapter(
            settings,
            [make_item("解放 純米 720ml", 3100)],
            source=Marketplace.YAHOO,
            before=release_peer,
        )
        
        outcome = await make_pipeline(settings, waiting, releasing).run(QueryContext.build("純米"))
        
        assert sorted(item.title for item in outcome.items) == ["待機 純米 720ml", "解放 純米 720ml"]
    
    @pytest.mark.asyncio
    async def test_no_filter_bypasses_rules(self):
        settings = make_settings(no_filter=True)
        adapter = FakeAdapter(settings, [make_item("ワンカップ 純米", 500), make_item("梅酒 紀州", 2000)])
        
        outcome = await make_pipeline(settings, adapter).run(QueryContext.build("純米"))
        
        assert outcome.no_filter is True
        assert outcome.total == 2
        assert outcome.after_filter == 2
        assert {item.title for item in outcome.items} == {"ワンカップ 純米", "梅酒 紀州"}
    
    @pytest.mark.asyncio
    async def test_result_limit(self):
        settings = make_settings(result_limit=3)
        items = [make_item(f"銘柄{i} 純米 720ml", 2000 + i * 100) for i in range(6)]
        adapter = FakeAdapter(settings, items)
        
        outcome = await make_pipeline(settings, adapter).run(QueryContext.build("純米"))
        
        assert len(outcome.items) == 3
        assert outcome.after_filter == 6
        assert [item.price for item in outcome.items] == [2000, 2100, 2200]
    
    @pytest.mark.asyncio
    async def test_to_response_uses_wire_names(self):
        settings = make_settings()
        adapter = FakeAdapter(settings, [make_item("獺祭 純米大吟醸 45 720ml", 2200)])
        
        outcome = await make_pipeline(settings, adapter).run(QueryContext.build("獺祭"))
        body = outcome.to_response().model_dump(by_alias=True, mode="json")
        
        assert set(body) == {"items", "total", "afterFilter", "noFilter", "mode"}
        assert body["mode"] == "normal"
