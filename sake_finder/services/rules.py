"""
Hard constraints applied after merging.
"""
import unicodedata
from dataclasses import dataclass, field
from typing import Optional

from sake_finder.core.config import Settings
from sake_finder.models.schemas import Item, QueryContext, SearchMode

# Packaging only, drinkware, other beverage categories
BANNED_KEYWORDS = [
    "梅酒",
    "みりん",
    "焼酎",
    "ビール",
    "ワイン",
    "ウイスキー",
    "リキュール",
    "甘酒",
    "酒粕",
    "酒かす",
    "ぐい呑",
    "ぐい飲",
    "おちょこ",
    "お猪口",
    "徳利",
    "酒器",
    "グラス",
    "空瓶",
    "空き瓶",
    "箱のみ",
    "化粧箱のみ",
    "ラッピング",
]

# Multi-bottle listings, wanted by gift buyers only
BUNDLE_KEYWORDS = [
    "セット",
    "詰め合わせ",
    "詰合せ",
    "飲み比べ",
    "福袋",
    "本組",
    "2本",
    "3本",
    "4本",
    "5本",
    "6本",
    "12本",
]


@dataclass(frozen=True)
class RuleFilter:
    """
    Pure pass/fail predicate over items.
    
    Rejects items without title or image, prices outside the sane window or
    the caller's bounds, banned categories, and bundles outside gift mode.
    """
    min_price: int = 1000
    max_price: int = 50000
    banned_keywords: list[str] = field(default_factory=lambda: list(BANNED_KEYWORDS))
    bundle_keywords: list[str] = field(default_factory=lambda: list(BUNDLE_KEYWORDS))
    
    @classmethod
    def from_settings(cls, settings: Settings) -> "RuleFilter":
        return cls(min_price=settings.filter_min_price, max_price=settings.filter_max_price)
    
    def passes(
        self,
        item: Item,
        mode: SearchMode,
        price_floor: Optional[int] = None,
        price_ceiling: Optional[int] = None,
    ) -> bool:
        if not item.title or not item.image:
            return False
        
        if item.price is not None and not (self.min_price <= item.price <= self.max_price):
            return False
        
        # Caller bounds can only be checked on priced items
        if price_floor is not None or price_ceiling is not None:
            if item.price is None:
                return False
            if price_floor is not None and item.price < price_floor:
                return False
            if price_ceiling is not None and item.price > price_ceiling:
                return False
        
        title = unicodedata.normalize("NFKC", item.title)
        if any(word in title for word in self.banned_keywords):
            return False
        
        if mode == SearchMode.NORMAL and is_bundle(title, self.bundle_keywords):
            return False
        
        return True
    
    def apply(self, items: list[Item], context: QueryContext) -> list[Item]:
        return [
            item
            for item in items
            if self.passes(item, context.mode, context.min_price, context.max_price)
        ]


def is_bundle(title: str, keywords: Optional[list[str]] = None) -> bool:
    title = unicodedata.normalize("NFKC", title)
    return any(word in title for word in (keywords or BUNDLE_KEYWORDS))
