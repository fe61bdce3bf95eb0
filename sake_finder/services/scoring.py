"""
Mode-aware relevance scoring.

Additive, rule-based, deterministic. Higher is better. Sorting uses score
descending, then price ascending (unpriced last), then original order.
"""
from dataclasses import dataclass, field
from typing import Iterable, Optional

from sake_finder.models.schemas import Item, SearchMode
from sake_finder.services.aggregator import normalize_title
from sake_finder.services.query_normalizer import parse_volume_ml
from sake_finder.services.rules import is_bundle

# Strict hierarchy, highest first; only the best tier found counts
GRADE_TIERS: list[tuple[list[str], float]] = [
    (["純米大吟醸", "大吟醸", "junmai daiginjo", "daiginjo"], 30.0),
    (["純米吟醸", "吟醸", "junmai ginjo", "ginjo"], 20.0),
    (["特別純米", "特別本醸造", "純米", "本醸造", "junmai", "honjozo"], 10.0),
]

GIFT_KEYWORDS = [
    "ギフト",
    "贈答",
    "贈り物",
    "プレゼント",
    "御祝",
    "お祝い",
    "祝い",
    "化粧箱",
    "箱入り",
    "父の日",
    "母の日",
    "敬老",
    "御歳暮",
    "お歳暮",
    "御中元",
    "お中元",
    "内祝",
    "還暦",
    "退職",
    "誕生日",
    "記念",
    "のし",
    "gift",
    "present",
]

SINGLE_BOTTLE_VOLUMES = {180, 300, 500, 720}


@dataclass(frozen=True)
class PriceBand:
    low: int
    high: int
    
    def contains(self, price: Optional[int]) -> bool:
        return price is not None and self.low <= price <= self.high


@dataclass(frozen=True)
class ScoringConfig:
    """
    Scoring weights and price bands.
    
    Defaults keep the policy ordering: grade tiers dominate, gift vocabulary
    is a bonus in gift mode and a penalty in normal mode, bundles are
    penalized in normal mode.
    """
    grade_tiers: list[tuple[list[str], float]] = field(default_factory=lambda: list(GRADE_TIERS))
    gift_keywords: list[str] = field(default_factory=lambda: list(GIFT_KEYWORDS))
    
    # gift mode
    gift_vocabulary_bonus: float = 15.0
    everyday_gift_band: PriceBand = PriceBand(3000, 5500)
    everyday_gift_bonus: float = 10.0
    premium_gift_band: PriceBand = PriceBand(8000, 15000)
    premium_gift_bonus: float = 8.0
    gift_extreme_price: int = 30000
    gift_extreme_penalty: float = 5.0
    
    # normal mode
    bundle_penalty: float = 20.0
    normal_gift_penalty: float = 8.0
    single_bottle_bonus: float = 6.0
    single_bottle_band: PriceBand = PriceBand(1500, 4000)
    single_bottle_band_bonus: float = 10.0
    low_price_threshold: int = 1200
    low_price_penalty: float = 10.0


DEFAULT_SCORING = ScoringConfig()


def grade_score(title: str, config: ScoringConfig = DEFAULT_SCORING) -> float:
    for keywords, weight in config.grade_tiers:
        if any(word in title for word in keywords):
            return weight
    return 0.0


def has_gift_vocabulary(title: str, config: ScoringConfig = DEFAULT_SCORING) -> bool:
    return any(word in title for word in config.gift_keywords)


def score(item: Item, mode: SearchMode, config: ScoringConfig = DEFAULT_SCORING) -> float:
    """Heuristic relevance of an item for the caller's intent."""
    title = normalize_title(item.title)
    price = item.price
    total = grade_score(title, config)
    gifty = has_gift_vocabulary(title, config)
    
    if mode == SearchMode.GIFT:
        if gifty:
            total += config.gift_vocabulary_bonus
        if config.everyday_gift_band.contains(price):
            total += config.everyday_gift_bonus
        elif config.premium_gift_band.contains(price):
            total += config.premium_gift_bonus
        if price is not None and price > config.gift_extreme_price:
            total -= config.gift_extreme_penalty
        return total
    
    if is_bundle(item.title):
        total -= config.bundle_penalty
    if gifty:
        total -= config.normal_gift_penalty
    if parse_volume_ml(item.title) in SINGLE_BOTTLE_VOLUMES:
        total += config.single_bottle_bonus
    if config.single_bottle_band.contains(price):
        total += config.single_bottle_band_bonus
    if price is not None and price < config.low_price_threshold:
        total -= config.low_price_penalty
    return total


def sort_key(item: Item, mode: SearchMode, config: ScoringConfig = DEFAULT_SCORING) -> tuple:
    return (
        -score(item, mode, config),
        item.price is None,
        item.price or 0,
        item.order,
    )


def rank(
    items: Iterable[Item],
    mode: SearchMode,
    config: ScoringConfig = DEFAULT_SCORING,
) -> list[Item]:
    """Sort items best first."""
    return sorted(items, key=lambda item: sort_key(item, mode, config))
