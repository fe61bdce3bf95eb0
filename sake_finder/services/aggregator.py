"""
Cross-marketplace merging and deduplication.

Two listings are treated as the same bottle when their dedup keys match:
normalized title (lower-cased, punctuation and brackets stripped, whitespace
collapsed, volume tokens removed) plus the parsed volume in milliliters.
"""
import re
import unicodedata
from itertools import chain
from typing import Iterable

from sake_finder.models.schemas import Item
from sake_finder.services.query_normalizer import (
    VOLUME_TOKEN_PATTERN,
    canonicalize_volumes,
    parse_volume_ml,
)

PUNCTUATION_PATTERN = re.compile(r"[^\w\s]|_")
WHITESPACE_PATTERN = re.compile(r"\s+")


def normalize_title(title: str) -> str:
    """Lower-case, strip brackets/punctuation/volumes, collapse whitespace."""
    s = unicodedata.normalize("NFKC", title or "").lower()
    s = canonicalize_volumes(s)
    s = VOLUME_TOKEN_PATTERN.sub(" ", s)
    s = PUNCTUATION_PATTERN.sub(" ", s)
    return WHITESPACE_PATTERN.sub(" ", s).strip()


def dedup_key(title: str) -> str:
    volume = parse_volume_ml(title)
    return f"{normalize_title(title)}|{volume if volume is not None else ''}"


def prices_are_near(a: int, b: int, abs_tolerance: int, rel_tolerance: float) -> bool:
    """Within the absolute or relative tolerance, whichever is larger."""
    return abs(a - b) <= max(abs_tolerance, rel_tolerance * max(a, b))


def prefer(current: Item, candidate: Item, abs_tolerance: int, rel_tolerance: float) -> Item:
    """
    Choose between two listings of the same product.
    
    - both priced and near: the cheaper one (first seen on a tie)
    - only one priced: the priced one
    - otherwise: first seen
    """
    if current.price is not None and candidate.price is not None:
        if prices_are_near(current.price, candidate.price, abs_tolerance, rel_tolerance):
            return candidate if candidate.price < current.price else current
        return current
    if current.price is None and candidate.price is not None:
        return candidate
    return current


def merge(
    items_a: Iterable[Item],
    items_b: Iterable[Item],
    abs_tolerance: int = 300,
    rel_tolerance: float = 0.05,
) -> list[Item]:
    """
    Merge two marketplaces' items and collapse duplicates.
    
    Every item is re-stamped with its position in the concatenated input
    (`order`), which later serves as the final sort tie-break.
    
    Args:
        items_a: Items from the first marketplace
        items_b: Items from the second marketplace
        abs_tolerance: Absolute price difference still considered "near"
        rel_tolerance: Relative price difference still considered "near"
        
    Returns:
        Deduplicated items, in first-seen key order
    """
    kept: dict[str, Item] = {}
    for order, item in enumerate(chain(items_a, items_b)):
        item = item.model_copy(update={"order": order})
        key = dedup_key(item.title)
        current = kept.get(key)
        if current is None:
            kept[key] = item
        else:
            kept[key] = prefer(current, item, abs_tolerance, rel_tolerance)
    return list(kept.values())
