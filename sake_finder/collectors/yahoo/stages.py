"""
Staged query plan for Yahoo! Shopping.

Keyword search upstream often returns nothing for compound Japanese product
phrases once packaging qualifiers are included, so a search is tried as a
fixed sequence of progressively looser stages:

- A: normalized query, relevance sort
- B: loosened query, price ascending
- C: no free text (category browse), price ascending
"""
from dataclasses import dataclass, field
from typing import Any, Optional

from sake_finder.services.query_normalizer import loosen_query, normalize_query

DEFAULT_GENRE_SAKE = "1359"


@dataclass(frozen=True)
class YahooBaseParams:
    """Parameters shared by every stage."""
    appid: str
    genre_category_id: Optional[str] = None
    in_stock: bool = True
    results: int = 20
    start: int = 1
    sort: Optional[str] = None
    image_size: int = 300
    price_from: Optional[int] = None
    price_to: Optional[int] = None
    affiliate_type: Optional[str] = None
    affiliate_id: Optional[str] = None


@dataclass(frozen=True)
class StagedQuery:
    """One attempt in the staged plan."""
    stage: str
    params: dict[str, Any] = field(default_factory=dict)
    query_for_view: str = ""


def _common_params(base: YahooBaseParams) -> dict[str, Any]:
    return {
        "appid": base.appid,
        "genre_category_id": base.genre_category_id or DEFAULT_GENRE_SAKE,
        "in_stock": "true" if base.in_stock else "false",
        "results": base.results,
        "start": base.start,
        "image_size": base.image_size,
    }


def _optional_params(base: YahooBaseParams) -> dict[str, Any]:
    params: dict[str, Any] = {}
    if base.price_from is not None:
        params["price_from"] = base.price_from
    if base.price_to is not None:
        params["price_to"] = base.price_to
    if base.affiliate_type:
        params["affiliate_type"] = base.affiliate_type
    if base.affiliate_id:
        params["affiliate_id"] = base.affiliate_id
    return params


def build_stages(raw_query: str, base: YahooBaseParams) -> list[StagedQuery]:
    """
    Build the ordered A/B/C stage plan for a raw keyword.
    
    Args:
        raw_query: Keyword as typed by the user
        base: Shared request parameters
        
    Returns:
        Exactly three stages, strictest first
    """
    strict = normalize_query(raw_query)
    loose = loosen_query(strict)
    common = _common_params(base)
    optional = _optional_params(base)
    
    return [
        StagedQuery(
            stage="A",
            params={**common, "sort": base.sort or "-score", "query": strict, **optional},
            query_for_view=strict,
        ),
        StagedQuery(
            stage="B",
            params={**common, "sort": "+price", "query": loose, **optional},
            query_for_view=loose,
        ),
        StagedQuery(
            stage="C",
            params={**common, "sort": "+price", "query": "", **optional},
            query_for_view="",
        ),
    ]
