"""
Yahoo! Shopping response parsers.

The current (V3) endpoint returns `{"hits": [...]}`. The deprecated V1
endpoint has shipped more than one layout:

    {"ResultSet": {"0": {"Result": {"0": {...}, "1": {...}}}}}
    {"ResultSet": {"Result": {"Hit": [...]}}}
    [{...}, {...}]                      # flat hit array

Parsers are picked by sniffing the structure, never by trial and error.
"""
from dataclasses import dataclass
from typing import Any, Optional

from sake_finder.collectors.base import to_price


@dataclass(frozen=True)
class RawHit:
    """Marketplace-neutral view of one Yahoo hit, before affiliate wrapping."""
    code: Optional[str]
    title: str
    url: str
    price: Optional[int]
    image: Optional[str]
    shop: Optional[str]


def _dig(data: Any, *keys: str) -> Any:
    for key in keys:
        if not isinstance(data, dict):
            return None
        data = data.get(key)
    return data


def _as_list(node: Any) -> list[Any]:
    """Accept a list, a single object, or an index-keyed object ("0", "1", ...)."""
    if node is None:
        return []
    if isinstance(node, list):
        return node
    if isinstance(node, dict):
        index_keys = [k for k in node if str(k).isdigit()]
        if index_keys:
            return [node[k] for k in sorted(index_keys, key=int)]
        return [node]
    return []


# ==================== V3 ====================

def is_v3_response(data: Any) -> bool:
    return isinstance(data, dict) and "hits" in data


def parse_v3(data: Any) -> list[RawHit]:
    """Parse a current-schema response."""
    hits = data.get("hits") if isinstance(data, dict) else None
    if not isinstance(hits, list):
        return []
    
    parsed = []
    for hit in hits:
        if not isinstance(hit, dict):
            continue
        title = str(hit.get("name") or "").strip()
        url = hit.get("url") or ""
        if not title or not url:
            continue
        parsed.append(
            RawHit(
                code=hit.get("code"),
                title=title,
                url=url,
                price=to_price(hit.get("price")),
                image=(
                    _dig(hit, "image", "medium")
                    or _dig(hit, "image", "small")
                    or _dig(hit, "exImage", "url")
                ),
                shop=_dig(hit, "seller", "name"),
            )
        )
    return parsed


# ==================== V1 (legacy) ====================

def is_v1_response(data: Any) -> bool:
    if isinstance(data, list):
        return True
    return isinstance(data, dict) and ("ResultSet" in data or "Hit" in data)


def _legacy_hit_nodes(data: Any) -> list[Any]:
    if isinstance(data, list):
        return data
    
    if "Hit" in data:
        return _as_list(data["Hit"])
    
    result_set = data.get("ResultSet")
    if not isinstance(result_set, dict):
        return []
    
    # Either ResultSet["0"]["Result"] or ResultSet["Result"]
    result = _dig(result_set, "0", "Result")
    if result is None:
        result = result_set.get("Result")
    
    if isinstance(result, dict) and "Hit" in result:
        return _as_list(result["Hit"])
    return _as_list(result)


def parse_v1(data: Any) -> list[RawHit]:
    """Parse any known legacy-schema layout."""
    parsed = []
    for hit in _legacy_hit_nodes(data):
        if not isinstance(hit, dict):
            continue
        title = str(hit.get("Name") or hit.get("name") or "").strip()
        url = hit.get("Url") or hit.get("url") or ""
        if not title or not url:
            continue
        image = hit.get("Image")
        parsed.append(
            RawHit(
                code=hit.get("Code") or hit.get("code"),
                title=title,
                url=url,
                price=to_price(hit.get("Price", hit.get("price"))),
                image=(image.get("Medium") or image.get("Small")) if isinstance(image, dict) else None,
                shop=_dig(hit, "Store", "Name"),
            )
        )
    return parsed


def parse_response(data: Any) -> list[RawHit]:
    """Sniff the response layout and parse it. Unknown layouts yield no hits."""
    if is_v3_response(data):
        return parse_v3(data)
    if is_v1_response(data):
        return parse_v1(data)
    return []
