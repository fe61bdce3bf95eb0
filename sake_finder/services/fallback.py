"""
Fixed safety-net results shown when the live pipeline yields nothing.
"""
from urllib.parse import quote, quote_plus

from sake_finder.models.schemas import Item, Marketplace
from sake_finder.services.affiliate import AffiliateLinkWrapper

RAKUTEN_SEARCH_URL = "https://search.rakuten.co.jp/search/mall/{}/"
YAHOO_SEARCH_URL = "https://shopping.yahoo.co.jp/search?p={}"

# (id, title, search keyword, marketplace)
FALLBACK_PRODUCTS = [
    ("fallback-dassai-39", "獺祭 純米大吟醸 磨き三割九分 720ml", "獺祭 39", Marketplace.RAKUTEN),
    ("fallback-kubota-senju", "久保田 千寿 吟醸 720ml", "久保田 千寿", Marketplace.RAKUTEN),
    ("fallback-hakkaisan", "八海山 特別本醸造 720ml", "八海山 特別本醸造", Marketplace.YAHOO),
    ("fallback-juyondai", "十四代 本丸 秘伝玉返し 1800ml", "十四代 本丸", Marketplace.YAHOO),
]


def search_link(keyword: str, marketplace: Marketplace) -> str:
    if marketplace == Marketplace.RAKUTEN:
        return RAKUTEN_SEARCH_URL.format(quote(keyword.replace(" ", "+"), safe="+"))
    return YAHOO_SEARCH_URL.format(quote_plus(keyword))


def fallback_items(wrapper: AffiliateLinkWrapper) -> list[Item]:
    """Constant list, in fixed order, with wrapped search-page links."""
    return [
        Item(
            id=item_id,
            title=title,
            source=marketplace,
            url=wrapper.wrap(search_link(keyword, marketplace), marketplace),
            order=order,
        )
        for order, (item_id, title, keyword, marketplace) in enumerate(FALLBACK_PRODUCTS)
    ]
