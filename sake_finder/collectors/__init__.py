"""
Marketplace adapters.
"""
from sake_finder.collectors.base import BaseMarketplaceAdapter, MarketplaceApiError

__all__ = [
    "BaseMarketplaceAdapter",
    "MarketplaceApiError",
]
