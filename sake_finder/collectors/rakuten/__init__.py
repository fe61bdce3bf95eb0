"""
Rakuten Ichiba marketplace adapter.
"""
from sake_finder.collectors.rakuten.client import RakutenAdapter, RakutenHit

__all__ = [
    "RakutenAdapter",
    "RakutenHit",
]
