"""
Shared "top assets" cache for SpreadScout.

Subscribers who opt into the top-assets universe are scanned against this
list instead of their own whitelist. The cache is refreshed wholesale on a
long interval and swapped in atomically.
"""

from .models import CachedAsset
from .store import AssetCacheStore
from .service import AssetCacheService

__all__ = [
    "CachedAsset",
    "AssetCacheStore",
    "AssetCacheService",
]
