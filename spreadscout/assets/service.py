"""
Top-assets cache refresh.
"""

import logging

from config import TOP_ASSETS_LIMIT
from providers.errors import ProviderError

from .store import AssetCacheStore

logger = logging.getLogger(__name__)


class AssetCacheService:
    """Refills the shared asset cache from the price provider"""

    def __init__(self, store: AssetCacheStore, provider, limit: int = TOP_ASSETS_LIMIT):
        self.store = store
        self.provider = provider
        self.limit = limit
        self.refreshes = 0
        self.refresh_failures = 0

    async def refresh(self) -> bool:
        """
        Replace the cache with the provider's current top-N list.

        On failure, or when the provider returns nothing, the previous
        snapshot stays in place.
        """
        try:
            assets = await self.provider.fetch_top_assets(self.limit)
        except ProviderError as e:
            self.refresh_failures += 1
            logger.error(f"Error fetching top {self.limit} assets: {e}")
            return False

        if not assets:
            self.refresh_failures += 1
            logger.warning("Provider returned an empty top-assets list, keeping previous cache")
            return False

        count = self.store.replace_all(assets)
        self.refreshes += 1
        logger.info(f"Top assets cache updated. {count} assets loaded.")
        return True

    async def ensure_populated(self) -> bool:
        """Refresh only when the cache is empty (startup)"""
        if not self.store.is_empty():
            logger.info(f"Top assets cache already holds {len(self.store)} assets")
            return True
        logger.info("Top assets cache is empty. Populating it.")
        return await self.refresh()
