"""
Double-buffered asset cache.
"""

import logging
from datetime import datetime
from typing import Iterable, List, Optional, Tuple

from .models import CachedAsset

logger = logging.getLogger(__name__)


class AssetCacheStore:
    """
    Holds the current top-assets snapshot.

    `replace_all` builds the new snapshot completely before swapping the
    reference, so readers see either the old list or the new one, never an
    empty or partially filled cache.
    """

    def __init__(self, assets: Optional[Iterable[CachedAsset]] = None):
        self._snapshot: Tuple[CachedAsset, ...] = tuple(assets or ())
        self.last_refreshed: Optional[datetime] = None

    def list_all(self) -> List[CachedAsset]:
        return list(self._snapshot)

    def asset_ids(self) -> List[str]:
        return [asset.asset_id for asset in self._snapshot]

    def get(self, asset_id: str) -> Optional[CachedAsset]:
        for asset in self._snapshot:
            if asset.asset_id == asset_id:
                return asset
        return None

    def replace_all(self, assets: Iterable[CachedAsset]) -> int:
        """Swap in a new snapshot; returns its size"""
        new_snapshot = tuple(assets)
        self._snapshot = new_snapshot
        self.last_refreshed = datetime.now()
        return len(new_snapshot)

    def is_empty(self) -> bool:
        return not self._snapshot

    def __len__(self) -> int:
        return len(self._snapshot)
