"""
Asset cache data models.
"""

from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field


class CachedAsset(BaseModel):
    """One entry of the top-assets list"""
    asset_id: str = Field(..., min_length=1)
    name: str = ""
    symbol: str = ""
    market_cap: Optional[float] = None
    last_updated: Optional[datetime] = None
