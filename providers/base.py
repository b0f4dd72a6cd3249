"""Base price provider"""
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, List, Optional

from pydantic import ValidationError

from engine import TickerQuote
from spreadscout.assets.models import CachedAsset

from .errors import ProviderError

logger = logging.getLogger(__name__)


@dataclass
class MarketSnapshot:
    """All venue quotes for one asset at one point in time"""
    asset_id: str
    name: str  # Display name, e.g. "Bitcoin"
    tickers: List[TickerQuote]
    timestamp: datetime = field(default_factory=datetime.now)

    def with_tickers(self, tickers: List[TickerQuote]) -> "MarketSnapshot":
        return MarketSnapshot(
            asset_id=self.asset_id,
            name=self.name,
            tickers=tickers,
            timestamp=self.timestamp,
        )


class BasePriceProvider(ABC):
    """Base class for ticker data providers"""

    def __init__(self, name: str):
        self.name = name

    @abstractmethod
    async def fetch_tickers(self, asset_id: str) -> MarketSnapshot:
        """Fetch every venue quote for `asset_id`; raises ProviderError"""

    @abstractmethod
    async def fetch_top_assets(self, limit: int) -> List[CachedAsset]:
        """Fetch the `limit` largest assets by market cap; raises ProviderError"""

    async def close(self):
        """Release network resources"""


def _to_float(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def parse_ticker(data: dict) -> Optional[TickerQuote]:
    """Parse one provider ticker; None when required fields are missing or malformed"""
    try:
        base = data.get("base")
        target = data.get("target")
        venue = (data.get("market") or {}).get("name")
        price = _to_float(data.get("last"))
        volume = _to_float(data.get("volume"))

        if not base or not target or not venue:
            return None
        if price is None or price <= 0 or volume is None or volume < 0:
            return None

        converted_last = data.get("converted_last") or {}
        converted_volume = data.get("converted_volume") or {}

        return TickerQuote(
            base=str(base),
            target=str(target),
            price=price,
            volume=volume,
            venue=str(venue),
            trust_score=data.get("trust_score") or None,
            trade_url=data.get("trade_url") or None,
            price_usd=_to_float(converted_last.get("usd")),
            volume_usd=_to_float(converted_volume.get("usd")),
        )
    except AttributeError as e:
        logger.debug(f"Malformed ticker skipped: {e}")
        return None


def parse_tickers(payload: dict) -> List[TickerQuote]:
    """Parse a provider ticker list, dropping malformed entries"""
    tickers = []
    raw_tickers = payload.get("tickers") or []

    for item in raw_tickers:
        ticker = parse_ticker(item) if isinstance(item, dict) else None
        if ticker is None:
            logger.debug(f"Malformed ticker skipped: {str(item)[:100]}")
            continue
        tickers.append(ticker)

    return tickers


def parse_top_assets(payload: list) -> List[CachedAsset]:
    """Parse a market-cap ranked coin list into cache entries"""
    assets = []
    for coin in payload or []:
        if not isinstance(coin, dict) or not coin.get("id"):
            continue
        try:
            assets.append(CachedAsset(
                asset_id=coin["id"],
                name=coin.get("name") or "",
                symbol=coin.get("symbol") or "",
                market_cap=_to_float(coin.get("market_cap")),
                last_updated=coin.get("last_updated"),
            ))
        except ValidationError as e:
            logger.debug(f"Malformed asset skipped: {coin.get('id')}: {e}")
    return assets
