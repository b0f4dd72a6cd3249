"""Simulated price provider for testing when real connections are blocked"""
import logging
import random
from typing import List, Optional

from engine import TickerQuote, TrustScore
from spreadscout.assets.models import CachedAsset

from .base import BasePriceProvider, MarketSnapshot, ProviderError

logger = logging.getLogger(__name__)


# Realistic base prices for simulation (USDT)
BASE_ASSETS = {
    "bitcoin": ("Bitcoin", "BTC", 97500.0),
    "ethereum": ("Ethereum", "ETH", 3250.0),
    "solana": ("Solana", "SOL", 245.0),
    "ripple": ("XRP", "XRP", 3.15),
    "dogecoin": ("Dogecoin", "DOGE", 0.38),
}

# (venue, price offset percent, trust score)
SIMULATED_VENUES = [
    ("Binance-SIM", 0.0, TrustScore.TRUSTED.value),
    ("Kraken-SIM", 0.4, TrustScore.TRUSTED.value),
    ("Coinbase-SIM", -0.3, TrustScore.TRUSTED.value),
    ("Gate-SIM", 1.5, TrustScore.NEUTRAL.value),
    ("Tiny-SIM", -2.5, TrustScore.UNTRUSTED.value),
]


class SimulatedPriceProvider(BasePriceProvider):
    """
    Generates ticker sets with per-venue price offsets.
    The offsets create spreads for the detector to find.
    """

    def __init__(self, seed: Optional[int] = None, jitter_percent: float = 0.1):
        super().__init__(name="Simulator")
        self._random = random.Random(seed)
        self.jitter = jitter_percent / 100

    async def fetch_tickers(self, asset_id: str) -> MarketSnapshot:
        if asset_id not in BASE_ASSETS:
            raise ProviderError(f"[{self.name}] Unknown asset: {asset_id}")

        name, symbol, base_price = BASE_ASSETS[asset_id]
        tickers: List[TickerQuote] = []

        for venue, offset_percent, trust in SIMULATED_VENUES:
            movement = self._random.uniform(-self.jitter, self.jitter)
            price = base_price * (1 + offset_percent / 100) * (1 + movement)
            volume = self._random.uniform(500, 5_000_000)
            tickers.append(TickerQuote(
                base=symbol,
                target="USDT",
                price=round(price, 8),
                volume=round(volume, 2),
                venue=venue,
                trust_score=trust,
                trade_url=f"https://{venue.lower()}.example/trade/{symbol}_USDT",
                price_usd=round(price, 8),
                volume_usd=round(volume * price, 2),
            ))

        return MarketSnapshot(asset_id=asset_id, name=name, tickers=tickers)

    async def fetch_top_assets(self, limit: int) -> List[CachedAsset]:
        ranked = sorted(BASE_ASSETS.items(), key=lambda item: item[1][2], reverse=True)
        return [
            CachedAsset(asset_id=asset_id, name=name, symbol=symbol.lower(), market_cap=price * 1e9)
            for asset_id, (name, symbol, price) in ranked[:limit]
        ]
