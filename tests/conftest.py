"""
Pytest configuration and fixtures for SpreadScout tests.
"""

import asyncio
from typing import Dict, List, Optional

import pytest

# Import application
import sys
sys.path.insert(0, '.')

from engine import TickerQuote, TrustScore
from providers.base import BasePriceProvider, MarketSnapshot, ProviderError
from spreadscout.assets.models import CachedAsset
from spreadscout.assets.store import AssetCacheStore
from spreadscout.notifications.service import MemorySink, NotificationService
from spreadscout.subscribers.models import SubscriberProfile
from spreadscout.subscribers.store import InMemorySubscriberStore
from spreadscout.subscribers.service import SubscriberService


def make_ticker(
    price: float,
    venue: str,
    base: str = "X",
    target: str = "USDT",
    volume: float = 5000,
    trust_score: Optional[str] = TrustScore.TRUSTED.value,
    **kwargs,
) -> TickerQuote:
    return TickerQuote(
        base=base,
        target=target,
        price=price,
        volume=volume,
        venue=venue,
        trust_score=trust_score,
        **kwargs,
    )


class FakePriceProvider(BasePriceProvider):
    """Scripted provider that records every request"""

    def __init__(self, markets: Optional[Dict[str, List[TickerQuote]]] = None, delay: float = 0):
        super().__init__(name="Fake")
        self.markets = markets or {}
        self.failing: Dict[str, Exception] = {}
        self.top_assets: List[CachedAsset] = []
        self.delay = delay
        self.calls: List[str] = []
        self.in_flight = 0
        self.max_in_flight = 0

    async def fetch_tickers(self, asset_id: str) -> MarketSnapshot:
        self.calls.append(asset_id)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if self.delay:
                await asyncio.sleep(self.delay)
            if asset_id in self.failing:
                raise self.failing[asset_id]
            if asset_id not in self.markets:
                raise ProviderError(f"unknown asset {asset_id}")
            return MarketSnapshot(
                asset_id=asset_id,
                name=asset_id.title(),
                tickers=list(self.markets[asset_id]),
            )
        finally:
            self.in_flight -= 1

    async def fetch_top_assets(self, limit: int) -> List[CachedAsset]:
        if "top" in self.failing:
            raise self.failing["top"]
        return self.top_assets[:limit]


@pytest.fixture
def profile() -> SubscriberProfile:
    """Subscriber with permissive filters"""
    return SubscriberProfile(
        subscriber_id="1001",
        min_profit=0.05,
        min_volume=1000,
        target="USDT",
    )


@pytest.fixture
def scenario_tickers() -> List[TickerQuote]:
    """Two trusted venues 10% apart"""
    return [
        make_ticker(10, "V1", volume=5000),
        make_ticker(11, "V2", volume=6000),
    ]


@pytest.fixture
def fake_provider() -> FakePriceProvider:
    return FakePriceProvider()


@pytest.fixture
def fresh_subscriber_store() -> InMemorySubscriberStore:
    """Create a fresh subscriber store for isolated tests"""
    return InMemorySubscriberStore()


@pytest.fixture
def fresh_subscriber_service(fresh_subscriber_store) -> SubscriberService:
    return SubscriberService(fresh_subscriber_store)


@pytest.fixture
def asset_cache() -> AssetCacheStore:
    return AssetCacheStore()


@pytest.fixture
def memory_sink() -> MemorySink:
    return MemorySink()


@pytest.fixture
def notification_service(memory_sink) -> NotificationService:
    return NotificationService(memory_sink)
