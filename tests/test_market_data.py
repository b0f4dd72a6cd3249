"""
Tests for subscriber-aware ticker fetching.
"""

import pytest

from providers.base import ProviderError
from providers.market_data import MarketDataSource
from conftest import FakePriceProvider, make_ticker


@pytest.fixture
def provider():
    return FakePriceProvider({
        "xcoin": [
            make_ticker(10, "V1"),
            make_ticker(11, "V2"),
            make_ticker(12, "V3"),
        ],
    })


class TestMarketDataSource:
    """Tests for MarketDataSource.fetch_tickers"""

    async def test_returns_all_venues_when_filter_paused(self, provider, profile):
        source = MarketDataSource(provider)
        snapshot = await source.fetch_tickers("xcoin", profile)

        assert [t.venue for t in snapshot.tickers] == ["V1", "V2", "V3"]

    async def test_paused_subscriber_skips_provider(self, provider, profile):
        profile.scan_paused = True
        source = MarketDataSource(provider)

        assert await source.fetch_tickers("xcoin", profile) is None
        assert provider.calls == []

    async def test_venue_whitelist_applied(self, provider, profile):
        profile.venue_filtering_paused = False
        profile.venue_whitelist = {"V1", "V3"}
        source = MarketDataSource(provider)

        snapshot = await source.fetch_tickers("xcoin", profile)

        assert [t.venue for t in snapshot.tickers] == ["V1", "V3"]

    async def test_venue_whitelist_ignored_while_paused(self, provider, profile):
        profile.venue_whitelist = {"V1"}
        source = MarketDataSource(provider)

        snapshot = await source.fetch_tickers("xcoin", profile)

        assert len(snapshot.tickers) == 3

    async def test_empty_whitelist_with_active_filter(self, provider, profile):
        profile.venue_filtering_paused = False
        source = MarketDataSource(provider)

        snapshot = await source.fetch_tickers("xcoin", profile)

        assert snapshot.tickers == []

    async def test_filtering_does_not_touch_provider_snapshot(self, provider, profile):
        profile.venue_filtering_paused = False
        profile.venue_whitelist = {"V2"}
        source = MarketDataSource(provider)

        await source.fetch_tickers("xcoin", profile)

        assert len(provider.markets["xcoin"]) == 3

    async def test_provider_failure_is_unavailable(self, provider, profile):
        provider.failing["xcoin"] = ProviderError("429")
        source = MarketDataSource(provider)

        assert await source.fetch_tickers("xcoin", profile) is None
        assert source.failures == 1
