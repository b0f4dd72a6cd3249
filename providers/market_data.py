"""Subscriber-aware ticker fetching"""
import logging
from typing import Optional

from spreadscout.subscribers.models import SubscriberProfile

from .base import BasePriceProvider, MarketSnapshot, ProviderError

logger = logging.getLogger(__name__)


class MarketDataSource:
    """
    Wraps a price provider with the per-subscriber guards that sit in
    front of detection:

    - a paused subscriber never triggers a provider request
    - provider failures become "unavailable" (None) instead of exceptions
    - with venue filtering active, only whitelisted venues are passed on
    """

    def __init__(self, provider: BasePriceProvider):
        self.provider = provider
        self.failures = 0

    async def fetch_tickers(
        self,
        asset_id: str,
        profile: SubscriberProfile,
    ) -> Optional[MarketSnapshot]:
        if profile.scan_paused:
            return None

        try:
            snapshot = await self.provider.fetch_tickers(asset_id)
        except ProviderError as e:
            self.failures += 1
            logger.warning(f"Tickers unavailable for {asset_id}: {e}")
            return None

        if profile.venue_filtering_paused:
            return snapshot

        return snapshot.with_tickers([
            ticker for ticker in snapshot.tickers
            if ticker.venue in profile.venue_whitelist
        ])
