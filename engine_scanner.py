"""
Multi-Subscriber Scan Engine

Runs one scan cycle across the whole subscriber population:

1. Load every subscriber profile (one snapshot per subscriber per cycle)
   and the shared top-assets list
2. Resolve each subscriber's asset universe
3. Fetch tickers for every (subscriber, asset) pair through a fixed-size
   worker pool; each asset is requested from the provider at most once
   per cycle and shared between subscribers
4. Run the opportunity detector and notify the subscriber

Failures are contained per pair. A cycle that starts while the previous
one is still running is skipped.
"""

import asyncio
import logging
import time
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime
from typing import Deque, Dict, Iterable, List, Optional, Set, Tuple

from config import MAX_CONCURRENT_FETCHES
from engine import OpportunityDetector
from engine_metrics import ScanMetrics
from providers.base import BasePriceProvider, MarketSnapshot
from providers.market_data import MarketDataSource
from spreadscout.assets.store import AssetCacheStore
from spreadscout.notifications.formatter import format_opportunity
from spreadscout.notifications.service import NotificationService
from spreadscout.subscribers.models import SubscriberProfile
from spreadscout.subscribers.store import SubscriberStore

logger = logging.getLogger(__name__)


class SubscriberUniverseResolver:
    """Decides which assets a subscriber is scanned against"""

    def __init__(self, asset_cache: AssetCacheStore):
        self.asset_cache = asset_cache

    def resolve(
        self,
        profile: SubscriberProfile,
        top_asset_ids: Optional[Iterable[str]] = None,
    ) -> Set[str]:
        """
        Top-asset subscribers get the shared cache (or the cycle's copy of
        it when `top_asset_ids` is given); everyone else gets their whitelist.
        """
        if profile.use_top_assets:
            if top_asset_ids is None:
                top_asset_ids = self.asset_cache.asset_ids()
            return set(top_asset_ids)
        return set(profile.asset_whitelist)


class CycleTickerCache(BasePriceProvider):
    """Shares one provider request per asset across a single cycle"""

    def __init__(self, provider: BasePriceProvider):
        super().__init__(name=f"{provider.name} (cycle)")
        self.provider = provider
        self._requests: Dict[str, asyncio.Future] = {}

    @property
    def requests_made(self) -> int:
        return len(self._requests)

    async def fetch_tickers(self, asset_id: str) -> MarketSnapshot:
        request = self._requests.get(asset_id)
        if request is None:
            request = asyncio.ensure_future(self.provider.fetch_tickers(asset_id))
            self._requests[asset_id] = request
        # Shielded so one cancelled waiter does not cancel the shared request
        return await asyncio.shield(request)

    async def fetch_top_assets(self, limit: int):
        return await self.provider.fetch_top_assets(limit)

    def discard(self):
        for request in self._requests.values():
            if not request.done():
                request.cancel()
            elif not request.cancelled():
                # Mark failures as retrieved
                request.exception()
        self._requests.clear()


@dataclass
class ScanResult:
    """Summary of one scan cycle"""
    started_at: datetime = field(default_factory=datetime.now)
    duration_seconds: float = 0.0
    subscribers: int = 0
    paused_subscribers: int = 0
    pairs: int = 0
    pairs_processed: int = 0
    provider_requests: int = 0
    unavailable: int = 0
    opportunities: int = 0
    notifications_sent: int = 0
    notifications_failed: int = 0
    errors: int = 0
    skipped: bool = False
    aborted: bool = False
    stopped: bool = False

    def to_dict(self) -> dict:
        return {
            "started_at": self.started_at.isoformat(),
            "duration_seconds": round(self.duration_seconds, 3),
            "subscribers": self.subscribers,
            "paused_subscribers": self.paused_subscribers,
            "pairs": self.pairs,
            "pairs_processed": self.pairs_processed,
            "provider_requests": self.provider_requests,
            "unavailable": self.unavailable,
            "opportunities": self.opportunities,
            "notifications_sent": self.notifications_sent,
            "notifications_failed": self.notifications_failed,
            "errors": self.errors,
            "skipped": self.skipped,
            "aborted": self.aborted,
            "stopped": self.stopped,
        }


class ScanOrchestrator:
    """
    Drives scan cycles across all subscribers.

    `run_cycle()` never raises for per-pair problems; they are logged,
    counted and the cycle moves on. Only a failure to load the subscriber
    population or the asset cache aborts the cycle.
    """

    def __init__(
        self,
        store: SubscriberStore,
        asset_cache: AssetCacheStore,
        provider: BasePriceProvider,
        notifications: NotificationService,
        detector: Optional[OpportunityDetector] = None,
        resolver: Optional[SubscriberUniverseResolver] = None,
        metrics: Optional[ScanMetrics] = None,
        max_concurrency: int = MAX_CONCURRENT_FETCHES,
    ):
        if max_concurrency < 1:
            raise ValueError("max_concurrency must be at least 1")

        self.store = store
        self.asset_cache = asset_cache
        self.provider = provider
        self.notifications = notifications
        self.detector = detector or OpportunityDetector()
        self.resolver = resolver or SubscriberUniverseResolver(asset_cache)
        self.metrics = metrics or ScanMetrics()
        self.max_concurrency = max_concurrency

        self.last_result: Optional[ScanResult] = None
        self.cycles_completed = 0
        self.cycles_skipped = 0
        self._running = False
        self._stop_event = asyncio.Event()

    @property
    def is_running(self) -> bool:
        return self._running

    def request_stop(self):
        """Finish in-flight pairs, start no new ones"""
        self._stop_event.set()

    @property
    def stop_requested(self) -> bool:
        return self._stop_event.is_set()

    async def run_cycle(self) -> ScanResult:
        """Run one full scan over every subscriber"""
        result = ScanResult()

        if self._running:
            self.cycles_skipped += 1
            result.skipped = True
            self.metrics.record_cycle("skipped")
            logger.warning("Previous scan cycle still running, skipping this one")
            return result

        if self.stop_requested:
            result.stopped = True
            return result

        self._running = True
        start = time.monotonic()
        try:
            await self._run(result)
        finally:
            self._running = False
            result.duration_seconds = time.monotonic() - start
            self.last_result = result

        if result.aborted:
            self.metrics.record_cycle("aborted", result.duration_seconds)
        else:
            self.cycles_completed += 1
            self.metrics.record_cycle("completed", result.duration_seconds)
            logger.info(
                f"Scan cycle done in {result.duration_seconds:.1f}s | "
                f"subscribers={result.subscribers} pairs={result.pairs_processed}/{result.pairs} "
                f"requests={result.provider_requests} opportunities={result.opportunities} "
                f"errors={result.errors}"
            )
        return result

    async def _run(self, result: ScanResult):
        try:
            profiles = self.store.list_all()
            top_asset_ids = self.asset_cache.asset_ids()
        except Exception as e:
            result.aborted = True
            logger.error(f"Error loading subscribers or asset cache, aborting cycle: {e}")
            return

        result.subscribers = len(profiles)
        self.metrics.record_subscribers(len(profiles))

        pairs = self._build_pairs(profiles, top_asset_ids, result)
        result.pairs = len(pairs)
        if not pairs:
            return

        cycle_cache = CycleTickerCache(self.provider)
        data_source = MarketDataSource(cycle_cache)
        queue: Deque[Tuple[SubscriberProfile, str]] = deque(pairs)

        workers = [
            asyncio.create_task(self._worker(queue, data_source, result))
            for _ in range(min(self.max_concurrency, len(pairs)))
        ]
        try:
            await asyncio.gather(*workers)
        finally:
            result.provider_requests = cycle_cache.requests_made
            cycle_cache.discard()

        if queue:
            result.stopped = True
            logger.info(f"Scan stopped with {len(queue)} pairs left unprocessed")

    def _build_pairs(
        self,
        profiles: List[SubscriberProfile],
        top_asset_ids: List[str],
        result: ScanResult,
    ) -> List[Tuple[SubscriberProfile, str]]:
        pairs = []
        for profile in profiles:
            if profile.scan_paused:
                result.paused_subscribers += 1
                continue
            try:
                universe = self.resolver.resolve(profile, top_asset_ids)
            except Exception as e:
                result.errors += 1
                self.metrics.record_pair_error()
                logger.error(f"Error resolving assets for {profile.subscriber_id}: {e}")
                continue
            pairs.extend((profile, asset_id) for asset_id in sorted(universe))
        return pairs

    async def _worker(
        self,
        queue: Deque[Tuple[SubscriberProfile, str]],
        data_source: MarketDataSource,
        result: ScanResult,
    ):
        while queue and not self.stop_requested:
            profile, asset_id = queue.popleft()
            try:
                await self._process_pair(profile, asset_id, data_source, result)
            except Exception:
                result.errors += 1
                self.metrics.record_pair_error()
                logger.exception(f"Error checking {asset_id} for subscriber {profile.subscriber_id}")
            finally:
                result.pairs_processed += 1

    async def _process_pair(
        self,
        profile: SubscriberProfile,
        asset_id: str,
        data_source: MarketDataSource,
        result: ScanResult,
    ):
        snapshot = await data_source.fetch_tickers(asset_id, profile)
        self.metrics.record_fetch(snapshot is not None)
        if snapshot is None:
            result.unavailable += 1
            return

        opportunity = self.detector.detect(snapshot.tickers, profile)
        if opportunity is None:
            return

        result.opportunities += 1
        self.metrics.record_opportunity(opportunity.profit_percent)
        logger.info(
            f"🎯 ARBITRAGE for {profile.subscriber_id}: {opportunity.pair} | "
            f"Buy@{opportunity.buy_venue} {opportunity.buy_price} → "
            f"Sell@{opportunity.sell_venue} {opportunity.sell_price} | "
            f"Profit: {opportunity.profit_percent:.2f}%"
        )

        message = format_opportunity(opportunity, snapshot.name)
        notification = await self.notifications.notify(
            profile.subscriber_id,
            message,
            data={"asset_id": asset_id, **opportunity.to_dict()},
        )
        self.metrics.record_notification(notification.delivered)
        if notification.delivered:
            result.notifications_sent += 1
        else:
            result.notifications_failed += 1

    def get_state(self) -> dict:
        """Get current state for API/dashboard"""
        return {
            "running": self._running,
            "cycles_completed": self.cycles_completed,
            "cycles_skipped": self.cycles_skipped,
            "max_concurrency": self.max_concurrency,
            "last_result": self.last_result.to_dict() if self.last_result else None,
        }
