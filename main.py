"""
SpreadScout - Main Entry Point

This bot scans centralized exchange tickers on behalf of many subscribers,
finds cross-venue price gaps that match each subscriber's filters and
pushes alerts to them.

Features:
- Per-subscriber asset universe (whitelist or shared top-N by market cap)
- Venue whitelist, blacklist, volume and profit thresholds
- Telegram notifications
- Prometheus metrics export
- Simulation mode for running without network access
"""
import asyncio
import logging
import signal
import sys
from contextlib import asynccontextmanager
from typing import Awaitable, Callable, List

import uvicorn
from fastapi import FastAPI

from config import (
    MODE, WEB_HOST, WEB_PORT, SUBSCRIBERS_FILE, SESSION_TTL_SECONDS,
    SCAN_INTERVAL_SECONDS, ASSET_REFRESH_INTERVAL_SECONDS, MAX_CONCURRENT_FETCHES,
)
from providers import CoinGeckoProvider, SimulatedPriceProvider
from engine import OpportunityDetector
from engine_metrics import ScanMetrics
from engine_scanner import ScanOrchestrator
from spreadscout.assets import AssetCacheStore, AssetCacheService
from spreadscout.notifications import NotificationService, TelegramNotifier, MemorySink
from spreadscout.subscribers import (
    InMemorySubscriberStore, SubscriberService, SessionStore, SettingsConversation,
)

# Dashboard
from dashboard import app, manager

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s | %(levelname)-8s | %(name)-20s | %(message)s',
    datefmt='%H:%M:%S'
)
logger = logging.getLogger(__name__)

# Reduce noise from libraries
logging.getLogger('aiohttp.access').setLevel(logging.WARNING)
logging.getLogger('uvicorn.access').setLevel(logging.WARNING)


class SpreadScoutBot:
    """Wires the scan engine together and runs its two timers"""

    def __init__(
        self,
        mode: str = "live",
        scan_interval: float = SCAN_INTERVAL_SECONDS,
        refresh_interval: float = ASSET_REFRESH_INTERVAL_SECONDS,
    ):
        self.mode = mode
        self.scan_interval = scan_interval
        self.refresh_interval = refresh_interval

        if mode == "simulation":
            # Use simulated tickers when network is restricted
            self.provider = SimulatedPriceProvider()
            sink = MemorySink()
            logger.info("🎮 Running in SIMULATION MODE with mock data")
        else:
            self.provider = CoinGeckoProvider()
            sink = TelegramNotifier()
            logger.info("🦎 Running with the CoinGecko API")

        self.subscribers = InMemorySubscriberStore(SUBSCRIBERS_FILE or None)
        self.settings = SubscriberService(self.subscribers)
        self.conversation = SettingsConversation(
            self.settings, SessionStore(ttl_seconds=SESSION_TTL_SECONDS)
        )

        self.asset_cache = AssetCacheStore()
        self.asset_service = AssetCacheService(self.asset_cache, self.provider)
        self.notifications = NotificationService(sink)
        self.metrics = ScanMetrics()

        self.orchestrator = ScanOrchestrator(
            store=self.subscribers,
            asset_cache=self.asset_cache,
            provider=self.provider,
            notifications=self.notifications,
            detector=OpportunityDetector(),
            metrics=self.metrics,
            max_concurrency=MAX_CONCURRENT_FETCHES,
        )

        self.tasks: List[asyncio.Task] = []
        self.running = False
        self._stop_event = asyncio.Event()

    def setup(self):
        """Connect components to the dashboard"""
        manager.set_components(
            orchestrator=self.orchestrator,
            subscribers=self.subscribers,
            asset_cache=self.asset_cache,
            notifications=self.notifications,
        )
        app.state.subscriber_service = self.settings
        app.state.settings_conversation = self.conversation
        logger.info(f"Bot configured with {self.subscribers.count()} subscribers")

    async def _every(self, interval: float, job: Callable[[], Awaitable], name: str):
        """Run `job` every `interval` seconds until stopped"""
        while not self._stop_event.is_set():
            try:
                await job()
            except Exception:
                logger.exception(f"[{name}] job failed")

            try:
                await asyncio.wait_for(self._stop_event.wait(), timeout=interval)
            except asyncio.TimeoutError:
                pass

    async def _scan(self):
        await self.orchestrator.run_cycle()

    async def start(self):
        """Populate the asset cache and start the timers"""
        self.running = True
        self.setup()

        logger.info("=" * 60)
        logger.info("🚀 SPREADSCOUT STARTING")
        if self.mode == "simulation":
            logger.info("🎮 SIMULATION MODE - Using mock ticker data")
        logger.info("=" * 60)

        await self.asset_service.ensure_populated()

        self.tasks.append(asyncio.create_task(
            self._every(self.scan_interval, self._scan, "scan")
        ))
        self.tasks.append(asyncio.create_task(
            self._every(self.refresh_interval, self.asset_service.refresh, "asset-refresh")
        ))
        logger.info(f"Scanning every {self.scan_interval}s, "
                    f"refreshing top assets every {self.refresh_interval}s")

        logger.info(f"Dashboard API at http://localhost:{WEB_PORT}/api/state")
        logger.info(f"Prometheus metrics at http://localhost:{WEB_PORT}/metrics")
        logger.info("=" * 60)

    async def stop(self):
        """Stop the timers and release network resources"""
        self.running = False
        logger.info("Shutting down...")

        self.orchestrator.request_stop()
        self._stop_event.set()

        if self.tasks:
            await asyncio.gather(*self.tasks, return_exceptions=True)
        self.tasks.clear()

        await self.notifications.close()
        await self.provider.close()
        manager.clear()
        app.state.subscriber_service = None
        app.state.settings_conversation = None

        logger.info("Bot stopped")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """FastAPI lifespan handler"""
    bot = SpreadScoutBot(mode=MODE)
    await bot.start()
    yield
    await bot.stop()


# Update app lifespan
app.router.lifespan_context = lifespan


def handle_sigint(sig, frame):
    """Handle Ctrl+C gracefully"""
    logger.info("Received SIGINT, shutting down...")
    sys.exit(0)


def main():
    """Main entry point"""
    # Handle Ctrl+C
    signal.signal(signal.SIGINT, handle_sigint)

    print(f"""
    ╔═══════════════════════════════════════════════════════════╗
    ║                                                           ║
    ║     🔎 SPREADSCOUT - ARBITRAGE ALERTS 🔎                  ║
    ║                                                           ║
    ║     Mode: {MODE:<47} ║
    ║                                                           ║
    ║     Endpoints:                                            ║
    ║       Port:        {WEB_PORT:<38} ║
    ║       Health:      /health                                ║
    ║       API State:   /api/state                             ║
    ║       Prometheus:  /metrics                               ║
    ║       Settings:    /api/subscribers                       ║
    ║                                                           ║
    ║     Set MODE=simulation to run without network access     ║
    ║                                                           ║
    ╚═══════════════════════════════════════════════════════════╝
    """)

    # Run FastAPI server (which starts bot via lifespan)
    uvicorn.run(
        app,
        host=WEB_HOST,
        port=WEB_PORT,
        log_level="warning"
    )


if __name__ == "__main__":
    main()
