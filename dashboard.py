"""Web surface for the SpreadScout bot"""
import logging
from datetime import datetime
from typing import Optional

from fastapi import FastAPI
from fastapi.responses import Response

from engine_metrics import ScanMetrics
from engine_scanner import ScanOrchestrator
from spreadscout.assets.store import AssetCacheStore
from spreadscout.notifications.service import NotificationService
from spreadscout.subscribers.store import SubscriberStore
from spreadscout.subscribers.routes import router as subscribers_router

logger = logging.getLogger(__name__)

app = FastAPI(title="SpreadScout", version="1.0.0")
app.include_router(subscribers_router)


class DashboardManager:
    """Holds references to the running bot components"""

    def __init__(self):
        self.orchestrator: Optional[ScanOrchestrator] = None
        self.subscribers: Optional[SubscriberStore] = None
        self.asset_cache: Optional[AssetCacheStore] = None
        self.notifications: Optional[NotificationService] = None
        self.metrics: Optional[ScanMetrics] = None
        self.started_at: Optional[datetime] = None

    def set_components(
        self,
        orchestrator: ScanOrchestrator,
        subscribers: SubscriberStore,
        asset_cache: AssetCacheStore,
        notifications: NotificationService,
    ):
        self.orchestrator = orchestrator
        self.subscribers = subscribers
        self.asset_cache = asset_cache
        self.notifications = notifications
        self.metrics = orchestrator.metrics
        self.started_at = datetime.now()
        logger.info("Dashboard connected to scan engine")

    def clear(self):
        self.orchestrator = None
        self.subscribers = None
        self.asset_cache = None
        self.notifications = None
        self.metrics = None
        self.started_at = None

    @property
    def ready(self) -> bool:
        return self.orchestrator is not None


manager = DashboardManager()


@app.get("/health")
async def health():
    """Liveness probe"""
    return {
        "status": "ok" if manager.ready else "starting",
        "timestamp": datetime.now().isoformat(),
    }


@app.get("/api/state")
async def get_state():
    """Get current scan state"""
    if not manager.ready:
        return {"error": "Engine not initialized"}

    state = manager.orchestrator.get_state()
    state["subscribers"] = manager.subscribers.count()

    last_refreshed = manager.asset_cache.last_refreshed
    state["asset_cache"] = {
        "size": len(manager.asset_cache),
        "last_refreshed": last_refreshed.isoformat() if last_refreshed else None,
    }
    state["notifications"] = manager.notifications.get_statistics()
    state["uptime_seconds"] = round((datetime.now() - manager.started_at).total_seconds(), 1)
    return state


@app.get("/metrics")
async def metrics():
    """Prometheus metrics endpoint"""
    if manager.metrics is None:
        return Response(content=b"", media_type="text/plain")
    return Response(
        content=manager.metrics.get_prometheus_metrics(),
        media_type=manager.metrics.get_prometheus_content_type()
    )


@app.get("/api/metrics")
async def api_metrics():
    """JSON metrics endpoint"""
    if manager.metrics is None:
        return {}
    return manager.metrics.get_metrics_summary()
