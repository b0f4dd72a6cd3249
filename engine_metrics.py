"""
Prometheus Metrics for the scan engine

Tracks:
- Scan cycles (completed, skipped, aborted) and their duration
- Ticker fetches per result
- Opportunities detected
- Notification delivery

Exposes metrics in Prometheus format for Grafana dashboards.
"""

import logging
from collections import defaultdict
from typing import Dict

from prometheus_client import (
    CollectorRegistry, Counter, Gauge, Histogram,
    generate_latest, CONTENT_TYPE_LATEST,
)

logger = logging.getLogger(__name__)


class ScanMetrics:
    """
    Metrics collection for scan cycles.

    Each instance owns its own CollectorRegistry so several engines (and
    tests) can coexist in one process.
    """

    def __init__(self, registry: CollectorRegistry = None):
        self.registry = registry or CollectorRegistry()

        # Internal counters for the JSON summary
        self._counts: Dict[str, float] = defaultdict(float)

        self.cycles_total = Counter(
            'scout_scan_cycles_total',
            'Scan cycles by result',
            ['result'],  # result: completed, skipped, aborted
            registry=self.registry,
        )

        self.cycle_duration = Histogram(
            'scout_scan_cycle_duration_seconds',
            'Duration of a full scan cycle',
            buckets=[0.5, 1, 2.5, 5, 10, 30, 60, 120, 300],
            registry=self.registry,
        )

        self.fetches_total = Counter(
            'scout_ticker_fetches_total',
            'Ticker fetches by result',
            ['result'],  # result: ok, unavailable
            registry=self.registry,
        )

        self.opportunities_total = Counter(
            'scout_opportunities_detected_total',
            'Arbitrage opportunities detected',
            registry=self.registry,
        )

        self.opportunity_profit_percent = Histogram(
            'scout_opportunity_profit_percent',
            'Profit percentage of detected opportunities',
            buckets=[0.5, 1.0, 2.0, 5.0, 10.0, 25.0, 50.0],
            registry=self.registry,
        )

        self.pair_errors_total = Counter(
            'scout_pair_errors_total',
            'Subscriber/asset pairs that failed during a cycle',
            registry=self.registry,
        )

        self.notifications_total = Counter(
            'scout_notifications_total',
            'Notifications by delivery result',
            ['result'],  # result: sent, failed
            registry=self.registry,
        )

        self.subscribers = Gauge(
            'scout_subscribers',
            'Subscribers loaded in the last cycle',
            registry=self.registry,
        )

    def record_cycle(self, result: str, duration_seconds: float = None):
        self.cycles_total.labels(result=result).inc()
        self._counts[f"cycles_{result}"] += 1
        if duration_seconds is not None:
            self.cycle_duration.observe(duration_seconds)
            self._counts["last_cycle_seconds"] = duration_seconds

    def record_fetch(self, available: bool):
        result = "ok" if available else "unavailable"
        self.fetches_total.labels(result=result).inc()
        self._counts[f"fetches_{result}"] += 1

    def record_opportunity(self, profit_percent: float):
        self.opportunities_total.inc()
        self.opportunity_profit_percent.observe(profit_percent)
        self._counts["opportunities"] += 1

    def record_pair_error(self):
        self.pair_errors_total.inc()
        self._counts["pair_errors"] += 1

    def record_notification(self, delivered: bool):
        result = "sent" if delivered else "failed"
        self.notifications_total.labels(result=result).inc()
        self._counts[f"notifications_{result}"] += 1

    def record_subscribers(self, count: int):
        self.subscribers.set(count)
        self._counts["subscribers"] = count

    def get_prometheus_metrics(self) -> bytes:
        """Get metrics in Prometheus text format"""
        return generate_latest(self.registry)

    def get_prometheus_content_type(self) -> str:
        return CONTENT_TYPE_LATEST

    def get_metrics_summary(self) -> dict:
        """JSON-friendly summary of the internal counters"""
        return dict(self._counts)
