"""
Prometheus metrics for r6tracker

Counters for fetch attempts, session refreshes, player collections and
scheduled ticks, plus a collection duration histogram.
"""

import logging
from typing import Optional

from prometheus_client import (
    CollectorRegistry,
    Counter,
    Histogram,
    generate_latest,
    start_http_server,
)


class TrackerMetrics:
    """Prometheus metrics bound to a private registry"""

    def __init__(self, registry: Optional[CollectorRegistry] = None):
        self.logger = logging.getLogger("r6tracker.metrics")
        # Custom registry so several instances (tests, embedded use) never collide
        self.registry = registry or CollectorRegistry()

        self.fetch_attempts_total = Counter(
            "r6tracker_fetch_attempts_total",
            "Fetch attempts by classified outcome",
            ["outcome"],
            registry=self.registry,
        )
        self.session_refreshes_total = Counter(
            "r6tracker_session_refreshes_total",
            "Browser-driven session refreshes",
            ["status"],
            registry=self.registry,
        )
        self.player_collections_total = Counter(
            "r6tracker_player_collections_total",
            "Per-player collection results",
            ["status"],
            registry=self.registry,
        )
        self.schedule_ticks_total = Counter(
            "r6tracker_schedule_ticks_total",
            "Scheduled trigger executions",
            ["trigger", "status"],
            registry=self.registry,
        )
        self.collection_duration = Histogram(
            "r6tracker_collection_duration_seconds",
            "Duration of a single player collection",
            registry=self.registry,
        )

    def record_fetch(self, outcome: str) -> None:
        self.fetch_attempts_total.labels(outcome=outcome).inc()

    def record_session_refresh(self, status: str) -> None:
        self.session_refreshes_total.labels(status=status).inc()

    def record_collection(self, status: str, duration_s: float | None = None) -> None:
        self.player_collections_total.labels(status=status).inc()
        if duration_s is not None:
            self.collection_duration.observe(duration_s)

    def record_tick(self, trigger: str, status: str) -> None:
        self.schedule_ticks_total.labels(trigger=trigger, status=status).inc()

    def value(self, name: str, **labels) -> float:
        """Current sample value (0.0 when the series does not exist yet)."""
        return self.registry.get_sample_value(name, labels) or 0.0

    def export(self) -> bytes:
        return generate_latest(self.registry)

    def start_server(self, port: int) -> None:
        start_http_server(port, registry=self.registry)
        self.logger.info(f"Metrics server listening on :{port}")
