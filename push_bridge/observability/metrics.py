"""
Prometheus metrics for monitoring the push bridge.

Defines and exposes metrics for:
- Feed fetch outcomes
- Ads selected, dispatched and failed per cycle
- Push batch and ticket outcomes
- Poll cycle status and duration
- Registry and ledger sizes

Metrics are exposed via HTTP endpoint for Prometheus scraping.
"""

import logging

from prometheus_client import (
    REGISTRY,
    Counter,
    Gauge,
    Histogram,
    start_http_server,
)

from push_bridge.config.settings import get_settings

logger = logging.getLogger(__name__)

# Buckets for cycle duration (in seconds)
CYCLE_BUCKETS = (0.1, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0, 120.0)


class MetricsCollector:
    """
    Prometheus metrics collector for the push bridge.

    Usage:
        metrics = get_metrics()
        metrics.start_server()
        metrics.record_feed_fetch("ok", ad_count=12)
    """

    def __init__(self):
        """Initialize Prometheus metrics."""

        self.feed_fetches = Counter(
            "push_bridge_feed_fetches_total",
            "Total feed fetch attempts",
            ["status"],  # ok, error
        )

        self.feed_ads = Counter(
            "push_bridge_feed_ads_total",
            "Total active ads returned by the feed",
        )

        self.ads_processed = Counter(
            "push_bridge_ads_total",
            "Notification ads by processing outcome",
            ["status"],  # selected, dispatched, failed
        )

        self.push_batches = Counter(
            "push_bridge_push_batches_total",
            "Push gateway batch sends",
            ["status"],  # ok, error
        )

        self.push_tickets = Counter(
            "push_bridge_push_tickets_total",
            "Per-message push tickets returned by the gateway",
            ["status"],  # ok, error
        )

        self.tokens_pruned = Counter(
            "push_bridge_tokens_pruned_total",
            "Tokens removed after the gateway reported them unregistered",
        )

        self.cycles = Counter(
            "push_bridge_cycles_total",
            "Poll cycles by outcome",
            ["status"],  # completed, failed, skipped
        )

        self.cycle_duration = Histogram(
            "push_bridge_cycle_duration_seconds",
            "Time to run one poll cycle",
            buckets=CYCLE_BUCKETS,
        )

        self.registered_tokens = Gauge(
            "push_bridge_registered_tokens",
            "Number of device tokens in the registry",
        )

        self.ledger_size = Gauge(
            "push_bridge_processed_ads",
            "Number of ad ids held in the processed ledger",
        )

        logger.info("Prometheus metrics initialized")

    def start_server(self, port: int | None = None) -> None:
        """
        Start Prometheus metrics HTTP server.

        Args:
            port: Port to expose metrics on (default from settings)
        """
        settings = get_settings()
        port = port or settings.metrics_port

        start_http_server(port, registry=REGISTRY)
        logger.info(f"Prometheus metrics server started on port {port}")

    # Convenience methods

    def record_feed_fetch(self, status: str, ad_count: int = 0) -> None:
        self.feed_fetches.labels(status=status).inc()
        if ad_count:
            self.feed_ads.inc(ad_count)

    def record_ads(self, status: str, count: int = 1) -> None:
        if count:
            self.ads_processed.labels(status=status).inc(count)

    def record_batch(self, ok: bool) -> None:
        self.push_batches.labels(status="ok" if ok else "error").inc()

    def record_tickets(self, ok: int, errors: int) -> None:
        if ok:
            self.push_tickets.labels(status="ok").inc(ok)
        if errors:
            self.push_tickets.labels(status="error").inc(errors)

    def record_cycle(self, status: str, duration: float | None = None) -> None:
        """
        Record a poll cycle outcome.

        Args:
            status: completed, failed or skipped
            duration: Cycle duration in seconds (not recorded for skipped ticks)
        """
        self.cycles.labels(status=status).inc()
        if duration is not None:
            self.cycle_duration.observe(duration)

    def set_registered_tokens(self, count: int) -> None:
        self.registered_tokens.set(count)

    def set_ledger_size(self, count: int) -> None:
        self.ledger_size.set(count)


# Global metrics instance
_metrics: MetricsCollector | None = None


def get_metrics() -> MetricsCollector:
    """Get global metrics collector instance."""
    global _metrics
    if _metrics is None:
        _metrics = MetricsCollector()
    return _metrics
