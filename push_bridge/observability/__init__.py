"""Observability layer - logging and metrics."""

from push_bridge.observability.logging import setup_logging
from push_bridge.observability.metrics import MetricsCollector, get_metrics

__all__ = ["setup_logging", "MetricsCollector", "get_metrics"]
