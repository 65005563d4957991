"""
Prometheus metrics for table discovery

Usage:
    from utils.metrics import DiscoveryMetrics, initialize_metrics

    metrics = initialize_metrics(port=9091)
    monitor = TableMonitor(..., metrics=metrics["discovery"])
"""

import logging
from typing import Any

from prometheus_client import CollectorRegistry

from .discovery import DiscoveryMetrics
from .publisher import ApplicationInfo, MetricsPublisher

logger = logging.getLogger(__name__)


def initialize_metrics(
    port: int = 9091,
    registry: CollectorRegistry | None = None,
    version: str = "1.0.0",
    start_server: bool = True,
) -> dict[str, Any]:
    """
    Create all metrics objects and optionally start the metrics server

    Args:
        port: Port to expose metrics on (default: 9091)
        registry: Custom Prometheus registry (default: global REGISTRY)
        version: Application version reported in the info metric
        start_server: Start the HTTP server (default: True)

    Returns:
        Dictionary with 'publisher', 'discovery' and 'app_info'
    """
    logger.info(f"Initializing metrics on port {port}")

    publisher = MetricsPublisher(port=port, registry=registry)
    if start_server:
        publisher.start()

    return {
        "publisher": publisher,
        "discovery": DiscoveryMetrics(registry=registry),
        "app_info": ApplicationInfo(version=version, registry=registry),
    }


__all__ = [
    "MetricsPublisher",
    "ApplicationInfo",
    "DiscoveryMetrics",
    "initialize_metrics",
]
