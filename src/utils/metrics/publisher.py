"""
Metrics publisher for Prometheus HTTP server.

Starts the HTTP server that exposes metrics on the /metrics endpoint
and publishes application metadata.
"""

import logging
import time
from typing import Optional

from prometheus_client import (
    REGISTRY,
    CollectorRegistry,
    Gauge,
    Info,
    start_http_server,
)

logger = logging.getLogger(__name__)


class MetricsPublisher:
    """
    Exposes a registry over HTTP

    Starting twice is a no-op; a port already in use is fatal.
    """

    def __init__(
        self,
        port: int = 9091,
        registry: Optional[CollectorRegistry] = None,
    ):
        """
        Initialize metrics publisher

        Args:
            port: Port to expose metrics on (default: 9091)
            registry: Custom Prometheus registry (default: global REGISTRY)
        """
        self.port = port
        self.registry = registry or REGISTRY
        self._server_started = False

    def start(self) -> None:
        """Start the metrics HTTP server"""
        if self._server_started:
            logger.warning(f"Metrics server already running on port {self.port}")
            return

        try:
            start_http_server(self.port, registry=self.registry)
        except OSError as e:
            if "Address already in use" in str(e):
                raise RuntimeError(
                    f"Metrics server port {self.port} is already in use. "
                    f"Stop the conflicting process or use a different port."
                ) from e
            raise

        self._server_started = True
        logger.info(f"Metrics server started on port {self.port}")

    def is_started(self) -> bool:
        """Check if metrics server is running"""
        return self._server_started


class ApplicationInfo:
    """Application name, version and uptime"""

    def __init__(
        self,
        app_name: str = "source-table-discovery",
        version: str = "1.0.0",
        registry: Optional[CollectorRegistry] = None,
    ):
        self.registry = registry or REGISTRY

        self.info = Info(
            "application",
            "Application metadata",
            registry=self.registry,
        )
        self.info.info({"name": app_name, "version": version})

        self._start_time = time.time()
        self.uptime_seconds = Gauge(
            "application_uptime_seconds",
            "Application uptime in seconds",
            registry=self.registry,
        )
        self.uptime_seconds.set_function(self.get_uptime)

    def get_uptime(self) -> float:
        """Get current uptime in seconds"""
        return time.time() - self._start_time
