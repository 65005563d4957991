"""
Metrics for table discovery.

Tracks table monitor polls, reconfiguration requests and the size of
the currently published table set.
"""

import logging
from typing import Optional

from prometheus_client import (
    REGISTRY,
    CollectorRegistry,
    Counter,
    Gauge,
    Histogram,
)

logger = logging.getLogger(__name__)


class DiscoveryMetrics:
    """
    Metrics for the table monitor

    One instance per registry; pass a fresh CollectorRegistry in tests.
    """

    def __init__(self, registry: Optional[CollectorRegistry] = None):
        """
        Initialize discovery metrics

        Args:
            registry: Custom Prometheus registry (default: global REGISTRY)
        """
        self.registry = registry or REGISTRY

        self.table_polls_total = Counter(
            "table_monitor_polls_total",
            "Total number of table listing polls",
            ["dialect", "status"],
            registry=self.registry,
        )

        self.table_poll_duration_seconds = Histogram(
            "table_monitor_poll_duration_seconds",
            "Duration of table listing polls in seconds",
            ["dialect"],
            buckets=(0.01, 0.05, 0.1, 0.25, 0.5, 1, 2.5, 5, 10, 30),
            registry=self.registry,
        )

        self.reconfigurations_total = Counter(
            "table_monitor_reconfigurations_total",
            "Total number of task reconfiguration requests",
            ["dialect"],
            registry=self.registry,
        )

        self.tables_current = Gauge(
            "table_monitor_tables",
            "Number of tables in the current filtered table set",
            ["dialect"],
            registry=self.registry,
        )

        self.duplicate_table_names = Gauge(
            "table_monitor_duplicate_table_names",
            "Number of unqualified table names shared by more than one table",
            ["dialect"],
            registry=self.registry,
        )

    def record_poll(self, dialect: str, status: str, duration: float) -> None:
        """
        Record a poll cycle

        Args:
            dialect: Dialect name
            status: One of 'changed', 'unchanged', 'failed'
            duration: Duration in seconds
        """
        self.table_polls_total.labels(dialect=dialect, status=status).inc()
        self.table_poll_duration_seconds.labels(dialect=dialect).observe(duration)

    def record_table_set(self, dialect: str, table_count: int, duplicate_count: int) -> None:
        """Record the size of a newly published table set"""
        self.tables_current.labels(dialect=dialect).set(table_count)
        self.duplicate_table_names.labels(dialect=dialect).set(duplicate_count)

        if duplicate_count:
            logger.warning(
                f"Published table set has {duplicate_count} duplicate table name(s)"
            )

    def record_reconfiguration(self, dialect: str) -> None:
        """Record a task reconfiguration request"""
        self.reconfigurations_total.labels(dialect=dialect).inc()
