"""
Background monitor for the set of tables the connector should copy.

The monitor thread is the only writer of the published table snapshot.
Any number of threads may read it through TableMonitor.tables(), which
blocks until the first listing is available.
"""

import logging
import threading
import time
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import TYPE_CHECKING, Mapping, Optional, Sequence

from opentelemetry import trace

from utils.tracing import trace_operation

from .connection import CachedConnectionProvider
from .dialect import DatabaseDialect
from .errors import ConfigurationError, DuplicateTableError, TableListTimeoutError
from .filters import TableFilter
from .table_id import TableId

if TYPE_CHECKING:
    from connector.context import ConnectorContext
    from utils.metrics import DiscoveryMetrics

logger = logging.getLogger(__name__)

DEFAULT_TABLE_WAIT_TIMEOUT = 10.0


@dataclass(frozen=True)
class TableSnapshot:
    """Filtered tables from one poll, plus any unqualified names they share."""

    tables: tuple[TableId, ...]
    duplicates: Mapping[str, tuple[TableId, ...]] = field(
        default_factory=lambda: MappingProxyType({})
    )

    @classmethod
    def build(cls, tables: Sequence[TableId]) -> "TableSnapshot":
        """Group tables by unqualified name and keep the groups with collisions."""
        groups: dict[str, list[TableId]] = {}
        for table in tables:
            groups.setdefault(table.table_name, []).append(table)

        duplicates = {
            name: tuple(members) for name, members in groups.items() if len(members) > 1
        }
        return cls(tables=tuple(tables), duplicates=MappingProxyType(duplicates))


class TableMonitor(threading.Thread):
    """
    Thread that monitors the database for changes to the set of tables
    the connector should load data from.

    Call start() to begin polling and shutdown() to stop. The first
    published listing never triggers a reconfiguration request, since
    whoever asks for task configs next reads it directly.
    """

    def __init__(
        self,
        dialect: DatabaseDialect,
        connection_provider: CachedConnectionProvider,
        context: "ConnectorContext",
        poll_interval_ms: int,
        table_filter: TableFilter,
        table_wait_timeout: float = DEFAULT_TABLE_WAIT_TIMEOUT,
        metrics: Optional["DiscoveryMetrics"] = None,
    ):
        """
        Initialize table monitor.

        Args:
            dialect: Dialect used to list and render tables
            connection_provider: Provider of the cached source connection
            context: Receives reconfiguration requests and fatal errors
            poll_interval_ms: Wait between polls in milliseconds, must be positive
            table_filter: Whitelist/blacklist applied to every listing
            table_wait_timeout: Seconds tables() waits for the first listing
            metrics: Optional Prometheus metrics

        Raises:
            ConfigurationError: If poll_interval_ms is not positive
        """
        super().__init__(name="table-monitor", daemon=True)

        if poll_interval_ms <= 0:
            raise ConfigurationError(
                f"Table poll interval must be positive, got {poll_interval_ms} ms"
            )

        self.dialect = dialect
        self.connection_provider = connection_provider
        self.context = context
        self.poll_interval_ms = poll_interval_ms
        self.table_filter = table_filter
        self.table_wait_timeout = table_wait_timeout
        self.metrics = metrics

        self._condition = threading.Condition()
        self._shutdown_event = threading.Event()
        # Held while a reconfiguration request is being delivered
        self._callback_lock = threading.RLock()
        self._snapshot: TableSnapshot | None = None

    @property
    def poll_interval(self) -> float:
        """Wait between polls in seconds."""
        return self.poll_interval_ms / 1000.0

    def run(self) -> None:
        logger.info("Starting thread to monitor tables.")

        while not self._shutdown_event.is_set():
            try:
                if self.poll():
                    self._request_reconfiguration()
            except Exception as e:
                logger.exception("Table monitor failed, no further table polls will run")
                self.context.raise_error(e)
                return

            logger.debug(f"Waiting {self.poll_interval_ms} ms to check for changed tables.")
            if self._shutdown_event.wait(self.poll_interval):
                break

        logger.info("Table monitor stopped")

    def poll(self) -> bool:
        """
        Run one poll cycle.

        Transient failures listing tables are logged, the cached connection
        is discarded, and the cycle counts as unchanged.

        Returns:
            True if the filtered table set changed and this was not the
            first published listing
        """
        started = time.monotonic()

        try:
            with trace_operation(
                "list_tables",
                kind=trace.SpanKind.CLIENT,
                dialect=self.dialect.name,
            ) as span:
                conn = self.connection_provider.get_connection()
                tables = self.dialect.table_ids(conn)
                span.set_attribute("table_count", len(tables))
        except self.dialect.transient_errors:
            logger.error(
                "Error while trying to get updated table list, ignoring and waiting "
                "for next table poll interval",
                exc_info=True,
            )
            self.connection_provider.close()
            self._record_poll("failed", started)
            return False

        logger.debug(f"Got the following tables: {[str(t) for t in tables]}")
        filtered = self.table_filter.apply(tables, self.dialect)

        previous = self._snapshot
        if previous is not None and list(previous.tables) == filtered:
            self._record_poll("unchanged", started)
            return False

        snapshot = TableSnapshot.build(filtered)
        with self._condition:
            self._snapshot = snapshot
            self._condition.notify_all()

        logger.info(
            f"After filtering the tables are: {self.dialect.render_list(snapshot.tables)}"
        )
        self._record_poll("changed", started)
        if self.metrics:
            self.metrics.record_table_set(
                self.dialect.name, len(snapshot.tables), len(snapshot.duplicates)
            )

        return previous is not None

    def _request_reconfiguration(self) -> None:
        with self._callback_lock:
            if self._shutdown_event.is_set():
                logger.debug("Table set changed during shutdown, not requesting reconfiguration")
                return
            logger.info("Table set changed, requesting task reconfiguration")
            self.context.request_task_reconfiguration()
            if self.metrics:
                self.metrics.record_reconfiguration(self.dialect.name)

    def _record_poll(self, status: str, started: float) -> None:
        if self.metrics:
            self.metrics.record_poll(self.dialect.name, status, time.monotonic() - started)

    def snapshot(self) -> TableSnapshot | None:
        """Return the current snapshot without waiting."""
        with self._condition:
            return self._snapshot

    def tables(self) -> list[TableId]:
        """
        Return the current filtered tables.

        Blocks until the first listing is published or the wait times out.

        Raises:
            TableListTimeoutError: If no listing was published in time
            DuplicateTableError: If filtered tables share an unqualified name
        """
        with self._condition:
            available = self._condition.wait_for(
                lambda: self._snapshot is not None, timeout=self.table_wait_timeout
            )
            snapshot = self._snapshot

        if not available or snapshot is None:
            raise TableListTimeoutError(self.table_wait_timeout)

        if snapshot.duplicates:
            raise DuplicateTableError(snapshot.duplicates, self.table_filter.setting_hint())

        return list(snapshot.tables)

    def shutdown(self) -> None:
        """
        Signal the monitor to stop at its next wait point.

        Idempotent. A poll already in progress completes, but no
        reconfiguration request is delivered after this returns.
        """
        if self._shutdown_event.is_set():
            return

        logger.info("Shutting down thread monitoring tables.")
        with self._callback_lock:
            self._shutdown_event.set()
