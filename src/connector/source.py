"""
Source connector lifecycle.

TableSourceConnector watches a relational database and generates the
per-task configurations for ingesting its tables.
"""

import logging
from typing import Mapping

from discovery import __version__
from discovery.connection import CachedConnectionProvider
from discovery.dialect import DatabaseDialect, find_dialect_for
from discovery.errors import ConfigurationError
from discovery.monitor import DEFAULT_TABLE_WAIT_TIMEOUT, TableMonitor
from discovery.partition import assign_tables
from utils.metrics import DiscoveryMetrics
from utils.tracing import add_span_attributes, trace_operation

from .config import TABLES_CONFIG, SourceConnectorConfig
from .context import ConnectorContext

logger = logging.getLogger(__name__)

MAX_SHUTDOWN_WAIT = 10.0


class TableSourceConnector:
    """
    Connector that discovers tables and assigns them to tasks.

    Usage:
        connector = TableSourceConnector(context)
        connector.start(props)
        configs = connector.task_configs(max_tasks=4)
        ...
        connector.stop()
    """

    def __init__(
        self,
        context: ConnectorContext,
        metrics: DiscoveryMetrics | None = None,
        table_wait_timeout: float = DEFAULT_TABLE_WAIT_TIMEOUT,
    ):
        self.context = context
        self.metrics = metrics
        self.table_wait_timeout = table_wait_timeout

        self.config: SourceConnectorConfig | None = None
        self.dialect: DatabaseDialect | None = None
        self.connection_provider: CachedConnectionProvider | None = None
        self.table_monitor: TableMonitor | None = None

    def version(self) -> str:
        return __version__

    def start(self, props: Mapping[str, str]) -> None:
        """
        Validate settings, connect, and start monitoring tables.

        Raises:
            ConfigurationError: If settings are invalid or conflicting
            TransientDiscoveryError: If the initial connection fails
            RuntimeError: If the connector holds resources from an earlier start
        """
        if self.dialect is not None:
            raise RuntimeError("Connector is already started; call stop() before starting again")

        logger.info("Starting table source connector")

        try:
            self.config = SourceConnectorConfig(props)
        except ConfigurationError as e:
            raise ConfigurationError(
                f"Couldn't start table source connector due to configuration error: {e}"
            ) from e

        # Validated before anything connects
        table_filter = self.config.table_filter()

        self.dialect = find_dialect_for(
            self.config.connection_url, **self.config.dialect_options()
        )
        self.connection_provider = CachedConnectionProvider(
            self.dialect,
            max_attempts=self.config.connection_attempts,
            backoff_ms=self.config.connection_backoff_ms,
        )

        # Initial connection attempt
        self.connection_provider.get_connection()

        self.table_monitor = TableMonitor(
            self.dialect,
            self.connection_provider,
            self.context,
            self.config.table_poll_interval_ms,
            table_filter,
            table_wait_timeout=self.table_wait_timeout,
            metrics=self.metrics,
        )
        self.table_monitor.start()

    def task_configs(self, max_tasks: int) -> list[dict[str, str]]:
        """
        Build one settings map per task.

        Each map is a copy of the connector settings plus a 'tables' entry
        listing the task's quoted table names. In query mode there is a
        single task with an empty 'tables' entry.

        Raises:
            RuntimeError: If the connector has not been started
            TableListTimeoutError: If the first table listing is not ready in time
            DuplicateTableError: If filtered tables share an unqualified name
        """
        if self.config is None or self.table_monitor is None or self.dialect is None:
            raise RuntimeError("Connector has not been started")

        if self.config.query_mode:
            task_props = dict(self.config.props)
            task_props[TABLES_CONFIG] = ""
            logger.debug("Task configs for custom query")
            return [task_props]

        with trace_operation("task_configs", max_tasks=max_tasks):
            current_tables = self.table_monitor.tables()
            groups = assign_tables(current_tables, max_tasks)

            task_configs = []
            for task_tables in groups:
                task_props = dict(self.config.props)
                task_props[TABLES_CONFIG] = self.dialect.render_list(task_tables)
                task_configs.append(task_props)

            add_span_attributes(table_count=len(current_tables), task_count=len(task_configs))

        logger.debug(
            f"Task configs for {len(current_tables)} table(s) over {len(task_configs)} task(s)"
        )
        return task_configs

    def stop(self) -> None:
        """Stop the table monitor and release the connection and dialect."""
        logger.info("Stopping table monitoring thread")

        try:
            if self.table_monitor is not None:
                self.table_monitor.shutdown()
                if self.table_monitor.is_alive():
                    self.table_monitor.join(MAX_SHUTDOWN_WAIT)
                if self.table_monitor.is_alive():
                    logger.warning(
                        f"Table monitor did not stop within {MAX_SHUTDOWN_WAIT}s"
                    )
                self.table_monitor = None
        finally:
            try:
                if self.connection_provider is not None:
                    self.connection_provider.close()
                    self.connection_provider = None
            finally:
                if self.dialect is not None:
                    try:
                        self.dialect.close()
                    except Exception as e:
                        logger.warning(f"Error while closing the {self.dialect} dialect: {e}")
                    finally:
                        self.dialect = None
