"""
CLI command implementations.

- list: print the filtered tables once
- plan: print the task assignment once
- watch: run the connector and print the assignment on every change
"""

import argparse
import logging
import sys
from typing import Sequence

from discovery.connection import CachedConnectionProvider
from discovery.dialect import DatabaseDialect, find_dialect_for
from discovery.errors import DiscoveryError, TransientDiscoveryError
from discovery.monitor import TableMonitor
from discovery.partition import assign_tables
from discovery.table_id import TableId

from ..config import (
    CONNECTION_PASSWORD_CONFIG,
    CONNECTION_URL_CONFIG,
    CONNECTION_USER_CONFIG,
    DIALECT_NAME_CONFIG,
    QUERY_CONFIG,
    SCHEMA_PATTERN_CONFIG,
    TABLE_BLACKLIST_CONFIG,
    TABLE_POLL_INTERVAL_MS_CONFIG,
    TABLE_TYPES_CONFIG,
    TABLE_WHITELIST_CONFIG,
    TASKS_MAX_CONFIG,
    SourceConnectorConfig,
)
from ..context import RecordingContext
from ..source import TableSourceConnector

logger = logging.getLogger(__name__)


def build_config(args: argparse.Namespace) -> SourceConnectorConfig:
    """
    Merge command-line options over SOURCE_* environment variables.

    Args:
        args: Parsed command-line arguments
    """
    overrides = {
        CONNECTION_URL_CONFIG: args.url,
        CONNECTION_USER_CONFIG: args.user,
        CONNECTION_PASSWORD_CONFIG: args.password,
        DIALECT_NAME_CONFIG: args.dialect,
        TABLE_WHITELIST_CONFIG: args.whitelist,
        TABLE_BLACKLIST_CONFIG: args.blacklist,
        TABLE_TYPES_CONFIG: args.table_types,
        SCHEMA_PATTERN_CONFIG: args.schema_pattern,
        QUERY_CONFIG: getattr(args, 'query', None),
    }

    if getattr(args, 'max_tasks', None) is not None:
        overrides[TASKS_MAX_CONFIG] = str(args.max_tasks)
    if getattr(args, 'poll_interval_ms', None) is not None:
        overrides[TABLE_POLL_INTERVAL_MS_CONFIG] = str(args.poll_interval_ms)

    return SourceConnectorConfig.from_env(overrides=overrides)


def format_assignment(
    groups: Sequence[Sequence[TableId]], dialect: DatabaseDialect
) -> list[str]:
    """Render task groups as 'task-N: table, table' lines, '<query>' for a query task."""
    if not groups:
        return ["no tables to assign"]
    return [
        f"task-{index}: {dialect.render_list(tables, delimiter=', ') or '<query>'}"
        for index, tables in enumerate(groups)
    ]


def _discover_once(config: SourceConnectorConfig) -> tuple[DatabaseDialect, list[TableId]]:
    table_filter = config.table_filter()
    dialect = find_dialect_for(config.connection_url, **config.dialect_options())
    provider = CachedConnectionProvider(
        dialect,
        max_attempts=config.connection_attempts,
        backoff_ms=config.connection_backoff_ms,
    )

    # Single synchronous poll, no background thread
    monitor = TableMonitor(
        dialect,
        provider,
        RecordingContext(),
        config.table_poll_interval_ms,
        table_filter,
        table_wait_timeout=0,
    )
    try:
        provider.get_connection()
        monitor.poll()
        if monitor.snapshot() is None:
            raise TransientDiscoveryError("Unable to list tables from the source database")
        return dialect, monitor.tables()
    finally:
        provider.close()
        dialect.close()


def cmd_list(args: argparse.Namespace) -> None:
    """
    Print the filtered tables, one per line

    Args:
        args: Parsed command-line arguments
    """
    try:
        config = build_config(args)
        dialect, tables = _discover_once(config)
    except DiscoveryError as e:
        logger.error(str(e))
        sys.exit(1)

    for table in tables:
        print(dialect.render(table))

    logger.info(f"Found {len(tables)} table(s)")


def cmd_plan(args: argparse.Namespace) -> None:
    """
    Print the task assignment for the current tables

    Args:
        args: Parsed command-line arguments
    """
    try:
        config = build_config(args)
        dialect, tables = _discover_once(config)
        groups = assign_tables(tables, config.tasks_max, query_mode=config.query_mode)
    except (DiscoveryError, ValueError) as e:
        logger.error(str(e))
        sys.exit(1)

    for line in format_assignment(groups, dialect):
        print(line)


def cmd_watch(args: argparse.Namespace, metrics=None) -> None:
    """
    Run the connector until interrupted, printing each new assignment

    Args:
        args: Parsed command-line arguments
        metrics: Optional DiscoveryMetrics
    """
    context = RecordingContext()
    connector = TableSourceConnector(context, metrics=metrics)

    try:
        config = build_config(args)
        connector.start(config.props)
    except DiscoveryError as e:
        logger.error(str(e))
        connector.stop()
        sys.exit(1)

    exit_code = 0
    try:
        while True:
            try:
                task_configs = connector.task_configs(config.tasks_max)
            except DiscoveryError as e:
                logger.error(str(e))
                exit_code = 1
                break

            print(f"{len(task_configs)} task(s):")
            for index, task_props in enumerate(task_configs):
                print(f"  task-{index}: {task_props['tables'] or '<query>'}")
            sys.stdout.flush()

            while not context.wait_for_reconfiguration(timeout=1.0):
                pass

            if context.failed:
                logger.error("Table monitor stopped, exiting")
                exit_code = 1
                break
    except KeyboardInterrupt:
        logger.info("Interrupted, stopping")
    finally:
        connector.stop()

    if exit_code:
        sys.exit(exit_code)
