"""
Command-line argument parser configuration.

Sets up the argument parser for the table-discovery CLI tool.
"""

import argparse


def _add_connection_options(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        '--url',
        help='Connection URL (default: $SOURCE_CONNECTION_URL)'
    )
    parser.add_argument(
        '--user',
        help='Database user (default: $SOURCE_CONNECTION_USER)'
    )
    parser.add_argument(
        '--password',
        help='Database password (default: $SOURCE_CONNECTION_PASSWORD)'
    )
    parser.add_argument(
        '--dialect',
        help='Dialect name, overrides detection from the URL scheme'
    )
    parser.add_argument(
        '--whitelist',
        help='Comma-separated tables to include'
    )
    parser.add_argument(
        '--blacklist',
        help='Comma-separated tables to exclude'
    )
    parser.add_argument(
        '--table-types',
        help='Comma-separated table types to discover (default: TABLE)'
    )
    parser.add_argument(
        '--schema-pattern',
        help='SQL LIKE pattern restricting the schemas searched'
    )


def create_parser() -> argparse.ArgumentParser:
    """
    Create and configure the argument parser for the CLI.

    Returns:
        Configured ArgumentParser instance
    """
    parser = argparse.ArgumentParser(
        description="Discover source tables and plan their assignment to ingestion tasks",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # List the tables the connector would copy
  table-discovery list --url postgresql://localhost:5432/warehouse --user postgres

  # Show how 4 tasks would split the whitelisted tables
  table-discovery plan --max-tasks 4 --whitelist public.customers,public.orders

  # Keep watching for schema changes, exposing metrics on port 9091
  table-discovery --metrics-port 9091 watch --max-tasks 4 --poll-interval-ms 30000
        """
    )

    parser.add_argument(
        '--log-level',
        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'],
        default='INFO',
        help='Logging level (default: INFO)'
    )
    parser.add_argument(
        '--json-logs',
        action='store_true',
        help='Emit logs as JSON'
    )
    parser.add_argument(
        '--metrics-port',
        type=int,
        help='Expose Prometheus metrics on this port'
    )
    parser.add_argument(
        '--otlp-endpoint',
        help='Export traces to this OTLP collector (default: $OTLP_ENDPOINT)'
    )

    subparsers = parser.add_subparsers(dest='command', help='Available commands')

    list_parser = subparsers.add_parser('list', help='List the filtered tables once')
    _add_connection_options(list_parser)

    plan_parser = subparsers.add_parser('plan', help='Show the task assignment once')
    _add_connection_options(plan_parser)
    plan_parser.add_argument(
        '--max-tasks',
        type=int,
        help='Maximum number of tasks (default: $SOURCE_TASKS_MAX or 1)'
    )
    plan_parser.add_argument(
        '--query',
        help='Custom query; plans a single task instead of whole tables'
    )

    watch_parser = subparsers.add_parser(
        'watch', help='Monitor tables and print the assignment on every change'
    )
    _add_connection_options(watch_parser)
    watch_parser.add_argument(
        '--max-tasks',
        type=int,
        help='Maximum number of tasks (default: $SOURCE_TASKS_MAX or 1)'
    )
    watch_parser.add_argument(
        '--poll-interval-ms',
        type=int,
        help='Table poll interval in milliseconds (default: 60000)'
    )
    watch_parser.add_argument(
        '--query',
        help='Custom query; runs a single task instead of copying whole tables'
    )

    return parser
