"""
Command-line interface for table discovery.

Available commands:
- list: Print the filtered tables once
- plan: Print the task assignment once
- watch: Monitor tables and print the assignment on every change
"""

import os
import sys

from discovery import __version__
from utils.logging import setup_logging
from utils.metrics import initialize_metrics
from utils.tracing import initialize_tracing, shutdown_tracing

from .commands import cmd_list, cmd_plan, cmd_watch
from .parser import create_parser


def main(argv: list[str] | None = None) -> None:
    """Main entry point for the table-discovery CLI"""
    parser = create_parser()
    args = parser.parse_args(argv)

    setup_logging(level=args.log_level, json_format=args.json_logs)

    tracing_enabled = bool(args.otlp_endpoint or os.getenv("OTLP_ENDPOINT"))
    if tracing_enabled:
        initialize_tracing(otlp_endpoint=args.otlp_endpoint)

    try:
        if args.command == 'list':
            cmd_list(args)
        elif args.command == 'plan':
            cmd_plan(args)
        elif args.command == 'watch':
            metrics = None
            if args.metrics_port:
                metrics = initialize_metrics(
                    port=args.metrics_port, version=__version__
                )["discovery"]
            cmd_watch(args, metrics=metrics)
        else:
            parser.print_help()
            sys.exit(1)
    finally:
        if tracing_enabled:
            shutdown_tracing()


__all__ = [
    'main',
    'cmd_list',
    'cmd_plan',
    'cmd_watch',
    'create_parser',
]


if __name__ == '__main__':
    main()
