"""
Structured logging configuration for table discovery

Usage:
    from utils.logging import setup_logging

    # Setup logging (call once at application startup)
    setup_logging(level="INFO", json_format=True)

    logger = logging.getLogger(__name__)
    logger.info("Published table set", extra={"table_count": 12})
"""

from .config import configure_from_env, setup_logging
from .formatters import ConsoleFormatter, JSONFormatter

__all__ = [
    "setup_logging",
    "configure_from_env",
    "JSONFormatter",
    "ConsoleFormatter",
]
