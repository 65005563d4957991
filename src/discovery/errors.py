"""
Exceptions raised by table discovery.

Configuration problems are fatal and surface to whoever starts the
connector or asks for task configurations. Transient store-access
problems are absorbed by the table monitor and retried on the next poll.
"""

from typing import Mapping, Sequence


class DiscoveryError(Exception):
    """Base exception for table discovery errors."""

    pass


class ConfigurationError(DiscoveryError):
    """Raised when connector settings conflict or are invalid."""

    pass


class DuplicateTableError(ConfigurationError):
    """Raised when filtered tables share the same unqualified name."""

    def __init__(self, duplicates: Mapping[str, Sequence], setting_hint: str):
        self.duplicates = dict(duplicates)
        self.setting_hint = setting_hint
        groups = [
            "[" + ", ".join(str(table) for table in tables) + "]"
            for tables in self.duplicates.values()
        ]
        super().__init__(
            "The connector uses the unqualified table name as the topic name and has "
            "detected duplicate unqualified table names. This could lead to mixed data "
            "types in the topic and downstream processing errors. To prevent such "
            "processing errors, the connector fails to start when it detects duplicate "
            f"table name configurations. Update the connector's {setting_hint} config "
            "to include exactly one table in each of the tables listed below.\n\t"
            + ", ".join(groups)
        )


class TableListTimeoutError(DiscoveryError):
    """Raised when the first table listing is not available in time."""

    def __init__(self, timeout: float):
        self.timeout = timeout
        super().__init__(
            f"Tables could not be updated quickly enough (waited {timeout:.1f}s)"
        )


class TransientDiscoveryError(DiscoveryError):
    """Raised when the store cannot be reached after all connection attempts."""

    pass
