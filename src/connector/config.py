"""
Connector configuration.

Settings arrive as a flat string map, the way a connect host hands them
over. Values are parsed and validated once, up front; any problem raises
ConfigurationError naming the offending key.
"""

import logging
import os
from typing import Mapping

from discovery.errors import ConfigurationError
from discovery.filters import BLACKLIST_SETTING, QUERY_SETTING, WHITELIST_SETTING, TableFilter

logger = logging.getLogger(__name__)

CONNECTION_URL_CONFIG = "connection.url"
CONNECTION_USER_CONFIG = "connection.user"
CONNECTION_PASSWORD_CONFIG = "connection.password"
CONNECTION_ATTEMPTS_CONFIG = "connection.attempts"
CONNECTION_BACKOFF_CONFIG = "connection.backoff.ms"
DIALECT_NAME_CONFIG = "dialect.name"
TABLE_POLL_INTERVAL_MS_CONFIG = "table.poll.interval.ms"
TABLE_WHITELIST_CONFIG = WHITELIST_SETTING
TABLE_BLACKLIST_CONFIG = BLACKLIST_SETTING
TABLE_TYPES_CONFIG = "table.types"
SCHEMA_PATTERN_CONFIG = "schema.pattern"
QUERY_CONFIG = QUERY_SETTING
TASKS_MAX_CONFIG = "tasks.max"

# Key under which each task receives its assigned tables
TABLES_CONFIG = "tables"

DEFAULTS = {
    CONNECTION_ATTEMPTS_CONFIG: "3",
    CONNECTION_BACKOFF_CONFIG: "10000",
    TABLE_POLL_INTERVAL_MS_CONFIG: "60000",
    TABLE_TYPES_CONFIG: "TABLE",
    TASKS_MAX_CONFIG: "1",
}


def _split_list(value: str | None) -> list[str]:
    if not value:
        return []
    return [item.strip() for item in value.split(",") if item.strip()]


class SourceConnectorConfig:
    """
    Parsed connector settings.

    Example:
        config = SourceConnectorConfig({
            "connection.url": "postgresql://localhost:5432/warehouse",
            "table.whitelist": "public.customers,public.orders",
        })
    """

    def __init__(self, props: Mapping[str, str]):
        """
        Parse settings.

        Args:
            props: Raw settings map

        Raises:
            ConfigurationError: If a setting is missing or invalid
        """
        self.props = dict(props)

        self.connection_url = self._get_str(CONNECTION_URL_CONFIG)
        if not self.connection_url:
            raise ConfigurationError(f"Missing required configuration '{CONNECTION_URL_CONFIG}'")

        self.connection_user = self.props.get(CONNECTION_USER_CONFIG) or None
        self.connection_password = self.props.get(CONNECTION_PASSWORD_CONFIG) or None
        self.connection_attempts = self._get_int(CONNECTION_ATTEMPTS_CONFIG, minimum=1)
        self.connection_backoff_ms = self._get_int(CONNECTION_BACKOFF_CONFIG, minimum=0)
        self.dialect_name = self._get_str(DIALECT_NAME_CONFIG) or None
        self.table_poll_interval_ms = self._get_int(TABLE_POLL_INTERVAL_MS_CONFIG, minimum=1)
        self.table_whitelist = _split_list(self._get_str(TABLE_WHITELIST_CONFIG))
        self.table_blacklist = _split_list(self._get_str(TABLE_BLACKLIST_CONFIG))
        self.table_types = _split_list(self._get_str(TABLE_TYPES_CONFIG)) or ["TABLE"]
        self.schema_pattern = self._get_str(SCHEMA_PATTERN_CONFIG) or None
        self.query = self._get_str(QUERY_CONFIG)
        self.tasks_max = self._get_int(TASKS_MAX_CONFIG, minimum=1)

    def _get_str(self, key: str) -> str:
        return (self.props.get(key) or DEFAULTS.get(key, "")).strip()

    def _get_int(self, key: str, minimum: int) -> int:
        raw = self._get_str(key)
        try:
            value = int(raw)
        except ValueError:
            raise ConfigurationError(
                f"Invalid value {raw!r} for configuration '{key}': must be an integer"
            ) from None

        if value < minimum:
            raise ConfigurationError(
                f"Invalid value {value} for configuration '{key}': must be at least {minimum}"
            )
        return value

    @property
    def query_mode(self) -> bool:
        return bool(self.query)

    def table_filter(self) -> TableFilter:
        """
        Build the table filter.

        Raises:
            ConfigurationError: If whitelist and blacklist are both set, or a
                query is combined with either
        """
        return TableFilter.from_settings(
            whitelist=self.table_whitelist,
            blacklist=self.table_blacklist,
            query=self.query,
        )

    def dialect_options(self) -> dict:
        """Keyword arguments for discovery.dialect.find_dialect_for()."""
        return {
            "dialect_name": self.dialect_name,
            "user": self.connection_user,
            "password": self.connection_password,
            "table_types": self.table_types,
            "schema_pattern": self.schema_pattern,
        }

    @classmethod
    def from_env(cls, prefix: str = "SOURCE_", overrides: Mapping[str, str] | None = None):
        """
        Build settings from environment variables.

        SOURCE_CONNECTION_URL maps to connection.url, SOURCE_TABLE_POLL_INTERVAL_MS
        to table.poll.interval.ms, and so on. Explicit overrides win.

        Args:
            prefix: Environment variable prefix (default: SOURCE_)
            overrides: Settings that take precedence over the environment
        """
        props = {}
        for key, value in os.environ.items():
            if key.startswith(prefix) and value:
                props[key[len(prefix):].lower().replace("_", ".")] = value

        props.update({k: v for k, v in (overrides or {}).items() if v is not None})
        logger.debug(f"Loaded settings from environment: {sorted(props)}")
        return cls(props)
