"""
Cached connection provider for the source database.

Keeps a single connection open between table polls, validates it before
handing it out, and reconnects with a fixed backoff when it has gone stale.
"""

import logging
import threading
from typing import Any

from utils.retry import retry_with_backoff

from .dialect import DatabaseDialect
from .errors import TransientDiscoveryError

logger = logging.getLogger(__name__)


class CachedConnectionProvider:
    """
    Thread-safe provider for one cached database connection.

    The table monitor calls close() after a failed listing so that the
    next poll starts from a fresh connection.
    """

    def __init__(
        self,
        dialect: DatabaseDialect,
        max_attempts: int = 3,
        backoff_ms: int = 10000,
    ):
        """
        Initialize connection provider.

        Args:
            dialect: Dialect used to open and validate connections
            max_attempts: Connection attempts before giving up
            backoff_ms: Fixed wait between attempts in milliseconds
        """
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")

        self.dialect = dialect
        self.max_attempts = max_attempts
        self.backoff_ms = backoff_ms

        self._connection: Any = None
        self._lock = threading.RLock()
        self._connect_count = 0

    @property
    def connect_count(self) -> int:
        """Number of connections opened so far."""
        return self._connect_count

    def get_connection(self) -> Any:
        """
        Return the cached connection, reconnecting if it is not valid.

        Raises:
            TransientDiscoveryError: If every connection attempt failed
        """
        with self._lock:
            if self._connection is not None:
                if self.dialect.is_connection_valid(self._connection):
                    return self._connection
                logger.warning("Cached connection is no longer valid, reconnecting")
                self._close_quietly()

            self._connection = self._new_connection()
            return self._connection

    def _new_connection(self) -> Any:
        connect = retry_with_backoff(
            max_retries=self.max_attempts - 1,
            base_delay=self.backoff_ms / 1000.0,
            max_delay=self.backoff_ms / 1000.0,
            exponential_base=1.0,
            jitter=False,
            retryable_exceptions=self.dialect.transient_errors,
        )(self.dialect.connect)

        try:
            conn = connect()
        except self.dialect.transient_errors as e:
            raise TransientDiscoveryError(
                f"Unable to connect to the {self.dialect.name} database "
                f"after {self.max_attempts} attempt(s): {e}"
            ) from e

        self._connect_count += 1
        logger.info(f"Connected to {self.dialect.name} database")
        return conn

    def _close_quietly(self) -> None:
        conn, self._connection = self._connection, None
        if conn is None:
            return
        try:
            conn.close()
        except Exception as e:
            logger.warning(f"Error closing connection: {e}")

    def close(self) -> None:
        """Close and forget the cached connection."""
        with self._lock:
            if self._connection is not None:
                logger.debug(f"Closing cached {self.dialect.name} connection")
            self._close_quietly()
