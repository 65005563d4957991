"""
Contract between the connector and the host that runs it.

The table monitor calls request_task_reconfiguration() from its own
thread whenever the table set changes, and raise_error() when it stops
because of an unexpected failure.
"""

import logging
import threading

logger = logging.getLogger(__name__)


class ConnectorContext:
    """Base class for host callbacks. Subclasses implement both methods."""

    def request_task_reconfiguration(self) -> None:
        """Ask the host to fetch task configs again. Must be thread-safe."""
        raise NotImplementedError

    def raise_error(self, error: BaseException) -> None:
        """Report an error that stopped the connector's background work."""
        raise NotImplementedError


class RecordingContext(ConnectorContext):
    """
    Context that records requests and errors.

    Used by the CLI watch command; wait_for_reconfiguration() lets the
    caller block until the monitor reports a change.
    """

    def __init__(self):
        self.reconfiguration_count = 0
        self.errors: list[BaseException] = []
        self._lock = threading.Lock()
        self._reconfigured = threading.Event()
        self._failed = threading.Event()

    def request_task_reconfiguration(self) -> None:
        with self._lock:
            self.reconfiguration_count += 1
        logger.info("Task reconfiguration requested")
        self._reconfigured.set()

    def raise_error(self, error: BaseException) -> None:
        with self._lock:
            self.errors.append(error)
        logger.error(f"Connector reported an error: {error}")
        self._failed.set()
        self._reconfigured.set()

    @property
    def failed(self) -> bool:
        return self._failed.is_set()

    def wait_for_reconfiguration(self, timeout: float | None = None) -> bool:
        """
        Block until a reconfiguration is requested or an error is raised.

        Returns:
            True if woken by a request or error, False on timeout
        """
        woken = self._reconfigured.wait(timeout)
        self._reconfigured.clear()
        return woken
