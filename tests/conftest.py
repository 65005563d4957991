"""
Pytest configuration and fixtures for table discovery tests.
Provides an in-memory dialect whose table listings are scripted per poll.
"""

import logging
import threading
from typing import Sequence

import pytest
from prometheus_client import CollectorRegistry

from discovery.dialect import DatabaseDialect
from discovery.table_id import TableId


def pytest_configure(config: pytest.Config) -> None:
    """Configure pytest with custom markers."""
    config.addinivalue_line("markers", "integration: mark test as integration test")
    config.addinivalue_line("markers", "slow: mark test as slow running")


class FakeConnection:
    """Connection stand-in that only tracks whether it was closed."""

    def __init__(self, number: int):
        self.number = number
        self.closed = False

    def close(self) -> None:
        self.closed = True


class FakeDialect(DatabaseDialect):
    """
    Dialect returning scripted listings.

    Each poll consumes the next item of `listings`; the last item repeats.
    An exception instance in the script is raised instead of returned.
    """

    name = "fake"

    def __init__(self, listings: Sequence = ()):
        super().__init__("fake://localhost/warehouse")
        self.listings = list(listings) or [[]]
        self.list_calls = 0
        self.connections: list[FakeConnection] = []
        self.connect_failures: list[BaseException] = []
        self.closed = False
        self.listed = threading.Event()

    def connect(self) -> FakeConnection:
        if self.connect_failures:
            raise self.connect_failures.pop(0)
        conn = FakeConnection(len(self.connections) + 1)
        self.connections.append(conn)
        return conn

    def is_connection_valid(self, conn: FakeConnection) -> bool:
        return conn is not None and not conn.closed

    def table_ids(self, conn: FakeConnection) -> list[TableId]:
        item = self.listings[min(self.list_calls, len(self.listings) - 1)]
        self.list_calls += 1
        self.listed.set()
        if isinstance(item, BaseException):
            raise item
        return list(item)

    def close(self) -> None:
        self.closed = True


def tables(*names: str) -> list[TableId]:
    """Build TableIds from dotted 'table', 'schema.table' or 'catalog.schema.table' names."""
    built = []
    for name in names:
        parts = name.split(".")
        built.append(TableId(*([None] * (3 - len(parts)) + parts)))
    return built


@pytest.fixture
def make_tables():
    """Factory for TableId lists from dotted names."""
    return tables


@pytest.fixture
def fake_dialect_factory():
    """Factory for FakeDialect instances with scripted listings."""
    return FakeDialect


@pytest.fixture
def registry() -> CollectorRegistry:
    """Fresh Prometheus registry per test."""
    return CollectorRegistry()


@pytest.fixture
def preserve_root_logging():
    """Restore root logger handlers and level after tests that reconfigure logging."""
    root = logging.getLogger()
    handlers = root.handlers[:]
    level = root.level
    yield root
    for handler in root.handlers[:]:
        if handler not in handlers:
            root.removeHandler(handler)
            handler.close()
    for handler in handlers:
        if handler not in root.handlers:
            root.addHandler(handler)
    root.setLevel(level)
