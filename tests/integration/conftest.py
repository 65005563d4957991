"""
Fixtures for tests against a real PostgreSQL database.

Connection settings come from POSTGRES_HOST, POSTGRES_PORT, POSTGRES_DB,
POSTGRES_USER and POSTGRES_PASSWORD. Tests skip when the database is
not reachable.
"""

import os
import uuid

import psycopg2
import pytest


@pytest.fixture(scope="session")
def postgres_url():
    host = os.getenv("POSTGRES_HOST", "localhost")
    port = os.getenv("POSTGRES_PORT", "5432")
    database = os.getenv("POSTGRES_DB", "postgres")
    return f"postgresql://{host}:{port}/{database}"


@pytest.fixture(scope="session")
def postgres_credentials():
    return {
        "user": os.getenv("POSTGRES_USER", "postgres"),
        "password": os.getenv("POSTGRES_PASSWORD", "postgres"),
    }


@pytest.fixture(scope="session")
def admin_connection(postgres_url, postgres_credentials):
    try:
        conn = psycopg2.connect(postgres_url, connect_timeout=3, **postgres_credentials)
    except psycopg2.OperationalError as e:
        pytest.skip(f"PostgreSQL not reachable: {e}")
    conn.autocommit = True
    yield conn
    conn.close()


@pytest.fixture
def schema(admin_connection):
    """Create a throwaway schema and drop it afterwards."""
    name = f"discovery_{uuid.uuid4().hex[:8]}"
    with admin_connection.cursor() as cursor:
        cursor.execute(f'CREATE SCHEMA "{name}"')
    yield name
    with admin_connection.cursor() as cursor:
        cursor.execute(f'DROP SCHEMA "{name}" CASCADE')
