"""Shared test fixtures."""

import sqlite3
from collections.abc import Iterator

import pytest

from journey_archive.core.database.schema import create_schema
from journey_archive.core.database.store import SqliteRecordStore
from tests.unit.fakes import populate_sample


@pytest.fixture
def conn() -> Iterator[sqlite3.Connection]:
    """Return an in-memory DB with the schema created."""
    conn = sqlite3.connect(":memory:")
    create_schema(conn)
    yield conn
    conn.close()


@pytest.fixture
def store(conn: sqlite3.Connection) -> SqliteRecordStore:
    return SqliteRecordStore(conn)


@pytest.fixture
def journey_id(store: SqliteRecordStore) -> int:
    """Id of the sample journey inside ``store``."""
    return populate_sample(store)
