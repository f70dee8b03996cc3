"""SQLite schema creation and migration for the journey archive."""

import sqlite3

SCHEMA_VERSION = 1

_SCHEMA_SQL = """\
CREATE TABLE IF NOT EXISTS journeys (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    title TEXT NOT NULL DEFAULT '',
    created INTEGER NOT NULL,
    updated INTEGER NOT NULL,
    tags TEXT NOT NULL DEFAULT '[]',
    shared INTEGER NOT NULL DEFAULT 0,
    root_node_id TEXT
);

CREATE INDEX IF NOT EXISTS idx_journeys_created ON journeys(created);
CREATE INDEX IF NOT EXISTS idx_journeys_updated ON journeys(updated);

CREATE TABLE IF NOT EXISTS nodes (
    id TEXT PRIMARY KEY,
    journey_id INTEGER NOT NULL,
    tab_id INTEGER,
    url TEXT NOT NULL DEFAULT '',
    title TEXT NOT NULL DEFAULT '',
    parent_id TEXT,
    timestamp INTEGER NOT NULL DEFAULT 0,
    duration INTEGER NOT NULL DEFAULT 0,
    note TEXT NOT NULL DEFAULT '',
    screenshot TEXT,
    metadata TEXT NOT NULL DEFAULT '{}',
    FOREIGN KEY (journey_id) REFERENCES journeys(id)
);

CREATE INDEX IF NOT EXISTS idx_nodes_journey ON nodes(journey_id);
CREATE INDEX IF NOT EXISTS idx_nodes_parent ON nodes(parent_id);
CREATE INDEX IF NOT EXISTS idx_nodes_timestamp ON nodes(timestamp);
CREATE INDEX IF NOT EXISTS idx_nodes_url ON nodes(url);

CREATE TABLE IF NOT EXISTS settings (
    key TEXT PRIMARY KEY,
    value TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS metadata (
    key TEXT PRIMARY KEY,
    value TEXT NOT NULL
);
"""


def create_schema(conn: sqlite3.Connection) -> None:
    """Create all tables and indexes."""
    conn.executescript(_SCHEMA_SQL)
    set_metadata(conn, "schema_version", str(SCHEMA_VERSION))


def get_schema_version(conn: sqlite3.Connection) -> int | None:
    """Schema version recorded in metadata, or None for a fresh database."""
    try:
        value = get_metadata(conn, "schema_version")
    except sqlite3.OperationalError:
        return None
    return int(value) if value is not None else None


def migrate_schema(conn: sqlite3.Connection) -> None:
    """Create or migrate the database schema to the latest version."""
    version = get_schema_version(conn)
    if version is None:
        create_schema(conn)


def get_metadata(conn: sqlite3.Connection, key: str) -> str | None:
    row = conn.execute("SELECT value FROM metadata WHERE key = ?", (key,)).fetchone()
    return row[0] if row else None


def set_metadata(conn: sqlite3.Connection, key: str, value: str) -> None:
    conn.execute(
        "INSERT OR REPLACE INTO metadata (key, value) VALUES (?, ?)",
        (key, value),
    )
    conn.commit()
