"""SQLite-backed record store for journeys, nodes and settings."""

import json
import sqlite3
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

from loguru import logger

from journey_archive.core.exporter.json_writer import metadata_to_dict
from journey_archive.core.importer.json_reader import parse_metadata
from journey_archive.errors import StorageError
from journey_archive.models.node import Journey, Node

_JOURNEY_COLUMNS = "id, title, created, updated, tags, shared, root_node_id"
_NODE_COLUMNS = (
    "id, journey_id, tab_id, url, title, parent_id, timestamp, duration, "
    "note, screenshot, metadata"
)


@contextmanager
def _storage_errors(action: str) -> Iterator[None]:
    try:
        yield
    except sqlite3.Error as e:
        msg = f"Failed to {action}: {e}"
        raise StorageError(msg) from e


def _row_to_journey(row: tuple) -> Journey:
    return Journey(
        id=row[0],
        title=row[1],
        created=row[2],
        updated=row[3],
        tags=tuple(json.loads(row[4])),
        shared=bool(row[5]),
        root_node_id=row[6],
    )


def _row_to_node(row: tuple) -> Node:
    return Node(
        id=row[0],
        journey_id=row[1],
        tab_id=row[2],
        url=row[3],
        title=row[4],
        parent_id=row[5],
        timestamp=row[6],
        duration=row[7],
        note=row[8],
        screenshot=row[9],
        metadata=parse_metadata(json.loads(row[10])),
    )


def _node_params(node: Node) -> tuple:
    return (
        node.journey_id, node.tab_id, node.url, node.title, node.parent_id,
        node.timestamp, node.duration, node.note, node.screenshot,
        json.dumps(metadata_to_dict(node.metadata)), node.id,
    )


class SqliteRecordStore:
    """Record store over a SQLite connection (schema must already exist).

    Every write commits on its own; a sequence of writes is not atomic.
    """

    def __init__(self, conn: sqlite3.Connection) -> None:
        self.conn = conn

    # --- journeys ---

    def create_journey(self, journey: Journey) -> int:
        with _storage_errors("create journey"):
            cursor = self.conn.execute(
                "INSERT INTO journeys (title, created, updated, tags, shared, root_node_id) "
                "VALUES (?, ?, ?, ?, ?, ?)",
                (
                    journey.title, journey.created, journey.updated,
                    json.dumps(list(journey.tags)), int(journey.shared), journey.root_node_id,
                ),
            )
            self.conn.commit()
        journey_id = cursor.lastrowid
        if journey_id is None:
            msg = f"No id assigned to journey {journey.title!r}"
            raise StorageError(msg)
        logger.debug("Created journey {} ({!r})", journey_id, journey.title)
        return journey_id

    def get_journey(self, journey_id: int) -> Journey | None:
        with _storage_errors(f"read journey {journey_id}"):
            row = self.conn.execute(
                f"SELECT {_JOURNEY_COLUMNS} FROM journeys WHERE id = ?", (journey_id,)
            ).fetchone()
        return _row_to_journey(row) if row else None

    def update_journey(self, journey: Journey) -> None:
        with _storage_errors(f"update journey {journey.id}"):
            self.conn.execute(
                "UPDATE journeys SET title = ?, created = ?, updated = ?, tags = ?, "
                "shared = ?, root_node_id = ? WHERE id = ?",
                (
                    journey.title, journey.created, journey.updated,
                    json.dumps(list(journey.tags)), int(journey.shared),
                    journey.root_node_id, journey.id,
                ),
            )
            self.conn.commit()

    def get_all_journeys(self) -> list[Journey]:
        with _storage_errors("list journeys"):
            rows = self.conn.execute(
                f"SELECT {_JOURNEY_COLUMNS} FROM journeys ORDER BY created, id"
            ).fetchall()
        return [_row_to_journey(r) for r in rows]

    def delete_journey(self, journey_id: int) -> None:
        with _storage_errors(f"delete journey {journey_id}"):
            self.conn.execute("DELETE FROM nodes WHERE journey_id = ?", (journey_id,))
            self.conn.execute("DELETE FROM journeys WHERE id = ?", (journey_id,))
            self.conn.commit()
        logger.debug("Deleted journey {}", journey_id)

    # --- nodes ---

    def create_node(self, node: Node) -> None:
        with _storage_errors(f"create node {node.id}"):
            self.conn.execute(
                "INSERT INTO nodes (journey_id, tab_id, url, title, parent_id, timestamp, "
                "duration, note, screenshot, metadata, id) "
                "VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
                _node_params(node),
            )
            self.conn.commit()

    def get_node(self, node_id: str) -> Node | None:
        with _storage_errors(f"read node {node_id}"):
            row = self.conn.execute(
                f"SELECT {_NODE_COLUMNS} FROM nodes WHERE id = ?", (node_id,)
            ).fetchone()
        return _row_to_node(row) if row else None

    def update_node(self, node: Node) -> None:
        with _storage_errors(f"update node {node.id}"):
            self.conn.execute(
                "UPDATE nodes SET journey_id = ?, tab_id = ?, url = ?, title = ?, "
                "parent_id = ?, timestamp = ?, duration = ?, note = ?, screenshot = ?, "
                "metadata = ? WHERE id = ?",
                _node_params(node),
            )
            self.conn.commit()

    def get_nodes_by_journey(self, journey_id: int) -> list[Node]:
        with _storage_errors(f"read nodes of journey {journey_id}"):
            rows = self.conn.execute(
                f"SELECT {_NODE_COLUMNS} FROM nodes WHERE journey_id = ? ORDER BY rowid",
                (journey_id,),
            ).fetchall()
        return [_row_to_node(r) for r in rows]

    # --- settings ---

    def get_setting(self, key: str) -> Any | None:
        with _storage_errors(f"read setting {key!r}"):
            row = self.conn.execute("SELECT value FROM settings WHERE key = ?", (key,)).fetchone()
        return json.loads(row[0]) if row else None

    def set_setting(self, key: str, value: Any) -> None:
        with _storage_errors(f"write setting {key!r}"):
            self.conn.execute(
                "INSERT OR REPLACE INTO settings (key, value) VALUES (?, ?)",
                (key, json.dumps(value)),
            )
            self.conn.commit()
