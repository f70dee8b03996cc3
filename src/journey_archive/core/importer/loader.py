"""Import journey export documents into a record store."""

import json
import secrets
import time
from collections.abc import Sequence
from dataclasses import replace
from pathlib import Path
from typing import Any

from loguru import logger

from journey_archive.core.importer.json_reader import parse_backup_document, parse_export_document
from journey_archive.errors import FormatError, StorageError
from journey_archive.models.node import Journey, Node
from journey_archive.protocols import RecordStoreProtocol


def _new_node_id() -> str:
    return f"node_imported_{time.time_ns()}_{secrets.token_hex(6)}"


def read_export_file(path: Path) -> Any:
    """Load a JSON export or backup file."""
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        msg = f"{path} is not valid JSON: {e}"
        raise FormatError(msg) from e


def insert_journey(
    store: RecordStoreProtocol,
    journey: Journey,
    nodes: Sequence[Node],
    *,
    shared: bool,
) -> int:
    """Write ``journey`` and ``nodes`` under fresh identifiers.

    Nodes are written in input order. A ``parent_id`` is rewritten only if
    that parent was already written; a child listed before its parent keeps
    the stale old parent id. Writes are not atomic: a failure part way leaves
    the journey and the nodes written so far in place.

    Returns:
        The new journey id.
    """
    now_ms = int(time.time() * 1000)
    new_journey_id = store.create_journey(
        replace(journey, id=None, created=now_ms, updated=now_ms, shared=shared, root_node_id=None)
    )

    id_mapping: dict[str, str] = {}
    try:
        for node in nodes:
            parent_id = node.parent_id
            if parent_id:
                if parent_id in id_mapping:
                    parent_id = id_mapping[parent_id]
                else:
                    logger.warning(
                        "Node {} refers to parent {} which was not imported before it; "
                        "keeping the old id",
                        node.id, parent_id,
                    )
            new_id = _new_node_id()
            store.create_node(
                replace(node, id=new_id, journey_id=new_journey_id, parent_id=parent_id)
            )
            id_mapping[node.id] = new_id
    except StorageError:
        logger.error(
            "Import into journey {} stopped after {} of {} nodes",
            new_journey_id, len(id_mapping), len(nodes),
        )
        raise

    if journey.root_node_id and journey.root_node_id in id_mapping:
        created = store.get_journey(new_journey_id)
        if created is None:
            msg = f"Journey {new_journey_id} disappeared during import"
            raise StorageError(msg)
        store.update_journey(replace(created, root_node_id=id_mapping[journey.root_node_id]))

    logger.info("Imported {!r} as journey {} ({} nodes)", journey.title, new_journey_id, len(nodes))
    return new_journey_id


def import_journey(store: RecordStoreProtocol, document: Any) -> int:
    """Import a single-journey export document as a new, shared journey.

    Raises:
        FormatError: The envelope is malformed; nothing has been written.
        StorageError: A write failed; partial data may remain.
    """
    journey, nodes = parse_export_document(document)
    return insert_journey(store, journey, nodes, shared=True)


def restore_backup(store: RecordStoreProtocol, document: Any) -> list[int]:
    """Re-create every journey in a bulk backup. Returns the new journey ids."""
    entries = parse_backup_document(document)
    new_ids = [
        insert_journey(store, journey, nodes, shared=journey.shared) for journey, nodes in entries
    ]
    logger.info("Restored {} journeys from backup", len(new_ids))
    return new_ids
