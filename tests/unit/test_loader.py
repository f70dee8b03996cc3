"""Tests for importing export documents and backups."""

import json
from pathlib import Path

import pytest

from journey_archive.core.database.store import SqliteRecordStore
from journey_archive.core.exporter.exporter import export_all, export_journey
from journey_archive.core.importer.loader import (
    import_journey,
    read_export_file,
    restore_backup,
)
from journey_archive.core.tree.builder import build_tree, iter_preorder
from journey_archive.errors import FormatError, StorageError
from tests.unit.fakes import FakeRecordStore


def _shape(store: SqliteRecordStore | FakeRecordStore, journey_id: int) -> list[tuple]:
    """(depth, url, title) in pre-order: structure without identifiers."""
    tree = build_tree(store.get_nodes_by_journey(journey_id))
    return [(depth, t.node.url, t.node.title) for t, depth in iter_preorder(tree)]


def _document(nodes: list[dict], root_node_id: str | None = None) -> dict:
    return {
        "formatVersion": "1.0",
        "journey": {
            "id": 7,
            "title": "Shared",
            "created": 1,
            "updated": 2,
            "rootNodeId": root_node_id,
        },
        "nodes": nodes,
    }


def test_round_trip_preserves_shape(store: SqliteRecordStore, journey_id: int) -> None:
    new_id = import_journey(store, export_journey(store, journey_id))

    assert new_id != journey_id
    assert _shape(store, new_id) == _shape(store, journey_id)

    old_ids = {n.id for n in store.get_nodes_by_journey(journey_id)}
    new_nodes = store.get_nodes_by_journey(new_id)
    assert len(new_nodes) == 6
    assert not old_ids & {n.id for n in new_nodes}
    assert all(n.journey_id == new_id for n in new_nodes)


def test_round_trip_remaps_root_and_marks_shared(
    store: SqliteRecordStore, journey_id: int
) -> None:
    original = store.get_journey(journey_id)
    new_id = import_journey(store, export_journey(store, journey_id))
    imported = store.get_journey(new_id)

    assert original is not None
    assert imported is not None
    assert imported.shared is True
    assert imported.title == original.title
    assert imported.tags == original.tags
    assert imported.created > original.created
    tree = build_tree(store.get_nodes_by_journey(new_id))
    assert tree is not None
    assert imported.root_node_id == tree.id
    assert imported.root_node_id != original.root_node_id


def test_import_keeps_annotations(store: SqliteRecordStore, journey_id: int) -> None:
    new_id = import_journey(store, export_journey(store, journey_id))
    aha = [n for n in store.get_nodes_by_journey(new_id) if n.metadata.aha_moment]
    assert len(aha) == 1
    assert aha[0].note == "ownership finally clicks"
    assert aha[0].metadata.keywords == ("rust", "python")


def test_imported_node_ids_are_unique() -> None:
    store = FakeRecordStore()
    nodes = [{"id": f"n{i}", "url": f"https://example.com/{i}"} for i in range(50)]
    import_journey(store, _document(nodes))
    assert len(store.nodes) == 50
    assert all(node_id.startswith("node_imported_") for node_id in store.nodes)


@pytest.mark.parametrize(
    ("missing", "message"),
    [
        ("nodes", "nodes"),
        ("journey", "journey"),
        ("formatVersion", "formatVersion"),
    ],
)
def test_import_rejects_missing_fields_without_writes(missing: str, message: str) -> None:
    store = FakeRecordStore()
    document = _document([{"id": "a"}])
    del document[missing]

    with pytest.raises(FormatError, match=message):
        import_journey(store, document)
    assert store.writes == []


@pytest.mark.parametrize(
    ("node", "field"),
    [
        ({"id": "b", "duration": "n/a"}, "duration"),
        ({"id": "b", "timestamp": "2024-01-01"}, "timestamp"),
        ({"id": "b", "journeyId": "j-1"}, "journeyId"),
    ],
)
def test_import_rejects_bad_node_scalars_without_writes(node: dict, field: str) -> None:
    store = FakeRecordStore()
    with pytest.raises(FormatError, match=field):
        import_journey(store, _document([{"id": "a"}, node]))
    assert store.writes == []


def test_import_rejects_bad_journey_scalar_without_writes() -> None:
    store = FakeRecordStore()
    document = _document([{"id": "a"}])
    document["journey"]["created"] = "last week"
    with pytest.raises(FormatError, match="created"):
        import_journey(store, document)
    assert store.writes == []


def test_import_wraps_single_tag_string() -> None:
    store = FakeRecordStore()
    document = _document([{"id": "a"}])
    document["journey"]["tags"] = "research"
    journey = store.get_journey(import_journey(store, document))
    assert journey is not None
    assert journey.tags == ("research",)


def test_import_accepts_empty_journey_object() -> None:
    store = FakeRecordStore()
    document = {"formatVersion": "1.0", "journey": {}, "nodes": [{"id": "a"}]}
    journey_id = import_journey(store, document)
    journey = store.get_journey(journey_id)
    assert journey is not None
    assert journey.title == ""
    assert len(store.get_nodes_by_journey(journey_id)) == 1


def test_import_accepts_legacy_version_key() -> None:
    store = FakeRecordStore()
    document = _document([{"id": "a"}])
    document["version"] = document.pop("formatVersion")
    journey_id = import_journey(store, document)
    assert len(store.get_nodes_by_journey(journey_id)) == 1


def test_import_rejects_non_object() -> None:
    store = FakeRecordStore()
    with pytest.raises(FormatError):
        import_journey(store, ["not", "an", "envelope"])
    assert store.writes == []


def test_import_rejects_node_without_id_before_writing() -> None:
    store = FakeRecordStore()
    with pytest.raises(FormatError):
        import_journey(store, _document([{"id": "a"}, {"url": "https://example.com"}]))
    assert store.writes == []


def test_forward_reference_keeps_stale_parent_id() -> None:
    store = FakeRecordStore()
    nodes = [
        {"id": "child", "parentId": "root"},
        {"id": "root"},
    ]
    journey_id = import_journey(store, _document(nodes, root_node_id="root"))

    imported = store.get_nodes_by_journey(journey_id)
    child, root = imported
    assert child.parent_id == "root"
    assert root.parent_id is None
    assert root.id != "root"
    journey = store.get_journey(journey_id)
    assert journey is not None
    assert journey.root_node_id == root.id


def test_root_left_unset_when_not_in_nodes() -> None:
    store = FakeRecordStore()
    journey_id = import_journey(store, _document([{"id": "a"}], root_node_id="gone"))
    journey = store.get_journey(journey_id)
    assert journey is not None
    assert journey.root_node_id is None
    assert ("update_journey", journey_id) not in store.writes


def test_storage_failure_leaves_partial_import() -> None:
    store = FakeRecordStore(fail_on_node=3)
    nodes = [{"id": f"n{i}", "parentId": f"n{i - 1}" if i else None} for i in range(5)]

    with pytest.raises(StorageError, match="disk full"):
        import_journey(store, _document(nodes, root_node_id="n0"))

    assert len(store.journeys) == 1
    assert len(store.nodes) == 2
    journey = next(iter(store.journeys.values()))
    assert journey.root_node_id is None


class _VanishingJourneyStore(FakeRecordStore):
    """Loses journeys between the write and the read-back."""

    def get_journey(self, journey_id: int) -> None:
        return None


def test_root_remap_fails_when_journey_cannot_be_read_back() -> None:
    store = _VanishingJourneyStore()
    with pytest.raises(StorageError, match="disappeared"):
        import_journey(store, _document([{"id": "a"}], root_node_id="a"))
    assert not any(op == "update_journey" for op, _ in store.writes)


def test_restore_backup(store: SqliteRecordStore, journey_id: int) -> None:
    backup = export_all(store)
    new_ids = restore_backup(store, backup)

    assert len(new_ids) == 1
    restored = store.get_journey(new_ids[0])
    assert restored is not None
    assert restored.shared is False
    assert _shape(store, new_ids[0]) == _shape(store, journey_id)
    # Screenshots come back from a backup
    assert any(n.screenshot for n in store.get_nodes_by_journey(new_ids[0]))


def test_restore_backup_rejects_bad_envelope() -> None:
    store = FakeRecordStore()
    with pytest.raises(FormatError):
        restore_backup(store, {"formatVersion": "1.0"})
    with pytest.raises(FormatError):
        restore_backup(store, {"journeys": [{"journey": {"title": "x"}}]})
    assert store.writes == []


def test_read_export_file(tmp_path: Path) -> None:
    path = tmp_path / "journey.json"
    path.write_text(json.dumps({"formatVersion": "1.0"}))
    assert read_export_file(path) == {"formatVersion": "1.0"}


def test_read_export_file_invalid_json(tmp_path: Path) -> None:
    path = tmp_path / "broken.json"
    path.write_text("{not json")
    with pytest.raises(FormatError, match="not valid JSON"):
        read_export_file(path)
