"""Export journeys to portable JSON documents."""

import json
import time
from collections.abc import Sequence
from pathlib import Path
from typing import Any

from loguru import logger

from journey_archive.config import EXPORT_FORMAT_NAME, EXPORT_FORMAT_VERSION, PRODUCER_NAME
from journey_archive.core.exporter.json_writer import journey_to_dict, node_to_dict, tree_to_dict
from journey_archive.core.privacy import is_url_excluded
from journey_archive.core.tree.builder import build_tree, prune_tree
from journey_archive.errors import JourneyNotFoundError
from journey_archive.models.node import Journey, JourneyTree, Node
from journey_archive.protocols import RecordStoreProtocol


def _now_ms() -> int:
    return int(time.time() * 1000)


def _load(store: RecordStoreProtocol, journey_id: int) -> tuple[Journey, list[Node]]:
    journey = store.get_journey(journey_id)
    if journey is None:
        raise JourneyNotFoundError(journey_id)
    return journey, store.get_nodes_by_journey(journey_id)


def _envelope(
    journey: Journey,
    nodes: Sequence[Node],
    tree: JourneyTree | None,
    *,
    include_screenshots: bool,
) -> dict[str, Any]:
    return {
        "formatVersion": EXPORT_FORMAT_VERSION,
        "journey": journey_to_dict(journey),
        "nodes": [node_to_dict(n, include_screenshot=include_screenshots) for n in nodes],
        "tree": tree_to_dict(tree, include_screenshot=include_screenshots),
        "exportedAt": _now_ms(),
        "producerMetadata": {"producer": PRODUCER_NAME, "format": EXPORT_FORMAT_NAME},
    }


def export_journey(
    store: RecordStoreProtocol, journey_id: int, *, include_screenshots: bool = False
) -> dict[str, Any]:
    """Snapshot a journey, its nodes and its tree into an export document.

    Screenshots are left out unless ``include_screenshots`` is set.

    Raises:
        JourneyNotFoundError: No journey with ``journey_id`` exists.
    """
    journey, nodes = _load(store, journey_id)
    document = _envelope(journey, nodes, build_tree(nodes), include_screenshots=include_screenshots)
    logger.debug("Exported journey {} ({} nodes)", journey_id, len(nodes))
    return document


def export_with_privacy_filter(
    store: RecordStoreProtocol, journey_id: int, excluded_domains: Sequence[str]
) -> dict[str, Any]:
    """Export without screenshots and without nodes on excluded domains.

    See ``is_url_excluded`` for the matching rule. The tree snapshot drops
    excluded nodes together with their subtrees.
    """
    journey, nodes = _load(store, journey_id)
    kept = [n for n in nodes if not is_url_excluded(n.url, excluded_domains)]
    kept_ids = {n.id for n in kept}
    tree = prune_tree(build_tree(nodes), lambda n: n.id in kept_ids)
    logger.info(
        "Privacy filter removed {} of {} nodes from journey {}",
        len(nodes) - len(kept), len(nodes), journey_id,
    )
    return _envelope(journey, kept, tree, include_screenshots=False)


def export_all(store: RecordStoreProtocol) -> dict[str, Any]:
    """Bulk backup of every journey with full node data."""
    journeys = []
    for journey in store.get_all_journeys():
        if journey.id is None:
            continue
        nodes = store.get_nodes_by_journey(journey.id)
        journeys.append(
            {"journey": journey_to_dict(journey), "nodes": [node_to_dict(n) for n in nodes]}
        )
    logger.info("Backed up {} journeys", len(journeys))
    return {
        "formatVersion": EXPORT_FORMAT_VERSION,
        "exportedAt": _now_ms(),
        "journeys": journeys,
    }


def write_export_file(path: Path, document: dict[str, Any]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(document, indent=2) + "\n", encoding="utf-8")
