"""Serialize domain models into the JSON wire format."""

from collections.abc import Mapping
from dataclasses import fields, is_dataclass
from typing import Any

from journey_archive.core.importer.json_reader import SCRAPED_FIELDS
from journey_archive.models.node import Journey, JourneyTree, Node, NodeMetadata


def metadata_to_dict(metadata: NodeMetadata) -> dict[str, Any]:
    """Only set fields are written, so an empty bag stays ``{}``."""
    data: dict[str, Any] = dict(metadata.extra)
    if metadata.keywords:
        data["keywords"] = list(metadata.keywords)
    if metadata.aha_moment:
        data["ahaMoment"] = True
    for attr, key in SCRAPED_FIELDS:
        value = getattr(metadata, attr)
        if value:
            data[key] = value
    return data


def node_to_dict(node: Node, *, include_screenshot: bool = True) -> dict[str, Any]:
    data: dict[str, Any] = {
        "id": node.id,
        "journeyId": node.journey_id,
        "tabId": node.tab_id,
        "url": node.url,
        "title": node.title,
        "parentId": node.parent_id,
        "timestamp": node.timestamp,
        "duration": node.duration,
        "note": node.note,
        "metadata": metadata_to_dict(node.metadata),
    }
    if include_screenshot:
        data["screenshot"] = node.screenshot
    return data


def journey_to_dict(journey: Journey) -> dict[str, Any]:
    return {
        "id": journey.id,
        "title": journey.title,
        "created": journey.created,
        "updated": journey.updated,
        "tags": list(journey.tags),
        "shared": journey.shared,
        "rootNodeId": journey.root_node_id,
    }


def tree_to_dict(
    tree: JourneyTree | None, *, include_screenshot: bool = True
) -> dict[str, Any] | None:
    """Nested node dicts, each with a ``children`` list."""
    if tree is None:
        return None
    data = node_to_dict(tree.node, include_screenshot=include_screenshot)
    data["children"] = [
        tree_to_dict(child, include_screenshot=include_screenshot) for child in tree.children
    ]
    return data


def _camel(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part.title() for part in rest)


def to_wire(value: Any) -> Any:
    """Convert result records (and anything nested in them) to JSON-ready data."""
    if isinstance(value, Node):
        return node_to_dict(value)
    if isinstance(value, Journey):
        return journey_to_dict(value)
    if isinstance(value, JourneyTree):
        return tree_to_dict(value)
    if is_dataclass(value) and not isinstance(value, type):
        return {_camel(f.name): to_wire(getattr(value, f.name)) for f in fields(value)}
    if isinstance(value, list | tuple):
        return [to_wire(v) for v in value]
    if isinstance(value, Mapping):
        return {k: to_wire(v) for k, v in value.items()}
    return value
