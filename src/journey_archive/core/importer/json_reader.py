"""Parse journey export documents into domain models."""

from collections.abc import Mapping
from typing import Any

from journey_archive.errors import FormatError
from journey_archive.models.node import Journey, Node, NodeMetadata

# (attribute on NodeMetadata, key in the wire format)
SCRAPED_FIELDS: tuple[tuple[str, str], ...] = (
    ("description", "description"),
    ("author", "author"),
    ("og_title", "ogTitle"),
    ("og_description", "ogDescription"),
    ("published_time", "publishedTime"),
    ("main_content", "mainContent"),
)

_KNOWN_METADATA_KEYS = {"keywords", "ahaMoment", *(key for _, key in SCRAPED_FIELDS)}


def _parse_keywords(raw: Any) -> tuple[str, ...]:
    if not raw:
        return ()
    if isinstance(raw, str):
        return tuple(k.strip() for k in raw.split(",") if k.strip())
    return tuple(str(k) for k in raw)


def parse_metadata(raw: Mapping[str, Any] | None) -> NodeMetadata:
    """Turn a loosely-typed metadata bag into a NodeMetadata record."""
    if not isinstance(raw, Mapping):
        return NodeMetadata()
    scraped = {attr: str(raw.get(key) or "") for attr, key in SCRAPED_FIELDS}
    return NodeMetadata(
        keywords=_parse_keywords(raw.get("keywords")),
        aha_moment=bool(raw.get("ahaMoment")),
        extra={k: v for k, v in raw.items() if k not in _KNOWN_METADATA_KEYS},
        **scraped,
    )


def _int_field(raw: Mapping[str, Any], key: str, *, default: int | None = 0) -> int | None:
    value = raw.get(key)
    if value is None or value == "":
        return default
    if isinstance(value, bool):
        msg = f"Field {key!r} must be a number, got {value!r}"
        raise FormatError(msg)
    try:
        return int(value)
    except (TypeError, ValueError) as e:
        msg = f"Field {key!r} must be a number, got {value!r:.40}"
        raise FormatError(msg) from e


def _parse_tags(raw: Any) -> tuple[str, ...]:
    if not raw:
        return ()
    if isinstance(raw, str):
        return (raw,)
    if not isinstance(raw, list | tuple):
        msg = f"Field 'tags' must be a list, got {raw!r:.40}"
        raise FormatError(msg)
    return tuple(str(t) for t in raw)


def parse_node(raw: Mapping[str, Any], *, journey_id: int | None = None) -> Node:
    """Parse one node dict. ``journey_id`` overrides the stored owner."""
    if not isinstance(raw, Mapping) or raw.get("id") in (None, ""):
        msg = f"Node entry without an id: {raw!r:.80}"
        raise FormatError(msg)
    return Node(
        id=str(raw["id"]),
        journey_id=journey_id if journey_id is not None else _int_field(raw, "journeyId"),
        url=raw.get("url") or "",
        title=raw.get("title") or "",
        parent_id=raw.get("parentId") or None,
        tab_id=_int_field(raw, "tabId", default=None),
        timestamp=_int_field(raw, "timestamp"),
        duration=_int_field(raw, "duration"),
        note=raw.get("note") or "",
        screenshot=raw.get("screenshot"),
        metadata=parse_metadata(raw.get("metadata")),
    )


def parse_journey(raw: Mapping[str, Any]) -> Journey:
    """Parse a journey dict."""
    if not isinstance(raw, Mapping):
        msg = f"Journey entry is not an object: {raw!r:.80}"
        raise FormatError(msg)
    return Journey(
        id=_int_field(raw, "id", default=None),
        title=raw.get("title") or "",
        created=_int_field(raw, "created"),
        updated=_int_field(raw, "updated"),
        tags=_parse_tags(raw.get("tags")),
        shared=bool(raw.get("shared")),
        root_node_id=raw.get("rootNodeId") or None,
    )


def parse_export_document(data: Any) -> tuple[Journey, list[Node]]:
    """Validate a single-journey export envelope and parse its contents.

    Raises:
        FormatError: The version tag, ``journey`` or ``nodes`` is missing, or
            an entry cannot be parsed.
    """
    if not isinstance(data, Mapping):
        msg = "Export document must be a JSON object"
        raise FormatError(msg)

    version = data.get("formatVersion") or data.get("version")
    missing = [
        name
        for name, present in (
            ("formatVersion", bool(version)),
            ("journey", isinstance(data.get("journey"), Mapping)),
            ("nodes", isinstance(data.get("nodes"), list)),
        )
        if not present
    ]
    if missing:
        msg = f"Invalid journey format: missing {', '.join(missing)}"
        raise FormatError(msg)

    journey = parse_journey(data["journey"])
    nodes = [parse_node(raw) for raw in data["nodes"]]
    return journey, nodes


def parse_backup_document(data: Any) -> list[tuple[Journey, list[Node]]]:
    """Validate a bulk backup envelope and parse every journey in it."""
    if not isinstance(data, Mapping) or not isinstance(data.get("journeys"), list):
        msg = "Invalid backup file format: missing journeys list"
        raise FormatError(msg)

    result: list[tuple[Journey, list[Node]]] = []
    for item in data["journeys"]:
        if not isinstance(item, Mapping) or not isinstance(item.get("nodes"), list):
            msg = "Invalid backup file format: entry without nodes"
            raise FormatError(msg)
        journey = parse_journey(item.get("journey"))
        result.append((journey, [parse_node(raw) for raw in item["nodes"]]))
    return result
