"""Chronological ordering of a journey for playback."""

from collections.abc import Sequence

from journey_archive.models.insights import TimelineEntry
from journey_archive.models.node import Node


def build_timeline(nodes: Sequence[Node]) -> list[TimelineEntry]:
    """Nodes in creation order, each with its 1-based position and progress in percent."""
    ordered = sorted(nodes, key=lambda n: n.timestamp)
    total = len(ordered)
    return [
        TimelineEntry(
            position=i,
            node_id=node.id,
            title=node.title,
            url=node.url,
            timestamp=node.timestamp,
            progress=i / total * 100,
        )
        for i, node in enumerate(ordered, start=1)
    ]
