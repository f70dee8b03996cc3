"""Aggregate journey metrics."""

from collections.abc import Sequence

from journey_archive.core.tree.builder import build_tree
from journey_archive.models.insights import JourneyStats
from journey_archive.models.node import JourneyTree, Node
from journey_archive.protocols import RecordStoreProtocol


def calculate_max_depth(tree: JourneyTree | None, depth: int = 0) -> int:
    """Edges on the longest root-to-leaf chain. A bare root (or None) is 0."""
    if tree is None or not tree.children:
        return depth
    return max(calculate_max_depth(child, depth + 1) for child in tree.children)


def compute_stats(nodes: Sequence[Node], tree: JourneyTree | None) -> JourneyStats:
    total_duration = sum(node.duration or 0 for node in nodes)
    node_count = len(nodes)
    return JourneyStats(
        node_count=node_count,
        total_duration=total_duration,
        max_depth=calculate_max_depth(tree),
        avg_duration=total_duration / node_count if node_count else 0.0,
    )


def get_journey_stats(store: RecordStoreProtocol, journey_id: int) -> JourneyStats:
    """Fetch a journey's nodes and compute its statistics."""
    nodes = store.get_nodes_by_journey(journey_id)
    return compute_stats(nodes, build_tree(nodes))
