"""Behavioral pattern analysis over journey trees.

Dead ends, topic drift, longest path, time ranking and Aha! moments, plus the
composite insights report that bundles them.
"""

from collections import Counter
from collections.abc import Collection, Sequence

from loguru import logger

from journey_archive.config import DEAD_END_THRESHOLD_SECONDS, INSIGHTS_TOP_N
from journey_archive.core.analysis.stats import get_journey_stats
from journey_archive.core.tree.builder import build_journey_tree, iter_preorder
from journey_archive.errors import JourneyNotFoundError
from journey_archive.models.insights import (
    AhaMoment,
    DeadEnd,
    DriftEntry,
    Highlight,
    InsightsReport,
    InsightsSummary,
    PathEntry,
    TimeSpentEntry,
    TopicDriftSummary,
)
from journey_archive.models.node import JourneyTree, Node
from journey_archive.protocols import RecordStoreProtocol

HIGH_DRIFT_THRESHOLD = 0.5
DEEP_JOURNEY_DEPTH = 5


def _child_counts(nodes: Sequence[Node]) -> Counter[str]:
    return Counter(node.parent_id for node in nodes if node.parent_id)


def detect_dead_ends(
    nodes: Sequence[Node], threshold_seconds: float = DEAD_END_THRESHOLD_SECONDS
) -> list[DeadEnd]:
    """Leaves that were focused briefly and then abandoned.

    A node with zero duration was never focused, so it is not a dead end.
    """
    child_counts = _child_counts(nodes)
    dead_ends = []
    for node in nodes:
        seconds = (node.duration or 0) / 1000
        if node.id not in child_counts and 0 < seconds < threshold_seconds:
            dead_ends.append(
                DeadEnd(node_id=node.id, url=node.url, title=node.title, duration=seconds)
            )
    return dead_ends


def jaccard_similarity(a: Collection[str], b: Collection[str]) -> float:
    """|A & B| / |A | B|, with two empty sets counting as identical."""
    set_a, set_b = set(a), set(b)
    if not set_a and not set_b:
        return 1.0
    if not set_a or not set_b:
        return 0.0
    return len(set_a & set_b) / len(set_a | set_b)


def calculate_topic_drift(tree: JourneyTree | None) -> list[DriftEntry]:
    """Score every non-root node by keyword dissimilarity to the root.

    Most drifted first; equal scores keep pre-order.
    """
    if tree is None:
        return []
    root_keywords = set(tree.node.metadata.keywords)
    entries = []
    for tree_node, depth in iter_preorder(tree):
        if depth == 0:
            continue
        node = tree_node.node
        similarity = jaccard_similarity(root_keywords, node.metadata.keywords)
        entries.append(
            DriftEntry(
                node_id=node.id,
                url=node.url,
                title=node.title,
                depth=depth,
                drift_score=1 - similarity,
                similarity=similarity,
            )
        )
    return sorted(entries, key=lambda e: e.drift_score, reverse=True)


def get_topic_drift(store: RecordStoreProtocol, journey_id: int) -> list[DriftEntry]:
    return calculate_topic_drift(build_journey_tree(store, journey_id))


def find_longest_path(tree: JourneyTree | None) -> list[PathEntry]:
    """Longest root-to-leaf chain. Ties go to the earliest child."""
    if tree is None:
        return []
    longest: list[PathEntry] = []
    for child in tree.children:
        candidate = find_longest_path(child)
        if len(candidate) > len(longest):
            longest = candidate
    node = tree.node
    return [PathEntry(node_id=node.id, title=node.title, url=node.url), *longest]


def rank_by_time(nodes: Sequence[Node], limit: int = INSIGHTS_TOP_N) -> list[TimeSpentEntry]:
    ranked = sorted(nodes, key=lambda n: n.duration or 0, reverse=True)[:limit]
    return [
        TimeSpentEntry(node_id=n.id, title=n.title, url=n.url, duration=n.duration or 0)
        for n in ranked
    ]


def collect_aha_moments(nodes: Sequence[Node]) -> list[AhaMoment]:
    return [
        AhaMoment(node_id=n.id, title=n.title, url=n.url, note=n.note)
        for n in nodes
        if n.metadata.aha_moment
    ]


def average_branch_factor(nodes: Sequence[Node]) -> float:
    """Mean child count over the nodes that have any children."""
    known_ids = {node.id for node in nodes}
    counts = [c for parent_id, c in _child_counts(nodes).items() if parent_id in known_ids]
    return sum(counts) / len(counts) if counts else 0.0


def generate_insights(store: RecordStoreProtocol, journey_id: int) -> InsightsReport:
    """Assemble the full insights report for a journey.

    Raises:
        JourneyNotFoundError: No journey with ``journey_id`` exists.
    """
    if store.get_journey(journey_id) is None:
        raise JourneyNotFoundError(journey_id)

    nodes = store.get_nodes_by_journey(journey_id)
    stats = get_journey_stats(store, journey_id)
    dead_ends = detect_dead_ends(nodes)
    drift = get_topic_drift(store, journey_id)
    longest_path = find_longest_path(build_journey_tree(store, journey_id))

    avg_drift = sum(d.drift_score for d in drift) / len(drift) if drift else 0.0
    logger.debug(
        "Insights for journey {}: {} nodes, {} dead ends, avg drift {:.2f}",
        journey_id, stats.node_count, len(dead_ends), avg_drift,
    )
    return InsightsReport(
        summary=InsightsSummary(
            total_nodes=stats.node_count,
            total_duration=stats.total_duration,
            max_depth=stats.max_depth,
            avg_duration=stats.avg_duration,
            avg_branch_factor=average_branch_factor(nodes),
        ),
        dead_ends=tuple(dead_ends),
        topic_drift=TopicDriftSummary(
            most_drifted=tuple(drift[:INSIGHTS_TOP_N]),
            avg_drift=avg_drift,
        ),
        longest_path=tuple(longest_path),
        most_time_spent=tuple(rank_by_time(nodes)),
        aha_moments=tuple(collect_aha_moments(nodes)),
    )


def summarize_highlights(report: InsightsReport) -> list[Highlight]:
    """Headline findings worth surfacing next to a journey."""
    highlights = []
    if report.dead_ends:
        highlights.append(
            Highlight(
                kind="dead_ends",
                title="Dead Ends",
                description=f"{len(report.dead_ends)} pages with quick exits",
                level="warning",
            )
        )
    if report.aha_moments:
        highlights.append(
            Highlight(
                kind="aha_moments",
                title="Aha! Moments",
                description=f"{len(report.aha_moments)} breakthrough discoveries",
                level="success",
            )
        )
    if report.topic_drift.avg_drift > HIGH_DRIFT_THRESHOLD:
        highlights.append(
            Highlight(
                kind="topic_drift",
                title="Topic Drift",
                description=f"High drift detected ({report.topic_drift.avg_drift * 100:.0f}%)",
            )
        )
    if report.summary.max_depth >= DEEP_JOURNEY_DEPTH:
        highlights.append(
            Highlight(
                kind="deep_journey",
                title="Deep Rabbit Hole",
                description=f"Explored {report.summary.max_depth} levels deep",
            )
        )
    return highlights


def recommend_next_nodes(node_id: str) -> list[Node]:
    """Suggest pages to visit after ``node_id``. Not implemented; always empty."""
    return []
