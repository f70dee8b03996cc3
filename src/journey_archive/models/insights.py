"""Result records produced by the statistics engine and pattern analyzer."""

from dataclasses import dataclass


@dataclass(frozen=True)
class JourneyStats:
    node_count: int
    total_duration: int
    max_depth: int
    avg_duration: float


@dataclass(frozen=True)
class DeadEnd:
    """A leaf that was left quickly. ``duration`` is in seconds."""

    node_id: str
    url: str
    title: str
    duration: float


@dataclass(frozen=True)
class DriftEntry:
    node_id: str
    url: str
    title: str
    depth: int
    drift_score: float
    similarity: float


@dataclass(frozen=True)
class PathEntry:
    node_id: str
    title: str
    url: str


@dataclass(frozen=True)
class TimeSpentEntry:
    """A node ranked by focus time. ``duration`` is in milliseconds."""

    node_id: str
    title: str
    url: str
    duration: int


@dataclass(frozen=True)
class AhaMoment:
    node_id: str
    title: str
    url: str
    note: str


@dataclass(frozen=True)
class InsightsSummary:
    total_nodes: int
    total_duration: int
    max_depth: int
    avg_duration: float
    avg_branch_factor: float


@dataclass(frozen=True)
class TopicDriftSummary:
    most_drifted: tuple[DriftEntry, ...]
    avg_drift: float


@dataclass(frozen=True)
class InsightsReport:
    """Composite analysis of one journey."""

    summary: InsightsSummary
    dead_ends: tuple[DeadEnd, ...]
    topic_drift: TopicDriftSummary
    longest_path: tuple[PathEntry, ...]
    most_time_spent: tuple[TimeSpentEntry, ...]
    aha_moments: tuple[AhaMoment, ...]


@dataclass(frozen=True)
class Highlight:
    """A short headline about a journey, e.g. for a side panel."""

    kind: str
    title: str
    description: str
    level: str = "info"


@dataclass(frozen=True)
class TimelineEntry:
    """A node placed on the chronological playback timeline."""

    position: int
    node_id: str
    title: str
    url: str
    timestamp: int
    progress: float
