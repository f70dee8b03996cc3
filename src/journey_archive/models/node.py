"""Domain models for browsing journeys."""

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class NodeMetadata:
    """Scraped page metadata plus user annotations for a node.

    Keys the archive does not know about are kept in ``extra`` so that
    documents survive an export/import round trip unchanged.
    """

    keywords: tuple[str, ...] = ()
    aha_moment: bool = False
    description: str = ""
    author: str = ""
    og_title: str = ""
    og_description: str = ""
    published_time: str = ""
    main_content: str = ""
    extra: Mapping[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class Journey:
    """One tracked browsing session."""

    id: int | None
    title: str
    created: int
    updated: int
    tags: tuple[str, ...] = ()
    shared: bool = False
    root_node_id: str | None = None


@dataclass(frozen=True)
class Node:
    """A single page visit inside a journey."""

    id: str
    journey_id: int
    url: str
    title: str
    parent_id: str | None = None
    tab_id: int | None = None
    timestamp: int = 0
    duration: int = 0
    note: str = ""
    screenshot: str | None = None
    metadata: NodeMetadata = field(default_factory=NodeMetadata)


@dataclass
class JourneyTree:
    """A node with its materialized children. Built per query, never stored."""

    node: Node
    children: list["JourneyTree"] = field(default_factory=list)

    @property
    def id(self) -> str:
        return self.node.id
