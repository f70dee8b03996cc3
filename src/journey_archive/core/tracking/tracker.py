"""Turn browser tab events into journey nodes and focus durations."""

import time
from collections.abc import Callable, Mapping
from dataclasses import replace
from typing import Any

from loguru import logger

from journey_archive.config import UNTRACKED_URL_PREFIXES
from journey_archive.core.importer.json_reader import parse_metadata
from journey_archive.core.privacy import is_url_excluded
from journey_archive.core.settings import ensure_default_settings, get_excluded_domains
from journey_archive.models.events import (
    NavigationTargetCreated,
    TabActivated,
    TabCreated,
    TabEvent,
    TabNavigationComplete,
    TabRemoved,
)
from journey_archive.models.node import Journey, Node
from journey_archive.protocols import RecordStoreProtocol

PLACEHOLDER_TITLE = "Loading..."


def _now_ms() -> int:
    return int(time.time() * 1000)


class JourneyTracker:
    """Session bookkeeping between the browser and the record store.

    Owns three tables keyed by tab id: the node created for the tab, the tab
    that opened it, and when it last gained focus. Entries go away when the
    tab closes; all of them are cleared when a new journey starts.
    """

    def __init__(
        self, store: RecordStoreProtocol, *, clock: Callable[[], int] | None = None
    ) -> None:
        self.store = store
        self.clock = clock or _now_ms
        ensure_default_settings(store)
        self.current_journey_id: int | None = store.get_setting("currentJourneyId")
        self.active_tab_id: int | None = None
        self.tab_nodes: dict[int, str] = {}
        self.tab_parents: dict[int, int] = {}
        self.tab_start_times: dict[int, int] = {}

    def start_new_journey(self, title: str = "Untitled Journey") -> int:
        now = self.clock()
        journey_id = self.store.create_journey(
            Journey(id=None, title=title, created=now, updated=now)
        )
        self.current_journey_id = journey_id
        self.store.set_setting("currentJourneyId", journey_id)

        self.tab_nodes.clear()
        self.tab_parents.clear()
        self.tab_start_times.clear()
        logger.info("Started new journey {} ({!r})", journey_id, title)
        return journey_id

    def should_track_url(self, url: str) -> bool:
        if not url or url.startswith(UNTRACKED_URL_PREFIXES):
            return False
        if not self.store.get_setting("trackingEnabled"):
            return False
        return not is_url_excluded(url, get_excluded_domains(self.store))

    # --- events ---

    def handle(self, event: TabEvent) -> str | None:
        """Apply one tab event. Returns the id of a node created by it, if any."""
        if isinstance(event, TabCreated):
            self.on_tab_created(event)
        elif isinstance(event, NavigationTargetCreated):
            self.on_navigation_target(event)
        elif isinstance(event, TabNavigationComplete):
            return self.on_navigation_complete(event)
        elif isinstance(event, TabActivated):
            self.on_tab_activated(event)
        elif isinstance(event, TabRemoved):
            self.on_tab_removed(event)
        else:
            msg = f"Unknown tab event: {event!r}"
            raise TypeError(msg)
        return None

    def on_tab_created(self, event: TabCreated) -> None:
        if event.opener_tab_id is not None:
            self.tab_parents[event.tab_id] = event.opener_tab_id
            logger.debug("Tab {} opened by tab {}", event.tab_id, event.opener_tab_id)

    def on_navigation_target(self, event: NavigationTargetCreated) -> None:
        # The opener reported at tab creation wins.
        self.tab_parents.setdefault(event.tab_id, event.source_tab_id)

    def on_navigation_complete(self, event: TabNavigationComplete) -> str | None:
        node_id = self.tab_nodes.get(event.tab_id)
        if node_id is None:
            parent_tab_id = self.tab_parents.get(event.tab_id)
            if parent_tab_id is None and event.opener_tab_id is not None:
                parent_tab_id = event.opener_tab_id
                self.tab_parents[event.tab_id] = parent_tab_id
            return self._create_node_for_tab(event.tab_id, event.url, event.title, parent_tab_id)

        node = self.store.get_node(node_id)
        if node is not None and node.title == PLACEHOLDER_TITLE:
            self.store.update_node(replace(node, title=event.title or event.url))
        return None

    def on_tab_activated(self, event: TabActivated) -> None:
        if self.active_tab_id is not None and self.active_tab_id != event.tab_id:
            self._update_node_duration(self.active_tab_id)
        self.active_tab_id = event.tab_id
        self.tab_start_times[event.tab_id] = self.clock()

    def on_tab_removed(self, event: TabRemoved) -> None:
        self._update_node_duration(event.tab_id)
        self.tab_nodes.pop(event.tab_id, None)
        self.tab_parents.pop(event.tab_id, None)
        if self.active_tab_id == event.tab_id:
            self.active_tab_id = None

    def _create_node_for_tab(
        self, tab_id: int, url: str, title: str, parent_tab_id: int | None
    ) -> str | None:
        journey_id = self.current_journey_id
        if journey_id is None:
            journey_id = self.start_new_journey("Auto Journey")

        if not self.should_track_url(url):
            logger.debug("Not tracking tab {}: {}", tab_id, url)
            return None

        now = self.clock()
        parent_id = self.tab_nodes.get(parent_tab_id) if parent_tab_id is not None else None
        node = Node(
            id=f"node_{tab_id}_{now}",
            journey_id=journey_id,
            tab_id=tab_id,
            url=url,
            title=title or PLACEHOLDER_TITLE,
            parent_id=parent_id,
            timestamp=now,
        )
        self.store.create_node(node)
        self.tab_nodes[tab_id] = node.id

        journey = self.store.get_journey(journey_id)
        if journey is not None and not journey.root_node_id:
            self.store.update_journey(replace(journey, root_node_id=node.id, updated=now))

        logger.debug("Created node {} for tab {} (parent {})", node.id, tab_id, parent_id)
        return node.id

    def _update_node_duration(self, tab_id: int) -> None:
        node_id = self.tab_nodes.get(tab_id)
        start = self.tab_start_times.pop(tab_id, None)
        if node_id is None or start is None:
            return
        node = self.store.get_node(node_id)
        if node is not None:
            duration = (node.duration or 0) + self.clock() - start
            self.store.update_node(replace(node, duration=duration))
            logger.debug("Node {} focused for {} ms in total", node_id, duration)

    # --- annotations ---

    def current_node(self) -> Node | None:
        if self.active_tab_id is None or self.active_tab_id not in self.tab_nodes:
            return None
        return self.store.get_node(self.tab_nodes[self.active_tab_id])

    def add_note(self, note: str, *, node_id: str | None = None) -> bool:
        """Set the note of ``node_id``, or of the active tab's node."""
        node = self.store.get_node(node_id) if node_id else self.current_node()
        if node is None:
            return False
        self.store.update_node(replace(node, note=note))
        return True

    def tag_aha_moment(self, node_id: str) -> bool:
        node = self.store.get_node(node_id)
        if node is None:
            return False
        self.store.update_node(replace(node, metadata=replace(node.metadata, aha_moment=True)))
        return True

    def record_page_metadata(self, tab_id: int, raw: Mapping[str, Any]) -> bool:
        """Store scraped page metadata on the tab's node, keeping the Aha! flag."""
        node_id = self.tab_nodes.get(tab_id)
        node = self.store.get_node(node_id) if node_id else None
        if node is None:
            return False
        metadata = replace(parse_metadata(raw), aha_moment=node.metadata.aha_moment)
        self.store.update_node(replace(node, metadata=metadata))
        return True

    def attach_screenshot(self, tab_id: int, data_url: str) -> bool:
        if self.store.get_setting("screenshotsEnabled") is False:
            return False
        node_id = self.tab_nodes.get(tab_id)
        node = self.store.get_node(node_id) if node_id else None
        if node is None:
            return False
        self.store.update_node(replace(node, screenshot=data_url))
        return True
