"""Screenshot retention and storage accounting."""

import time
from dataclasses import dataclass, replace

from loguru import logger

from journey_archive.protocols import RecordStoreProtocol

_DAY_MS = 24 * 60 * 60 * 1000


@dataclass(frozen=True)
class ScreenshotUsage:
    count: int
    bytes: int

    @property
    def megabytes(self) -> float:
        return round(self.bytes / 1024 / 1024, 2)


def remove_old_screenshots(
    store: RecordStoreProtocol, max_age_days: int, *, now_ms: int | None = None
) -> int:
    """Clear screenshots of nodes created more than ``max_age_days`` ago.

    ``max_age_days == 0`` disables cleanup. Returns the number of nodes changed.
    """
    if max_age_days == 0:
        return 0
    now_ms = now_ms if now_ms is not None else int(time.time() * 1000)
    cutoff = now_ms - max_age_days * _DAY_MS

    removed = 0
    for journey in store.get_all_journeys():
        if journey.id is None:
            continue
        for node in store.get_nodes_by_journey(journey.id):
            if node.screenshot and node.timestamp < cutoff:
                store.update_node(replace(node, screenshot=None))
                removed += 1
    logger.info("Removed {} screenshots older than {} days", removed, max_age_days)
    return removed


def screenshot_usage(store: RecordStoreProtocol) -> ScreenshotUsage:
    """Approximate screenshot storage as the length of the stored data URLs."""
    count = 0
    total = 0
    for journey in store.get_all_journeys():
        if journey.id is None:
            continue
        for node in store.get_nodes_by_journey(journey.id):
            if node.screenshot:
                count += 1
                total += len(node.screenshot)
    return ScreenshotUsage(count=count, bytes=total)
