"""Configuration constants for journey-archive."""

import os
from pathlib import Path
from typing import Any

# Archive directory candidates. First existing directory is used.
DATA_DIRECTORIES: list[Path] = [
    Path("~/.local/share/journey-archive").expanduser(),
    Path("~/.journey-archive").expanduser(),
    Path("~/.config/journey-archive").expanduser(),
]

DATABASE_FILENAME = "journeys.db"

EXPORT_FORMAT_VERSION = "1.0"
EXPORT_FORMAT_NAME = "journey-export-v1"
PRODUCER_NAME = "journey-archive"

# Dead ends are leaves visited for less than this many seconds.
DEAD_END_THRESHOLD_SECONDS = 30.0

# How many entries the insights report keeps in its ranked lists.
INSIGHTS_TOP_N = 5

DEFAULT_SETTINGS: dict[str, Any] = {
    "trackingEnabled": True,
    "autoStartJourney": True,
    "screenshotsEnabled": True,
    "screenshotQuality": 50,
    "maxScreenshotAge": 30,
    "autoExcludeSensitive": True,
    "excludedDomains": ["banking.com", "mail.google.com"],
    "maxJourneyAge": 90,
    "defaultJourneyName": "Journey {date}",
}

# Merged into excludedDomains when autoExcludeSensitive is on.
SENSITIVE_DOMAINS: list[str] = [
    "bank",
    "chase.com",
    "wellsfargo.com",
    "bankofamerica.com",
    "paypal.com",
    "venmo.com",
    "healthcare",
    "medical",
    "therapy",
    "health.google.com",
    "privatehealth",
]

# URL schemes that belong to the browser itself and are never tracked.
UNTRACKED_URL_PREFIXES: tuple[str, ...] = ("chrome://", "chrome-extension://")


def resolve_data_directory() -> Path:
    """Return the archive directory.

    ``JOURNEY_ARCHIVE_DIR`` wins; otherwise the first existing candidate,
    falling back to the first candidate when none exists yet.
    """
    env_dir = os.environ.get("JOURNEY_ARCHIVE_DIR")
    if env_dir:
        return Path(env_dir).expanduser()
    for candidate in DATA_DIRECTORIES:
        if candidate.is_dir():
            return candidate
    return DATA_DIRECTORIES[0]
