"""Persisted user settings with defaults."""

import copy
from collections.abc import Mapping
from typing import Any

from loguru import logger

from journey_archive.config import DEFAULT_SETTINGS, SENSITIVE_DOMAINS
from journey_archive.protocols import RecordStoreProtocol


def _parse_domains(value: Any) -> list[str]:
    if not value:
        return []
    if isinstance(value, str):
        value = value.splitlines()
    return [d.strip() for d in value if d and d.strip()]


def ensure_default_settings(store: RecordStoreProtocol) -> None:
    """Seed tracking settings on first use."""
    if store.get_setting("trackingEnabled") is None:
        store.set_setting("trackingEnabled", DEFAULT_SETTINGS["trackingEnabled"])
        store.set_setting("excludedDomains", DEFAULT_SETTINGS["excludedDomains"])
        logger.debug("Seeded default settings")


def load_settings(store: RecordStoreProtocol) -> dict[str, Any]:
    """Stored values layered over the defaults."""
    settings: dict[str, Any] = {}
    for key, default in DEFAULT_SETTINGS.items():
        value = store.get_setting(key)
        settings[key] = value if value is not None else copy.deepcopy(default)
    return settings


def save_settings(store: RecordStoreProtocol, values: Mapping[str, Any]) -> dict[str, Any]:
    """Merge ``values`` into the stored settings and persist the result.

    ``excludedDomains`` may be a list or newline-separated text. With
    ``autoExcludeSensitive`` on, the sensitive domain list is merged in.
    """
    settings = {**load_settings(store), **values}
    domains = _parse_domains(settings.get("excludedDomains"))
    if settings.get("autoExcludeSensitive"):
        domains = list(dict.fromkeys([*domains, *SENSITIVE_DOMAINS]))
    settings["excludedDomains"] = domains

    for key, value in settings.items():
        store.set_setting(key, value)
    logger.info("Saved {} settings", len(settings))
    return settings


def get_excluded_domains(store: RecordStoreProtocol) -> list[str]:
    """Stored excluded domains, or the default list if none were saved."""
    return _parse_domains(load_settings(store)["excludedDomains"])
