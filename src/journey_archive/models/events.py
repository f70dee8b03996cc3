"""Browser tab events consumed by the tracker."""

from dataclasses import dataclass


@dataclass(frozen=True)
class TabCreated:
    tab_id: int
    opener_tab_id: int | None = None


@dataclass(frozen=True)
class NavigationTargetCreated:
    """A link was opened into a new tab from ``source_tab_id``."""

    tab_id: int
    source_tab_id: int


@dataclass(frozen=True)
class TabNavigationComplete:
    tab_id: int
    url: str
    title: str = ""
    opener_tab_id: int | None = None


@dataclass(frozen=True)
class TabActivated:
    tab_id: int


@dataclass(frozen=True)
class TabRemoved:
    tab_id: int


TabEvent = TabCreated | NavigationTargetCreated | TabNavigationComplete | TabActivated | TabRemoved
