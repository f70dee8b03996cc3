"""Protocols for dependency injection in the journey archive."""

from typing import Any, Protocol, runtime_checkable

from journey_archive.models.node import Journey, Node


@runtime_checkable
class RecordStoreProtocol(Protocol):
    """Persistence for journeys, nodes and settings.

    Implementations raise ``StorageError`` when the backing store fails.
    """

    def create_journey(self, journey: Journey) -> int:
        """Insert a journey (its ``id`` is ignored) and return the new id."""
        ...

    def get_journey(self, journey_id: int) -> Journey | None:
        """Return the journey, or None if it does not exist."""
        ...

    def update_journey(self, journey: Journey) -> None:
        """Overwrite a stored journey."""
        ...

    def get_all_journeys(self) -> list[Journey]:
        """Return every journey, oldest first."""
        ...

    def delete_journey(self, journey_id: int) -> None:
        """Delete a journey and all of its nodes."""
        ...

    def create_node(self, node: Node) -> None:
        """Insert a new node. Fails if the id already exists."""
        ...

    def get_node(self, node_id: str) -> Node | None:
        """Return the node, or None if it does not exist."""
        ...

    def update_node(self, node: Node) -> None:
        """Overwrite a stored node."""
        ...

    def get_nodes_by_journey(self, journey_id: int) -> list[Node]:
        """Return all nodes of a journey in insertion order."""
        ...

    def get_setting(self, key: str) -> Any | None:
        """Return a setting value, or None if unset."""
        ...

    def set_setting(self, key: str, value: Any) -> None:
        """Persist a setting value."""
        ...
