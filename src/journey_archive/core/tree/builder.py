"""Build a rooted journey tree from parent-linked nodes."""

from collections.abc import Callable, Iterable, Iterator

from loguru import logger

from journey_archive.models.node import JourneyTree, Node
from journey_archive.protocols import RecordStoreProtocol


def build_tree(nodes: Iterable[Node]) -> JourneyTree | None:
    """Link nodes into a tree via their ``parent_id``.

    Children keep input order. A node whose parent is missing from the input
    (or is the node itself) is a root candidate, and the *last* candidate
    becomes the root; other candidates and their subtrees are left out.

    Returns:
        The root, or None when ``nodes`` is empty.
    """
    by_id: dict[str, JourneyTree] = {}
    for node in nodes:
        by_id[node.id] = JourneyTree(node=node)

    candidates: list[JourneyTree] = []
    for tree_node in by_id.values():
        parent_id = tree_node.node.parent_id
        if parent_id and parent_id != tree_node.id and parent_id in by_id:
            by_id[parent_id].children.append(tree_node)
        else:
            candidates.append(tree_node)

    if not candidates:
        return None
    if len(candidates) > 1:
        logger.debug(
            "Multiple root candidates {}, keeping {}",
            [c.id for c in candidates],
            candidates[-1].id,
        )
    return candidates[-1]


def build_journey_tree(store: RecordStoreProtocol, journey_id: int) -> JourneyTree | None:
    """Fetch a journey's nodes and build its tree."""
    return build_tree(store.get_nodes_by_journey(journey_id))


def iter_preorder(tree: JourneyTree | None, depth: int = 0) -> Iterator[tuple[JourneyTree, int]]:
    """Yield ``(tree_node, depth)`` pairs, parents before children."""
    if tree is None:
        return
    yield tree, depth
    for child in tree.children:
        yield from iter_preorder(child, depth + 1)


def prune_tree(
    tree: JourneyTree | None, keep: Callable[[Node], bool]
) -> JourneyTree | None:
    """Copy ``tree`` without the nodes rejected by ``keep`` (and their subtrees)."""
    if tree is None or not keep(tree.node):
        return None
    children = [pruned for c in tree.children if (pruned := prune_tree(c, keep)) is not None]
    return JourneyTree(node=tree.node, children=children)
