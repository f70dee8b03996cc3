"""Render journey trees as markdown."""

import io

from journey_archive.core.tree.builder import iter_preorder
from journey_archive.models.node import JourneyTree


def format_duration(ms: int) -> str:
    """Human-readable focus time: ``1h 2m``, ``3m 4s`` or ``5s``."""
    seconds = ms // 1000
    minutes = seconds // 60
    hours = minutes // 60
    if hours > 0:
        return f"{hours}h {minutes % 60}m"
    if minutes > 0:
        return f"{minutes}m {seconds % 60}s"
    return f"{seconds}s"


def render_tree_as_markdown(
    tree: JourneyTree | None,
    *,
    max_depth: int | None = None,
    include_notes: bool = True,
) -> str:
    """Render a journey tree as an indented markdown link list.

    Args:
        tree: Root of the (sub)tree to render.
        max_depth: Max levels below the root to include (None = unlimited).
        include_notes: Whether to include node notes.

    Returns:
        Markdown string with bullet-list hierarchy, empty for a missing tree.
    """
    out = io.StringIO()
    for tree_node, depth in iter_preorder(tree):
        if max_depth is not None and depth > max_depth:
            continue
        node = tree_node.node
        indent = "    " * depth

        title = (node.title or node.url).replace("\n", " ")
        line = f"{indent}- [{title}]({node.url})" if node.url else f"{indent}- {title}"
        if node.duration:
            line += f" ({format_duration(node.duration)})"
        if node.metadata.aha_moment:
            line += " **Aha!**"
        out.write(line + "\n")

        if include_notes and node.note:
            for note_line in node.note.split("\n"):
                out.write(f"{indent}  > {note_line}\n")

        # Truncation indicator when children are cut off by max_depth
        child_count = len(tree_node.children)
        if max_depth is not None and depth == max_depth and child_count > 0:
            child_indent = "    " * (depth + 1)
            noun = "child" if child_count == 1 else "children"
            out.write(f"{child_indent}- ... ({child_count} more {noun}, id={node.id})\n")

    return out.getvalue()
