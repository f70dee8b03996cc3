"""MCP server exposing journey trees, insights and export/import tools."""

import asyncio
import os
import sqlite3
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from loguru import logger
from mcp.server.fastmcp import Context, FastMCP

from journey_archive.config import DATABASE_FILENAME, resolve_data_directory
from journey_archive.core.analysis.analyzer import generate_insights, summarize_highlights
from journey_archive.core.analysis.stats import compute_stats
from journey_archive.core.database.schema import migrate_schema
from journey_archive.core.database.store import SqliteRecordStore
from journey_archive.core.exporter.exporter import export_journey, export_with_privacy_filter
from journey_archive.core.exporter.json_writer import to_wire
from journey_archive.core.importer.loader import import_journey
from journey_archive.core.settings import get_excluded_domains
from journey_archive.core.tree.builder import build_tree
from journey_archive.core.tree.markdown import render_tree_as_markdown
from journey_archive.errors import FormatError, JourneyNotFoundError, StorageError
from journey_archive.protocols import RecordStoreProtocol

# --- Core functions (testable without MCP context) ---


def journey_list(store: RecordStoreProtocol) -> dict[str, Any]:
    """List all journeys with their node counts."""
    journeys = []
    for journey in store.get_all_journeys():
        if journey.id is None:
            continue
        entry = to_wire(journey)
        entry["nodeCount"] = len(store.get_nodes_by_journey(journey.id))
        journeys.append(entry)
    return {"journeys": journeys, "count": len(journeys)}


def journey_read_tree(
    store: RecordStoreProtocol,
    *,
    journey_id: int,
    max_depth: int | None = None,
    output_format: str = "markdown",
) -> dict[str, Any]:
    """Read a journey tree as markdown or nested JSON.

    Args:
        journey_id: Journey to read.
        max_depth: Max depth levels (markdown only, None = unlimited).
        output_format: "markdown" or "json".
    """
    journey = store.get_journey(journey_id)
    if journey is None:
        return {"error": f"Journey {journey_id} not found."}

    nodes = store.get_nodes_by_journey(journey_id)
    tree = build_tree(nodes)
    result: dict[str, Any] = {
        "journey": to_wire(journey),
        "stats": to_wire(compute_stats(nodes, tree)),
    }
    if output_format == "json":
        result["tree"] = to_wire(tree)
    else:
        result["content"] = render_tree_as_markdown(tree, max_depth=max_depth)
    return result


def journey_get_insights(store: RecordStoreProtocol, *, journey_id: int) -> dict[str, Any]:
    """Composite insights report plus headline highlights."""
    try:
        report = generate_insights(store, journey_id)
    except JourneyNotFoundError as e:
        return {"error": str(e)}
    return {
        "insights": to_wire(report),
        "highlights": to_wire(summarize_highlights(report)),
    }


def journey_export(
    store: RecordStoreProtocol,
    *,
    journey_id: int,
    include_screenshots: bool = False,
    private: bool = False,
) -> dict[str, Any]:
    """Export a journey document; ``private`` applies the excluded-domain filter."""
    try:
        if private:
            return export_with_privacy_filter(store, journey_id, get_excluded_domains(store))
        return export_journey(store, journey_id, include_screenshots=include_screenshots)
    except JourneyNotFoundError as e:
        return {"error": str(e)}


def journey_import(store: RecordStoreProtocol, *, document: dict[str, Any]) -> dict[str, Any]:
    """Import an export document as a new shared journey."""
    try:
        journey_id = import_journey(store, document)
    except (FormatError, StorageError) as e:
        return {"success": False, "error": str(e)}
    return {"success": True, "journeyId": journey_id}


# --- MCP Server Setup ---


@dataclass
class ServerContext:
    """Shared resources for the MCP server lifetime."""

    conn: sqlite3.Connection
    store: SqliteRecordStore
    lock: asyncio.Lock = field(default_factory=asyncio.Lock)


def _resolve_db_path() -> Path:
    return resolve_data_directory() / DATABASE_FILENAME


@asynccontextmanager
async def server_lifespan(_server: FastMCP) -> AsyncIterator[ServerContext]:
    """Open database on startup, close on shutdown."""
    db_path = _resolve_db_path()
    db_path.parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(str(db_path), check_same_thread=False)
    try:
        migrate_schema(conn)
        logger.info("Serving journeys from {}", db_path)
        yield ServerContext(conn=conn, store=SqliteRecordStore(conn))
    finally:
        conn.close()


mcp_server = FastMCP(
    "journey-archive",
    instructions="""\
Journeys are browsing sessions stored as trees: each node is a visited page and
its children are the pages opened from it.

1. Call journey_list_tool to find a journey id.
2. Call journey_read_tree_tool for the structure (use max_depth for big trees).
3. Call journey_insights_tool for dead ends, topic drift, the longest path,
   where time went and the user's Aha! moments.
""",
    lifespan=server_lifespan,
)


def _ctx(mcp_ctx: Context) -> ServerContext:
    return mcp_ctx.request_context.lifespan_context  # type: ignore[return-value]


# --- MCP Tool Wrappers ---


@mcp_server.tool()
async def journey_list_tool(ctx: Context) -> dict[str, Any]:
    """List all recorded journeys with node counts."""
    server = _ctx(ctx)
    async with server.lock:
        return journey_list(server.store)


@mcp_server.tool()
async def journey_read_tree_tool(
    ctx: Context,
    journey_id: int,
    max_depth: int | None = None,
    output_format: str = "markdown",
) -> dict[str, Any]:
    """Read a journey's page tree.

    Args:
        journey_id: Journey id from journey_list_tool.
        max_depth: Max depth levels (None = unlimited).
        output_format: "markdown" (human-readable) or "json" (structured).
    """
    server = _ctx(ctx)
    async with server.lock:
        return journey_read_tree(
            server.store, journey_id=journey_id, max_depth=max_depth, output_format=output_format
        )


@mcp_server.tool()
async def journey_insights_tool(ctx: Context, journey_id: int) -> dict[str, Any]:
    """Analyze a journey: dead ends, topic drift, longest path, time spent, Aha! moments.

    Args:
        journey_id: Journey id from journey_list_tool.
    """
    server = _ctx(ctx)
    async with server.lock:
        return journey_get_insights(server.store, journey_id=journey_id)


@mcp_server.tool()
async def journey_export_tool(
    ctx: Context,
    journey_id: int,
    include_screenshots: bool = False,
    private: bool = True,
) -> dict[str, Any]:
    """Export a journey as a portable JSON document.

    Args:
        journey_id: Journey id from journey_list_tool.
        include_screenshots: Keep page screenshots (large). Ignored when private.
        private: Drop pages on the user's excluded domains.
    """
    server = _ctx(ctx)
    async with server.lock:
        return journey_export(
            server.store,
            journey_id=journey_id,
            include_screenshots=include_screenshots,
            private=private,
        )


@mcp_server.tool()
async def journey_import_tool(ctx: Context, document: dict[str, Any]) -> dict[str, Any]:
    """Import a journey export document as a new shared journey.

    Args:
        document: A document produced by journey_export_tool.
    """
    server = _ctx(ctx)
    async with server.lock:
        return journey_import(server.store, document=document)


def run_mcp_server() -> None:
    """Run the MCP server with stdio transport."""
    from journey_archive.logging_config import configure_logging

    log_dir = os.environ.get("JOURNEY_ARCHIVE_LOG_DIR")
    configure_logging(verbose=False, log_file=Path(log_dir) / "server.log" if log_dir else None)
    mcp_server.run(transport="stdio")
