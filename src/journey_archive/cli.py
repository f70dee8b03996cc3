"""CLI for the journey archive (insights, export/import, MCP server)."""

import json
import sqlite3
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import UTC, datetime
from pathlib import Path
from typing import Annotated, Any

import typer
from loguru import logger

from journey_archive.config import DATABASE_FILENAME, resolve_data_directory
from journey_archive.core.analysis.analyzer import generate_insights, summarize_highlights
from journey_archive.core.analysis.stats import compute_stats
from journey_archive.core.analysis.timeline import build_timeline
from journey_archive.core.database.schema import migrate_schema
from journey_archive.core.database.store import SqliteRecordStore
from journey_archive.core.exporter.exporter import (
    export_all,
    export_journey,
    export_with_privacy_filter,
    write_export_file,
)
from journey_archive.core.exporter.json_writer import to_wire
from journey_archive.core.importer.loader import import_journey, read_export_file, restore_backup
from journey_archive.core.maintenance import remove_old_screenshots, screenshot_usage
from journey_archive.core.settings import get_excluded_domains, load_settings, save_settings
from journey_archive.core.tree.builder import build_tree
from journey_archive.core.tree.markdown import format_duration, render_tree_as_markdown
from journey_archive.errors import JourneyArchiveError
from journey_archive.logging_config import configure_logging

app = typer.Typer(help="Journey archive: analyze, export and import browsing journeys.")

DataDirOption = Annotated[
    Path | None,
    typer.Option("--data-dir", "-d", help="Archive database directory"),
]
JsonOption = Annotated[bool, typer.Option("--json", "-j", help="Output as JSON")]


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
) -> None:
    configure_logging(verbose=verbose)


@contextmanager
def _open_store(data_dir: Path | None, *, create: bool = False) -> Iterator[SqliteRecordStore]:
    """Open the archive database, exiting if it is missing and ``create`` is off."""
    dst = data_dir or resolve_data_directory()
    db_path = dst / DATABASE_FILENAME
    if not db_path.exists():
        if not create:
            logger.error("Archive database not found: {}. Run 'start' or 'import' first.", db_path)
            raise typer.Exit(1)
        dst.mkdir(parents=True, exist_ok=True)

    conn = sqlite3.connect(str(db_path))
    try:
        migrate_schema(conn)
        yield SqliteRecordStore(conn)
    except JourneyArchiveError as e:
        logger.error("{}", e)
        raise typer.Exit(1) from e
    finally:
        conn.close()


def _echo_json(data: Any) -> None:
    typer.echo(json.dumps(to_wire(data), indent=2))


def _format_ts(ms: int) -> str:
    return f"{datetime.fromtimestamp(ms / 1000, tz=UTC):%Y-%m-%d %H:%M}"


@app.command()
def start(
    title: str = typer.Argument("Untitled Journey", help="Journey title"),
    data_dir: DataDirOption = None,
) -> None:
    """Start a new journey and make it the current one."""
    from journey_archive.core.tracking.tracker import JourneyTracker

    with _open_store(data_dir, create=True) as store:
        journey_id = JourneyTracker(store).start_new_journey(title)
        typer.echo(f"Started journey {journey_id}: {title}")


@app.command()
def journeys(data_dir: DataDirOption = None, output_json: JsonOption = False) -> None:
    """List all journeys."""
    with _open_store(data_dir) as store:
        rows = []
        for journey in store.get_all_journeys():
            if journey.id is None:
                continue
            rows.append((journey, len(store.get_nodes_by_journey(journey.id))))

        if output_json:
            _echo_json(
                {
                    "journeys": [{**to_wire(j), "nodeCount": count} for j, count in rows],
                    "count": len(rows),
                }
            )
            return

        typer.echo(f"{len(rows)} journeys:\n")
        for journey, count in rows:
            shared = " (shared)" if journey.shared else ""
            typer.echo(
                f"  [{journey.id}] {journey.title}{shared} - {count} nodes, "
                f"created {_format_ts(journey.created)}"
            )


@app.command()
def show(
    journey_id: int = typer.Argument(..., help="Journey id"),
    max_depth: Annotated[
        int | None,
        typer.Option("--max-depth", "-m", help="Max depth levels to render"),
    ] = None,
    data_dir: DataDirOption = None,
    output_json: JsonOption = False,
) -> None:
    """Show a journey tree as markdown."""
    with _open_store(data_dir) as store:
        tree = build_tree(store.get_nodes_by_journey(journey_id))
        if output_json:
            _echo_json({"journeyId": journey_id, "tree": tree})
        elif tree is None:
            typer.echo(f"Journey {journey_id} has no nodes.")
        else:
            typer.echo(render_tree_as_markdown(tree, max_depth=max_depth))


@app.command()
def stats(
    journey_id: int = typer.Argument(..., help="Journey id"),
    data_dir: DataDirOption = None,
    output_json: JsonOption = False,
) -> None:
    """Show node count, durations and depth of a journey."""
    with _open_store(data_dir) as store:
        nodes = store.get_nodes_by_journey(journey_id)
        result = compute_stats(nodes, build_tree(nodes))
        if output_json:
            _echo_json(result)
            return
        typer.echo(f"Nodes:          {result.node_count}")
        typer.echo(f"Total time:     {format_duration(result.total_duration)}")
        typer.echo(f"Average time:   {format_duration(int(result.avg_duration))}")
        typer.echo(f"Max depth:      {result.max_depth}")


@app.command()
def insights(
    journey_id: int = typer.Argument(..., help="Journey id"),
    data_dir: DataDirOption = None,
    output_json: JsonOption = False,
) -> None:
    """Analyze a journey: dead ends, topic drift, longest path, Aha! moments."""
    with _open_store(data_dir) as store:
        report = generate_insights(store, journey_id)
        highlights = summarize_highlights(report)
        if output_json:
            _echo_json({"insights": report, "highlights": highlights})
            return

        s = report.summary
        typer.echo(
            f"{s.total_nodes} nodes, {format_duration(s.total_duration)} total, "
            f"depth {s.max_depth}, branch factor {s.avg_branch_factor:.2f}\n"
        )
        for h in highlights:
            typer.echo(f"  * {h.title}: {h.description}")
        if report.longest_path:
            typer.echo("\nLongest path:")
            for i, entry in enumerate(report.longest_path):
                typer.echo(f"  {'  ' * i}{entry.title or entry.url}")
        if report.most_time_spent:
            typer.echo("\nMost time spent:")
            for t in report.most_time_spent:
                typer.echo(f"  {format_duration(t.duration):>8}  {t.title or t.url}")
        if report.dead_ends:
            typer.echo("\nDead ends:")
            for d in report.dead_ends:
                typer.echo(f"  {d.duration:5.1f}s  {d.title or d.url}")


@app.command()
def timeline(
    journey_id: int = typer.Argument(..., help="Journey id"),
    data_dir: DataDirOption = None,
    output_json: JsonOption = False,
) -> None:
    """List a journey's pages in the order they were opened."""
    with _open_store(data_dir) as store:
        entries = build_timeline(store.get_nodes_by_journey(journey_id))
        if output_json:
            _echo_json({"timeline": entries, "count": len(entries)})
            return
        for e in entries:
            typer.echo(f"  {e.position:3d}. {_format_ts(e.timestamp)}  {e.title or e.url}")


@app.command(name="export")
def export_cmd(
    journey_id: int = typer.Argument(..., help="Journey id"),
    output: Annotated[
        Path | None,
        typer.Option("--output", "-o", help="Write to this file instead of stdout"),
    ] = None,
    screenshots: bool = typer.Option(False, "--screenshots", help="Include screenshots"),
    private: bool = typer.Option(
        False, "--private", "-p", help="Drop nodes on excluded domains (from settings)"
    ),
    exclude: Annotated[
        list[str] | None,
        typer.Option("--exclude", "-x", help="Extra domain to exclude (implies --private)"),
    ] = None,
    data_dir: DataDirOption = None,
) -> None:
    """Export a journey as a JSON document."""
    with _open_store(data_dir) as store:
        if private or exclude:
            domains = [*get_excluded_domains(store), *(exclude or [])]
            document = export_with_privacy_filter(store, journey_id, domains)
        else:
            document = export_journey(store, journey_id, include_screenshots=screenshots)

    if output is None:
        typer.echo(json.dumps(document, indent=2))
    else:
        write_export_file(output, document)
        typer.echo(f"Exported {len(document['nodes'])} nodes to {output}")


@app.command(name="import")
def import_cmd(
    path: Path = typer.Argument(..., help="Export document to import"),
    data_dir: DataDirOption = None,
) -> None:
    """Import an exported journey as a new shared journey."""
    with _open_store(data_dir, create=True) as store:
        journey_id = import_journey(store, read_export_file(path))
        typer.echo(f"Imported journey {journey_id}")


@app.command()
def backup(
    output: Path = typer.Argument(..., help="Backup file to write"),
    data_dir: DataDirOption = None,
) -> None:
    """Write all journeys to a single backup file."""
    with _open_store(data_dir) as store:
        document = export_all(store)
    write_export_file(output, document)
    typer.echo(f"Backed up {len(document['journeys'])} journeys to {output}")


@app.command()
def restore(
    path: Path = typer.Argument(..., help="Backup file to restore"),
    data_dir: DataDirOption = None,
) -> None:
    """Re-create all journeys from a backup file."""
    with _open_store(data_dir, create=True) as store:
        new_ids = restore_backup(store, read_export_file(path))
        typer.echo(f"Restored {len(new_ids)} journeys")


@app.command()
def delete(
    journey_id: int = typer.Argument(..., help="Journey id"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Do not ask for confirmation"),
    data_dir: DataDirOption = None,
) -> None:
    """Delete a journey and all of its nodes."""
    with _open_store(data_dir) as store:
        journey = store.get_journey(journey_id)
        if journey is None:
            typer.echo(f"Journey {journey_id} not found.")
            raise typer.Exit(1)
        if not yes:
            typer.confirm(f"Delete journey {journey_id} ({journey.title})?", abort=True)
        store.delete_journey(journey_id)
        typer.echo(f"Deleted journey {journey_id}")


@app.command()
def settings(
    assignments: Annotated[
        list[str] | None,
        typer.Option("--set", "-s", help="KEY=VALUE, VALUE parsed as JSON when possible"),
    ] = None,
    data_dir: DataDirOption = None,
) -> None:
    """Show settings, or update them with --set."""
    with _open_store(data_dir, create=True) as store:
        if assignments:
            updates: dict[str, Any] = {}
            for assignment in assignments:
                key, sep, raw = assignment.partition("=")
                if not sep:
                    typer.echo(f"Expected KEY=VALUE, got {assignment!r}")
                    raise typer.Exit(1)
                try:
                    updates[key.strip()] = json.loads(raw)
                except json.JSONDecodeError:
                    updates[key.strip()] = raw
            current = save_settings(store, updates)
        else:
            current = load_settings(store)
        typer.echo(json.dumps(current, indent=2))


@app.command(name="clean-screenshots")
def clean_screenshots(
    max_age_days: Annotated[
        int | None,
        typer.Option("--max-age-days", help="Defaults to the maxScreenshotAge setting"),
    ] = None,
    data_dir: DataDirOption = None,
) -> None:
    """Remove old screenshots and report remaining screenshot storage."""
    with _open_store(data_dir) as store:
        days = max_age_days if max_age_days is not None else load_settings(store)["maxScreenshotAge"]
        removed = remove_old_screenshots(store, days)
        usage = screenshot_usage(store)
        typer.echo(
            f"Removed {removed} screenshots; {usage.count} remain (~{usage.megabytes} MB)"
        )


@app.command()
def serve() -> None:
    """Start the MCP server (stdio transport)."""
    from journey_archive.mcp.server import run_mcp_server

    run_mcp_server()
