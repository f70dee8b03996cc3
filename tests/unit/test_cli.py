"""Tests for the journey-archive CLI."""

import json
import sqlite3
from collections.abc import Iterator
from pathlib import Path

import pytest
from typer.testing import CliRunner, Result

from journey_archive.cli import app
from journey_archive.config import DATABASE_FILENAME
from journey_archive.core.database.schema import create_schema
from journey_archive.core.database.store import SqliteRecordStore
from journey_archive.logging_config import configure_logging
from tests.unit.fakes import populate_sample

runner = CliRunner()


@pytest.fixture(autouse=True)
def _restore_logging() -> Iterator[None]:
    """The CLI points loguru at the runner's stderr, which closes after each invoke."""
    yield
    configure_logging()


@pytest.fixture
def data_dir(tmp_path: Path) -> Path:
    """Archive directory holding the sample journey (id 1)."""
    data = tmp_path / "archive"
    data.mkdir()
    conn = sqlite3.connect(str(data / DATABASE_FILENAME))
    create_schema(conn)
    populate_sample(SqliteRecordStore(conn))
    conn.close()
    return data


def _invoke(*args: str) -> Result:
    return runner.invoke(app, list(args))


def test_missing_database_exits_with_error(tmp_path: Path) -> None:
    result = _invoke("journeys", "--data-dir", str(tmp_path / "nothing"))
    assert result.exit_code == 1


def test_journeys_lists_sample(data_dir: Path) -> None:
    result = _invoke("journeys", "--data-dir", str(data_dir))
    assert result.exit_code == 0, result.output
    assert "[1] Learning Rust - 6 nodes" in result.output


def test_journeys_json(data_dir: Path) -> None:
    result = _invoke("journeys", "--json", "--data-dir", str(data_dir))
    assert result.exit_code == 0, result.output
    parsed = json.loads(result.output)
    assert parsed["count"] == 1
    assert parsed["journeys"][0]["nodeCount"] == 6
    assert parsed["journeys"][0]["rootNodeId"] == "n_root"


def test_show_renders_markdown(data_dir: Path) -> None:
    result = _invoke("show", "1", "--max-depth", "1", "--data-dir", str(data_dir))
    assert result.exit_code == 0, result.output
    assert "[asyncio docs]" in result.output
    assert "(1 more child, id=n_b)" in result.output


def test_show_json_tree(data_dir: Path) -> None:
    result = _invoke("show", "1", "--json", "--data-dir", str(data_dir))
    assert result.exit_code == 0, result.output
    parsed = json.loads(result.output)
    assert parsed["tree"]["id"] == "n_root"
    assert len(parsed["tree"]["children"]) == 3


def test_stats_json(data_dir: Path) -> None:
    result = _invoke("stats", "1", "--json", "--data-dir", str(data_dir))
    assert result.exit_code == 0, result.output
    assert json.loads(result.output) == {
        "nodeCount": 6,
        "totalDuration": 235_000,
        "maxDepth": 2,
        "avgDuration": pytest.approx(235_000 / 6),
    }


def test_insights_text(data_dir: Path) -> None:
    result = _invoke("insights", "1", "--data-dir", str(data_dir))
    assert result.exit_code == 0, result.output
    assert "Dead Ends: 2 pages with quick exits" in result.output
    assert "Longest path:" in result.output
    assert "The Rust Book" in result.output


def test_insights_json(data_dir: Path) -> None:
    result = _invoke("insights", "1", "--json", "--data-dir", str(data_dir))
    assert result.exit_code == 0, result.output
    parsed = json.loads(result.output)
    assert parsed["insights"]["summary"]["totalNodes"] == 6
    assert [p["nodeId"] for p in parsed["insights"]["longestPath"]] == ["n_root", "n_b", "n_c"]
    assert {h["kind"] for h in parsed["highlights"]} == {"dead_ends", "aha_moments", "topic_drift"}


def test_insights_unknown_journey(data_dir: Path) -> None:
    result = _invoke("insights", "99", "--data-dir", str(data_dir))
    assert result.exit_code == 1


def test_timeline_json(data_dir: Path) -> None:
    result = _invoke("timeline", "1", "--json", "--data-dir", str(data_dir))
    assert result.exit_code == 0, result.output
    parsed = json.loads(result.output)
    assert parsed["count"] == 6
    assert parsed["timeline"][0]["nodeId"] == "n_root"


def test_export_to_stdout(data_dir: Path) -> None:
    result = _invoke("export", "1", "--data-dir", str(data_dir))
    assert result.exit_code == 0, result.output
    parsed = json.loads(result.output)
    assert parsed["formatVersion"] == "1.0"
    assert all("screenshot" not in n for n in parsed["nodes"])


def test_private_export_then_import(data_dir: Path, tmp_path: Path) -> None:
    out = tmp_path / "shared.json"
    result = _invoke(
        "export", "1", "--exclude", "rust-lang.org", "-o", str(out), "--data-dir", str(data_dir)
    )
    assert result.exit_code == 0, result.output
    document = json.loads(out.read_text())
    # mail.google.com comes from the default excluded domains
    assert {n["id"] for n in document["nodes"]} == {"n_root", "n_a", "n_e"}

    result = _invoke("import", str(out), "--data-dir", str(data_dir))
    assert result.exit_code == 0, result.output
    assert "Imported journey 2" in result.output

    result = _invoke("journeys", "--json", "--data-dir", str(data_dir))
    imported = json.loads(result.output)["journeys"][1]
    assert imported["shared"] is True
    assert imported["nodeCount"] == 3


def test_import_rejects_invalid_document(tmp_path: Path) -> None:
    bad = tmp_path / "bad.json"
    bad.write_text(json.dumps({"formatVersion": "1.0", "journey": {"title": "x"}}))
    result = _invoke("import", str(bad), "--data-dir", str(tmp_path / "new"))
    assert result.exit_code == 1

    conn = sqlite3.connect(str(tmp_path / "new" / DATABASE_FILENAME))
    assert conn.execute("SELECT COUNT(*) FROM journeys").fetchone()[0] == 0
    conn.close()


def test_backup_and_restore(data_dir: Path, tmp_path: Path) -> None:
    backup = tmp_path / "backup.json"
    result = _invoke("backup", str(backup), "--data-dir", str(data_dir))
    assert result.exit_code == 0, result.output

    fresh = tmp_path / "fresh"
    result = _invoke("restore", str(backup), "--data-dir", str(fresh))
    assert result.exit_code == 0, result.output
    assert "Restored 1 journeys" in result.output

    result = _invoke("stats", "1", "--json", "--data-dir", str(fresh))
    assert json.loads(result.output)["nodeCount"] == 6


def test_delete_requires_confirmation(data_dir: Path) -> None:
    result = runner.invoke(app, ["delete", "1", "--data-dir", str(data_dir)], input="n\n")
    assert result.exit_code == 1

    result = _invoke("delete", "1", "--yes", "--data-dir", str(data_dir))
    assert result.exit_code == 0, result.output
    result = _invoke("journeys", "--json", "--data-dir", str(data_dir))
    assert json.loads(result.output)["count"] == 0


def test_settings_set_and_show(tmp_path: Path) -> None:
    data = tmp_path / "settings"
    result = _invoke(
        "settings",
        "--set", "screenshotQuality=80",
        "--set", "autoExcludeSensitive=false",
        "--set", "excludedDomains=[\"corp.example\"]",
        "--data-dir", str(data),
    )
    assert result.exit_code == 0, result.output

    result = _invoke("settings", "--data-dir", str(data))
    assert result.exit_code == 0, result.output
    shown = json.loads(result.output)
    assert shown["screenshotQuality"] == 80
    assert shown["excludedDomains"] == ["corp.example"]


def test_settings_rejects_bad_assignment(tmp_path: Path) -> None:
    result = _invoke("settings", "--set", "noequals", "--data-dir", str(tmp_path))
    assert result.exit_code == 1


def test_start_creates_journey(tmp_path: Path) -> None:
    result = _invoke("start", "Reading list", "--data-dir", str(tmp_path))
    assert result.exit_code == 0, result.output
    assert "Started journey 1: Reading list" in result.output


def test_clean_screenshots(data_dir: Path) -> None:
    result = _invoke("clean-screenshots", "--max-age-days", "1", "--data-dir", str(data_dir))
    assert result.exit_code == 0, result.output
    assert "Removed 1 screenshots; 0 remain" in result.output


def test_serve_help() -> None:
    result = _invoke("serve", "--help")
    assert result.exit_code == 0, result.output
    assert "MCP" in result.output
