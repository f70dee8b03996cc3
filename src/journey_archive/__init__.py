"""Browsing journey archive: tree building, insights, export and import."""

from journey_archive.core.analysis.analyzer import generate_insights
from journey_archive.core.database.store import SqliteRecordStore
from journey_archive.core.exporter.exporter import export_journey, export_with_privacy_filter
from journey_archive.core.importer.loader import import_journey
from journey_archive.core.tree.builder import build_tree
from journey_archive.errors import FormatError, JourneyArchiveError, StorageError
from journey_archive.protocols import RecordStoreProtocol

__all__ = [
    "FormatError",
    "JourneyArchiveError",
    "RecordStoreProtocol",
    "SqliteRecordStore",
    "StorageError",
    "build_tree",
    "export_journey",
    "export_with_privacy_filter",
    "generate_insights",
    "import_journey",
]
