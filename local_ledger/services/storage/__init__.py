"""
Storage Services Package

Provides the abstract snapshot interface and its implementations.
The JSON file backend is the default; the in-memory one backs tests.
"""

from local_ledger.services.storage.interface import SnapshotStorageInterface
from local_ledger.services.storage.json_file import JsonFileSnapshotStorage
from local_ledger.services.storage.memory import InMemorySnapshotStorage
from local_ledger.services.storage.migration import migrate_snapshot, snapshot_from_document

__all__ = [
    # Interface
    "SnapshotStorageInterface",
    # Implementations
    "InMemorySnapshotStorage",
    "JsonFileSnapshotStorage",
    # Migration
    "migrate_snapshot",
    "snapshot_from_document",
]
