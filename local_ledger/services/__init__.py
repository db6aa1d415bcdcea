"""Services package."""

from local_ledger.services.backup import export_snapshot, parse_backup
from local_ledger.services.storage import (
    InMemorySnapshotStorage,
    JsonFileSnapshotStorage,
    SnapshotStorageInterface,
    migrate_snapshot,
)

__all__ = [
    # Backup
    "export_snapshot",
    "parse_backup",
    # Storage services
    "InMemorySnapshotStorage",
    "JsonFileSnapshotStorage",
    "SnapshotStorageInterface",
    "migrate_snapshot",
]
