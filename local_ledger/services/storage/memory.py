"""
In-memory storage for tests and throwaway sessions.

Keeps the last saved document as JSON text, so a round trip through this
backend exercises the same serialization and migration as the file one.
"""

import json
from typing import Optional

from local_ledger.exceptions import CorruptSnapshotError, StorageError
from local_ledger.models.ledger import LedgerSnapshot
from local_ledger.services.storage.interface import SnapshotStorageInterface
from local_ledger.services.storage.migration import snapshot_from_document


class InMemorySnapshotStorage(SnapshotStorageInterface):
    """Snapshot kept as a JSON string in memory."""

    def __init__(self, document: Optional[str] = None):
        """
        Args:
            document: Pre-existing JSON text to load from, if any.
        """
        self.document = document
        self.save_count = 0
        self.fail_saves = False

    def load(self) -> Optional[LedgerSnapshot]:
        if self.document is None:
            return None
        try:
            raw = json.loads(self.document)
            if not isinstance(raw, dict):
                raise ValueError("snapshot document is not a JSON object")
            return snapshot_from_document(raw)
        except ValueError as e:
            # Covers json.JSONDecodeError and pydantic.ValidationError
            raise CorruptSnapshotError(f"Stored snapshot is unreadable: {e}")

    def save(self, snapshot: LedgerSnapshot) -> bool:
        if self.fail_saves:
            raise StorageError("Storage unavailable")
        self.document = json.dumps(snapshot.to_document())
        self.save_count += 1
        return True

