"""
JSON File Storage Implementation

DESIGN DECISION: The snapshot lives in a single JSON file because:
1. The whole ledger of one person is small
2. The file is human-readable and doubles as a backup
3. No database setup required

Writes go to a temporary sibling file that then atomically replaces the
target, so a crash mid-write leaves the previous snapshot intact.

TRADEOFFS:
- Every save rewrites the whole file (fine at personal scale)
- No concurrent writers (one user, one device)
"""

import json
import os
import tempfile
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from pydantic import ValidationError
from tenacity import Retrying, retry_if_exception_type, stop_after_attempt, wait_exponential

from local_ledger.exceptions import CorruptSnapshotError, StorageError
from local_ledger.models.ledger import LedgerSnapshot
from local_ledger.services.storage.interface import SnapshotStorageInterface
from local_ledger.services.storage.migration import snapshot_from_document


class JsonFileSnapshotStorage(SnapshotStorageInterface):
    """Snapshot persisted as one camelCase JSON document on disk."""

    def __init__(
        self,
        path: Path,
        retry_attempts: int = 3,
        wait_multiplier: float = 0.5,
    ):
        """
        Args:
            path: Snapshot file. Parent directories are created on save.
            retry_attempts: Write attempts before a save is reported failed.
            wait_multiplier: Base of the exponential backoff between attempts
                (0 disables waiting).
        """
        self._path = Path(path)
        self._retry_attempts = retry_attempts
        self._wait_multiplier = wait_multiplier

    @property
    def path(self) -> Path:
        return self._path

    @property
    def description(self) -> str:
        return str(self._path)

    def load(self) -> Optional[LedgerSnapshot]:
        """Read, migrate and validate the snapshot file."""
        if not self._path.exists():
            return None
        try:
            text = self._path.read_text(encoding="utf-8")
        except OSError as e:
            raise StorageError(f"Failed to read snapshot: {e}")

        try:
            raw = json.loads(text)
            if not isinstance(raw, dict):
                raise ValueError("snapshot document is not a JSON object")
            return snapshot_from_document(raw)
        except (ValueError, ValidationError) as e:
            # json.JSONDecodeError is a ValueError
            aside = self._quarantine()
            raise CorruptSnapshotError(
                f"Snapshot {self._path} is unreadable (moved to {aside}): {e}"
            )

    def save(self, snapshot: LedgerSnapshot) -> bool:
        """Write the snapshot atomically, retrying transient OS errors."""
        payload = json.dumps(snapshot.to_document(), indent=2, ensure_ascii=False)
        retrying = Retrying(
            stop=stop_after_attempt(self._retry_attempts),
            wait=wait_exponential(multiplier=self._wait_multiplier, max=5),
            retry=retry_if_exception_type(OSError),
            reraise=True,
        )
        try:
            retrying(self._write_atomic, payload)
        except OSError as e:
            raise StorageError(f"Failed to save snapshot: {e}")
        return True

    def _write_atomic(self, payload: str) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(
            prefix=f".{self._path.name}.",
            suffix=".tmp",
            dir=self._path.parent,
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                handle.write(payload)
                handle.flush()
                os.fsync(handle.fileno())
            os.replace(tmp_name, self._path)
        except OSError:
            Path(tmp_name).unlink(missing_ok=True)
            raise

    def _quarantine(self) -> Path:
        """Move an unreadable snapshot aside so the next save does not destroy it."""
        stamp = datetime.now(timezone.utc).strftime("%Y%m%dT%H%M%S")
        aside = self._path.with_name(f"{self._path.name}.corrupt-{stamp}")
        try:
            os.replace(self._path, aside)
        except OSError as e:
            raise StorageError(f"Failed to move unreadable snapshot aside: {e}")
        return aside
