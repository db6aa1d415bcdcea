"""
Ledger Store

Holds the one authoritative snapshot and applies every change to it.

DESIGN DECISION: A mutation is a pure function from the current snapshot
to the next one. The store:
1. Computes the next snapshot from the transform
2. Lets each post-processor derive linked records from (previous, next)
3. Swaps the held snapshot
4. Writes the whole snapshot once

If the transform or a post-processor raises, nothing is swapped and nothing
is written. If the write fails, memory stays authoritative: the failure is
logged, `has_pending_write` is set, and the next successful write (always
the full snapshot) catches the durable copy up.
"""

from typing import Callable, Optional, Sequence

from pydantic import BaseModel, ConfigDict

from local_ledger.audit import AuditLogger
from local_ledger.exceptions import CorruptSnapshotError, StorageError
from local_ledger.models.ledger import LedgerSnapshot, default_snapshot
from local_ledger.services.storage import SnapshotStorageInterface

Transform = Callable[[LedgerSnapshot], LedgerSnapshot]
PostProcessor = Callable[[LedgerSnapshot, LedgerSnapshot], LedgerSnapshot]


class MutationResult(BaseModel):
    """What a committed mutation changed."""

    model_config = ConfigDict(frozen=True)

    operation: str
    previous: LedgerSnapshot
    current: LedgerSnapshot
    changed: list[str]
    saved: bool


def changed_sections(previous: LedgerSnapshot, current: LedgerSnapshot) -> list[str]:
    """Names of the top-level snapshot fields that differ."""
    return [
        name for name in LedgerSnapshot.model_fields
        if getattr(previous, name) != getattr(current, name)
    ]


class LedgerStore:
    """
    Single source of truth for the ledger.

    Usage:
        store = LedgerStore.hydrate(JsonFileSnapshotStorage(path))
        store.mutate(lambda s: revise(s, incomes=[*s.incomes, income]), "add_income")
    """

    def __init__(
        self,
        storage: SnapshotStorageInterface,
        snapshot: Optional[LedgerSnapshot] = None,
        audit_logger: Optional[AuditLogger] = None,
        post_processors: Sequence[PostProcessor] = (),
    ):
        self._storage = storage
        self._snapshot = snapshot if snapshot is not None else default_snapshot()
        self._audit_logger = audit_logger or AuditLogger()
        self._post_processors = list(post_processors)
        self._pending_write = False

    @classmethod
    def hydrate(
        cls,
        storage: SnapshotStorageInterface,
        audit_logger: Optional[AuditLogger] = None,
        post_processors: Sequence[PostProcessor] = (),
        currency: str = "INR",
    ) -> "LedgerStore":
        """
        Load the persisted snapshot once and build a store around it.

        Nothing persisted -> empty default snapshot.
        Unreadable snapshot -> logged, empty default snapshot.
        """
        audit_logger = audit_logger or AuditLogger()
        try:
            snapshot = storage.load()
            source = storage.description if snapshot is not None else "defaults"
        except CorruptSnapshotError as e:
            audit_logger.log_corrupt_snapshot(str(e))
            snapshot = None
            source = "defaults"

        if snapshot is None:
            snapshot = default_snapshot(currency)

        audit_logger.log_hydrated(source, {
            name: len(getattr(snapshot, name))
            for name in LedgerSnapshot.model_fields
            if isinstance(getattr(snapshot, name), tuple)
        })
        return cls(
            storage=storage,
            snapshot=snapshot,
            audit_logger=audit_logger,
            post_processors=post_processors,
        )

    @property
    def has_pending_write(self) -> bool:
        """True when the last write failed and memory is ahead of storage."""
        return self._pending_write

    @property
    def audit_logger(self) -> AuditLogger:
        return self._audit_logger

    def get(self) -> LedgerSnapshot:
        """The current snapshot. Immutable, so safe to hand out."""
        return self._snapshot

    def mutate(
        self,
        fn: Transform,
        operation: str = "mutate",
        apply_side_effects: bool = True,
    ) -> MutationResult:
        """
        Apply `fn` atomically and persist the result once.

        Args:
            fn: Pure transform from the current snapshot to the next one
            operation: Name used in logs
            apply_side_effects: Run the post-processors (off for wholesale
                replacement such as import and reset)

        Raises:
            Whatever `fn` or a post-processor raises; the store is unchanged.
        """
        previous = self._snapshot
        # Events logged by the transform or post-processors surface only on commit
        with self._audit_logger.deferred():
            current = fn(previous)
            if apply_side_effects:
                for processor in self._post_processors:
                    current = processor(previous, current)
            self._snapshot = current

        changed = changed_sections(previous, current)
        self._audit_logger.log_mutation(operation, changed)
        saved = self._write(operation)
        return MutationResult(
            operation=operation,
            previous=previous,
            current=current,
            changed=changed,
            saved=saved,
        )

    def replace(self, snapshot: LedgerSnapshot, operation: str = "replace") -> MutationResult:
        """Swap in a whole snapshot (import, reset). No side effects run."""
        return self.mutate(lambda _: snapshot, operation, apply_side_effects=False)

    def flush(self) -> bool:
        """Retry writing the current snapshot. Returns True once storage is in sync."""
        if not self._pending_write:
            return True
        return self._write("flush")

    def _write(self, operation: str) -> bool:
        try:
            self._storage.save(self._snapshot)
        except StorageError as e:
            self._pending_write = True
            self._audit_logger.log_save_failed(operation, str(e))
            return False
        self._pending_write = False
        self._audit_logger.log_saved(operation, self._storage.description)
        return True
