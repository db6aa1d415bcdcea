"""
Exception hierarchy for the ledger engine.

Nothing here is fatal to the process. The worst outcome of any of these
is a rejected mutation or a stale persisted copy.
"""

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from local_ledger.models.status import ValidationResult


class LedgerError(Exception):
    """Base exception for all ledger errors."""
    pass


class LedgerValidationError(LedgerError):
    """
    Input was rejected before any mutation happened.

    The caller should show `issues` to the user and re-prompt.
    """

    def __init__(self, result: "ValidationResult"):
        self.result = result
        self.issues = result.issues
        messages = "; ".join(issue.message for issue in result.issues if issue.severity == "error")
        super().__init__(messages or "Validation failed")


class EntityNotFoundError(LedgerError):
    """A referenced entity or sub-entity id does not exist."""
    pass


class ImportRejectedError(LedgerError):
    """A backup document failed the structural check. Nothing was imported."""
    pass


class StorageError(LedgerError):
    """Base exception for persistence operations."""
    pass


class CorruptSnapshotError(StorageError):
    """The persisted snapshot exists but could not be read."""
    pass
