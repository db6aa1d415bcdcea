"""
Abstract Storage Interface

DESIGN DECISION: The ledger is persisted as one whole snapshot per write.
The store never issues partial updates, so the interface is just load and
save. This allows us to:
1. Swap the JSON file for another durable backend later
2. Use in-memory storage for testing
3. Keep the store decoupled from where the bytes end up

DESIGN DECISION: The interface is synchronous. Mutations are synchronous
and each one is followed by exactly one save, so there is nothing to
overlap.
"""

from abc import ABC, abstractmethod
from typing import Optional

from local_ledger.models.ledger import LedgerSnapshot


class SnapshotStorageInterface(ABC):
    """
    Abstract interface for snapshot persistence.

    Any storage implementation must implement these methods.
    """

    @abstractmethod
    def load(self) -> Optional[LedgerSnapshot]:
        """
        Load the persisted snapshot.

        Older document versions are migrated forward before validation.

        Returns:
            The snapshot, or None if nothing has been saved yet

        Raises:
            CorruptSnapshotError: If a snapshot exists but cannot be read
        """
        pass

    @abstractmethod
    def save(self, snapshot: LedgerSnapshot) -> bool:
        """
        Persist the whole snapshot, replacing the previous one.

        Args:
            snapshot: The snapshot to write

        Returns:
            True if saved successfully

        Raises:
            StorageError: If the write fails
        """
        pass

    @property
    def description(self) -> str:
        """Where the snapshot lives, for logs."""
        return type(self).__name__
