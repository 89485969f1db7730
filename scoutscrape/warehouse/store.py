"""
Idempotent-write primitive shared by all storage backends.

Contract:
- the store enforces uniqueness of (object_name, last_run);
- insert_ignore() writes a record and returns True, or returns False and
  changes nothing when the natural key already exists;
- a transaction is all-or-nothing: it commits when the block exits cleanly
  and rolls back every staged write when the block raises.
"""

from abc import ABC, abstractmethod
from contextlib import AbstractContextManager

from scoutscrape.core.models import HazardRecord


class InsertIgnoreTransaction(ABC):
    """One open write transaction."""

    @abstractmethod
    def insert_ignore(self, record: HazardRecord) -> bool:
        """
        Insert a record unless its natural key exists.

        Returns:
            True if a row was written, False for a duplicate

        Raises:
            PersistenceError: For any failure other than a duplicate key
        """


class HazardStore(ABC):
    """Persistence backend for HazardRecords."""

    @abstractmethod
    def ensure_schema(self) -> None:
        """
        Create the target table if needed.

        Raises:
            PersistenceError: If provisioning fails
        """

    @abstractmethod
    def transaction(self) -> AbstractContextManager[InsertIgnoreTransaction]:
        """Open a transaction spanning every insert of one run."""
