"""
In-memory backend with the same identity-uniqueness contract as PostgreSQL.

Used to exercise the writer without a database. Inserts are staged per
transaction and applied only on a clean exit.
"""

from contextlib import contextmanager
from datetime import datetime
from typing import Iterator

from scoutscrape.core.models import HazardRecord

from .store import HazardStore, InsertIgnoreTransaction


class _MemoryTransaction(InsertIgnoreTransaction):
    def __init__(self, store: "InMemoryHazardStore"):
        self.store = store
        self.staged: dict[tuple[str, datetime], HazardRecord] = {}

    def insert_ignore(self, record: HazardRecord) -> bool:
        key = record.natural_key
        if key in self.store.rows or key in self.staged:
            return False
        self.staged[key] = record
        return True


class InMemoryHazardStore(HazardStore):
    """
    Dict-backed store keyed by (object_name, last_run).

    Attributes:
        rows: Committed records by natural key
        schema_ensured: Number of ensure_schema() calls
        commits: Number of committed transactions
    """

    def __init__(self, rows: list[HazardRecord] | None = None):
        self.rows: dict[tuple[str, datetime], HazardRecord] = {}
        for record in rows or []:
            self.rows[record.natural_key] = record
        self.schema_ensured = 0
        self.commits = 0

    def ensure_schema(self) -> None:
        self.schema_ensured += 1

    @contextmanager
    def transaction(self) -> Iterator[InsertIgnoreTransaction]:
        txn = _MemoryTransaction(self)
        yield txn
        self.rows.update(txn.staged)
        self.commits += 1

    def __len__(self) -> int:
        return len(self.rows)
