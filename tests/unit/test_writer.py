"""
Unit tests for IngestionWriter against the in-memory store.
"""

from contextlib import contextmanager

import pytest

from scoutscrape.core.errors import PersistenceError
from scoutscrape.core.nullable import ABSENT, Present
from scoutscrape.warehouse import IngestionWriter, InMemoryHazardStore
from scoutscrape.warehouse.memory_store import _MemoryTransaction


class FailingTransaction(_MemoryTransaction):
    def __init__(self, store, fail_on: int):
        super().__init__(store)
        self.fail_on = fail_on
        self.calls = 0

    def insert_ignore(self, record):
        self.calls += 1
        if self.calls == self.fail_on:
            raise PersistenceError("exec", "value out of range for type smallint")
        return super().insert_ignore(record)


class FailingStore(InMemoryHazardStore):
    """Raises a non-conflict error on the n-th insert"""

    def __init__(self, fail_on: int, rows=None):
        super().__init__(rows)
        self.fail_on = fail_on

    @contextmanager
    def transaction(self):
        txn = FailingTransaction(self, self.fail_on)
        yield txn
        self.rows.update(txn.staged)
        self.commits += 1


class BrokenSchemaStore(InMemoryHazardStore):
    def ensure_schema(self):
        raise PersistenceError("schema", "function create_hypertable does not exist")


@pytest.mark.unit
class TestIngestionWriter:
    """Tests for transactional insert-or-ignore"""

    def test_persists_absent_as_none(self, make_record, make_snapshot):
        store = InMemoryHazardStore()
        record = make_record("2025 AB", rating=ABSENT, ca_dist=Present(0.5))

        result = IngestionWriter(store).write([make_snapshot(record)])

        assert result.inserted == 1
        (stored,) = store.rows.values()
        row = dict(zip(("object_name", "last_run", "h", "rating", "ca_dist"), stored.to_row()))
        assert row["rating"] is None
        assert row["ca_dist"] == 0.5

    def test_five_candidates_two_existing(self, make_record, make_snapshot):
        records = [make_record("OBJ", minute=i) for i in range(5)]
        store = InMemoryHazardStore(rows=[records[1], records[3]])

        result = IngestionWriter(store).write([make_snapshot(*records)])

        assert result.candidates == 5
        assert result.inserted == 3
        assert result.duplicates == 2
        assert store.commits == 1
        assert len(store) == 5

    def test_same_snapshot_twice_is_idempotent(self, make_record, make_snapshot):
        snapshot = make_snapshot(*(make_record(f"OBJ{i}") for i in range(4)))
        store = InMemoryHazardStore()
        writer = IngestionWriter(store)

        first = writer.write([snapshot])
        count_after_first = len(store)
        second = writer.write([snapshot])

        assert first.inserted == 4
        assert second.inserted == 0
        assert second.duplicates == 4
        assert len(store) == count_after_first

    def test_duplicates_within_one_run(self, make_record, make_snapshot):
        record = make_record("DUP")
        store = InMemoryHazardStore()

        result = IngestionWriter(store).write([make_snapshot(record), make_snapshot(record)])

        assert result.candidates == 2
        assert result.inserted == 1

    def test_same_object_different_run_is_new(self, make_record, make_snapshot):
        store = InMemoryHazardStore()

        result = IngestionWriter(store).write([make_snapshot(make_record("A", minute=0), make_record("A", minute=1))])

        assert result.inserted == 2

    def test_failure_mid_transaction_rolls_back_everything(self, make_record, make_snapshot):
        store = FailingStore(fail_on=3)
        records = [make_record(f"OBJ{i}") for i in range(5)]

        with pytest.raises(PersistenceError):
            IngestionWriter(store).write([make_snapshot(*records)])

        assert len(store) == 0
        assert store.commits == 0

    def test_schema_failure_touches_no_data(self, make_record, make_snapshot):
        store = BrokenSchemaStore()

        with pytest.raises(PersistenceError) as exc_info:
            IngestionWriter(store).write([make_snapshot(make_record())])

        assert exc_info.value.stage == "schema"
        assert len(store) == 0
        assert store.commits == 0

    def test_empty_input_still_provisions_and_commits(self):
        store = InMemoryHazardStore()

        result = IngestionWriter(store).write([])

        assert result.candidates == 0
        assert result.inserted == 0
        assert store.schema_ensured == 1
        assert store.commits == 1
