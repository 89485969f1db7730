"""
Integration tests for the PostgreSQL/TimescaleDB store

Requires Docker; the TimescaleDB container is started by conftest.
"""
from datetime import datetime, timezone

import pytest

from scoutscrape.core.errors import PersistenceError
from scoutscrape.core.nullable import ABSENT, Present
from scoutscrape.warehouse import IngestionWriter
from scoutscrape.warehouse.hazard_store import PostgresHazardStore, postgres_store


def _query(pool, sql: str, params: tuple | None = None) -> list[dict]:
    with pool.get_connection() as conn:
        with conn.cursor() as cur:
            cur.execute(sql, params)
            return cur.fetchall()


def _count(pool) -> int:
    return _query(pool, "SELECT count(*) AS n FROM scout")[0]["n"]


@pytest.mark.integration
def test_schema_provisioning_is_idempotent(pg_pool):
    store = PostgresHazardStore(pg_pool)

    store.ensure_schema()
    store.ensure_schema()

    rows = _query(
        pg_pool,
        "SELECT hypertable_name FROM timescaledb_information.hypertables WHERE hypertable_name = 'scout'"
    )
    assert len(rows) == 1


@pytest.mark.integration
def test_absent_fields_stored_as_null(pg_pool, make_record, make_snapshot):
    store = PostgresHazardStore(pg_pool)
    record = make_record("2025 AB", rating=ABSENT, ca_dist=Present(0.5), n_obs=Present(0))

    result = IngestionWriter(store).write([make_snapshot(record)])

    assert result.inserted == 1
    row = _query(
        pg_pool,
        "SELECT rating, ca_dist, nobs, tephem, ra, last_run FROM scout WHERE object_name = %s",
        ("2025 AB",),
    )[0]
    assert row["rating"] is None
    assert row["ca_dist"] == pytest.approx(0.5)
    assert row["nobs"] == 0
    assert row["tephem"] is None
    assert row["ra"] == ""
    assert row["last_run"] == datetime(2025, 1, 1, tzinfo=timezone.utc)


@pytest.mark.integration
def test_double_ingest_adds_nothing(pg_pool, make_record, make_snapshot):
    store = PostgresHazardStore(pg_pool)
    snapshot = make_snapshot(*(make_record(f"OBJ{i}") for i in range(4)))
    writer = IngestionWriter(store)

    first = writer.write([snapshot])
    second = writer.write([snapshot])

    assert first.inserted == 4
    assert second.inserted == 0
    assert second.duplicates == 4
    assert _count(pg_pool) == 4


@pytest.mark.integration
def test_preexisting_rows_counted_as_duplicates(pg_pool, make_record, make_snapshot):
    store = PostgresHazardStore(pg_pool)
    records = [make_record("OBJ", minute=i) for i in range(5)]
    writer = IngestionWriter(store)
    writer.write([make_snapshot(records[1], records[3])])

    result = writer.write([make_snapshot(*records)])

    assert result.candidates == 5
    assert result.inserted == 3
    assert _count(pg_pool) == 5


@pytest.mark.integration
def test_failed_insert_rolls_back_transaction(pg_pool, make_record, make_snapshot):
    store = PostgresHazardStore(pg_pool)
    # rating is a smallint column
    bad = make_record("BAD", rating=Present(10**9))
    records = [make_record("OK1"), make_record("OK2"), bad, make_record("OK3")]

    with pytest.raises(PersistenceError):
        IngestionWriter(store).write([make_snapshot(*records)])

    assert _count(pg_pool) == 0


@pytest.mark.integration
def test_postgres_store_opens_and_closes_pool(db_config, make_record, make_snapshot):
    with postgres_store(db_config) as store:
        result = IngestionWriter(store).write([make_snapshot(make_record("POOLED"))])

    assert result.inserted == 1


@pytest.mark.integration
def test_unreachable_database_raises(db_config):
    config = db_config.model_copy(update={"db_port": 1})

    with pytest.raises(PersistenceError):
        with postgres_store(config):
            pass
