"""
PostgreSQL/TimescaleDB backend for Scout observations.

Implements insert-or-ignore with ``INSERT ... ON CONFLICT DO NOTHING``: a
duplicate natural key affects zero rows instead of raising.
"""

from contextlib import contextmanager
from typing import Iterator

import psycopg
from psycopg_pool import PoolTimeout

from scoutscrape.core.config import ScoutConfig
from scoutscrape.core.errors import PersistenceError
from scoutscrape.core.models import HazardRecord
from scoutscrape.observability.logger import get_logger

from .connection import DatabaseConnectionPool
from .schema_mgmt import INSERT_IGNORE_SQL, SCHEMA_STATEMENTS
from .store import HazardStore, InsertIgnoreTransaction

logger = get_logger(__name__)


class _PostgresTransaction(InsertIgnoreTransaction):
    def __init__(self, cursor: psycopg.Cursor):
        self.cursor = cursor

    def insert_ignore(self, record: HazardRecord) -> bool:
        try:
            self.cursor.execute(INSERT_IGNORE_SQL, record.to_row(), prepare=True)
        except psycopg.Error as e:
            raise PersistenceError(
                "exec", f"insert of {record.object_name!r} at {record.last_run.isoformat()} failed: {e}"
            ) from e
        return self.cursor.rowcount == 1


class PostgresHazardStore(HazardStore):
    """
    Writes HazardRecords to the ``scout`` hypertable.
    """

    def __init__(self, pool: DatabaseConnectionPool):
        """
        Args:
            pool: Open database connection pool
        """
        self.pool = pool

    def ensure_schema(self) -> None:
        try:
            with self.pool.get_connection() as conn:
                with conn.transaction():
                    for statement in SCHEMA_STATEMENTS:
                        conn.execute(statement)
        except (psycopg.Error, PoolTimeout) as e:
            raise PersistenceError("schema", str(e)) from e
        logger.debug("Schema ensured")

    @contextmanager
    def transaction(self) -> Iterator[InsertIgnoreTransaction]:
        """
        Yield a transaction over one pooled connection.

        Leaving the block normally commits; any exception rolls back every
        insert made inside it.
        """
        try:
            with self.pool.get_connection() as conn:
                with conn.transaction():
                    with conn.cursor() as cur:
                        yield _PostgresTransaction(cur)
        except (psycopg.Error, PoolTimeout) as e:
            raise PersistenceError("transaction", str(e)) from e


@contextmanager
def postgres_store(config: ScoutConfig) -> Iterator[PostgresHazardStore]:
    """
    Open a pool for one run and yield a store over it.

    Args:
        config: Resolved configuration providing the connection settings

    Raises:
        PersistenceError: If the database cannot be reached
    """
    pool = DatabaseConnectionPool.from_config(config)
    pool.open()
    try:
        yield PostgresHazardStore(pool)
    finally:
        pool.close()
