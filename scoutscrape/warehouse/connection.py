"""
Connection pool for the TimescaleDB instance holding the scout table

The scraper is a short-lived, single-threaded job, so the pool is small and
is opened and closed around each run.
"""
from contextlib import contextmanager

from psycopg import OperationalError
from psycopg.rows import dict_row
from psycopg_pool import ConnectionPool, PoolTimeout

from scoutscrape.core.config import ScoutConfig
from scoutscrape.core.errors import PersistenceError
from scoutscrape.observability.logger import get_logger

logger = get_logger(__name__)


class DatabaseConnectionPool:
    """
    psycopg_pool wrapper opened for one run; rows come back as dicts
    """

    def __init__(
        self,
        conninfo: str,
        min_size: int = 1,
        max_size: int = 2,
        timeout: float = 30.0,
    ) -> None:
        """
        Args:
            conninfo: libpq connection string (see ScoutConfig.conninfo)
            min_size: Connections opened eagerly
            max_size: Upper bound on connections
            timeout: Seconds to wait for the first or a free connection
        """
        self.conninfo = conninfo
        self.min_size = min_size
        self.max_size = max_size
        self.timeout = timeout
        self._pool: ConnectionPool | None = None

    @classmethod
    def from_config(cls, config: ScoutConfig, **kwargs) -> "DatabaseConnectionPool":
        return cls(config.conninfo(), **kwargs)

    def open(self) -> None:
        """
        Open the pool and wait for the first connection. No retries.

        Raises:
            PersistenceError: If no connection is established within timeout
        """
        if self._pool is not None:
            return

        pool = ConnectionPool(
            conninfo=self.conninfo,
            min_size=self.min_size,
            max_size=self.max_size,
            timeout=self.timeout,
            kwargs={"row_factory": dict_row},
            open=False,
        )
        try:
            pool.open(wait=True, timeout=self.timeout)
        except (OperationalError, PoolTimeout) as e:
            pool.close()
            raise PersistenceError("connect", str(e)) from e
        self._pool = pool
        logger.debug("Database pool open", extra={"min_size": self.min_size, "max_size": self.max_size})

    def close(self) -> None:
        pool, self._pool = self._pool, None
        if pool is not None:
            pool.close()

    @contextmanager
    def get_connection(self):
        """
        Borrow a connection; it is returned to the pool on exit.

        Raises:
            PersistenceError: If open() has not been called
        """
        if self._pool is None:
            raise PersistenceError("connect", "connection pool is not open")

        with self._pool.connection() as conn:
            yield conn

    def __enter__(self):
        self.open()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False
