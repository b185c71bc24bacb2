"""
PostgreSQL connection pool management using psycopg3

Pooled connections return rows as dictionaries. Connection settings come
from the constructor, or the DB_* environment variables.
"""
import os
import time
from contextlib import contextmanager

from psycopg import OperationalError
from psycopg.rows import dict_row
from psycopg_pool import ConnectionPool

from draft_reconciler.observability.logger import get_logger

logger = get_logger(__name__)


class DatabaseConnectionPool:
    """
    PostgreSQL connection pool for the draft store

    Either pass a full conninfo string (e.g. from a test container) or the
    individual settings; missing settings are read from DB_HOST, DB_PORT,
    DB_NAME, DB_USER and DB_PASSWORD.
    """

    def __init__(
        self,
        conninfo: str | None = None,
        host: str | None = None,
        port: int | None = None,
        database: str | None = None,
        user: str | None = None,
        password: str | None = None,
        min_size: int = 1,
        max_size: int = 5,
        timeout: float = 30.0,
    ) -> None:
        self.min_size = min_size
        self.max_size = max_size
        self.timeout = timeout

        if conninfo:
            self.conninfo = conninfo
        else:
            host = host or os.getenv("DB_HOST", "localhost")
            port = port or int(os.getenv("DB_PORT", "5432"))
            database = database or os.getenv("DB_NAME", "reservations")
            user = user or os.getenv("DB_USER", "reconciler")
            password = password or os.getenv("DB_PASSWORD")

            if not password:
                raise ValueError(
                    "Database password must be provided. "
                    "Set DB_PASSWORD environment variable or pass to constructor."
                )

            self.conninfo = (
                f"host={host} port={port} dbname={database} "
                f"user={user} password={password} "
                f"connect_timeout={int(timeout)}"
            )

        self._pool: ConnectionPool | None = None

    @property
    def is_open(self) -> bool:
        return self._pool is not None

    def open(self, max_retries: int = 3, retry_delay: float = 2.0) -> None:
        """
        Open the pool, retrying while the server is not yet accepting connections.

        Raises:
            OperationalError: If connection fails after all retries
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

        for attempt in range(1, max_retries + 1):
            try:
                pool.open(wait=True, timeout=self.timeout)
                self._pool = pool
                return
            except (OperationalError, TimeoutError) as e:
                logger.warning(
                    "Database not reachable",
                    extra={"attempt": attempt, "max_retries": max_retries, "error_message": str(e)},
                )
                if attempt == max_retries:
                    pool.close()
                    raise OperationalError(
                        f"Failed to connect to database after {max_retries} attempts: {e}"
                    ) from e
                time.sleep(retry_delay)

    def close(self) -> None:
        if self._pool is not None:
            self._pool.close()
            self._pool = None

    @contextmanager
    def get_connection(self):
        """
        Borrow a connection; the pool commits on clean exit and rolls back on error.

        Raises:
            RuntimeError: If pool is not open
        """
        if self._pool is None:
            raise RuntimeError("Connection pool is not open. Call open() first.")

        with self._pool.connection() as conn:
            yield conn

    @contextmanager
    def get_cursor(self):
        with self.get_connection() as conn:
            with conn.cursor() as cur:
                yield cur

    def execute_query(self, query: str, params: tuple | None = None) -> list[dict]:
        """Run a SELECT and return all rows as dicts."""
        with self.get_cursor() as cur:
            cur.execute(query, params)
            return cur.fetchall()

    def execute_command(self, command: str, params: tuple | None = None) -> int:
        """Run an INSERT/UPDATE/DELETE/DDL statement and return the affected row count."""
        with self.get_cursor() as cur:
            cur.execute(command, params)
            return cur.rowcount

    def __enter__(self):
        self.open()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False
