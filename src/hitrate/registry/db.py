from __future__ import annotations

import logging
from contextlib import AbstractContextManager
from pathlib import Path
from types import TracebackType

import psycopg
from psycopg.rows import dict_row
from psycopg_pool import ConnectionPool

logger = logging.getLogger(__name__)

MIGRATIONS_DIR = Path(__file__).parent / "migrations"


class Database:
    """Pooled PostgreSQL access returning rows as dicts."""

    def __init__(self, dsn: str, min_size: int = 1, max_size: int = 4) -> None:
        self._dsn = dsn
        self._min_size = min_size
        self._max_size = max_size
        self._pool: ConnectionPool | None = None

    @property
    def is_connected(self) -> bool:
        return self._pool is not None

    def connect(self) -> None:
        if self._pool is not None:
            return
        if not self._dsn:
            raise RuntimeError("No database DSN configured. Set DATABASE_URL.")
        self._pool = ConnectionPool(
            self._dsn,
            min_size=self._min_size,
            max_size=self._max_size,
            kwargs={"row_factory": dict_row},
            open=False,
        )
        self._pool.open(wait=True)
        logger.info("Connection pool established (max_size=%d)", self._max_size)

    def close(self) -> None:
        if self._pool is not None:
            self._pool.close()
            self._pool = None
            logger.info("Connection pool closed")

    def _connection(self) -> AbstractContextManager[psycopg.Connection]:
        if self._pool is None:
            raise RuntimeError("Database not connected. Call connect() first.")
        return self._pool.connection()

    def execute(self, query: str, params: tuple | None = None) -> list[dict]:
        """Execute a query and return rows as dicts (empty for statements)."""
        with self._connection() as conn, conn.cursor() as cur:
            cur.execute(query, params)
            if cur.description is None:
                return []
            return [dict(row) for row in cur.fetchall()]

    def execute_many(self, query: str, params_seq: list[tuple]) -> int:
        """Batch execute a statement, return affected row count."""
        if not params_seq:
            return 0
        with self._connection() as conn, conn.cursor() as cur:
            cur.executemany(query, params_seq)
            return max(cur.rowcount, 0)

    def run_migrations(self, migrations_dir: Path = MIGRATIONS_DIR) -> list[str]:
        """Apply pending *.sql files in name order. Returns applied filenames."""
        applied_now: list[str] = []
        with self._connection() as conn, conn.cursor() as cur:
            cur.execute("""
                CREATE TABLE IF NOT EXISTS _migrations (
                    filename TEXT PRIMARY KEY,
                    applied_at TIMESTAMPTZ DEFAULT NOW()
                )
            """)
            cur.execute("SELECT filename FROM _migrations")
            applied = {row["filename"] for row in cur.fetchall()}

            for sql_file in sorted(Path(migrations_dir).glob("*.sql")):
                if sql_file.name in applied:
                    logger.debug("Migration already applied: %s", sql_file.name)
                    continue
                logger.info("Applying migration: %s", sql_file.name)
                cur.execute(sql_file.read_text())
                cur.execute("INSERT INTO _migrations (filename) VALUES (%s)", (sql_file.name,))
                conn.commit()
                applied_now.append(sql_file.name)
        return applied_now

    def health_check(self) -> bool:
        try:
            rows = self.execute("SELECT 1 AS ok")
        except (psycopg.Error, RuntimeError):
            logger.exception("Health check failed")
            return False
        return bool(rows) and rows[0].get("ok") == 1

    def __enter__(self) -> Database:
        self.connect()
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        self.close()
