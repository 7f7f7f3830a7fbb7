"""Postgres-backed slot storage."""

import logging
from contextlib import contextmanager
from typing import Optional

from psycopg2 import pool

from foodswipe.core.config import get_settings

logger = logging.getLogger(__name__)

_connection_pool: Optional[pool.SimpleConnectionPool] = None


def init_pool(minconn: int = 1, maxconn: int = 2) -> pool.SimpleConnectionPool:
    """Initialise and return the shared connection pool."""
    global _connection_pool
    if _connection_pool is None:
        settings = get_settings()
        if not settings.database_url:
            raise RuntimeError("DATABASE_URL is required for database connections")
        _connection_pool = pool.SimpleConnectionPool(
            minconn,
            maxconn,
            dsn=settings.database_url,
            connect_timeout=10,
        )
        logger.info("Database connection pool initialised")
    return _connection_pool


@contextmanager
def get_connection():
    """Context manager yielding a pooled connection."""
    pg_pool = init_pool()
    conn = pg_pool.getconn()
    try:
        yield conn
    finally:
        pg_pool.putconn(conn)


_CREATE_TABLE = """
CREATE TABLE IF NOT EXISTS app_slots (
    key TEXT PRIMARY KEY,
    value TEXT NOT NULL,
    updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
);
"""

_SELECT_SLOT = """
SELECT value FROM app_slots WHERE key = %(key)s;
"""

_UPSERT_SLOT = """
INSERT INTO app_slots (
    key,
    value,
    updated_at
) VALUES (
    %(key)s,
    %(value)s,
    NOW()
)
ON CONFLICT (key) DO UPDATE SET
    value = EXCLUDED.value,
    updated_at = NOW();
"""


class PostgresSlotStore:
    """Stores each slot as one row of ``app_slots``; the table is created on first use."""

    def __init__(self) -> None:
        self._table_ready = False

    def _ensure_table(self, conn) -> None:
        if self._table_ready:
            return
        with conn.cursor() as cur:
            cur.execute(_CREATE_TABLE, {})
        conn.commit()
        self._table_ready = True

    def read(self, key: str) -> Optional[str]:
        with get_connection() as conn:
            try:
                self._ensure_table(conn)
                with conn.cursor() as cur:
                    cur.execute(_SELECT_SLOT, {"key": key})
                    row = cur.fetchone()
            except Exception:
                # The connection goes back to the pool; it must not stay in an aborted transaction.
                conn.rollback()
                raise
        return row[0] if row else None

    def write(self, key: str, value: str) -> None:
        if not key:
            raise ValueError("slot key is required")
        with get_connection() as conn:
            try:
                self._ensure_table(conn)
                with conn.cursor() as cur:
                    cur.execute(_UPSERT_SLOT, {"key": key, "value": value})
                conn.commit()
            except Exception:
                conn.rollback()
                raise
            logger.debug("Upserted slot %s", key)
