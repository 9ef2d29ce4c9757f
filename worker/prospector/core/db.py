"""Database helpers for the worker."""

import logging
from contextlib import contextmanager
from typing import Optional

import psycopg2
from psycopg2 import errors, pool

from prospector.core.errors import DuplicateKey, StoreUnavailable

logger = logging.getLogger(__name__)

_connection_pool: Optional[pool.SimpleConnectionPool] = None


SCHEMA_STATEMENTS = (
    """
    CREATE TABLE IF NOT EXISTS places (
        place_id TEXT PRIMARY KEY,
        google_maps_uri TEXT,
        types TEXT[] NOT NULL DEFAULT '{}',
        international_phone_number TEXT,
        website_uri TEXT,
        location_id INTEGER,
        created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
        updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS ingest_checkpoint (
        id SMALLINT PRIMARY KEY DEFAULT 1 CHECK (id = 1),
        last_processed_location_id INTEGER NOT NULL DEFAULT 0,
        updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS locations (
        id INTEGER PRIMARY KEY,
        latitude DOUBLE PRECISION NOT NULL,
        longitude DOUBLE PRECISION NOT NULL
    )
    """,
)


def init_pool(database_url: str, minconn: int = 1, maxconn: int = 2) -> pool.SimpleConnectionPool:
    """Initialise and return the shared connection pool."""
    global _connection_pool
    if _connection_pool is None:
        if not database_url:
            raise RuntimeError("DATABASE_URL is required for database connections")
        _connection_pool = pool.SimpleConnectionPool(
            minconn,
            maxconn,
            dsn=database_url,
            connect_timeout=10,
        )
        logger.info("Database connection pool initialised")
    return _connection_pool


def close_pool() -> None:
    global _connection_pool
    if _connection_pool is not None:
        _connection_pool.closeall()
        _connection_pool = None
        logger.info("Database connection pool closed")


@contextmanager
def get_connection(pg_pool=None):
    """Context manager yielding a pooled connection.

    Database errors roll the transaction back and surface as StoreUnavailable.
    """
    pg_pool = pg_pool or _connection_pool
    if pg_pool is None:
        raise StoreUnavailable("database connection pool is not initialised")
    try:
        conn = pg_pool.getconn()
    except psycopg2.Error as exc:
        raise StoreUnavailable(f"could not obtain a database connection: {exc}") from exc
    try:
        yield conn
    except errors.UniqueViolation as exc:
        _rollback(conn)
        raise DuplicateKey(str(exc).strip()) from exc
    except psycopg2.Error as exc:
        _rollback(conn)
        raise StoreUnavailable(str(exc).strip()) from exc
    except Exception:
        _rollback(conn)
        raise
    finally:
        pg_pool.putconn(conn)


def _rollback(conn) -> None:
    try:
        conn.rollback()
    except psycopg2.Error as exc:
        logger.warning("Rollback failed: %s", exc)


def ensure_schema(pg_pool=None) -> None:
    """Create the tables used by the worker when they do not exist yet."""
    with get_connection(pg_pool) as conn:
        with conn.cursor() as cur:
            for statement in SCHEMA_STATEMENTS:
                cur.execute(statement)
        conn.commit()
    logger.info("Database schema ensured")
