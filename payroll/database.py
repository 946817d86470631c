"""
Database connection for the payroll persistence adapters.
Provides a pooled PostgreSQL connection wrapper used by payroll.data_access.

The calculation engine itself never touches the database.
"""
from __future__ import annotations

import logging
from typing import Optional

import psycopg2
from psycopg2 import pool

from payroll.config import config
from utils.error_handler import ConfigurationError

logger = logging.getLogger(__name__)

# Connection pool - initialized lazily
_pool: Optional[pool.ThreadedConnectionPool] = None


def _get_pool() -> pool.ThreadedConnectionPool:
    """Get or create the connection pool."""
    global _pool
    if _pool is None:
        if not config.has_database():
            raise ConfigurationError(
                "DATABASE_URL environment variable is required",
                user_message="לא הוגדר חיבור לבסיס הנתונים",
            )
        _pool = pool.ThreadedConnectionPool(
            minconn=config.DB_POOL_MIN,
            maxconn=config.DB_POOL_MAX,
            dsn=config.DATABASE_URL
        )
        logger.info("Database connection pool created")
    return _pool


class PostgresConnection:
    """Pooled connection that commits or rolls back when used as a context manager."""

    def __init__(self, conn, pool_: Optional[pool.AbstractConnectionPool] = None):
        self.conn = conn
        self._pool = pool_

    def cursor(self, *args, **kwargs):
        return self.conn.cursor(*args, **kwargs)

    def commit(self):
        if not self.conn.closed:
            self.conn.commit()

    def rollback(self):
        if not self.conn.closed:
            self.conn.rollback()

    def close(self):
        if self.conn.closed:
            return
        if self._pool is not None:
            self._pool.putconn(self.conn)
        else:
            self.conn.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if self.conn.closed:
            return
        if exc_type is not None:
            self.rollback()
        else:
            self.commit()
        self.close()


def get_conn() -> PostgresConnection:
    """Return a pooled PostgreSQL connection wrapper."""
    db_pool = _get_pool()
    return PostgresConnection(db_pool.getconn(), db_pool)


def close_pool():
    """Close the connection pool. Used for graceful shutdown."""
    global _pool
    if _pool:
        try:
            _pool.closeall()
            logger.info("Database pool closed")
        except psycopg2.Error as e:
            logger.error(f"Error closing database pool: {e}")
        finally:
            _pool = None
