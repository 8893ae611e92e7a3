"""
Database connection and utilities for the payroll data providers.
Provides a PostgreSQL connection wrapper over a lazily created connection pool.
The computation engine never touches the database.
"""
from __future__ import annotations

import logging
from typing import Any, Optional

import psycopg2
import psycopg2.extras
from psycopg2 import pool

from core.config import config

logger = logging.getLogger(__name__)

# Connection pool - initialized lazily
_connection_pool: Optional[pool.ThreadedConnectionPool] = None


def _get_pool() -> pool.ThreadedConnectionPool:
    """Get or create the connection pool."""
    global _connection_pool
    if _connection_pool is None:
        if not config.DATABASE_URL:
            raise RuntimeError("DATABASE_URL environment variable is required")
        _connection_pool = pool.ThreadedConnectionPool(
            minconn=config.DB_POOL_MIN,
            maxconn=config.DB_POOL_MAX,
            dsn=config.DATABASE_URL
        )
        logger.info("Database connection pool created")
    return _connection_pool


def get_pooled_connection():
    """Get a connection from the pool."""
    return _get_pool().getconn()


def return_connection(conn):
    """Return a connection to the pool."""
    if _connection_pool is not None:
        _connection_pool.putconn(conn)


class PostgresConnection:
    """Wrapper for a pooled PostgreSQL connection returning dict rows."""

    def __init__(self, conn, use_pool: bool = True):
        self.conn = conn
        self._use_pool = use_pool

    def execute(self, query: str, params: tuple = ()) -> Any:
        """Execute a query and return a cursor yielding dict rows."""
        cursor = self.conn.cursor(cursor_factory=psycopg2.extras.RealDictCursor)
        cursor.execute(query, params)
        return cursor

    def commit(self):
        if not self.conn.closed:
            self.conn.commit()

    def rollback(self):
        if not self.conn.closed:
            self.conn.rollback()

    def close(self):
        if self.conn.closed:
            return
        if self._use_pool:
            return_connection(self.conn)
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
    """Create and return a pooled PostgreSQL connection wrapper."""
    return PostgresConnection(get_pooled_connection(), use_pool=True)


def close_pool():
    """Close the connection pool. Used for graceful shutdown."""
    global _connection_pool

    if _connection_pool:
        try:
            _connection_pool.closeall()
            logger.info("Database pool closed")
        except psycopg2.Error as e:
            logger.error(f"Error closing database pool: {e}")
        finally:
            _connection_pool = None
