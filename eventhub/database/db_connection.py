"""
PostgreSQL connection helper.
Provides a process-wide connection pool and get_db() for use by services.
"""

import logging
import os
import threading
from contextlib import contextmanager
from typing import Iterator, Optional

import psycopg2
from psycopg2.extras import DictCursor
from psycopg2.pool import ThreadedConnectionPool
from dotenv import load_dotenv

# Load .env variables from the project root
load_dotenv()

logger = logging.getLogger(__name__)

DATABASE_URL = os.getenv("DATABASE_URL")
DB_POOL_MIN = int(os.getenv("DB_POOL_MIN", 1))
DB_POOL_MAX = int(os.getenv("DB_POOL_MAX", 10))

_pool: Optional[ThreadedConnectionPool] = None
# getconn() raises PoolError when every connection is out; callers wait here instead
_slots: Optional[threading.BoundedSemaphore] = None
_init_lock = threading.Lock()


def init_pool() -> ThreadedConnectionPool:
    """
    Create the shared pool. Safe to call more than once.

    Raises:
        RuntimeError: DATABASE_URL is not set.
        psycopg2.Error: If the first connections cannot be opened.
    """
    global _pool, _slots
    with _init_lock:
        if _pool is not None:
            return _pool

        if not DATABASE_URL:
            raise RuntimeError("DATABASE_URL is not set. Please set the environment variable.")

        try:
            # Rows come back as dictionaries (e.g., {"user_id": 1, "email": "..."})
            _pool = ThreadedConnectionPool(
                DB_POOL_MIN, DB_POOL_MAX, DATABASE_URL, cursor_factory=DictCursor
            )
            _slots = threading.BoundedSemaphore(DB_POOL_MAX)
        except psycopg2.Error:
            logger.exception("Error connecting to database")
            raise
        return _pool


def close_pool() -> None:
    global _pool, _slots
    if _pool is not None:
        _pool.closeall()
        _pool = None
        _slots = None


@contextmanager
def get_db() -> Iterator["psycopg2.extensions.connection"]:
    """
    Borrow a pooled connection with dictionary-based row access.

    The transaction is committed when the block exits cleanly and rolled
    back if it raises. When all DB_POOL_MAX connections are checked out the
    caller blocks until one is returned.

    Integrity errors are left to the caller to translate; any other driver
    error is logged with its traceback before it propagates.

    Usage:
        with get_db() as conn:
            with conn.cursor() as cur:
                cur.execute(...)
    """
    pool = init_pool()
    slots = _slots
    slots.acquire()
    try:
        conn = pool.getconn()
        try:
            with conn:
                yield conn
        except psycopg2.IntegrityError:
            raise
        except psycopg2.Error:
            logger.exception("Database error")
            raise
        finally:
            pool.putconn(conn)
    finally:
        slots.release()
