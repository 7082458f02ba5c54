"""
Database connection factory utilities for the Transactional Record Store.

Provides construction of PostgreSQL connections and pools. Pools are owned by
whoever creates them (normally `PostgresBackend`), which closes them on
shutdown; nothing here is cached at module level.

Includes retry logic for transient connection failures using tenacity.
"""

from __future__ import annotations

from typing import Any, Optional

import psycopg
from psycopg import Connection, sql
from psycopg_pool import ConnectionPool
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from record_store.config import Settings, build_dsn
from record_store.utils.logging import get_logger

log = get_logger(__name__)

connection_retry = retry(
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=1, min=1, max=10),
    retry=retry_if_exception_type((psycopg.OperationalError, psycopg.InterfaceError)),
    reraise=True,
)


@connection_retry
def get_sync_connection(dsn: Optional[str] = None) -> Connection:
    """
    Acquire a dedicated synchronous connection with automatic retry.

    Retries up to 3 times with exponential backoff for transient connection errors.
    Use this for simple, one-off operations such as schema setup. Prefer the pool
    for repeated use.

    Returns
    -------
    Connection
        A new psycopg connection instance.

    Raises
    ------
    psycopg.OperationalError
        If connection fails after all retry attempts.
    """
    return psycopg.connect(dsn or build_dsn())


def create_pool(
    dsn: Optional[str] = None,
    min_size: int = 1,
    max_size: int = 10,
    settings: Optional[Settings] = None,
) -> ConnectionPool:
    """
    Create and open a synchronous connection pool.

    Parameters
    ----------
    dsn : str | None
        Connection string; composed from settings when omitted.
    min_size : int
        Minimum number of idle connections to keep.
    max_size : int
        Maximum total connections in the pool.

    Returns
    -------
    ConnectionPool
        A pool the caller owns and must close.
    """
    conninfo = dsn or build_dsn(settings)
    log.info("Opening connection pool", extra={"min_size": min_size, "max_size": max_size})
    return ConnectionPool(conninfo=conninfo, min_size=min_size, max_size=max_size, open=True)


def apply_statement_timeout(cur: Any, timeout_ms: int) -> None:
    """
    Bound every statement in the current transaction to `timeout_ms`.

    A non-positive timeout leaves the server default in place.
    """
    if timeout_ms <= 0:
        return
    cur.execute(
        sql.SQL("SET LOCAL statement_timeout = {}").format(sql.Literal(f"{int(timeout_ms)}ms"))
    )


__all__ = [
    "apply_statement_timeout",
    "connection_retry",
    "create_pool",
    "get_sync_connection",
]
