"""
PostgreSQL storage backend.

One table per record type (`id BIGINT GENERATED BY DEFAULT AS IDENTITY` plus a
typed column per field). A transaction context checks a connection out of the
pool, runs every statement of the unit of work on it, and commits or rolls back
the database transaction; buffering and isolation are the server's job.
Insertion order is id order.
"""

from __future__ import annotations

from typing import Any, Dict, Iterable, List, Optional, Sequence, Type

import psycopg
from psycopg import Connection, sql
from psycopg.rows import dict_row
from psycopg_pool import ConnectionPool

from record_store.config import Settings, build_dsn, get_settings
from record_store.domain.models import RECORD_TYPES
from record_store.domain.records import Record
from record_store.errors import ConflictError, IllegalStateError
from record_store.infrastructure.db_factory import (
    apply_statement_timeout,
    connection_retry,
    create_pool,
    get_sync_connection,
)
from record_store.repository.abstract import (
    AbstractRepository,
    R,
    StorageBackend,
    TransactionContext,
)
from record_store.utils.logging import get_logger

log = get_logger(__name__)

_COLUMN_TYPES: Dict[type, str] = {
    str: "TEXT",
    float: "DOUBLE PRECISION",
    int: "BIGINT",
    bool: "BOOLEAN",
}

# Errors raised when a concurrent transaction wins.
_CONFLICT_ERRORS = (
    psycopg.errors.SerializationFailure,
    psycopg.errors.DeadlockDetected,
    psycopg.errors.LockNotAvailable,
)


def _table(record_type: Type[Record]) -> sql.Identifier:
    return sql.Identifier(record_type.table_name)


def create_table_sql(record_type: Type[Record]) -> sql.Composed:
    """CREATE TABLE statement for one record type."""
    columns = [sql.SQL("id BIGINT GENERATED BY DEFAULT AS IDENTITY PRIMARY KEY")]
    for name in record_type.field_names():
        column_type = _COLUMN_TYPES.get(record_type.field_type(name))
        if column_type is None:
            raise TypeError(f"{record_type.__name__}.{name} has no column mapping")
        columns.append(sql.SQL("{} {} NOT NULL").format(sql.Identifier(name), sql.SQL(column_type)))
    return sql.SQL("CREATE TABLE IF NOT EXISTS {} ({})").format(
        _table(record_type), sql.SQL(", ").join(columns)
    )


class PostgresRepository(AbstractRepository[R]):
    """
    Table-backed repository bound to the owning transaction's connection.
    """

    def __init__(self, context: "PostgresTransaction", record_type: Type[R]) -> None:
        self._context = context
        self.record_type = record_type
        self._fields = record_type.field_names()
        self._select = sql.SQL("SELECT {} FROM {}").format(
            sql.SQL(", ").join(sql.Identifier(n) for n in ["id", *self._fields]),
            _table(record_type),
        )

    def _execute(self, query: sql.Composable, params: Sequence[Any] = ()) -> psycopg.Cursor:
        return self._context.execute(query, params)

    def create(self, record: R) -> R:
        prepared = self._prepare_new(record)
        query = sql.SQL("INSERT INTO {} ({}) VALUES ({}) RETURNING id").format(
            _table(self.record_type),
            sql.SQL(", ").join(sql.Identifier(n) for n in self._fields),
            sql.SQL(", ").join(sql.Placeholder() for _ in self._fields),
        )
        row = self._execute(query, list(prepared.values().values())).fetchone()
        self._context.mutations += 1
        return prepared.with_id(row["id"])

    def get(self, record_id: int) -> Optional[R]:
        query = self._select + sql.SQL(" WHERE id = %s")
        row = self._execute(query, (record_id,)).fetchone()
        return self.record_type.from_row(row) if row else None

    def update(self, record_id: int, record: R) -> Optional[R]:
        prepared = self._prepare_replacement(record_id, record)
        query = sql.SQL("UPDATE {} SET {} WHERE id = %s").format(
            _table(self.record_type),
            sql.SQL(", ").join(
                sql.SQL("{} = {}").format(sql.Identifier(n), sql.Placeholder()) for n in self._fields
            ),
        )
        cur = self._execute(query, [*prepared.values().values(), record_id])
        if cur.rowcount == 0:
            return None
        self._context.mutations += 1
        return prepared

    def delete(self, record_id: int) -> bool:
        query = sql.SQL("DELETE FROM {} WHERE id = %s").format(_table(self.record_type))
        cur = self._execute(query, (record_id,))
        if cur.rowcount == 0:
            return False
        self._context.mutations += 1
        return True

    def list(self) -> List[R]:
        rows = self._execute(self._select + sql.SQL(" ORDER BY id")).fetchall()
        return [self.record_type.from_row(row) for row in rows]

    def count(self) -> int:
        query = sql.SQL("SELECT COUNT(*) AS n FROM {}").format(_table(self.record_type))
        return int(self._execute(query).fetchone()["n"])


class PostgresTransaction(TransactionContext):
    """One pooled connection holding one open database transaction."""

    def __init__(self, backend: "PostgresBackend", conn: Connection) -> None:
        self._backend = backend
        self._conn: Optional[Connection] = conn
        self.mutations = 0
        self._started = False

    def _connection(self) -> Connection:
        if self._conn is None:
            raise IllegalStateError("transaction context is already closed")
        return self._conn

    def execute(self, query: sql.Composable, params: Sequence[Any] = ()) -> psycopg.Cursor:
        conn = self._connection()
        cur = conn.cursor(row_factory=dict_row)
        try:
            if not self._started:
                apply_statement_timeout(cur, self._backend.statement_timeout_ms)
                self._started = True
            cur.execute(query, params or None)
        except _CONFLICT_ERRORS as exc:
            raise ConflictError(str(exc).strip()) from exc
        return cur

    def repository(self, record_type: Type[R]) -> PostgresRepository[R]:
        self._connection()
        return PostgresRepository(self, record_type)

    @property
    def mutation_count(self) -> int:
        return self.mutations

    def commit(self) -> None:
        conn = self._connection()
        try:
            conn.commit()
        except _CONFLICT_ERRORS as exc:
            raise ConflictError(str(exc).strip()) from exc
        self._release()

    def rollback(self) -> None:
        if self._conn is None:
            return
        try:
            self._conn.rollback()
        finally:
            self._release()

    def _release(self) -> None:
        conn, self._conn = self._conn, None
        if conn is not None:
            self._backend.release(conn)


class PostgresBackend(StorageBackend):
    """
    Backend over a `psycopg_pool.ConnectionPool`.

    Parameters
    ----------
    pool : ConnectionPool | None
        Externally owned pool. When omitted, one is created from settings (or
        `dsn_override`) and closed by `close()`.
    dsn_override : str | None
        Connection string to use instead of the configured one.
    """

    name: str = "postgres"

    def __init__(
        self,
        pool: Optional[ConnectionPool] = None,
        dsn_override: Optional[str] = None,
        settings: Optional[Settings] = None,
        record_types: Optional[Iterable[Type[Record]]] = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._dsn = dsn_override or build_dsn(self._settings)
        self._owns_pool = pool is None
        self._pool = pool if pool is not None else create_pool(
            dsn=self._dsn,
            min_size=self._settings.db_pool_min_size,
            max_size=self._settings.db_pool_max_size,
        )
        self.statement_timeout_ms = self._settings.db_statement_timeout_ms
        self.record_types: List[Type[Record]] = list(record_types or RECORD_TYPES.values())

    @connection_retry
    def _acquire(self) -> Connection:
        return self._pool.getconn()

    def release(self, conn: Connection) -> None:
        self._pool.putconn(conn)

    def begin(self) -> PostgresTransaction:
        return PostgresTransaction(self, self._acquire())

    def init_schema(self) -> None:
        """Create every table that does not exist yet."""
        with get_sync_connection(self._dsn) as conn:
            for record_type in self.record_types:
                conn.execute(create_table_sql(record_type))
            conn.commit()
        log.info("Schema initialized", extra={"tables": [t.table_name for t in self.record_types]})

    def drop_schema(self) -> None:
        with get_sync_connection(self._dsn) as conn:
            for record_type in self.record_types:
                conn.execute(sql.SQL("DROP TABLE IF EXISTS {}").format(_table(record_type)))
            conn.commit()

    def truncate(self) -> None:
        """Empty every table; identities restart at 1."""
        with get_sync_connection(self._dsn) as conn:
            conn.execute(
                sql.SQL("TRUNCATE TABLE {} RESTART IDENTITY").format(
                    sql.SQL(", ").join(_table(t) for t in self.record_types)
                )
            )
            conn.commit()

    def close(self) -> None:
        if self._owns_pool:
            self._pool.close()


__all__ = ["PostgresBackend", "PostgresRepository", "PostgresTransaction", "create_table_sql"]
