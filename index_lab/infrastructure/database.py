"""
PostgreSQL implementation of the storage boundary.

One `Database` owns exactly one autocommit connection. Bulk appends run a
single `COPY ... FROM STDIN` inside an explicit transaction, so a batch is
either fully committed or not at all.
"""

from __future__ import annotations

from typing import Any, Dict, Iterator, List, Optional, Sequence, Tuple

import psycopg
from psycopg import Connection, sql
from psycopg.rows import dict_row

from index_lab.config import Settings
from index_lab.errors import (
    BulkLoadError,
    QueryExecutionError,
    StorageConnectionError,
    TruncationDefectError,
)
from index_lab.infrastructure.db_factory import DEFAULT_CONNECT_TIMEOUT_S, build_dsn, open_connection
from index_lab.infrastructure.storage import Row
from index_lab.utils.logging import get_logger

log = get_logger(__name__)

_COLUMN_LIMITS_SQL = """
    SELECT column_name, character_maximum_length
    FROM information_schema.columns
    WHERE table_schema = current_schema()
      AND table_name = %s
      AND character_maximum_length IS NOT NULL
"""


class Database:
    """
    Storage backed by a single psycopg connection.

    Example
    -------
        with Database.from_settings(settings) as db:
            db.row_count("users")
    """

    def __init__(
        self,
        dsn: str,
        statement_timeout_ms: int = 0,
        connect_timeout_s: int = DEFAULT_CONNECT_TIMEOUT_S,
    ) -> None:
        self._dsn = dsn
        self.statement_timeout_ms = statement_timeout_ms
        self.connect_timeout_s = connect_timeout_s
        self._conn: Optional[Connection] = None

    @classmethod
    def from_settings(cls, settings: Settings) -> "Database":
        return cls(build_dsn(settings), statement_timeout_ms=settings.db_statement_timeout_ms)

    # Lifecycle

    def connect(self) -> "Database":
        if self._conn is None or self._conn.closed:
            self._conn = open_connection(
                self._dsn,
                statement_timeout_ms=self.statement_timeout_ms,
                connect_timeout_s=self.connect_timeout_s,
            )
        return self

    def close(self) -> None:
        if self._conn is not None:
            self._conn.close()
            self._conn = None

    def __enter__(self) -> "Database":
        return self.connect()

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def _connection(self) -> Connection:
        if self._conn is None or self._conn.closed:
            raise StorageConnectionError("Database is not connected; call connect() first")
        return self._conn

    def _translate(self, exc: psycopg.Error, what: str) -> Exception:
        conn = self._conn
        if conn is None or conn.closed or conn.broken:
            return StorageConnectionError(f"Connection lost during {what}: {exc}")
        return QueryExecutionError(f"{what} failed: {exc}")

    # Storage protocol

    def execute_batch(self, sql_text: str) -> None:
        conn = self._connection()
        try:
            with conn.transaction():
                conn.execute(sql_text)
        except psycopg.Error as exc:
            raise self._translate(exc, "batch execution") from exc

    def bulk_append(self, table: str, columns: Sequence[str], rows: Sequence[Sequence[Any]]) -> int:
        conn = self._connection()
        copy_sql = sql.SQL("COPY {} ({}) FROM STDIN").format(
            sql.Identifier(table),
            sql.SQL(", ").join(sql.Identifier(column) for column in columns),
        )
        try:
            with conn.transaction():
                with conn.cursor() as cur:
                    with cur.copy(copy_sql) as copy:
                        for row in rows:
                            copy.write_row(row)
        except psycopg.errors.StringDataRightTruncation as exc:
            offending = self._overlong(table, columns, rows)
            raise TruncationDefectError(table, offending, str(exc)) from exc
        except psycopg.Error as exc:
            translated = self._translate(exc, f"bulk append into {table}")
            if isinstance(translated, StorageConnectionError):
                raise translated from exc
            raise BulkLoadError(table, 0, len(rows), str(exc)) from exc
        return len(rows)

    def query(self, sql_text: str) -> Iterator[Row]:
        conn = self._connection()
        try:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(sql_text)
                if cur.description is None:
                    return
                for row in cur:
                    yield row
        except psycopg.Error as exc:
            raise self._translate(exc, "query") from exc

    def scalar(self, sql_text: str | sql.Composable) -> Optional[Any]:
        conn = self._connection()
        try:
            with conn.cursor() as cur:
                cur.execute(sql_text)
                row = cur.fetchone() if cur.description is not None else None
        except psycopg.Error as exc:
            raise self._translate(exc, "scalar query") from exc
        return row[0] if row else None

    def row_count(self, table: str) -> int:
        count = self.scalar(sql.SQL("SELECT COUNT(*) FROM {}").format(sql.Identifier(table)))
        return int(count or 0)

    # Diagnostics

    def column_limits(self, table: str) -> Dict[str, int]:
        """Declared VARCHAR sizes of `table` as deployed."""
        conn = self._connection()
        with conn.cursor() as cur:
            cur.execute(_COLUMN_LIMITS_SQL, (table,))
            return {name: int(limit) for name, limit in cur.fetchall()}

    def _overlong(
        self, table: str, columns: Sequence[str], rows: Sequence[Sequence[Any]]
    ) -> List[Tuple[str, int, int]]:
        try:
            limits = self.column_limits(table)
        except psycopg.Error:
            log.exception("Could not read column limits", extra={"table": table})
            return []
        worst: Dict[str, Tuple[str, int, int]] = {}
        for row in rows:
            for column, value in zip(columns, row):
                limit = limits.get(column)
                if limit is None or not isinstance(value, str) or len(value) <= limit:
                    continue
                if column not in worst or len(value) > worst[column][1]:
                    worst[column] = (column, len(value), limit)
        return list(worst.values())


__all__ = ["Database"]
