"""
Database connection factory utilities for Index Lab.

Builds DSNs from settings, opens psycopg connections with the configured
statement timeout and creates the lab database when it does not exist yet.

No retry happens here: an unreachable server surfaces immediately as
`StorageConnectionError`. Retrying is the orchestrator's decision.
"""

from __future__ import annotations

import psycopg
from psycopg import Connection, sql

from index_lab.config import Settings
from index_lab.errors import StorageConnectionError
from index_lab.utils.logging import get_logger

log = get_logger(__name__)

DEFAULT_CONNECT_TIMEOUT_S = 10


def build_dsn(settings: Settings, database: str | None = None) -> str:
    """Compose a DSN string from settings, optionally for another database."""
    return (
        f"postgresql://{settings.db_user}:{settings.db_password}"
        f"@{settings.db_host}:{settings.db_port}/{database or settings.db_name}"
    )


def apply_statement_timeout(cursor: psycopg.Cursor, timeout_ms: int) -> None:
    """
    Set the session statement timeout; 0 disables it.
    """
    cursor.execute("SELECT set_config('statement_timeout', %s, false)", (str(int(timeout_ms)),))


def open_connection(
    dsn: str,
    statement_timeout_ms: int = 0,
    connect_timeout_s: int = DEFAULT_CONNECT_TIMEOUT_S,
) -> Connection:
    """
    Open a dedicated autocommit connection.

    Raises
    ------
    StorageConnectionError
        If the server cannot be reached or rejects the login.
    """
    try:
        conn = psycopg.connect(dsn, autocommit=True, connect_timeout=connect_timeout_s)
    except psycopg.OperationalError as exc:
        raise StorageConnectionError(f"Cannot connect to storage: {exc}") from exc

    if statement_timeout_ms:
        try:
            with conn.cursor() as cur:
                apply_statement_timeout(cur, statement_timeout_ms)
        except psycopg.Error as exc:
            conn.close()
            raise StorageConnectionError(f"Cannot configure session: {exc}") from exc
    return conn


def create_database_if_missing(settings: Settings) -> bool:
    """
    Create `settings.db_name` through the maintenance database.

    Returns
    -------
    bool
        True if the database was created, False if it already existed.
    """
    dsn = build_dsn(settings, database=settings.db_maintenance_name)
    with open_connection(dsn) as conn:
        exists = conn.execute(
            "SELECT 1 FROM pg_database WHERE datname = %s", (settings.db_name,)
        ).fetchone()
        if exists:
            log.info("Database already exists", extra={"database": settings.db_name})
            return False
        conn.execute(sql.SQL("CREATE DATABASE {}").format(sql.Identifier(settings.db_name)))
    log.info("Database created", extra={"database": settings.db_name})
    return True


__all__ = [
    "apply_statement_timeout",
    "build_dsn",
    "create_database_if_missing",
    "open_connection",
]
