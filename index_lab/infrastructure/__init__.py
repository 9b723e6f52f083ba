"""
Infrastructure package for Index Lab.

Owns every storage concern: the `Storage` protocol, the PostgreSQL
implementation, connection factories and the SQL script runner. Keep this
layer focused on I/O, decoupled from generation and benchmark logic.
"""

from index_lab.infrastructure.database import Database
from index_lab.infrastructure.db_factory import (
    apply_statement_timeout,
    build_dsn,
    create_database_if_missing,
    open_connection,
)
from index_lab.infrastructure.scripts import load_script, run_script, split_batches
from index_lab.infrastructure.storage import Row, Storage

__all__ = [
    "Database",
    "Row",
    "Storage",
    "apply_statement_timeout",
    "build_dsn",
    "create_database_if_missing",
    "load_script",
    "open_connection",
    "run_script",
    "split_batches",
]
