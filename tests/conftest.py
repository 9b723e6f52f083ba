"""
Pytest configuration for Index Lab.

Provides fixtures for:
- An in-memory storage that enforces column limits and foreign keys
- Seeded random sources for the record builders
- Settings for integration tests against a real PostgreSQL
"""

from __future__ import annotations

import copy
import os
import random
import re
from datetime import datetime
from typing import Any, Dict, Iterator, List, Optional, Sequence, Set, Tuple

import pytest

from index_lab.config import Settings
from index_lab.domain.schema import DEPARTMENTS, FIELD_LIMITS, INSERT_COLUMNS, ORDERS, USERS
from index_lab.errors import (
    BulkLoadError,
    QueryExecutionError,
    StorageConnectionError,
    TruncationDefectError,
)
from index_lab.generation.builders import RandomSource

FIXED_NOW = datetime(2025, 6, 15, 12, 0, 0)

_ACTIVE_IDS = re.compile(r"SELECT id FROM (\w+) WHERE is_active", re.IGNORECASE)
_MAX_LENGTH = re.compile(r"MAX\(LENGTH\((\w+)\)\).*FROM (\w+)", re.IGNORECASE)
_FOREIGN_KEYS = {USERS: ("department_id", DEPARTMENTS), ORDERS: ("user_id", USERS)}


class InMemoryStorage:
    """
    Storage double with the same contract as `Database`.

    Rows get sequential ids, declared limits and foreign keys are enforced per
    batch, and a failing batch leaves no row behind.
    """

    def __init__(self) -> None:
        self.tables: Dict[str, List[Dict[str, Any]]] = {table: [] for table in INSERT_COLUMNS}
        self.limits: Dict[str, Dict[str, int]] = copy.deepcopy(FIELD_LIMITS)
        self.append_calls: List[Tuple[str, int]] = []
        self.fail_appends: Set[int] = set()
        self.executed: List[str] = []
        self.fail_batch_containing: Optional[str] = None
        self.queries: List[str] = []
        self.canned: Dict[str, List[Dict[str, Any]]] = {}
        self.failing_queries: Set[str] = set()
        self.disconnected_queries: Set[str] = set()

    # Storage protocol

    def execute_batch(self, sql: str) -> None:
        self.executed.append(sql)
        if self.fail_batch_containing and self.fail_batch_containing in sql:
            raise QueryExecutionError(f"batch execution failed: syntax error near '{sql[:20]}'")

    def bulk_append(self, table: str, columns: Sequence[str], rows: Sequence[Sequence[Any]]) -> int:
        self.append_calls.append((table, len(rows)))
        if len(self.append_calls) in self.fail_appends:
            raise BulkLoadError(table, 0, len(rows), "injected failure")

        limits = self.limits.get(table, {})
        for row in rows:
            record = dict(zip(columns, row))
            for column, value in record.items():
                limit = limits.get(column)
                if limit is not None and isinstance(value, str) and len(value) > limit:
                    raise TruncationDefectError(table, [(column, len(value), limit)], "value too long")
            if table in _FOREIGN_KEYS:
                column, parent = _FOREIGN_KEYS[table]
                if not 1 <= record[column] <= len(self.tables[parent]):
                    raise BulkLoadError(table, 0, len(rows), f"foreign key violation on {column}")

        stored = self.tables[table]
        for row in rows:
            record = dict(zip(columns, row))
            record["id"] = len(stored) + 1
            stored.append(record)
        return len(rows)

    def query(self, sql: str) -> Iterator[Dict[str, Any]]:
        self.queries.append(sql)
        if sql in self.disconnected_queries:
            raise StorageConnectionError("connection lost during query")
        if sql in self.failing_queries:
            raise QueryExecutionError(f"query failed: {sql}")
        match = _ACTIVE_IDS.search(sql)
        if match:
            for record in self.tables[match.group(1)]:
                if record["is_active"]:
                    yield {"id": record["id"]}
            return
        yield from self.canned.get(sql, [])

    def scalar(self, sql: str) -> Optional[Any]:
        match = _MAX_LENGTH.search(sql)
        if match:
            column, table = match.groups()
            return max((len(r[column] or "") for r in self.tables[table]), default=0)
        return None

    def row_count(self, table: str) -> int:
        return len(self.tables[table])


@pytest.fixture
def memory_storage() -> InMemoryStorage:
    return InMemoryStorage()


@pytest.fixture
def source() -> RandomSource:
    """Seeded source with a fixed clock."""
    return RandomSource(rng=random.Random(20240601), now=lambda: FIXED_NOW)


@pytest.fixture(scope="session")
def test_settings() -> Settings:
    """
    Settings fixture with test-specific overrides.

    Can be overridden via environment variables in CI or local testing.
    """
    return Settings(
        db_host=os.getenv("DB_HOST", "localhost"),
        db_port=int(os.getenv("DB_PORT", "5432")),
        db_user=os.getenv("DB_USER", "postgres"),
        db_password=os.getenv("DB_PASSWORD", "postgres"),
        db_name=os.getenv("DB_NAME", "index_lab_test"),
        log_level="DEBUG",
    )
