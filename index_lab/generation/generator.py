"""
Referential synthetic-data generator.

Entities are produced in dependency order (departments, users, orders), each
referencing ids that already exist in storage at the time its generation
starts.
"""

from __future__ import annotations

from typing import List, Optional, Sequence

from index_lab.domain.schema import DEPARTMENTS, ORDERS, USERS
from index_lab.errors import ConfigurationError
from index_lab.generation.builders import RandomSource, build_department, build_order, build_user
from index_lab.generation.loader import BulkLoader, LoadReport
from index_lab.infrastructure.storage import Storage
from index_lab.utils.logging import get_logger

log = get_logger(__name__)


class DataGenerator:
    """
    Drive the builders through a `BulkLoader`.

    When no id set is passed, users reference active departments and orders
    reference active users, as read from storage when the call starts.
    """

    def __init__(
        self,
        storage: Storage,
        loader: BulkLoader,
        source: Optional[RandomSource] = None,
    ) -> None:
        self.storage = storage
        self.loader = loader
        self.source = source or RandomSource()

    def active_ids(self, table: str) -> List[int]:
        rows = self.storage.query(f"SELECT id FROM {table} WHERE is_active ORDER BY id")
        return [int(row["id"]) for row in rows]

    def _require_ids(self, ids: Optional[Sequence[int]], parent: str, child: str) -> List[int]:
        resolved = list(ids) if ids is not None else self.active_ids(parent)
        if not resolved:
            raise ConfigurationError(
                f"No {parent} found. Generate {parent} before {child}."
            )
        return resolved

    def generate_departments(self, count: int) -> LoadReport:
        source = self.source
        return self.loader.load(
            DEPARTMENTS, count, lambda n: [build_department(source) for _ in range(n)]
        )

    def generate_users(
        self, count: int, department_ids: Optional[Sequence[int]] = None
    ) -> LoadReport:
        ids = self._require_ids(department_ids, DEPARTMENTS, USERS)
        log.info("Referencing departments", extra={"table": USERS, "parent_ids": len(ids)})
        source = self.source
        return self.loader.load(USERS, count, lambda n: [build_user(source, ids) for _ in range(n)])

    def generate_orders(self, count: int, user_ids: Optional[Sequence[int]] = None) -> LoadReport:
        ids = self._require_ids(user_ids, USERS, ORDERS)
        log.info("Referencing users", extra={"table": ORDERS, "parent_ids": len(ids)})
        source = self.source
        return self.loader.load(ORDERS, count, lambda n: [build_order(source, ids) for _ in range(n)])


__all__ = ["DataGenerator"]
