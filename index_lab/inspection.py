"""
Field-length usage checks.

Compares the longest value stored in every limited column with its declared
limit, to spot columns where generated data runs close to truncation.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List, Optional

from index_lab.domain.schema import ENTITY_TABLES, FIELD_LIMITS
from index_lab.infrastructure.storage import Storage

AT_RISK_RATIO = 0.9


@dataclass(frozen=True)
class FieldUsage:
    table: str
    column: str
    max_length: int
    limit: int

    @property
    def ratio(self) -> float:
        return self.max_length / self.limit if self.limit else 0.0

    @property
    def at_risk(self) -> bool:
        return self.ratio >= AT_RISK_RATIO


def field_length_usage(storage: Storage, tables: Optional[Iterable[str]] = None) -> List[FieldUsage]:
    usage: List[FieldUsage] = []
    for table in tables or ENTITY_TABLES:
        for column, limit in FIELD_LIMITS.get(table, {}).items():
            longest = storage.scalar(f"SELECT COALESCE(MAX(LENGTH({column})), 0) FROM {table}")
            usage.append(FieldUsage(table, column, int(longest or 0), limit))
    return usage


__all__ = ["AT_RISK_RATIO", "FieldUsage", "field_length_usage"]
