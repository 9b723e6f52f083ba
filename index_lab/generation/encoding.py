"""
Truncation-safe field encoding.

Generated values are clamped to the declared column sizes before they are
handed to the bulk loader, so storage never has to reject a row as too long.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, List, Optional, Tuple

from pydantic import BaseModel

from index_lab.domain.schema import FIELD_LIMITS, insert_columns


def truncate(value: Optional[str], max_length: int) -> str:
    """
    Clamp `value` to at most `max_length` characters.

    None and empty input return an empty string. Truncation is by code point,
    not word-aware.
    """
    if max_length < 0:
        raise ValueError(f"max_length must be >= 0, got {max_length}")
    if not value:
        return ""
    return value if len(value) <= max_length else value[:max_length]


def _column_value(record: BaseModel, column: str) -> Any:
    value = getattr(record, column)
    if isinstance(value, Enum):
        return value.value
    return value


def encode_row(table: str, record: BaseModel) -> Tuple[Any, ...]:
    """
    Convert a domain record into the ordered column tuple used by bulk append.

    Every column with a declared limit is passed through `truncate`.
    """
    limits = FIELD_LIMITS.get(table, {})
    row: List[Any] = []
    for column in insert_columns(table):
        value = _column_value(record, column)
        if column in limits:
            value = truncate(value, limits[column])
        row.append(value)
    return tuple(row)


def overlong_fields(table: str, row: Tuple[Any, ...]) -> List[Tuple[str, int, int]]:
    """
    Return `(column, length, limit)` for every encoded value over its limit.
    """
    limits = FIELD_LIMITS.get(table, {})
    offending: List[Tuple[str, int, int]] = []
    for column, value in zip(insert_columns(table), row):
        limit = limits.get(column)
        if limit is not None and isinstance(value, str) and len(value) > limit:
            offending.append((column, len(value), limit))
    return offending


__all__ = ["encode_row", "overlong_fields", "truncate"]
