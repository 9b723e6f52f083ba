"""
Domain package for Index Lab.

Exports the entity models and the table layout used by the generator, the
loader and the benchmark runner. Keep this package focused on data
definitions and validation concerns.
"""

from index_lab.domain.models import BenchmarkResult, Department, Order, OrderStatus, User
from index_lab.domain.schema import (
    DEPARTMENTS,
    ENTITY_TABLES,
    FIELD_LIMITS,
    GENERATION_LIMITS,
    INSERT_COLUMNS,
    ORDERS,
    RESULTS,
    USERS,
)

__all__ = [
    "BenchmarkResult",
    "Department",
    "Order",
    "OrderStatus",
    "User",
    "DEPARTMENTS",
    "ENTITY_TABLES",
    "FIELD_LIMITS",
    "GENERATION_LIMITS",
    "INSERT_COLUMNS",
    "ORDERS",
    "RESULTS",
    "USERS",
]
