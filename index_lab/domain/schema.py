"""
Table layout shared by the encoder, the loader and the inspection queries.

`FIELD_LIMITS` mirrors the VARCHAR sizes in `sql/01-create-tables.sql`; the
schema is the backstop, these limits are what the encoder enforces before any
write reaches storage. `GENERATION_LIMITS` are the tighter sizes the record
builders clamp to while generating.
"""

from __future__ import annotations

from typing import Dict, Tuple

from index_lab.errors import ConfigurationError

DEPARTMENTS = "departments"
USERS = "users"
ORDERS = "orders"
RESULTS = "performance_test_results"

ENTITY_TABLES: Tuple[str, ...] = (DEPARTMENTS, USERS, ORDERS)

INSERT_COLUMNS: Dict[str, Tuple[str, ...]] = {
    DEPARTMENTS: ("name", "description", "manager_id", "created_date", "is_active"),
    USERS: (
        "first_name",
        "last_name",
        "email",
        "phone_number",
        "date_of_birth",
        "created_date",
        "last_login_date",
        "city",
        "state",
        "country",
        "zip_code",
        "salary",
        "department_id",
        "is_active",
        "notes",
    ),
    ORDERS: (
        "user_id",
        "order_date",
        "total_amount",
        "status",
        "shipping_address",
        "shipped_date",
        "delivered_date",
        "notes",
    ),
    RESULTS: (
        "test_name",
        "query_type",
        "execution_time_ms",
        "records_affected",
        "test_date",
        "additional_info",
    ),
}

FIELD_LIMITS: Dict[str, Dict[str, int]] = {
    DEPARTMENTS: {"name": 100, "description": 500},
    USERS: {
        "first_name": 100,
        "last_name": 100,
        "email": 255,
        "phone_number": 50,
        "city": 100,
        "state": 100,
        "country": 100,
        "zip_code": 20,
        "notes": 4000,
    },
    ORDERS: {"status": 50, "shipping_address": 1000, "notes": 4000},
    RESULTS: {"test_name": 200, "query_type": 50},
}

GENERATION_LIMITS: Dict[str, int] = {
    "name": 90,
    "description": 450,
    "zip_code": 15,
    "shipping_address": 950,
    "notes": 3000,
    "email_part": 15,
}


def insert_columns(table: str) -> Tuple[str, ...]:
    if table not in INSERT_COLUMNS:
        raise ConfigurationError(f"Unknown table '{table}'. Known: {', '.join(INSERT_COLUMNS)}")
    return INSERT_COLUMNS[table]


__all__ = [
    "DEPARTMENTS",
    "ENTITY_TABLES",
    "FIELD_LIMITS",
    "GENERATION_LIMITS",
    "INSERT_COLUMNS",
    "ORDERS",
    "RESULTS",
    "USERS",
    "insert_columns",
]
