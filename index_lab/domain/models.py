"""
Domain models for Index Lab.

Defines the three generated entities aligned with `sql/01-create-tables.sql`
plus the benchmark result record. String lengths are NOT validated here: the
field encoder clamps values to the declared limits on the way to storage.
"""
from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, model_validator

_FROZEN = {
    "frozen": True,
    "populate_by_name": True,
    "arbitrary_types_allowed": False,
}


class OrderStatus(str, Enum):
    PENDING = "Pending"
    PROCESSING = "Processing"
    SHIPPED = "Shipped"
    DELIVERED = "Delivered"
    CANCELLED = "Cancelled"

    @property
    def ships(self) -> bool:
        return self in (OrderStatus.SHIPPED, OrderStatus.DELIVERED)


class Department(BaseModel):
    """
    Representation of a single row in the `departments` table.
    """

    id: Optional[int] = Field(None, description="Primary key, assigned by storage.")
    name: str = Field(..., description="Department name.")
    description: str = Field("", description="Free-text description.")
    manager_id: Optional[int] = Field(None, description="Optional manager reference.")
    created_date: datetime = Field(..., description="Creation timestamp (past).")
    is_active: bool = Field(True, description="Whether the department is active.")

    model_config = _FROZEN


class User(BaseModel):
    """
    Representation of a single row in the `users` table.
    """

    id: Optional[int] = Field(None, description="Primary key, assigned by storage.")
    first_name: str
    last_name: str
    email: str
    phone_number: str = ""
    date_of_birth: date
    created_date: datetime
    last_login_date: Optional[datetime] = None
    city: str = ""
    state: str = ""
    country: str = ""
    zip_code: str = ""
    salary: Decimal = Field(..., decimal_places=2)
    department_id: int = Field(..., description="Must reference an existing department.")
    is_active: bool = True
    notes: str = ""

    model_config = _FROZEN


class Order(BaseModel):
    """
    Representation of a single row in the `orders` table.

    Only shipped or delivered orders carry a shipped date, only delivered
    orders carry a delivered date, and order <= shipped <= delivered.
    """

    id: Optional[int] = Field(None, description="Primary key, assigned by storage.")
    user_id: int = Field(..., description="Must reference an existing user.")
    order_date: datetime
    total_amount: Decimal = Field(..., decimal_places=2)
    status: OrderStatus
    shipping_address: str = ""
    shipped_date: Optional[datetime] = None
    delivered_date: Optional[datetime] = None
    notes: Optional[str] = None

    model_config = _FROZEN

    @model_validator(mode="after")
    def _check_dates(self) -> "Order":
        if self.shipped_date is not None:
            if not self.status.ships:
                raise ValueError(f"status {self.status.value} cannot carry a shipped date")
            if self.shipped_date < self.order_date:
                raise ValueError("shipped_date precedes order_date")
        if self.delivered_date is not None:
            if self.status is not OrderStatus.DELIVERED:
                raise ValueError(f"status {self.status.value} cannot carry a delivered date")
            if self.shipped_date is None or self.delivered_date < self.shipped_date:
                raise ValueError("delivered_date requires an earlier shipped_date")
        return self


class BenchmarkResult(BaseModel):
    """
    Aggregated latency of one query shape.

    `execution_time_ms` is None when the shape failed; `error` then holds the
    failure message.
    """

    test_name: str
    query_type: str
    execution_time_ms: Optional[float] = None
    records_affected: int = 0
    test_date: datetime
    additional_info: str = ""
    error: Optional[str] = None

    model_config = _FROZEN

    @property
    def failed(self) -> bool:
        return self.error is not None


__all__ = ["BenchmarkResult", "Department", "Order", "OrderStatus", "User"]
