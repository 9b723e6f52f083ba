"""
Query shapes timed by the benchmark runner.

Each shape is a fixed read-only statement against the generated dataset,
tagged with the category it demonstrates. The catalog order is the run order.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List, Optional, Tuple

from index_lab.errors import ConfigurationError


@dataclass(frozen=True)
class QueryShape:
    name: str
    category: str
    sql: str


CATALOG: Tuple[QueryShape, ...] = (
    QueryShape(
        "Point lookup by primary key",
        "point",
        "SELECT * FROM users WHERE id = 12345",
    ),
    QueryShape(
        "Select first 1000 users",
        "basic",
        "SELECT * FROM users ORDER BY id LIMIT 1000",
    ),
    QueryShape(
        "Filter active users",
        "basic",
        "SELECT id, first_name, last_name, email FROM users WHERE is_active",
    ),
    QueryShape(
        "Users of one department",
        "basic",
        "SELECT first_name, last_name, email, salary FROM users WHERE department_id = 1",
    ),
    QueryShape(
        "Users with departments",
        "join",
        """
        SELECT u.first_name, u.last_name, d.name AS department
        FROM users u
        INNER JOIN departments d ON d.id = u.department_id
        WHERE u.is_active
        """,
    ),
    QueryShape(
        "Order count per user",
        "join",
        """
        SELECT u.id, u.email, COUNT(o.id) AS order_count
        FROM users u
        LEFT JOIN orders o ON o.user_id = u.id
        GROUP BY u.id, u.email
        """,
    ),
    QueryShape(
        "Department revenue",
        "join",
        """
        SELECT d.name, COUNT(o.id) AS orders, SUM(o.total_amount) AS revenue
        FROM departments d
        INNER JOIN users u ON u.department_id = d.id
        INNER JOIN orders o ON o.user_id = u.id
        GROUP BY d.name
        HAVING COUNT(o.id) > 100
        """,
    ),
    QueryShape(
        "Count all orders",
        "aggregate",
        "SELECT COUNT(*) FROM orders",
    ),
    QueryShape(
        "Salary by department",
        "aggregate",
        """
        SELECT department_id, SUM(salary) AS total_salary, AVG(salary) AS avg_salary
        FROM users
        GROUP BY department_id
        """,
    ),
    QueryShape(
        "Monthly order totals",
        "aggregate",
        """
        SELECT date_trunc('month', order_date) AS month, COUNT(*) AS orders,
               SUM(total_amount) AS revenue
        FROM orders
        GROUP BY date_trunc('month', order_date)
        ORDER BY month
        """,
    ),
    QueryShape(
        "Sort users by last name",
        "sort",
        "SELECT id, first_name, last_name FROM users ORDER BY last_name LIMIT 10000",
    ),
    QueryShape(
        "Multi-column sort",
        "sort",
        """
        SELECT id, country, state, city, last_name FROM users
        ORDER BY country, state, city, last_name
        LIMIT 10000
        """,
    ),
    QueryShape(
        "Latest orders",
        "sort",
        "SELECT id, user_id, order_date, total_amount FROM orders ORDER BY order_date DESC LIMIT 10000",
    ),
    QueryShape(
        "Offset paging",
        "paging",
        "SELECT id, email FROM users ORDER BY id OFFSET 50000 LIMIT 100",
    ),
    QueryShape(
        "Row number paging",
        "paging",
        """
        SELECT id, email FROM (
            SELECT id, email, ROW_NUMBER() OVER (ORDER BY id) AS rn FROM users
        ) numbered
        WHERE rn BETWEEN 50001 AND 50100
        """,
    ),
    QueryShape(
        "Keyset paging",
        "paging",
        "SELECT id, email FROM users WHERE id > 50000 ORDER BY id LIMIT 100",
    ),
    QueryShape(
        "Salary range",
        "range",
        "SELECT id, salary FROM users WHERE salary BETWEEN 50000 AND 100000",
    ),
    QueryShape(
        "Orders of the last 90 days",
        "range",
        "SELECT id, order_date, total_amount FROM orders WHERE order_date >= now() - interval '90 days'",
    ),
    QueryShape(
        "Users in a department set",
        "range",
        "SELECT id, department_id FROM users WHERE department_id IN (1, 2, 3, 4, 5)",
    ),
    QueryShape(
        "Users with delivered orders",
        "subquery",
        """
        SELECT u.id, u.email FROM users u
        WHERE EXISTS (
            SELECT 1 FROM orders o WHERE o.user_id = u.id AND o.status = 'Delivered'
        )
        """,
    ),
)


def categories(shapes: Iterable[QueryShape] = CATALOG) -> List[str]:
    """Distinct categories in first-seen order."""
    seen: List[str] = []
    for shape in shapes:
        if shape.category not in seen:
            seen.append(shape.category)
    return seen


def shapes_for(category: Optional[str] = None, shapes: Iterable[QueryShape] = CATALOG) -> List[QueryShape]:
    pool = list(shapes)
    if category is None or category == "all":
        return pool
    selected = [shape for shape in pool if shape.category == category]
    if not selected:
        raise ConfigurationError(
            f"Unknown query category '{category}'. Available: {', '.join(categories(pool))}"
        )
    return selected


__all__ = ["CATALOG", "QueryShape", "categories", "shapes_for"]
