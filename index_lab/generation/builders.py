"""
Record builders for the synthetic dataset.

One function per entity kind, each parameterized by a `RandomSource` and, for
entities with a foreign key, by the ids that reference may point at. Builders
never touch storage; the generator feeds their output to the bulk loader.

Text comes from Faker, every probability and timestamp from the source's
`random.Random`. Seeding that Random (as tests do) therefore makes the whole
stream reproducible; the default source is unseeded.
"""

from __future__ import annotations

import random
import re
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Callable, Sequence

from faker import Faker

from index_lab.domain.models import Department, Order, OrderStatus, User
from index_lab.domain.schema import GENERATION_LIMITS
from index_lab.errors import ConfigurationError
from index_lab.generation.encoding import truncate

DEPARTMENT_ACTIVE_PROBABILITY = 0.9
USER_ACTIVE_PROBABILITY = 0.85
USER_LOGGED_IN_PROBABILITY = 0.7
USER_EMPTY_NOTES_PROBABILITY = 0.1
ORDER_NOTES_PROBABILITY = 0.7

EMAIL_DOMAINS = ("gmail.com", "outlook.com", "yahoo.com", "example.com")
DEPARTMENT_AREAS = (
    "Engineering",
    "Sales",
    "Marketing",
    "Finance",
    "Operations",
    "Support",
    "Research",
    "Legal",
    "Logistics",
    "Human Resources",
)

_CENT = Decimal("0.01")
_DAYS_PER_YEAR = 365.25
_NON_ALPHA = re.compile(r"[^a-z]")


@dataclass
class RandomSource:
    """
    Random backend shared by the builders.

    Parameters
    ----------
    rng : random.Random
        Source of every probability, choice and timestamp.
    locale : str
        Faker locale for names, addresses and free text.
    now : callable
        Clock used as the upper bound of generated timestamps.
    """

    rng: random.Random = field(default_factory=random.Random)
    locale: str = "en_US"
    now: Callable[[], datetime] = datetime.now
    faker: Faker = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self.faker = Faker(self.locale)
        self.faker.seed_instance(self.rng.getrandbits(64))

    def chance(self, probability: float) -> bool:
        return self.rng.random() < probability

    def between(self, start: datetime, end: datetime) -> datetime:
        if end <= start:
            return start
        return start + (end - start) * self.rng.random()

    def within_past(self, now: datetime, days: float) -> datetime:
        return now - timedelta(days=self.rng.uniform(0, days))

    def money(self, low: int, high: int) -> Decimal:
        cents = self.rng.randint(low * 100, high * 100)
        return (Decimal(cents) / 100).quantize(_CENT)


def _email_part(name: str) -> str:
    cleaned = _NON_ALPHA.sub("", name.lower())
    return truncate(cleaned, GENERATION_LIMITS["email_part"]) or "user"


def build_department(source: RandomSource) -> Department:
    now = source.now()
    name = f"{source.rng.choice(DEPARTMENT_AREAS)} {source.faker.city()}"
    return Department(
        name=truncate(name, GENERATION_LIMITS["name"]),
        description=truncate(source.faker.sentence(), GENERATION_LIMITS["description"]),
        created_date=source.within_past(now, 2 * _DAYS_PER_YEAR),
        is_active=source.chance(DEPARTMENT_ACTIVE_PROBABILITY),
    )


def build_user(source: RandomSource, department_ids: Sequence[int]) -> User:
    if not department_ids:
        raise ConfigurationError("Users need at least one existing department id")
    now = source.now()
    faker = source.faker
    first_name = faker.first_name()
    last_name = faker.last_name()
    email = (
        f"{_email_part(first_name)}.{_email_part(last_name)}"
        f"{source.rng.randint(1, 9999)}@{source.rng.choice(EMAIL_DOMAINS)}"
    )
    last_login = None
    if source.chance(USER_LOGGED_IN_PROBABILITY):
        last_login = source.within_past(now, 30)
    notes = ""
    if not source.chance(USER_EMPTY_NOTES_PROBABILITY):
        notes = truncate(" ".join(faker.sentences(nb=2)), GENERATION_LIMITS["notes"])
    birth = now - timedelta(days=source.rng.uniform(18 * _DAYS_PER_YEAR, 65 * _DAYS_PER_YEAR))

    return User(
        first_name=truncate(first_name, GENERATION_LIMITS["name"]),
        last_name=truncate(last_name, GENERATION_LIMITS["name"]),
        email=email,
        phone_number=faker.numerify("###-###-####"),
        date_of_birth=birth.date(),
        created_date=source.within_past(now, 2 * _DAYS_PER_YEAR),
        last_login_date=last_login,
        city=truncate(faker.city(), GENERATION_LIMITS["name"]),
        state=truncate(faker.state(), GENERATION_LIMITS["name"]),
        country=truncate(faker.country(), GENERATION_LIMITS["name"]),
        zip_code=truncate(faker.zipcode(), GENERATION_LIMITS["zip_code"]),
        salary=source.money(30_000, 200_000),
        department_id=source.rng.choice(department_ids),
        is_active=source.chance(USER_ACTIVE_PROBABILITY),
        notes=notes,
    )


def build_order(source: RandomSource, user_ids: Sequence[int]) -> Order:
    if not user_ids:
        raise ConfigurationError("Orders need at least one existing user id")
    now = source.now()
    order_date = source.within_past(now, _DAYS_PER_YEAR)
    status = source.rng.choice(list(OrderStatus))

    shipped = None
    delivered = None
    if status.ships:
        shipped = source.between(order_date, now)
    if status is OrderStatus.DELIVERED:
        delivered = source.between(shipped, now)

    notes = None
    if source.chance(ORDER_NOTES_PROBABILITY):
        notes = truncate(source.faker.sentence(), GENERATION_LIMITS["notes"])

    address = source.faker.address().replace("\n", ", ")
    return Order(
        user_id=source.rng.choice(user_ids),
        order_date=order_date,
        total_amount=source.money(10, 5_000),
        status=status,
        shipping_address=truncate(address, GENERATION_LIMITS["shipping_address"]),
        shipped_date=shipped,
        delivered_date=delivered,
        notes=notes,
    )


__all__ = [
    "EMAIL_DOMAINS",
    "RandomSource",
    "build_department",
    "build_order",
    "build_user",
]
