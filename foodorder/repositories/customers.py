"""Customer persistence."""

from typing import Optional

from sqlalchemy import func, select

from foodorder.database import Database, next_sequence_value
from foodorder.domain import Customer
from foodorder.models import CustomerRow

CUSTOMER_COUNTER = "customer"


def _to_domain(row: CustomerRow) -> Customer:
    return Customer(
        id=row.id,
        name=row.name,
        age=row.age,
        phone_number=row.phone_number,
        gender=row.gender,
        password_hash=row.password_hash,
    )


class CustomerRepository:
    """Customer storage backed by the ``customers`` table."""

    def __init__(self, database: Database):
        self._db = database

    async def find_by_id(self, customer_id: int) -> Optional[Customer]:
        async with self._db.transaction() as session:
            row = await session.get(CustomerRow, customer_id)
            return _to_domain(row) if row else None

    async def find_by_phone(self, phone_number: str) -> Optional[Customer]:
        async with self._db.transaction() as session:
            result = await session.execute(
                select(CustomerRow).where(CustomerRow.phone_number == phone_number)
            )
            row = result.scalar_one_or_none()
            return _to_domain(row) if row else None

    async def exists_by_phone(self, phone_number: str) -> bool:
        async with self._db.transaction() as session:
            result = await session.execute(
                select(func.count(CustomerRow.id)).where(CustomerRow.phone_number == phone_number)
            )
            return (result.scalar() or 0) > 0

    async def save(self, customer: Customer) -> Customer:
        """Insert a customer, issuing an id from the customer counter."""
        async with self._db.transaction() as session:
            customer_id = customer.id
            if customer_id is None:
                customer_id = await next_sequence_value(session, CUSTOMER_COUNTER)
            session.add(CustomerRow(
                id=customer_id,
                name=customer.name,
                age=customer.age,
                phone_number=customer.phone_number,
                gender=customer.gender,
                password_hash=customer.password_hash,
            ))
        customer.id = customer_id
        return customer
