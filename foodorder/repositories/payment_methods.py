"""
Payment Method Repository (the payment ledger)

Looks payment methods up by (kind, identifier) and changes balances with
conditional UPDATE statements, so a debit can never take a balance below
zero even if two charges race.
"""

import logging
from decimal import Decimal
from typing import Optional

from sqlalchemy import select, update

from foodorder.database import Database
from foodorder.domain import PaymentKind, PaymentMethod, from_cents, to_cents
from foodorder.models import PaymentMethodRow

logger = logging.getLogger(__name__)


def _to_domain(row: PaymentMethodRow) -> PaymentMethod:
    return PaymentMethod(
        id=row.id,
        kind=row.kind,
        identifier=row.identifier,
        secret_hash=row.secret_hash,
        balance=from_cents(row.balance_cents),
        customer_id=row.customer_id,
        expiry_date=row.expiry_date,
    )


class PaymentMethodRepository:
    """Payment ledger backed by the ``payment_methods`` table."""

    def __init__(self, database: Database):
        self._db = database

    async def find_by_id(self, payment_method_id: int) -> Optional[PaymentMethod]:
        async with self._db.transaction() as session:
            row = await session.get(PaymentMethodRow, payment_method_id)
            return _to_domain(row) if row else None

    async def find_by_identifier(self, kind: PaymentKind, identifier: str) -> Optional[PaymentMethod]:
        """Search the identifier namespace of ``kind`` (wallet id or card number)."""
        async with self._db.transaction() as session:
            result = await session.execute(
                select(PaymentMethodRow).where(
                    PaymentMethodRow.kind == kind,
                    PaymentMethodRow.identifier == identifier,
                )
            )
            row = result.scalar_one_or_none()
            return _to_domain(row) if row else None

    async def find_by_customer_id(self, customer_id: int) -> list[PaymentMethod]:
        async with self._db.transaction() as session:
            result = await session.execute(
                select(PaymentMethodRow)
                .where(PaymentMethodRow.customer_id == customer_id)
                .order_by(PaymentMethodRow.id)
            )
            return [_to_domain(row) for row in result.scalars().all()]

    async def save(self, method: PaymentMethod) -> PaymentMethod:
        async with self._db.transaction() as session:
            row = PaymentMethodRow(
                customer_id=method.customer_id,
                kind=method.kind,
                identifier=method.identifier,
                secret_hash=method.secret_hash,
                balance_cents=to_cents(method.balance),
                expiry_date=method.expiry_date,
            )
            session.add(row)
            await session.flush()
            method.id = row.id
        return method

    async def debit(self, payment_method_id: int, amount: Decimal) -> Optional[Decimal]:
        """
        Atomically subtract ``amount`` if the balance covers it.

        Returns:
            The new balance, or None if the balance was too low (nothing
            changed).
        """
        cents = to_cents(amount)
        async with self._db.transaction() as session:
            result = await session.execute(
                update(PaymentMethodRow)
                .where(
                    PaymentMethodRow.id == payment_method_id,
                    PaymentMethodRow.balance_cents >= cents,
                )
                .values(balance_cents=PaymentMethodRow.balance_cents - cents)
                .execution_options(synchronize_session=False)
            )
            if result.rowcount != 1:
                return None
            return await self._read_balance(session, payment_method_id)

    async def credit(self, payment_method_id: int, amount: Decimal) -> Optional[Decimal]:
        """Atomically add ``amount``. Returns the new balance, or None if the id is unknown."""
        cents = to_cents(amount)
        async with self._db.transaction() as session:
            result = await session.execute(
                update(PaymentMethodRow)
                .where(PaymentMethodRow.id == payment_method_id)
                .values(balance_cents=PaymentMethodRow.balance_cents + cents)
                .execution_options(synchronize_session=False)
            )
            if result.rowcount != 1:
                return None
            return await self._read_balance(session, payment_method_id)

    @staticmethod
    async def _read_balance(session, payment_method_id: int) -> Decimal:
        result = await session.execute(
            select(PaymentMethodRow.balance_cents).where(PaymentMethodRow.id == payment_method_id)
        )
        return from_cents(result.scalar_one())
