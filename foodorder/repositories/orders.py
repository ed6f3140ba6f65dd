"""
Order Repository

Orders are written once, together with their lines, and never updated.
"""

import logging
from typing import Optional

from sqlalchemy import select

from foodorder.database import Database, next_sequence_value
from foodorder.domain import Order, OrderLine, from_cents, to_cents
from foodorder.models import OrderLineRow, OrderRow
from foodorder.services.payment.base import PaymentResult

logger = logging.getLogger(__name__)

ORDER_COUNTER = "order"


def _to_domain(row: OrderRow) -> Order:
    payment = PaymentResult(
        kind=row.payment_kind,
        amount=from_cents(row.amount_charged_cents),
        balance=from_cents(row.resulting_balance_cents),
        payment_method_id=row.payment_method_id,
        reference=row.payment_reference,
        currency=row.currency,
        processed_at=row.paid_at,
    )
    lines = tuple(
        OrderLine(
            food_id=line.food_id,
            food_name=line.food_name,
            quantity=line.quantity,
            unit_price=from_cents(line.unit_price_cents),
        )
        for line in row.lines
    )
    return Order(
        id=row.id,
        customer_id=row.customer_id,
        ordered_at=row.ordered_at,
        lines=lines,
        total=from_cents(row.total_cents),
        payment=payment,
        status=row.status,
    )


class OrderRepository:
    """Order storage backed by the ``orders`` and ``order_lines`` tables."""

    def __init__(self, database: Database):
        self._db = database

    async def get_next_order_id(self) -> int:
        async with self._db.transaction() as session:
            return await next_sequence_value(session, ORDER_COUNTER)

    async def save(self, order: Order) -> Order:
        """
        Insert an order and its lines in one transaction.

        An id is issued from the order counter when the order has none.
        """
        async with self._db.transaction() as session:
            order_id = order.id
            if order_id is None:
                order_id = await next_sequence_value(session, ORDER_COUNTER)

            row = OrderRow(
                id=order_id,
                customer_id=order.customer_id,
                ordered_at=order.ordered_at,
                total_cents=to_cents(order.total),
                status=order.status,
                payment_kind=order.payment.kind,
                payment_method_id=order.payment.payment_method_id,
                payment_reference=order.payment.reference,
                amount_charged_cents=to_cents(order.payment.amount),
                resulting_balance_cents=to_cents(order.payment.balance),
                currency=order.payment.currency,
                paid_at=order.payment.processed_at,
                lines=[
                    OrderLineRow(
                        position=position,
                        food_id=line.food_id,
                        food_name=line.food_name,
                        quantity=line.quantity,
                        unit_price_cents=to_cents(line.unit_price),
                    )
                    for position, line in enumerate(order.lines)
                ],
            )
            session.add(row)

        logger.debug(f"Order #{order_id} saved with {len(order.lines)} line(s)")
        return Order(
            id=order_id,
            customer_id=order.customer_id,
            ordered_at=order.ordered_at,
            lines=order.lines,
            total=order.total,
            payment=order.payment,
            status=order.status,
        )

    async def find_by_id(self, order_id: int) -> Optional[Order]:
        async with self._db.transaction() as session:
            result = await session.execute(select(OrderRow).where(OrderRow.id == order_id))
            row = result.scalar_one_or_none()
            return _to_domain(row) if row else None

    async def find_all(self) -> list[Order]:
        """All orders, newest first."""
        async with self._db.transaction() as session:
            result = await session.execute(select(OrderRow).order_by(OrderRow.id.desc()))
            return [_to_domain(row) for row in result.scalars().all()]

    async def find_by_customer_id(self, customer_id: int) -> list[Order]:
        """Orders of one customer, newest first."""
        async with self._db.transaction() as session:
            result = await session.execute(
                select(OrderRow)
                .where(OrderRow.customer_id == customer_id)
                .order_by(OrderRow.id.desc())
            )
            return [_to_domain(row) for row in result.scalars().all()]
