"""
Food Repository

Persistence for catalog entries. The stock decrement is a single
conditional UPDATE so the availability check and the subtraction cannot be
interleaved with another writer.
"""

import logging
from decimal import Decimal
from typing import Optional

from sqlalchemy import delete, func, select, update

from foodorder.database import Database, next_sequence_value
from foodorder.domain import FoodItem, FoodType, from_cents, to_cents
from foodorder.models import FoodRow

logger = logging.getLogger(__name__)

FOOD_COUNTER = "food"


def _to_domain(row: FoodRow) -> FoodItem:
    return FoodItem(
        id=row.id,
        name=row.name,
        price=from_cents(row.price_cents),
        food_type=row.food_type,
        quantity=row.quantity,
    )


class FoodRepository:
    """Catalog storage backed by the ``foods`` table."""

    def __init__(self, database: Database):
        self._db = database

    async def find_by_id(self, food_id: int) -> Optional[FoodItem]:
        async with self._db.transaction() as session:
            row = await session.get(FoodRow, food_id)
            return _to_domain(row) if row else None

    async def find_all(self) -> list[FoodItem]:
        async with self._db.transaction() as session:
            result = await session.execute(select(FoodRow).order_by(FoodRow.id))
            return [_to_domain(row) for row in result.scalars().all()]

    async def exists_by_name(self, name: str, exclude_id: Optional[int] = None) -> bool:
        query = select(func.count(FoodRow.id)).where(func.lower(FoodRow.name) == name.strip().lower())
        if exclude_id is not None:
            query = query.where(FoodRow.id != exclude_id)
        async with self._db.transaction() as session:
            result = await session.execute(query)
            return (result.scalar() or 0) > 0

    async def get_next_food_id(self) -> int:
        """Issue a food id; ids are never reused, even if the insert fails."""
        async with self._db.transaction() as session:
            return await next_sequence_value(session, FOOD_COUNTER)

    async def save(self, food: FoodItem) -> FoodItem:
        """Insert a food item, issuing an id when it has none."""
        async with self._db.transaction() as session:
            food_id = food.id
            if food_id is None:
                food_id = await next_sequence_value(session, FOOD_COUNTER)
            row = FoodRow(
                id=food_id,
                name=food.name,
                price_cents=to_cents(food.price),
                food_type=food.food_type,
                quantity=food.quantity,
            )
            session.add(row)
        logger.debug(f"Food #{food_id} saved")
        return FoodItem(food_id, food.name, food.price, food.food_type, food.quantity)

    async def update(
        self,
        food_id: int,
        name: Optional[str] = None,
        price: Optional[Decimal] = None,
        food_type: Optional[FoodType] = None,
    ) -> Optional[FoodItem]:
        """
        Write only the columns that were given.

        Stock is never written here, so a concurrent decrement is kept.
        Returns the stored item, or None if the id is unknown.
        """
        columns = {}
        if name is not None:
            columns["name"] = name
        if price is not None:
            columns["price_cents"] = to_cents(price)
        if food_type is not None:
            columns["food_type"] = food_type

        async with self._db.transaction() as session:
            if columns:
                result = await session.execute(
                    update(FoodRow)
                    .where(FoodRow.id == food_id)
                    .values(**columns)
                    .execution_options(synchronize_session=False)
                )
                if result.rowcount != 1:
                    return None
            row = await session.get(FoodRow, food_id)
            return _to_domain(row) if row else None

    async def set_quantity(self, food_id: int, quantity: int) -> bool:
        """Overwrite the stock of ``food_id``. Returns False if the id is unknown."""
        async with self._db.transaction() as session:
            result = await session.execute(
                update(FoodRow)
                .where(FoodRow.id == food_id)
                .values(quantity=quantity)
                .execution_options(synchronize_session=False)
            )
            return result.rowcount == 1

    async def delete_by_id(self, food_id: int) -> bool:
        async with self._db.transaction() as session:
            result = await session.execute(
                delete(FoodRow)
                .where(FoodRow.id == food_id)
                .execution_options(synchronize_session=False)
            )
            return result.rowcount == 1

    async def decrement_quantity(self, food_id: int, quantity: int) -> bool:
        """
        Atomically subtract ``quantity`` from the stock of ``food_id``.

        Returns:
            bool: False (and nothing changed) if the id is unknown or the
            stock is lower than ``quantity``.
        """
        async with self._db.transaction() as session:
            result = await session.execute(
                update(FoodRow)
                .where(FoodRow.id == food_id, FoodRow.quantity >= quantity)
                .values(quantity=FoodRow.quantity - quantity)
                .execution_options(synchronize_session=False)
            )
            return result.rowcount == 1

    async def increment_quantity(self, food_id: int, quantity: int) -> bool:
        """Atomically add ``quantity`` back to the stock of ``food_id``."""
        async with self._db.transaction() as session:
            result = await session.execute(
                update(FoodRow)
                .where(FoodRow.id == food_id)
                .values(quantity=FoodRow.quantity + quantity)
                .execution_options(synchronize_session=False)
            )
            return result.rowcount == 1
