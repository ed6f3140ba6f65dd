"""
Catalog Service

Owns food items: lookup with price and stock for the order workflow, the
atomic stock decrement, and the admin register/update/delete flow.

Author: Food Ordering Team
Version: 1.0.0
"""

import logging
from decimal import Decimal
from typing import Optional

from foodorder.core.config import get_settings
from foodorder.core.errors import DuplicateRecord, FoodNotFound, InvalidFood
from foodorder.domain import FoodItem, FoodType, to_money
from foodorder.repositories.foods import FoodRepository
from foodorder.services.validation import (
    first_failure,
    validate_food_name,
    validate_food_price,
    validate_food_type,
    validate_stock_quantity,
)

logger = logging.getLogger(__name__)


class Catalog:
    """
    Food catalog.

    Example:
        >>> catalog = Catalog(FoodRepository(database))
        >>> food = await catalog.register("Chicken Rice", Decimal("10.50"), "Set", 5)
        >>> await catalog.find_priced(food.id)
        (Decimal('10.50'), 5)
    """

    def __init__(
        self,
        food_repository: FoodRepository,
        min_price: Optional[Decimal] = None,
        max_price: Optional[Decimal] = None,
    ):
        self._foods = food_repository
        self._min_price = min_price if min_price is not None else get_settings().min_food_price
        self._max_price = max_price if max_price is not None else get_settings().max_food_price

    # =========================================================================
    # ORDER WORKFLOW SURFACE
    # =========================================================================

    async def find_priced(self, food_id: int) -> tuple[Decimal, int]:
        """
        Return (price, available quantity) for a food item.

        This is the read for callers that need only price and stock. The
        order workflow reads the full item through ``get_food`` because it
        also snapshots the food name onto each order line.

        Raises:
            FoodNotFound: If the id is unknown
        """
        food = await self.get_food(food_id)
        return food.price, food.quantity

    async def decrement(self, food_id: int, quantity: int) -> bool:
        """
        Atomically reduce available stock.

        Returns:
            bool: True if committed; False (nothing changed) if the id is
            unknown, the quantity is not positive or stock is short.
        """
        if quantity <= 0:
            return False
        committed = await self._foods.decrement_quantity(food_id, quantity)
        if committed:
            logger.debug(f"Stock for food {food_id} reduced by {quantity}")
        else:
            logger.warning(f"Stock decrement rejected for food {food_id} (requested {quantity})")
        return committed

    async def restock(self, food_id: int, quantity: int) -> bool:
        """Put ``quantity`` back into stock (used to undo a decrement)."""
        restored = await self._foods.increment_quantity(food_id, quantity)
        if restored:
            logger.info(f"Stock for food {food_id} restored by {quantity}")
        return restored

    # =========================================================================
    # ADMIN CATALOG MANAGEMENT
    # =========================================================================

    async def get_food(self, food_id: int) -> FoodItem:
        food = await self._foods.find_by_id(food_id)
        if food is None:
            raise FoodNotFound(food_id)
        return food

    async def list_foods(self) -> list[FoodItem]:
        return await self._foods.find_all()

    async def register(
        self,
        name: str,
        price: Decimal,
        food_type,
        quantity: int = 0,
    ) -> FoodItem:
        """
        Validate and add a new food item.

        Raises:
            InvalidFood: A field breaks a catalog rule
            DuplicateRecord: A food with the same name exists
        """
        self._validate(name, price, food_type, quantity)
        name = " ".join(name.split())
        if await self._foods.exists_by_name(name):
            raise DuplicateRecord(f"Food '{name}' already exists")

        food = await self._foods.save(FoodItem(
            id=None,
            name=name,
            price=to_money(price),
            food_type=FoodType.parse(food_type),
            quantity=quantity,
        ))
        logger.info(f"Food #{food.id} registered: {food.name} @ {food.price}")
        return food

    async def update(
        self,
        food_id: int,
        name: Optional[str] = None,
        price: Optional[Decimal] = None,
        food_type=None,
    ) -> FoodItem:
        """
        Change any subset of name, price and type.

        Only the given fields are written. Stock is changed through
        ``set_stock`` or the order workflow.
        """
        current = await self.get_food(food_id)
        name = " ".join(name.split()) if name is not None else None
        self._validate(
            name if name is not None else current.name,
            price if price is not None else current.price,
            food_type if food_type is not None else current.food_type,
            current.quantity,
        )
        if name is not None and await self._foods.exists_by_name(name, exclude_id=food_id):
            raise DuplicateRecord(f"Food '{name}' already exists")

        updated = await self._foods.update(
            food_id,
            name=name,
            price=to_money(price) if price is not None else None,
            food_type=FoodType.parse(food_type) if food_type is not None else None,
        )
        if updated is None:
            raise FoodNotFound(food_id)
        logger.info(f"Food #{food_id} updated")
        return updated

    async def set_stock(self, food_id: int, quantity: int) -> FoodItem:
        """
        Overwrite the available stock of a food item (admin restock count).

        Raises:
            InvalidFood: Negative quantity
            FoodNotFound: If the id is unknown
        """
        check = validate_stock_quantity(quantity)
        if not check.is_valid:
            raise InvalidFood(check.error_message)
        if not await self._foods.set_quantity(food_id, quantity):
            raise FoodNotFound(food_id)
        logger.info(f"Stock for food {food_id} set to {quantity}")
        return await self.get_food(food_id)

    async def delete(self, food_id: int) -> None:
        if not await self._foods.delete_by_id(food_id):
            raise FoodNotFound(food_id)
        logger.info(f"Food #{food_id} deleted")

    def _validate(self, name, price, food_type, quantity) -> None:
        failure = first_failure(
            validate_food_name(name),
            validate_food_price(price, self._min_price, self._max_price),
            validate_food_type(food_type),
            validate_stock_quantity(quantity),
        )
        if failure is not None:
            raise InvalidFood(failure.error_message)
