"""
Order Workflow

Turns a customer's selected food items into a priced, paid and persisted
order. The workflow is the only component that touches both the catalog and
the payment processor.

Each attempt moves through these stages:

    REQUESTED -> PRICED -> PAID -> STOCK_COMMITTED -> COMPLETED

and any failure aborts it: nothing is persisted and no Order is returned.
Payment is taken before stock is committed, so a declined charge never
leaves stock reserved. If a stock decrement is rejected after the charge
went through, the charge stays in place unless ``refund_on_stock_failure``
is enabled, in which case earlier decrements are restocked and the charge
is credited back before InsufficientStock is raised.

Author: Food Ordering Team
Version: 1.0.0
"""

import logging
from datetime import datetime
from decimal import Decimal
from typing import Callable, Iterable, Optional, Sequence, Union

from foodorder.core.errors import (
    CustomerNotFound,
    EmptyOrder,
    FoodNotFound,
    InsufficientStock,
    InvalidPaymentDetails,
    InvalidQuantity,
    OrderNotFound,
    OrderingError,
    UnknownFood,
)
from foodorder.domain import (
    FoodItem,
    LineItem,
    Order,
    OrderLine,
    OrderStage,
    OrderStatus,
    PaymentKind,
    to_money,
)
from foodorder.repositories.customers import CustomerRepository
from foodorder.repositories.orders import OrderRepository
from foodorder.services.catalog import Catalog
from foodorder.services.payment.base import BasePaymentProcessor, PaymentResult
from foodorder.services.validation import validate_order_lines

logger = logging.getLogger(__name__)

LineInput = Union[LineItem, tuple[int, int]]


def calculate_total(lines: Iterable[OrderLine]) -> Decimal:
    """
    Sum of quantity x unit price over priced lines.

    Pure: no catalog or payment access. Decimal arithmetic throughout, so
    the result equals the exact sum of the line subtotals.
    """
    return to_money(sum((line.unit_price * line.quantity for line in lines), Decimal("0")))


def _as_line_item(line: LineInput) -> LineItem:
    if isinstance(line, LineItem):
        return line
    food_id, quantity = line
    return LineItem(food_id=food_id, quantity=quantity)


def _as_payment_kind(value: Union[PaymentKind, str]) -> PaymentKind:
    try:
        return PaymentKind.parse(value)
    except ValueError as e:
        raise InvalidPaymentDetails(str(e)) from None


class OrderWorkflow:
    """
    Order orchestrator.

    Attributes:
        refund_on_stock_failure: Compensate (restock + refund) when stock
            cannot be committed after a successful charge
    """

    def __init__(
        self,
        catalog: Catalog,
        payment_processor: BasePaymentProcessor,
        order_repository: OrderRepository,
        customer_repository: CustomerRepository,
        refund_on_stock_failure: bool = False,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self._catalog = catalog
        self._payments = payment_processor
        self._orders = order_repository
        self._customers = customer_repository
        self.refund_on_stock_failure = refund_on_stock_failure
        self._clock = clock

    # =========================================================================
    # PRICING
    # =========================================================================

    @staticmethod
    def calculate_total(lines: Iterable[OrderLine]) -> Decimal:
        return calculate_total(lines)

    async def price_lines(self, lines: Sequence[LineInput]) -> tuple[OrderLine, ...]:
        """
        Resolve current prices for a price preview. Read-only.

        Raises:
            EmptyOrder, InvalidQuantity, UnknownFood
        """
        requested = self._validate_lines(lines)
        snapshot = await self._snapshot(requested)
        return self._build_lines(requested, snapshot)

    # =========================================================================
    # ORDER CREATION
    # =========================================================================

    async def create_order(
        self,
        customer_id: int,
        lines: Sequence[LineInput],
        payment_kind: Union[PaymentKind, str],
        identifier: str,
        secret: str,
    ) -> Order:
        """
        Validate, price, charge, commit stock and persist a new order.

        Args:
            customer_id: Customer placing the order
            lines: (food id, quantity) pairs in selection order
            payment_kind: TNG, GRAB or BANK
            identifier: Wallet id or card number
            secret: Payment method secret

        Returns:
            Order: The persisted order (status COMPLETED)

        Raises:
            EmptyOrder: No lines
            InvalidQuantity: A quantity is zero or negative
            CustomerNotFound: Unknown customer
            UnknownFood: A line references a food not in the catalog
            InsufficientStock: Not enough stock, before or after payment
            MethodNotFound / AuthenticationFailed / InsufficientFunds:
                The charge failed; stock is untouched
            PersistenceError: The store failed; a charge already taken
                is not reversed
        """
        stage = OrderStage.REQUESTED
        refunded = False
        try:
            requested = self._validate_lines(lines)
            kind = _as_payment_kind(payment_kind)

            if await self._customers.find_by_id(customer_id) is None:
                raise CustomerNotFound(customer_id)

            snapshot = await self._snapshot(requested)
            self._check_stock(requested, snapshot)
            order_lines = self._build_lines(requested, snapshot)
            total = calculate_total(order_lines)
            stage = self._advance(stage, OrderStage.PRICED, customer_id)

            payment = await self._payments.charge(kind, identifier, secret, total)
            stage = self._advance(stage, OrderStage.PAID, customer_id)

            shortfall = await self._commit_stock(order_lines)
            if shortfall is not None:
                line, committed = shortfall
                if self.refund_on_stock_failure:
                    await self._compensate(committed, payment)
                    refunded = True
                raise InsufficientStock(line.food_id, line.quantity)
            stage = self._advance(stage, OrderStage.STOCK_COMMITTED, customer_id)

            order = await self._orders.save(Order(
                id=None,
                customer_id=customer_id,
                ordered_at=self._clock(),
                lines=order_lines,
                total=total,
                payment=payment,
                status=OrderStatus.COMPLETED,
            ))
            self._advance(stage, OrderStage.COMPLETED, customer_id)

        except OrderingError as e:
            logger.warning(
                f"Order for customer #{customer_id} aborted at stage "
                f"'{stage.value}': {e.error_code} - {e.message}"
            )
            charged = stage in (OrderStage.PAID, OrderStage.STOCK_COMMITTED)
            if charged and not refunded:
                logger.error(f"Customer #{customer_id} was charged but no order was created")
            raise

        logger.info(
            f"Order #{order.id} completed for customer #{customer_id} - "
            f"{len(order.lines)} line(s), RM {order.total} via {kind.value}"
        )
        return order

    # =========================================================================
    # REPORTING
    # =========================================================================

    async def get_all_orders(self) -> list[Order]:
        return await self._orders.find_all()

    async def get_orders_by_customer(self, customer_id: int) -> list[Order]:
        return await self._orders.find_by_customer_id(customer_id)

    async def get_order(self, order_id: int) -> Order:
        order = await self._orders.find_by_id(order_id)
        if order is None:
            raise OrderNotFound(order_id)
        return order

    # =========================================================================
    # STEPS
    # =========================================================================

    @staticmethod
    def _validate_lines(lines: Optional[Sequence[LineInput]]) -> list[LineItem]:
        # Copy so later changes to the caller's list cannot reach the order
        requested = [_as_line_item(line) for line in (lines or [])]
        check = validate_order_lines(requested)
        if not check.is_valid:
            if check.error_code == "empty_order":
                raise EmptyOrder(check.error_message)
            raise InvalidQuantity(check.error_message)
        return requested

    async def _snapshot(self, requested: list[LineItem]) -> dict[int, FoodItem]:
        """Read each distinct food once, in line order."""
        snapshot: dict[int, FoodItem] = {}
        for line in requested:
            if line.food_id in snapshot:
                continue
            try:
                snapshot[line.food_id] = await self._catalog.get_food(line.food_id)
            except FoodNotFound:
                raise UnknownFood(line.food_id) from None
        return snapshot

    @staticmethod
    def _check_stock(requested: list[LineItem], snapshot: dict[int, FoodItem]) -> None:
        wanted: dict[int, int] = {}
        for line in requested:
            wanted[line.food_id] = wanted.get(line.food_id, 0) + line.quantity
        for food_id, quantity in wanted.items():
            available = snapshot[food_id].quantity
            if quantity > available:
                raise InsufficientStock(food_id, quantity, available)

    @staticmethod
    def _build_lines(requested: list[LineItem], snapshot: dict[int, FoodItem]) -> tuple[OrderLine, ...]:
        return tuple(
            OrderLine(
                food_id=line.food_id,
                food_name=snapshot[line.food_id].name,
                quantity=line.quantity,
                unit_price=snapshot[line.food_id].price,
            )
            for line in requested
        )

    async def _commit_stock(
        self, order_lines: tuple[OrderLine, ...]
    ) -> Optional[tuple[OrderLine, list[OrderLine]]]:
        """
        Decrement stock line by line, in line order.

        Returns None when every line committed, otherwise the line that
        could not be committed and the lines already decremented before it.
        """
        committed: list[OrderLine] = []
        for line in order_lines:
            if not await self._catalog.decrement(line.food_id, line.quantity):
                return line, committed
            committed.append(line)
        return None

    async def _compensate(self, committed: list[OrderLine], payment: PaymentResult) -> None:
        for line in reversed(committed):
            await self._catalog.restock(line.food_id, line.quantity)
        refund = await self._payments.refund(payment)
        logger.info(f"Charge {refund.reference} refunded after stock commit failure")

    @staticmethod
    def _advance(current: OrderStage, new: OrderStage, customer_id: int) -> OrderStage:
        logger.debug(f"Order for customer #{customer_id}: {current.value} -> {new.value}")
        return new
