import logging
from datetime import datetime
from decimal import Decimal
from unittest.mock import AsyncMock

import pytest

from foodorder.core.errors import (
    AuthenticationFailed,
    CustomerNotFound,
    EmptyOrder,
    InsufficientFunds,
    InsufficientStock,
    InvalidPaymentDetails,
    InvalidQuantity,
    MethodNotFound,
    OrderNotFound,
    PersistenceError,
    UnknownFood,
)
from foodorder.domain import (
    Customer,
    FoodItem,
    FoodType,
    LineItem,
    OrderLine,
    OrderStatus,
    PaymentKind,
)
from foodorder.repositories import CustomerRepository, OrderRepository
from foodorder.services.catalog import Catalog
from foodorder.services.orders import OrderWorkflow, calculate_total
from foodorder.services.payment import BasePaymentProcessor, PaymentResult

from tests.conftest import WALLET_SECRET


async def balance_of(container, identifier="TNG001"):
    method = await container.payments.get_method(PaymentKind.TNG, identifier)
    return method.balance


async def stock_of(container, food_id):
    return (await container.catalog.get_food(food_id)).quantity


async def place(container, customer, lines, identifier="TNG001", secret=WALLET_SECRET):
    return await container.orders.create_order(customer.id, lines, PaymentKind.TNG, identifier, secret)


# =============================================================================
# END-TO-END AGAINST SQLITE
# =============================================================================

async def test_successful_order_charges_and_commits_stock(container, chicken_rice, customer, wallet):
    order = await place(container, customer, [(chicken_rice.id, 2)])

    assert order.id == 1
    assert order.total == Decimal("21.00")
    assert order.payment.amount == Decimal("21.00")
    assert order.payment.balance == Decimal("29.00")
    assert order.status is OrderStatus.COMPLETED
    assert order.lines == (OrderLine(chicken_rice.id, "Chicken Rice", 2, Decimal("10.50")),)

    assert await stock_of(container, chicken_rice.id) == 3
    assert await balance_of(container) == Decimal("29.00")


async def test_completed_order_is_persisted(container, chicken_rice, customer, wallet):
    order = await place(container, customer, [(chicken_rice.id, 2)])

    stored = await container.orders.get_order(order.id)

    assert stored == order
    assert stored.total == Decimal("21.00")
    assert stored.lines == order.lines
    assert stored.payment.reference == order.payment.reference
    assert stored.status is OrderStatus.COMPLETED
    assert [o.id for o in await container.orders.get_orders_by_customer(customer.id)] == [order.id]


async def test_stock_shortage_rejects_before_payment(container, chicken_rice, customer, wallet):
    with pytest.raises(InsufficientStock) as exc_info:
        await place(container, customer, [(chicken_rice.id, 10)])

    assert exc_info.value.food_id == chicken_rice.id
    assert exc_info.value.available == 5
    assert await stock_of(container, chicken_rice.id) == 5
    assert await balance_of(container) == Decimal("50.00")
    assert await container.orders.get_all_orders() == []


async def test_repeated_food_lines_are_checked_together(container, chicken_rice, customer, wallet):
    with pytest.raises(InsufficientStock):
        await place(container, customer, [(chicken_rice.id, 3), (chicken_rice.id, 3)])

    assert await stock_of(container, chicken_rice.id) == 5
    assert await balance_of(container) == Decimal("50.00")


async def test_insufficient_funds_leaves_stock_untouched(container, chicken_rice, customer):
    await container.payments.register_method(PaymentKind.TNG, "TNG002", WALLET_SECRET, Decimal("5.00"))

    with pytest.raises(InsufficientFunds):
        await place(container, customer, [(chicken_rice.id, 2)], identifier="TNG002")

    assert await stock_of(container, chicken_rice.id) == 5
    assert await balance_of(container, "TNG002") == Decimal("5.00")
    assert await container.orders.get_all_orders() == []


async def test_wrong_secret_is_rejected(container, chicken_rice, customer, wallet):
    with pytest.raises(AuthenticationFailed):
        await place(container, customer, [(chicken_rice.id, 1)], secret="wrong")

    assert await balance_of(container) == Decimal("50.00")
    assert await stock_of(container, chicken_rice.id) == 5


async def test_unknown_wallet_is_rejected(container, chicken_rice, customer, wallet):
    with pytest.raises(MethodNotFound):
        await place(container, customer, [(chicken_rice.id, 1)], identifier="TNG999")

    assert await stock_of(container, chicken_rice.id) == 5


async def test_wallet_id_is_not_found_under_another_kind(container, chicken_rice, customer, wallet):
    with pytest.raises(MethodNotFound):
        await container.orders.create_order(
            customer.id, [(chicken_rice.id, 1)], PaymentKind.GRAB, "TNG001", WALLET_SECRET
        )

    assert await balance_of(container) == Decimal("50.00")


async def test_unknown_food_is_rejected(container, chicken_rice, customer, wallet):
    with pytest.raises(UnknownFood) as exc_info:
        await place(container, customer, [(chicken_rice.id, 1), (9999, 1)])

    assert exc_info.value.food_id == 9999
    assert await balance_of(container) == Decimal("50.00")
    assert await stock_of(container, chicken_rice.id) == 5


async def test_zero_quantity_is_rejected(container, chicken_rice, customer, wallet):
    with pytest.raises(InvalidQuantity):
        await place(container, customer, [(chicken_rice.id, 0)])

    assert await balance_of(container) == Decimal("50.00")


async def test_unknown_customer_is_rejected(container, chicken_rice, wallet):
    with pytest.raises(CustomerNotFound):
        await container.orders.create_order(
            4242, [(chicken_rice.id, 1)], PaymentKind.TNG, "TNG001", WALLET_SECRET
        )

    assert await balance_of(container) == Decimal("50.00")


async def test_unsupported_payment_type_is_rejected(container, chicken_rice, customer, wallet):
    with pytest.raises(InvalidPaymentDetails):
        await container.orders.create_order(
            customer.id, [(chicken_rice.id, 1)], "PAYPAL", "TNG001", WALLET_SECRET
        )


async def test_identical_orders_are_charged_twice(container, chicken_rice, customer, wallet):
    first = await place(container, customer, [(chicken_rice.id, 2)])
    second = await place(container, customer, [(chicken_rice.id, 2)])

    assert second.id > first.id
    assert first.payment.reference != second.payment.reference
    assert second.payment.balance == Decimal("8.00")
    assert await stock_of(container, chicken_rice.id) == 1
    assert [o.id for o in await container.orders.get_all_orders()] == [second.id, first.id]


async def test_order_keeps_its_own_copy_of_the_lines(container, chicken_rice, customer, wallet):
    lines = [LineItem(chicken_rice.id, 1)]
    order = await place(container, customer, lines)

    lines.append(LineItem(chicken_rice.id, 4))

    assert len(order.lines) == 1
    assert len((await container.orders.get_order(order.id)).lines) == 1


async def test_price_captured_at_order_time(container, chicken_rice, customer, wallet):
    order = await place(container, customer, [(chicken_rice.id, 1)])
    await container.catalog.update(chicken_rice.id, price=Decimal("12.00"))

    stored = await container.orders.get_order(order.id)

    assert stored.lines[0].unit_price == Decimal("10.50")
    assert stored.total == Decimal("10.50")


async def test_get_unknown_order_raises(container):
    with pytest.raises(OrderNotFound):
        await container.orders.get_order(404)


async def test_price_lines_does_not_charge(container, chicken_rice, customer, wallet):
    lines = await container.orders.price_lines([(chicken_rice.id, 3)])

    assert calculate_total(lines) == Decimal("31.50")
    assert await balance_of(container) == Decimal("50.00")
    assert await stock_of(container, chicken_rice.id) == 5


# =============================================================================
# STOCK LOST BETWEEN PAYMENT AND COMMIT
# =============================================================================

async def test_stock_failure_after_payment_keeps_charge_by_default(
    container, chicken_rice, customer, wallet, monkeypatch
):
    monkeypatch.setattr(container.catalog, "decrement", AsyncMock(return_value=False))

    with pytest.raises(InsufficientStock):
        await place(container, customer, [(chicken_rice.id, 2)])

    assert await balance_of(container) == Decimal("29.00")
    assert await container.orders.get_all_orders() == []


async def test_stock_failure_after_payment_is_compensated_when_enabled(
    container, chicken_rice, customer, wallet, monkeypatch
):
    nasi_lemak = await container.catalog.register("Nasi Lemak", Decimal("8.00"), "A la carte", 5)
    real_decrement = container.catalog.decrement

    async def lose_nasi_lemak(food_id, quantity):
        if food_id == nasi_lemak.id:
            return False
        return await real_decrement(food_id, quantity)

    monkeypatch.setattr(container.catalog, "decrement", lose_nasi_lemak)
    container.orders.refund_on_stock_failure = True

    with pytest.raises(InsufficientStock) as exc_info:
        await place(container, customer, [(chicken_rice.id, 2), (nasi_lemak.id, 1)])

    assert exc_info.value.food_id == nasi_lemak.id
    assert await balance_of(container) == Decimal("50.00")
    assert await stock_of(container, chicken_rice.id) == 5
    assert await stock_of(container, nasi_lemak.id) == 5
    assert await container.orders.get_all_orders() == []


# =============================================================================
# COLLABORATOR CALLS (test doubles)
# =============================================================================

@pytest.fixture
def doubles():
    catalog = AsyncMock(spec=Catalog)
    payments = AsyncMock(spec=BasePaymentProcessor)
    orders = AsyncMock(spec=OrderRepository)
    customers = AsyncMock(spec=CustomerRepository)

    catalog.get_food.return_value = FoodItem(2000, "Chicken Rice", Decimal("10.50"), FoodType.SET, 5)
    catalog.decrement.return_value = True
    customers.find_by_id.return_value = Customer(1000, "Ahmad Ali", 30, "0123456789", "Male")
    payments.charge.return_value = PaymentResult(
        kind=PaymentKind.TNG,
        amount=Decimal("21.00"),
        balance=Decimal("29.00"),
        payment_method_id=1,
        reference="pay_test",
    )
    orders.save.side_effect = lambda order: order

    workflow = OrderWorkflow(
        catalog=catalog,
        payment_processor=payments,
        order_repository=orders,
        customer_repository=customers,
        clock=lambda: datetime(2024, 1, 1, 12, 0),
    )
    return workflow, catalog, payments, orders, customers


async def test_empty_order_touches_nothing(doubles):
    workflow, catalog, payments, orders, customers = doubles

    with pytest.raises(EmptyOrder):
        await workflow.create_order(1000, [], PaymentKind.TNG, "TNG001", WALLET_SECRET)

    catalog.get_food.assert_not_called()
    catalog.decrement.assert_not_called()
    payments.charge.assert_not_called()
    orders.save.assert_not_called()
    customers.find_by_id.assert_not_called()


async def test_charge_happens_before_stock_commit(doubles):
    workflow, catalog, payments, orders, _ = doubles
    calls = []
    payments.charge.side_effect = lambda *args: calls.append("charge") or payments.charge.return_value
    catalog.decrement.side_effect = lambda *args: calls.append("decrement") or True

    order = await workflow.create_order(1000, [(2000, 2)], "tng", "TNG001", WALLET_SECRET)

    assert calls == ["charge", "decrement"]
    payments.charge.assert_awaited_once_with(PaymentKind.TNG, "TNG001", WALLET_SECRET, Decimal("21.00"))
    catalog.decrement.assert_awaited_once_with(2000, 2)
    assert order.ordered_at == datetime(2024, 1, 1, 12, 0)
    assert order.status is OrderStatus.COMPLETED


async def test_declined_charge_commits_no_stock(doubles):
    workflow, catalog, payments, orders, _ = doubles
    payments.charge.side_effect = InsufficientFunds()

    with pytest.raises(InsufficientFunds):
        await workflow.create_order(1000, [(2000, 2)], PaymentKind.TNG, "TNG001", WALLET_SECRET)

    catalog.decrement.assert_not_called()
    orders.save.assert_not_called()


async def test_compensation_restocks_in_reverse_and_refunds(doubles):
    workflow, catalog, payments, orders, _ = doubles
    workflow.refund_on_stock_failure = True
    catalog.get_food.side_effect = lambda food_id: FoodItem(
        food_id, f"Food {food_id}", Decimal("1.00"), FoodType.SET, 10
    )
    catalog.decrement.side_effect = lambda food_id, quantity: food_id != 3

    with pytest.raises(InsufficientStock):
        await workflow.create_order(1000, [(1, 1), (2, 2), (3, 3)], PaymentKind.TNG, "TNG001", WALLET_SECRET)

    assert [c.args for c in catalog.restock.await_args_list] == [(2, 2), (1, 1)]
    payments.refund.assert_awaited_once_with(payments.charge.return_value)
    orders.save.assert_not_called()


async def test_failed_refund_is_logged_as_kept_charge(doubles, caplog):
    workflow, catalog, payments, orders, _ = doubles
    workflow.refund_on_stock_failure = True
    catalog.decrement.return_value = False
    payments.refund.side_effect = PersistenceError("ledger unavailable")

    with caplog.at_level(logging.ERROR, logger="foodorder.services.orders"):
        with pytest.raises(PersistenceError):
            await workflow.create_order(1000, [(2000, 2)], PaymentKind.TNG, "TNG001", WALLET_SECRET)

    assert "charged but no order was created" in caplog.text
    orders.save.assert_not_called()


async def test_refunded_charge_is_not_logged_as_kept(doubles, caplog):
    workflow, catalog, payments, _, _ = doubles
    workflow.refund_on_stock_failure = True
    catalog.decrement.return_value = False

    with caplog.at_level(logging.ERROR, logger="foodorder.services.orders"):
        with pytest.raises(InsufficientStock):
            await workflow.create_order(1000, [(2000, 2)], PaymentKind.TNG, "TNG001", WALLET_SECRET)

    payments.refund.assert_awaited_once()
    assert "charged but no order was created" not in caplog.text


# =============================================================================
# TOTALS
# =============================================================================

def test_calculate_total_is_exact():
    lines = [
        OrderLine(1, "Teh Tarik", 3, Decimal("0.10")),
        OrderLine(2, "Kuih", 1, Decimal("0.20")),
    ]
    assert calculate_total(lines) == Decimal("0.50")


def test_calculate_total_matches_line_subtotals():
    lines = [
        OrderLine(2000, "Chicken Rice", 2, Decimal("10.50")),
        OrderLine(2001, "Nasi Lemak", 3, Decimal("8.00")),
    ]
    assert calculate_total(lines) == sum(line.subtotal for line in lines) == Decimal("45.00")


def test_calculate_total_of_nothing_is_zero():
    assert calculate_total([]) == Decimal("0.00")
