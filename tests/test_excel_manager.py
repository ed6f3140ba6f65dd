from datetime import datetime
from decimal import Decimal

from filelock import FileLock

from foodorder.domain import Order, OrderLine, OrderStatus, PaymentKind
from foodorder.services.excel_manager import ExcelManager
from foodorder.services.payment import PaymentResult


def make_order(order_id, lines):
    total = sum((line.subtotal for line in lines), Decimal("0.00"))
    return Order(
        id=order_id,
        customer_id=1000,
        ordered_at=datetime(2024, 1, 1, 12, 0),
        lines=lines,
        total=total,
        payment=PaymentResult(
            kind=PaymentKind.TNG,
            amount=total,
            balance=Decimal("0.00"),
            payment_method_id=1,
            reference=f"pay_{order_id}",
        ),
        status=OrderStatus.COMPLETED,
    )


def test_export_writes_one_row_per_line(tmp_path):
    manager = ExcelManager(data_directory=str(tmp_path), filename="orders.xlsx", lock_timeout=5)
    orders = [
        make_order(1, [OrderLine(2000, "Chicken Rice", 2, Decimal("10.50"))]),
        make_order(2, [
            OrderLine(2000, "Chicken Rice", 1, Decimal("10.50")),
            OrderLine(2001, "Nasi Lemak", 3, Decimal("8.00")),
        ]),
    ]

    result = manager.export_orders(orders)

    assert result["success"] is True
    assert result["orders"] == 2
    assert result["rows"] == 3

    rows = manager.read_orders()
    assert [row["order_id"] for row in rows] == ["1", "2", "2"]
    assert rows[0]["line_subtotal"] == "21.00"
    assert rows[2]["order_total"] == "34.50"
    assert rows[2]["food_name"] == "Nasi Lemak"


def test_export_with_no_orders(tmp_path):
    manager = ExcelManager(data_directory=str(tmp_path), lock_timeout=5)

    result = manager.export_orders([])

    assert result["success"] is True
    assert result["rows"] == 0
    assert manager.read_orders() == []


def test_read_before_export(tmp_path):
    assert ExcelManager(data_directory=str(tmp_path)).read_orders() == []


def test_export_times_out_while_locked(tmp_path):
    manager = ExcelManager(data_directory=str(tmp_path), lock_timeout=0)

    with FileLock(str(manager.lock_file)):
        result = manager.export_orders([make_order(1, [OrderLine(2000, "Chicken Rice", 1, Decimal("10.50"))])])

    assert result["success"] is False
    assert "timeout" in result["message"].lower()
    assert not manager.report_file.exists()
