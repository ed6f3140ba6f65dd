"""
Excel Order Report with Concurrency Control

Writes the order report (one row per order line) to an .xlsx file while
holding a file lock, so two exports never interleave their writes.

Author: Food Ordering Team
Version: 1.0.0
"""

import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Iterable, Optional

import pandas as pd
from filelock import FileLock, Timeout

from foodorder.core.config import get_settings
from foodorder.domain import Order

logger = logging.getLogger(__name__)


class ExcelManager:
    """Thread-safe Excel report writer."""

    ORDER_COLUMNS = [
        "order_id",
        "ordered_at",
        "customer_id",
        "status",
        "line_no",
        "food_id",
        "food_name",
        "quantity",
        "unit_price",
        "line_subtotal",
        "order_total",
        "payment_kind",
        "payment_reference",
        "amount_charged",
        "exported_at",
    ]

    def __init__(self, data_directory: Optional[str] = None, filename: Optional[str] = None,
                 lock_timeout: Optional[int] = None):
        settings = get_settings()
        self.data_dir = Path(data_directory or settings.data_directory)
        self.report_file = self.data_dir / (filename or settings.excel_filename)
        self.lock_file = self.data_dir / f"{self.report_file.name}.lock"
        self.lock_timeout = lock_timeout if lock_timeout is not None else settings.excel_lock_timeout

    def _ensure_data_dir(self) -> None:
        self.data_dir.mkdir(parents=True, exist_ok=True)

    def _rows(self, orders: Iterable[Order], export_time: str) -> list[dict[str, Any]]:
        rows = []
        for order in orders:
            for line_no, line in enumerate(order.lines, start=1):
                rows.append({
                    "order_id": order.id,
                    "ordered_at": order.ordered_at.isoformat(),
                    "customer_id": order.customer_id,
                    "status": order.status.value,
                    "line_no": line_no,
                    "food_id": line.food_id,
                    "food_name": line.food_name,
                    "quantity": line.quantity,
                    # Strings keep the exact two-place amounts in the sheet
                    "unit_price": str(line.unit_price),
                    "line_subtotal": str(line.subtotal),
                    "order_total": str(order.total),
                    "payment_kind": order.payment.kind.value,
                    "payment_reference": order.payment.reference,
                    "amount_charged": str(order.payment.amount),
                    "exported_at": export_time,
                })
        return rows

    def export_orders(self, orders: Iterable[Order]) -> dict[str, Any]:
        """
        Replace the report file with the given orders.

        Returns:
            dict with success, message, rows, path and exported_at
        """
        self._ensure_data_dir()

        orders = list(orders)
        result = {
            "success": False,
            "message": "",
            "orders": len(orders),
            "rows": 0,
            "path": str(self.report_file),
            "exported_at": None,
        }

        try:
            lock = FileLock(str(self.lock_file), timeout=self.lock_timeout)

            with lock:
                logger.debug(f"Lock acquired for {self.report_file}")

                export_time = datetime.now().isoformat()
                df = pd.DataFrame(self._rows(orders, export_time), columns=self.ORDER_COLUMNS)
                df.to_excel(str(self.report_file), index=False, engine="openpyxl")

                logger.info(f"{len(orders)} order(s) exported to {self.report_file}")

                result["success"] = True
                result["message"] = f"{len(orders)} order(s) exported"
                result["rows"] = len(df)
                result["exported_at"] = export_time

            logger.debug(f"Lock released for {self.report_file}")

        except Timeout:
            result["message"] = f"Lock timeout ({self.lock_timeout}s)"
            logger.error(f"Lock timeout for {self.report_file}")

        return result

    def read_orders(self) -> list[dict[str, Any]]:
        """Read the report back as a list of row dicts."""
        if not self.report_file.exists():
            return []
        df = pd.read_excel(self.report_file, engine="openpyxl", dtype=str)
        return df.to_dict("records")
