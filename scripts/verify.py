"""
Excel Verification Script

Verifies data integrity of the order report written by
POST /api/reports/orders.
Run from project root: python scripts/verify.py [path/to/orders.xlsx]

Author: Food Ordering Team
Version: 1.0.0
"""

import os
import sys
from datetime import datetime
from decimal import Decimal

import pandas as pd

EXCEL_FILE = os.path.join("data", "orders.xlsx")

REQUIRED_COLUMNS = ["order_id", "line_no", "food_id", "quantity", "line_subtotal", "order_total"]


def verify_excel(path: str = EXCEL_FILE) -> bool:
    """Check that every order's line subtotals add up to its total."""

    print("=" * 60)
    print("EXCEL VERIFICATION REPORT")
    print("=" * 60)
    print(f"Timestamp: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}")
    print(f"File: {path}")
    print("=" * 60)

    if not os.path.exists(path):
        print("\nExcel file not found!")
        print("   Export first: POST /api/reports/orders")
        return False

    # Read as text so amounts stay exact
    df = pd.read_excel(path, engine="openpyxl", dtype=str)
    print(f"\nFile loaded: {len(df)} row(s)")

    missing = [col for col in REQUIRED_COLUMNS if col not in df.columns]
    if missing:
        print(f"\nMissing Columns: {missing}")
        return False
    print("All required columns present")

    ok = True

    duplicates = df.duplicated(subset=["order_id", "line_no"]).sum()
    if duplicates > 0:
        print(f"\n{duplicates} duplicate order lines found!")
        ok = False
    else:
        print("No duplicate order lines")

    mismatched = []
    revenue = Decimal("0.00")
    for order_id, rows in df.groupby("order_id"):
        lines_total = sum((Decimal(v) for v in rows["line_subtotal"]), Decimal("0.00"))
        order_total = Decimal(rows["order_total"].iloc[0])
        revenue += order_total
        if lines_total != order_total:
            mismatched.append((order_id, lines_total, order_total))

    if mismatched:
        ok = False
        print(f"\n{len(mismatched)} order(s) whose lines do not add up:")
        for order_id, lines_total, order_total in mismatched[:5]:
            print(f"   Order #{order_id}: lines {lines_total} != total {order_total}")
    else:
        print("Every order total matches its lines")

    print(f"\nREVENUE:")
    print(f"   Orders: {df['order_id'].nunique()}")
    print(f"   Total: RM {revenue}")

    print("\n" + "=" * 60)
    print("VERIFICATION COMPLETE" if ok else "VERIFICATION FAILED")
    print("=" * 60)

    return ok


if __name__ == "__main__":
    target = sys.argv[1] if len(sys.argv) > 1 else EXCEL_FILE
    sys.exit(0 if verify_excel(target) else 1)
