"""
Stock Race Simulation Script

Fires concurrent orders for a food item with limited stock and checks that
stock never goes negative and the wallet is debited exactly once per
completed order.
Run from project root (with the API running): python scripts/simulate.py

Author: Food Ordering Team
Version: 1.0.0
"""

import argparse
import asyncio
import os
import random
import sys
import time
from datetime import datetime
from decimal import Decimal
from typing import Any, Optional

import httpx

# Windows event loop fix
if sys.platform == "win32":
    asyncio.set_event_loop_policy(asyncio.WindowsSelectorEventLoopPolicy())

# Configuration
API_BASE_URL = os.getenv("API_BASE_URL", "http://localhost:8001")
ADMIN_API_KEY = os.getenv("ADMIN_API_KEY")
TOTAL_ORDERS = 50

WALLET_SECRET = "sim-secret"
FOOD_NAMES = ["Chicken Rice", "Nasi Lemak", "Mee Goreng", "Roti Canai", "Char Kuey Teow"]


def admin_headers() -> dict[str, str]:
    return {"X-Admin-Key": ADMIN_API_KEY} if ADMIN_API_KEY else {}


# =============================================================================
# SEEDING
# =============================================================================

async def seed(client: httpx.AsyncClient, stock: int, balance: Decimal) -> dict[str, Any]:
    """Create one food item, one customer and one TNG wallet."""
    suffix = random.randint(100000, 999999)
    # Food names allow letters and spaces only
    letters = "".join(chr(ord("A") + int(d)) for d in str(suffix))

    food = await client.post(
        f"{API_BASE_URL}/api/foods",
        json={
            "name": f"{random.choice(FOOD_NAMES)} {letters}",
            "price": "10.50",
            "food_type": "Set",
            "quantity": stock,
        },
        headers=admin_headers(),
    )
    food.raise_for_status()

    customer = await client.post(
        f"{API_BASE_URL}/api/customers",
        json={
            "name": "Simulation Customer",
            "age": 30,
            "phone_number": f"0123{suffix}",
            "gender": "Female",
            "password": "simpass",
            "confirm_password": "simpass",
        },
    )
    customer.raise_for_status()

    wallet_id = f"SIM{suffix}"
    wallet = await client.post(
        f"{API_BASE_URL}/api/payment-methods",
        json={
            "payment_type": "TNG",
            "identifier": wallet_id,
            "secret": WALLET_SECRET,
            "balance": str(balance),
            "customer_id": customer.json()["id"],
        },
    )
    wallet.raise_for_status()

    return {
        "food": food.json(),
        "customer_id": customer.json()["id"],
        "wallet_id": wallet_id,
    }


# =============================================================================
# ORDER FIRING
# =============================================================================

async def send_order(
    client: httpx.AsyncClient,
    order_num: int,
    fixture: dict[str, Any],
    quantity: int,
) -> dict[str, Any]:
    """Place a single order and time it."""
    payload = {
        "customer_id": fixture["customer_id"],
        "items": [{"food_id": fixture["food"]["id"], "quantity": quantity}],
        "payment_type": "TNG",
        "identifier": fixture["wallet_id"],
        "secret": WALLET_SECRET,
    }
    start_time = time.time()

    try:
        response = await client.post(f"{API_BASE_URL}/api/orders", json=payload, timeout=30.0)
        elapsed = round(time.time() - start_time, 3)

        if response.status_code == 201:
            order = response.json()["order"]
            return {
                "order_num": order_num,
                "success": True,
                "order_id": order["id"],
                "total": Decimal(order["total"]),
                "time": elapsed,
            }
        return {
            "order_num": order_num,
            "success": False,
            "error": response.json().get("error", response.text[:100]),
            "time": elapsed,
        }
    except httpx.HTTPError as e:
        elapsed = round(time.time() - start_time, 3)
        return {
            "order_num": order_num,
            "success": False,
            "error": str(e)[:100],
            "time": elapsed,
        }


async def fetch_remaining(client: httpx.AsyncClient, food_id: int) -> Optional[int]:
    response = await client.get(f"{API_BASE_URL}/api/foods/{food_id}")
    if response.status_code != 200:
        return None
    return response.json()["quantity"]


# =============================================================================
# MAIN SIMULATION RUNNER
# =============================================================================

async def run_simulation(
    num_orders: int = TOTAL_ORDERS,
    stock: int = 20,
    quantity: int = 1,
    balance: Decimal = Decimal("1000.00"),
) -> dict[str, Any]:
    """
    Run the stock race.

    Args:
        num_orders: Number of concurrent orders
        stock: Initial stock of the contested food item
        quantity: Quantity per order
        balance: Starting wallet balance
    """
    print("=" * 70)
    print("STOCK RACE SIMULATION")
    print("=" * 70)
    print(f"Total Orders: {num_orders} x {quantity}")
    print(f"Initial Stock: {stock}")
    print(f"Target: {API_BASE_URL}")
    print(f"Started: {datetime.now().strftime('%H:%M:%S')}")
    print("=" * 70)

    start_time = time.time()

    async with httpx.AsyncClient() as client:
        fixture = await seed(client, stock, balance)
        food_id = fixture["food"]["id"]
        print(f"\nSeeded food #{food_id} and wallet {fixture['wallet_id']}")

        tasks = [send_order(client, i + 1, fixture, quantity) for i in range(num_orders)]
        results = await asyncio.gather(*tasks)

        remaining = await fetch_remaining(client, food_id)

    total_time = round(time.time() - start_time, 2)

    successful = [r for r in results if r["success"]]
    failed = [r for r in results if not r["success"]]
    charged = sum((r["total"] for r in successful), Decimal("0.00"))

    print("\n" + "=" * 70)
    print("SIMULATION RESULTS")
    print("=" * 70)
    print(f"\nCompleted Orders: {len(successful)}/{num_orders}")
    print(f"Rejected Orders: {len(failed)}/{num_orders}")
    print(f"Total Time: {total_time}s")
    print(f"Remaining Stock: {remaining}")
    print(f"Total Charged: RM {charged}")

    errors: dict[str, int] = {}
    for r in failed:
        errors[r["error"]] = errors.get(r["error"], 0) + 1
    for code, count in sorted(errors.items()):
        print(f"   {code}: {count}")

    sold = len(successful) * quantity
    oversold = remaining is None or remaining < 0 or sold + remaining != stock
    if oversold:
        # Orders rejected after the charge leave stock untouched but keep the money
        print(f"\nStock mismatch: sold {sold} + remaining {remaining} != {stock}")
    else:
        print("\nStock consistent: nothing oversold")

    print("=" * 70)

    return {
        "total": num_orders,
        "successful": len(successful),
        "failed": len(failed),
        "remaining": remaining,
        "consistent": not oversold,
        "total_time": total_time,
        "results": results,
    }


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Stock Race Simulation Script")
    parser.add_argument("--orders", type=int, default=TOTAL_ORDERS, help="Number of orders")
    parser.add_argument("--stock", type=int, default=20, help="Initial stock")
    parser.add_argument("--quantity", type=int, default=1, help="Quantity per order")
    parser.add_argument("--balance", type=Decimal, default=Decimal("1000.00"), help="Wallet balance")
    args = parser.parse_args()

    summary = asyncio.run(run_simulation(args.orders, args.stock, args.quantity, args.balance))
    sys.exit(0 if summary["consistent"] else 1)
