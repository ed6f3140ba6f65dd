"""Shared fixtures: one temporary SQLite database per test."""

from decimal import Decimal

import pytest

from foodorder.container import build_container
from foodorder.core.config import Settings
from foodorder.domain import PaymentKind

WALLET_SECRET = "correct-secret"


@pytest.fixture
def settings(tmp_path):
    return Settings(
        _env_file=None,
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'foodorder.db'}",
        data_directory=str(tmp_path / "data"),
        excel_lock_timeout=5,
    )


@pytest.fixture
async def container(settings):
    container = build_container(settings)
    await container.open()
    yield container
    await container.close()


@pytest.fixture
async def chicken_rice(container):
    return await container.catalog.register("Chicken Rice", Decimal("10.50"), "Set", 5)


@pytest.fixture
async def customer(container):
    return await container.customers.register(
        name="Ahmad Ali",
        age=30,
        phone_number="0123456789",
        gender="Male",
        password="secret1",
    )


@pytest.fixture
async def wallet(container, customer):
    return await container.payments.register_method(
        PaymentKind.TNG,
        "TNG001",
        WALLET_SECRET,
        Decimal("50.00"),
        customer_id=customer.id,
    )
