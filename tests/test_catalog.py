import asyncio
from decimal import Decimal

import pytest

from foodorder.container import build_container
from foodorder.core.config import Settings
from foodorder.core.errors import DuplicateRecord, FoodNotFound, InvalidFood
from foodorder.domain import FoodType


async def test_register_issues_ids_from_2000(container):
    first = await container.catalog.register("Chicken Rice", Decimal("10.50"), "Set", 5)
    second = await container.catalog.register("Nasi Lemak", Decimal("8.00"), "a-la-carte")

    assert first.id == 2000
    assert second.id == 2001
    assert second.food_type is FoodType.A_LA_CARTE
    assert second.quantity == 0


async def test_register_normalizes_whitespace(container):
    food = await container.catalog.register("  Mee   Goreng ", Decimal("7.90"), "Set", 1)
    assert food.name == "Mee Goreng"


@pytest.mark.parametrize(
    "name, price, food_type, quantity",
    [
        ("Chicken Rice 2", Decimal("10.50"), "Set", 1),
        ("", Decimal("10.50"), "Set", 1),
        ("Chicken Rice", Decimal("0.00"), "Set", 1),
        ("Chicken Rice", Decimal("70.00"), "Set", 1),
        ("Chicken Rice", Decimal("10.505"), "Set", 1),
        ("Chicken Rice", Decimal("Infinity"), "Set", 1),
        ("Chicken Rice", Decimal("NaN"), "Set", 1),
        ("Chicken Rice", Decimal("10.50"), "Combo", 1),
        ("Chicken Rice", Decimal("10.50"), "Set", -1),
    ],
)
async def test_register_rejects_invalid_food(container, name, price, food_type, quantity):
    with pytest.raises(InvalidFood):
        await container.catalog.register(name, price, food_type, quantity)


async def test_register_rejects_duplicate_name(container, chicken_rice):
    with pytest.raises(DuplicateRecord):
        await container.catalog.register("chicken rice", Decimal("9.00"), "Set", 1)


async def test_price_bounds_come_from_given_settings(tmp_path):
    settings = Settings(
        _env_file=None,
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'bounds.db'}",
        data_directory=str(tmp_path / "data"),
        max_food_price=Decimal("20.00"),
    )
    container = build_container(settings)
    await container.open()
    try:
        with pytest.raises(InvalidFood):
            await container.catalog.register("Lobster", Decimal("60.00"), "Set", 1)
        food = await container.catalog.register("Lobster", Decimal("20.00"), "Set", 1)
        assert food.price == Decimal("20.00")
    finally:
        await container.close()


async def test_find_priced(container, chicken_rice):
    assert await container.catalog.find_priced(chicken_rice.id) == (Decimal("10.50"), 5)


async def test_find_priced_unknown_food(container):
    with pytest.raises(FoodNotFound):
        await container.catalog.find_priced(1)


async def test_decrement_commits_when_stock_covers_it(container, chicken_rice):
    assert await container.catalog.decrement(chicken_rice.id, 5) is True
    assert (await container.catalog.get_food(chicken_rice.id)).quantity == 0


async def test_decrement_rejects_shortage_without_change(container, chicken_rice):
    assert await container.catalog.decrement(chicken_rice.id, 6) is False
    assert (await container.catalog.get_food(chicken_rice.id)).quantity == 5


@pytest.mark.parametrize("quantity", [0, -1])
async def test_decrement_rejects_non_positive_quantity(container, chicken_rice, quantity):
    assert await container.catalog.decrement(chicken_rice.id, quantity) is False
    assert (await container.catalog.get_food(chicken_rice.id)).quantity == 5


async def test_decrement_unknown_food(container):
    assert await container.catalog.decrement(9999, 1) is False


async def test_concurrent_decrements_never_oversell(container, chicken_rice):
    results = await asyncio.gather(*(container.catalog.decrement(chicken_rice.id, 2) for _ in range(5)))

    assert results.count(True) == 2
    assert (await container.catalog.get_food(chicken_rice.id)).quantity == 1


async def test_restock(container, chicken_rice):
    await container.catalog.decrement(chicken_rice.id, 2)
    assert await container.catalog.restock(chicken_rice.id, 2) is True
    assert (await container.catalog.get_food(chicken_rice.id)).quantity == 5


async def test_update_changes_only_given_fields(container, chicken_rice):
    updated = await container.catalog.update(chicken_rice.id, price=Decimal("11.00"))

    assert updated.name == "Chicken Rice"
    assert updated.price == Decimal("11.00")
    assert updated.food_type is FoodType.SET
    assert updated.quantity == 5


async def test_price_update_keeps_concurrent_sale(container, chicken_rice, monkeypatch):
    real_exists_by_name = container.catalog._foods.exists_by_name

    async def sell_two_then_check(name, exclude_id=None):
        assert await container.catalog.decrement(chicken_rice.id, 2)
        return await real_exists_by_name(name, exclude_id=exclude_id)

    monkeypatch.setattr(container.catalog._foods, "exists_by_name", sell_two_then_check)

    updated = await container.catalog.update(chicken_rice.id, name="Chicken Rice", price=Decimal("11.00"))

    assert updated.price == Decimal("11.00")
    assert updated.quantity == 3
    assert (await container.catalog.get_food(chicken_rice.id)).quantity == 3


async def test_set_stock(container, chicken_rice):
    food = await container.catalog.set_stock(chicken_rice.id, 9)

    assert food.quantity == 9
    assert food.price == Decimal("10.50")


async def test_set_stock_rejects_negative_and_unknown(container, chicken_rice):
    with pytest.raises(InvalidFood):
        await container.catalog.set_stock(chicken_rice.id, -1)
    with pytest.raises(FoodNotFound):
        await container.catalog.set_stock(9999, 1)


async def test_update_rejects_name_of_another_food(container, chicken_rice):
    other = await container.catalog.register("Nasi Lemak", Decimal("8.00"), "Set", 1)

    with pytest.raises(DuplicateRecord):
        await container.catalog.update(other.id, name="Chicken Rice")


async def test_update_unknown_food(container):
    with pytest.raises(FoodNotFound):
        await container.catalog.update(9999, price=Decimal("1.00"))


async def test_delete(container, chicken_rice):
    await container.catalog.delete(chicken_rice.id)

    assert await container.catalog.list_foods() == []
    with pytest.raises(FoodNotFound):
        await container.catalog.delete(chicken_rice.id)


async def test_deleted_food_id_is_not_reused(container, chicken_rice):
    await container.catalog.delete(chicken_rice.id)
    food = await container.catalog.register("Roti Canai", Decimal("2.50"), "A la carte", 3)

    assert food.id == chicken_rice.id + 1


async def test_food_equality_is_by_id(container, chicken_rice):
    await container.catalog.decrement(chicken_rice.id, 1)
    reloaded = await container.catalog.get_food(chicken_rice.id)

    assert reloaded == chicken_rice
    assert reloaded.quantity != chicken_rice.quantity
    assert len({reloaded, chicken_rice}) == 1
