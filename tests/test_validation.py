from decimal import Decimal

import pytest

from foodorder.domain import FoodType, LineItem, PaymentFamily, PaymentKind, from_cents, to_cents, to_money
from foodorder.services.validation import (
    first_failure,
    validate_age,
    validate_card_details,
    validate_food_price,
    validate_order_lines,
    validate_phone_number,
)


MIN_PRICE = Decimal("0.01")
MAX_PRICE = Decimal("69.99")


@pytest.mark.parametrize("price", ["0.01", "10.50", "69.99", Decimal("5")])
def test_food_price_within_bounds(price):
    assert validate_food_price(price, MIN_PRICE, MAX_PRICE).is_valid


@pytest.mark.parametrize("price", ["0", "70.00", "1.001", "abc", "Infinity", "-Infinity", "NaN"])
def test_food_price_rejected(price):
    result = validate_food_price(price, MIN_PRICE, MAX_PRICE)
    assert not result.is_valid
    assert result.error_code == "invalid_price"


def test_food_price_uses_given_bounds():
    assert not validate_food_price("25.00", MIN_PRICE, Decimal("20.00")).is_valid
    assert validate_food_price("0.50", Decimal("0.50"), MAX_PRICE).is_valid


@pytest.mark.parametrize("age, valid", [(17, False), (18, True), (79, True), (80, False)])
def test_age_bounds(age, valid):
    assert validate_age(age).is_valid is valid


@pytest.mark.parametrize("phone, valid", [("0123456789", True), ("01234567890", True), ("012345678", False)])
def test_phone_lengths(phone, valid):
    assert validate_phone_number(phone).is_valid is valid


def test_card_details():
    assert validate_card_details("4111111111111111", "0127").is_valid
    assert validate_card_details("4111111111111111", "0027").error_code == "invalid_expiry_date"
    assert validate_card_details("41111111", "0127").error_code == "invalid_card_number"


def test_order_lines():
    assert validate_order_lines([]).error_code == "empty_order"
    assert validate_order_lines([LineItem(2000, 1), LineItem(2001, -2)]).error_code == "invalid_quantity"
    assert validate_order_lines([LineItem(2000, 1)]).is_valid


def test_first_failure_returns_first_invalid():
    failure = first_failure(validate_age(30), validate_age(5), validate_phone_number("1"))
    assert failure.error_code == "invalid_age"
    assert first_failure(validate_age(30)) is None


def test_money_helpers():
    assert to_money("10.5") == Decimal("10.50")
    assert to_money(Decimal("0.005")) == Decimal("0.01")
    assert to_cents(Decimal("10.50")) == 1050
    assert from_cents(2100) == Decimal("21.00")
    with pytest.raises(TypeError):
        to_money(10.5)


def test_enum_parsing():
    assert FoodType.parse("a la carte") is FoodType.A_LA_CARTE
    assert FoodType.parse("A-la-carte") is FoodType.A_LA_CARTE
    assert PaymentKind.parse(" grab ") is PaymentKind.GRAB
    assert PaymentKind.BANK.family is PaymentFamily.CARD
    assert PaymentKind.TNG.identifier_label == "wallet id"
    with pytest.raises(ValueError):
        PaymentKind.parse("PAYPAL")
