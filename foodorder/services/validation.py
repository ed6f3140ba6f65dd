"""
Field Validation Rules

Each check returns a ValidationResult instead of raising, so a caller (an
interactive prompt, an API handler) can decide whether to re-ask for input.
Services turn an invalid result into the matching typed error.

Rules:
    - Food: name letters/spaces, price within the configured bounds,
      type 'Set' or 'A la carte'
    - Customer: name letters/spaces, age 18-79, phone 10 or 11 digits,
      gender Male/Female, password at least 5 characters
    - Card: 16-digit card number, 4-digit MMYY expiry
    - Order lines: at least one line, every quantity above zero
"""

import re
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Iterable, Optional

from foodorder.domain import FoodType, LineItem

NAME_PATTERN = re.compile(r"^[a-zA-Z\s]+$")

MIN_AGE = 18
MAX_AGE = 79
MIN_PASSWORD_LENGTH = 5
PHONE_LENGTHS = (10, 11)
CARD_NUMBER_LENGTH = 16
EXPIRY_DATE_LENGTH = 4
VALID_GENDERS = ("Male", "Female")


@dataclass
class ValidationResult:
    """
    Outcome of a single validation rule.

    Attributes:
        is_valid: Whether the value passed
        error_message: Human readable reason when it did not
        error_code: Machine-readable reason when it did not
    """
    is_valid: bool
    error_message: Optional[str] = None
    error_code: Optional[str] = None

    @classmethod
    def ok(cls) -> "ValidationResult":
        return cls(is_valid=True)

    @classmethod
    def fail(cls, code: str, message: str) -> "ValidationResult":
        return cls(is_valid=False, error_message=message, error_code=code)


def first_failure(*results: ValidationResult) -> Optional[ValidationResult]:
    """Return the first invalid result, or None if all passed."""
    for result in results:
        if not result.is_valid:
            return result
    return None


# =============================================================================
# FOOD
# =============================================================================

def validate_food_name(name: Optional[str]) -> ValidationResult:
    if name is None or not name.strip():
        return ValidationResult.fail("invalid_name", "Food name is required")
    if not NAME_PATTERN.match(name):
        return ValidationResult.fail("invalid_name", "Food name must contain only letters")
    return ValidationResult.ok()


def validate_food_price(price, min_price: Decimal, max_price: Decimal) -> ValidationResult:
    try:
        value = Decimal(str(price))
    except (InvalidOperation, ValueError):
        return ValidationResult.fail("invalid_price", f"Invalid price: {price!r}")
    if not value.is_finite():
        return ValidationResult.fail("invalid_price", f"Invalid price: {price!r}")
    if value != value.quantize(Decimal("0.01")):
        return ValidationResult.fail("invalid_price", "Food price must have at most 2 decimal places")
    if not min_price <= value <= max_price:
        return ValidationResult.fail(
            "invalid_price",
            f"Food price must be between RM {min_price} and RM {max_price}",
        )
    return ValidationResult.ok()


def validate_food_type(food_type) -> ValidationResult:
    if food_type is None:
        return ValidationResult.fail("invalid_type", "Food type is required")
    try:
        FoodType.parse(food_type)
    except ValueError:
        return ValidationResult.fail("invalid_type", "Food type must be 'Set' or 'A la carte'")
    return ValidationResult.ok()


def validate_stock_quantity(quantity: int) -> ValidationResult:
    if quantity is None or quantity < 0:
        return ValidationResult.fail("invalid_quantity", "Available quantity cannot be negative")
    return ValidationResult.ok()


# =============================================================================
# CUSTOMER
# =============================================================================

def validate_customer_name(name: Optional[str]) -> ValidationResult:
    if name is None or not name.strip() or not NAME_PATTERN.match(name):
        return ValidationResult.fail("invalid_name", "Name must contain only letters")
    return ValidationResult.ok()


def validate_age(age: int) -> ValidationResult:
    if age is None or not MIN_AGE <= age <= MAX_AGE:
        return ValidationResult.fail("invalid_age", f"Age must be between {MIN_AGE} and {MAX_AGE}")
    return ValidationResult.ok()


def validate_phone_number(phone_number: Optional[str]) -> ValidationResult:
    if phone_number is None or not phone_number.isdigit() or len(phone_number) not in PHONE_LENGTHS:
        return ValidationResult.fail(
            "invalid_phone",
            f"Phone number must be {PHONE_LENGTHS[0]} or {PHONE_LENGTHS[1]} digits",
        )
    return ValidationResult.ok()


def validate_gender(gender: Optional[str]) -> ValidationResult:
    if gender is None or gender.strip().capitalize() not in VALID_GENDERS:
        return ValidationResult.fail("invalid_gender", "Gender must be 'Male' or 'Female'")
    return ValidationResult.ok()


def validate_password(password: Optional[str]) -> ValidationResult:
    if password is None or len(password) < MIN_PASSWORD_LENGTH:
        return ValidationResult.fail(
            "invalid_password",
            f"Password must be at least {MIN_PASSWORD_LENGTH} characters",
        )
    return ValidationResult.ok()


# =============================================================================
# PAYMENT
# =============================================================================

def validate_card_details(card_number: Optional[str], expiry_date: Optional[str]) -> ValidationResult:
    if card_number is None or not card_number.isdigit() or len(card_number) != CARD_NUMBER_LENGTH:
        return ValidationResult.fail(
            "invalid_card_number",
            f"Invalid card number. Must be {CARD_NUMBER_LENGTH} digits",
        )
    if expiry_date is None or not expiry_date.isdigit() or len(expiry_date) != EXPIRY_DATE_LENGTH:
        return ValidationResult.fail(
            "invalid_expiry_date",
            f"Invalid expiry date. Must be {EXPIRY_DATE_LENGTH} digits (MMYY)",
        )
    if not 1 <= int(expiry_date[:2]) <= 12:
        return ValidationResult.fail("invalid_expiry_date", "Invalid expiry month")
    return ValidationResult.ok()


# =============================================================================
# ORDER LINES
# =============================================================================

def validate_order_lines(lines: Iterable[LineItem]) -> ValidationResult:
    lines = list(lines or [])
    if not lines:
        return ValidationResult.fail("empty_order", "Order must contain at least one item")
    for line in lines:
        if line.quantity is None or line.quantity <= 0:
            return ValidationResult.fail(
                "invalid_quantity",
                f"Quantity for food {line.food_id} must be greater than zero",
            )
    return ValidationResult.ok()
