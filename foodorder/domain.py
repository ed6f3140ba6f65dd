"""
Domain Records

Plain data records passed between repositories, services and the API.
Catalog entries, customers, payment methods and orders compare equal by id
only: two FoodItem instances with the same id are the same catalog entry
regardless of their other fields.

Money is always ``decimal.Decimal`` quantized to two places. Repositories
store it as integer cents.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP
from typing import TYPE_CHECKING, Optional, Union

if TYPE_CHECKING:
    from foodorder.services.payment.base import PaymentResult


CENT = Decimal("0.01")


def to_money(value: Union[Decimal, int, str]) -> Decimal:
    """Quantize a value to two decimal places."""
    if isinstance(value, float):
        raise TypeError("Money must not be built from float")
    return Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def to_cents(amount: Decimal) -> int:
    """Convert a money amount to integer cents (e.g. 10.50 -> 1050)."""
    return int(to_money(amount) * 100)


def from_cents(cents: int) -> Decimal:
    """Convert integer cents back to a money amount."""
    return to_money(Decimal(cents) / 100)


# =============================================================================
# ENUMS
# =============================================================================

class FoodType(str, enum.Enum):
    """Catalog food types."""
    SET = "Set"
    A_LA_CARTE = "A la carte"

    @classmethod
    def parse(cls, value: Union[str, "FoodType"]) -> "FoodType":
        """Case-insensitive lookup that also accepts 'A-la-carte'."""
        if isinstance(value, FoodType):
            return value
        normalized = " ".join(str(value).replace("-", " ").split()).lower()
        for member in cls:
            if member.value.lower() == normalized:
                return member
        raise ValueError(f"Food type must be 'Set' or 'A la carte', got {value!r}")


class PaymentFamily(str, enum.Enum):
    """Identifier namespace a payment kind belongs to."""
    WALLET = "wallet"
    CARD = "card"


class PaymentKind(str, enum.Enum):
    """
    Supported payment kinds.

    TNG and GRAB are mobile wallets identified by a wallet id; BANK is a
    card identified by its card number. All three are debited the same way.
    """
    TNG = "TNG"
    GRAB = "GRAB"
    BANK = "BANK"

    @property
    def family(self) -> PaymentFamily:
        if self is PaymentKind.BANK:
            return PaymentFamily.CARD
        return PaymentFamily.WALLET

    @property
    def identifier_label(self) -> str:
        return "card number" if self.family is PaymentFamily.CARD else "wallet id"

    @classmethod
    def parse(cls, value: Union[str, "PaymentKind"]) -> "PaymentKind":
        if isinstance(value, PaymentKind):
            return value
        try:
            return cls(str(value).strip().upper())
        except ValueError:
            valid = [k.value for k in cls]
            raise ValueError(f"Unsupported payment type {value!r}. Options: {valid}")


class OrderStatus(str, enum.Enum):
    """Persisted order status."""
    PENDING = "PENDING"
    COMPLETED = "COMPLETED"


class OrderStage(str, enum.Enum):
    """Stages a single order attempt passes through before it is persisted."""
    REQUESTED = "requested"
    PRICED = "priced"
    PAID = "paid"
    STOCK_COMMITTED = "stock_committed"
    COMPLETED = "completed"
    ABORTED = "aborted"


# =============================================================================
# CATALOG / CUSTOMERS / PAYMENT METHODS
# =============================================================================

@dataclass(eq=False)
class FoodItem:
    """A catalog entry."""
    id: Optional[int]
    name: str
    price: Decimal
    food_type: FoodType
    quantity: int = 0

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, FoodItem):
            return NotImplemented
        return self.id == other.id

    def __hash__(self) -> int:
        return hash((FoodItem, self.id))


@dataclass(eq=False)
class Customer:
    """A registered customer."""
    id: Optional[int]
    name: str
    age: int
    phone_number: str
    gender: str
    password_hash: str = field(default="", repr=False)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Customer):
            return NotImplemented
        return self.id == other.id

    def __hash__(self) -> int:
        return hash((Customer, self.id))


@dataclass(eq=False)
class PaymentMethod:
    """A wallet or card with a balance that orders are debited from."""
    id: Optional[int]
    kind: PaymentKind
    identifier: str
    secret_hash: str = field(repr=False)
    balance: Decimal = Decimal("0.00")
    customer_id: Optional[int] = None
    expiry_date: Optional[str] = None

    @property
    def masked_identifier(self) -> str:
        """Identifier safe for logs (last four characters only)."""
        return f"****{self.identifier[-4:]}"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, PaymentMethod):
            return NotImplemented
        return self.id == other.id

    def __hash__(self) -> int:
        return hash((PaymentMethod, self.id))


# =============================================================================
# ORDERS
# =============================================================================

@dataclass(frozen=True)
class LineItem:
    """One (food, quantity) pair in an order request."""
    food_id: int
    quantity: int


@dataclass(frozen=True)
class OrderLine:
    """A committed order line with the unit price captured at selection time."""
    food_id: int
    food_name: str
    quantity: int
    unit_price: Decimal

    @property
    def subtotal(self) -> Decimal:
        return to_money(self.unit_price * self.quantity)

    def to_dict(self) -> dict:
        return {
            "food_id": self.food_id,
            "food_name": self.food_name,
            "quantity": self.quantity,
            "unit_price": str(self.unit_price),
            "subtotal": str(self.subtotal),
        }


@dataclass(eq=False)
class Order:
    """
    A paid and persisted order.

    Attributes:
        id: Assigned when the order is saved
        customer_id: Customer who placed the order
        ordered_at: Time the order was created
        lines: Copy of the requested lines, in selection order
        total: Exact sum of the line subtotals
        payment: Result of the debit that paid for the order
        status: COMPLETED once persisted
    """
    id: Optional[int]
    customer_id: int
    ordered_at: datetime
    lines: tuple[OrderLine, ...]
    total: Decimal
    payment: "PaymentResult"
    status: OrderStatus = OrderStatus.PENDING

    def __post_init__(self) -> None:
        self.lines = tuple(self.lines)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Order):
            return NotImplemented
        return self.id == other.id

    def __hash__(self) -> int:
        return hash((Order, self.id))

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization and reports."""
        return {
            "order_id": self.id,
            "customer_id": self.customer_id,
            "ordered_at": self.ordered_at.isoformat(),
            "lines": [line.to_dict() for line in self.lines],
            "total": str(self.total),
            "payment": self.payment.to_dict(),
            "status": self.status.value,
        }
