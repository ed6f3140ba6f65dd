"""
SQLAlchemy Database Models

Tables for the food catalog, customers, payment methods and orders.
Money columns hold integer cents so conditional debits and stock
decrements compare exactly on every backend.

Author: Food Ordering Team
Version: 1.0.0
"""

from sqlalchemy import (
    CheckConstraint,
    Column,
    DateTime,
    Enum,
    ForeignKey,
    Integer,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from foodorder.database import Base
from foodorder.domain import FoodType, OrderStatus, PaymentKind


class FoodRow(Base):
    """Catalog entries with their available stock."""
    __tablename__ = "foods"
    __table_args__ = (
        CheckConstraint("quantity >= 0", name="ck_foods_quantity_non_negative"),
    )

    # Ids come from the "food" counter, not autoincrement
    id = Column(Integer, primary_key=True, autoincrement=False)
    name = Column(String(100), nullable=False, unique=True)
    price_cents = Column(Integer, nullable=False)
    food_type = Column(Enum(FoodType), nullable=False)
    quantity = Column(Integer, nullable=False, default=0)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    def __repr__(self):
        return f"<Food #{self.id} - {self.name} - {self.quantity} left>"


class CustomerRow(Base):
    """Registered customers."""
    __tablename__ = "customers"

    id = Column(Integer, primary_key=True, autoincrement=False)
    name = Column(String(100), nullable=False)
    age = Column(Integer, nullable=False)
    phone_number = Column(String(20), nullable=False, unique=True, index=True)
    gender = Column(String(10), nullable=False)
    password_hash = Column(String(255), nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now())

    def __repr__(self):
        return f"<Customer #{self.id} - {self.name}>"


class PaymentMethodRow(Base):
    """
    Wallets and cards.

    The identifier is a wallet id for TNG/GRAB and a card number for BANK;
    (kind, identifier) is unique.
    """
    __tablename__ = "payment_methods"
    __table_args__ = (
        UniqueConstraint("kind", "identifier", name="uq_payment_methods_kind_identifier"),
        CheckConstraint("balance_cents >= 0", name="ck_payment_methods_balance_non_negative"),
    )

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    customer_id = Column(Integer, ForeignKey("customers.id"), nullable=True, index=True)
    kind = Column(Enum(PaymentKind), nullable=False)
    identifier = Column(String(32), nullable=False)
    secret_hash = Column(String(255), nullable=False)
    balance_cents = Column(Integer, nullable=False, default=0)
    expiry_date = Column(String(4), nullable=True)  # MMYY, cards only

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    def __repr__(self):
        return f"<PaymentMethod #{self.id} - {self.kind.value}>"


class OrderRow(Base):
    """Completed orders together with the payment that settled them."""
    __tablename__ = "orders"

    id = Column(Integer, primary_key=True, autoincrement=False)
    customer_id = Column(Integer, ForeignKey("customers.id"), nullable=False, index=True)
    ordered_at = Column(DateTime(timezone=True), nullable=False)
    total_cents = Column(Integer, nullable=False)
    status = Column(
        Enum(OrderStatus),
        default=OrderStatus.PENDING,
        nullable=False,
        index=True
    )

    # =========================================================================
    # PAYMENT RESULT
    # =========================================================================
    payment_kind = Column(Enum(PaymentKind), nullable=False)
    payment_method_id = Column(Integer, nullable=False)
    payment_reference = Column(String(64), nullable=False, unique=True)
    amount_charged_cents = Column(Integer, nullable=False)
    resulting_balance_cents = Column(Integer, nullable=False)
    currency = Column(String(3), nullable=False)
    paid_at = Column(DateTime(timezone=True), nullable=False)

    lines = relationship(
        "OrderLineRow",
        order_by="OrderLineRow.position",
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    def __repr__(self):
        return f"<Order #{self.id} - customer {self.customer_id} - {self.status.value}>"


class OrderLineRow(Base):
    """Order lines. food_id is kept even if the food is later deleted."""
    __tablename__ = "order_lines"

    id = Column(Integer, primary_key=True, autoincrement=True)
    order_id = Column(Integer, ForeignKey("orders.id"), nullable=False, index=True)
    position = Column(Integer, nullable=False)
    food_id = Column(Integer, nullable=False)
    food_name = Column(String(100), nullable=False)
    quantity = Column(Integer, nullable=False)
    unit_price_cents = Column(Integer, nullable=False)


class IdCounter(Base):
    """Named monotonically increasing id counters."""
    __tablename__ = "id_counters"

    name = Column(String(32), primary_key=True)
    last_value = Column(Integer, nullable=False)
