"""
Pydantic Schemas for Request/Response Validation

Request bodies for the catalog, customer, payment-method and order
endpoints, and the response shapes built from domain records. Money is
Decimal and serializes as a two-place string.

Author: Food Ordering Team
Version: 1.0.0
"""

from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from foodorder.domain import (
    Customer,
    FoodItem,
    Order,
    OrderLine,
    PaymentFamily,
    PaymentKind,
    PaymentMethod,
)
from foodorder.services.payment.base import PaymentResult
from foodorder.services.validation import validate_card_details


# =============================================================================
# REQUEST SCHEMAS
# =============================================================================

class FoodCreate(BaseModel):
    """Request schema for registering a food item."""
    name: str = Field(..., min_length=1, max_length=100, examples=["Chicken Rice"])
    price: Decimal = Field(..., examples=["10.50"])
    food_type: str = Field(..., examples=["Set", "A la carte"])
    quantity: int = Field(default=0, ge=0, examples=[5])


class FoodUpdate(BaseModel):
    """Request schema for updating a food item. Omitted fields are kept."""
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    price: Optional[Decimal] = None
    food_type: Optional[str] = None
    quantity: Optional[int] = Field(None, ge=0)


class CustomerCreate(BaseModel):
    """Request schema for customer registration."""
    name: str = Field(..., examples=["Ahmad Ali"])
    age: int = Field(..., examples=[30])
    phone_number: str = Field(..., examples=["0123456789"])
    gender: str = Field(..., examples=["Male"])
    password: str = Field(..., examples=["secret1"])
    confirm_password: str = Field(..., examples=["secret1"])

    @model_validator(mode="after")
    def passwords_match(self) -> "CustomerCreate":
        if self.password != self.confirm_password:
            raise ValueError("Passwords do not match")
        return self


class CustomerLogin(BaseModel):
    customer_id: int
    password: str


class PaymentMethodCreate(BaseModel):
    """Request schema for creating a wallet or card."""
    payment_type: PaymentKind = Field(..., examples=["TNG", "GRAB", "BANK"])
    identifier: str = Field(..., min_length=1, max_length=32, examples=["TNG001"])
    secret: str = Field(..., min_length=1)
    balance: Decimal = Field(default=Decimal("0.00"), ge=0)
    customer_id: Optional[int] = None
    expiry_date: Optional[str] = Field(None, examples=["1228"])

    @field_validator("payment_type", mode="before")
    @classmethod
    def parse_payment_type(cls, v):
        return PaymentKind.parse(v)

    @model_validator(mode="after")
    def validate_card(self) -> "PaymentMethodCreate":
        if self.payment_type.family is PaymentFamily.CARD:
            check = validate_card_details(self.identifier, self.expiry_date)
            if not check.is_valid:
                raise ValueError(check.error_message)
        return self


class OrderItemCreate(BaseModel):
    """Single line in an order request."""
    food_id: int = Field(..., examples=[2000])
    quantity: int = Field(..., examples=[2])


class OrderPreviewRequest(BaseModel):
    items: List[OrderItemCreate]


class OrderCreate(BaseModel):
    """
    Request schema for placing an order.

    Card payments also carry the card expiry (MMYY); it is checked here and
    is not needed for the debit itself.
    """
    customer_id: int = Field(..., examples=[1000])
    items: List[OrderItemCreate]
    payment_type: PaymentKind = Field(..., examples=["TNG"])
    identifier: str = Field(..., examples=["TNG001"])
    secret: str
    expiry_date: Optional[str] = Field(None, examples=["1228"])

    @field_validator("payment_type", mode="before")
    @classmethod
    def parse_payment_type(cls, v):
        return PaymentKind.parse(v)

    @model_validator(mode="after")
    def validate_card(self) -> "OrderCreate":
        if self.payment_type.family is PaymentFamily.CARD:
            check = validate_card_details(self.identifier, self.expiry_date)
            if not check.is_valid:
                raise ValueError(check.error_message)
        return self


# =============================================================================
# RESPONSE SCHEMAS
# =============================================================================

class FoodResponse(BaseModel):
    id: int
    name: str
    price: Decimal
    food_type: str
    quantity: int

    @classmethod
    def from_domain(cls, food: FoodItem) -> "FoodResponse":
        return cls(
            id=food.id,
            name=food.name,
            price=food.price,
            food_type=food.food_type.value,
            quantity=food.quantity,
        )


class CustomerResponse(BaseModel):
    id: int
    name: str
    age: int
    phone_number: str
    gender: str

    @classmethod
    def from_domain(cls, customer: Customer) -> "CustomerResponse":
        return cls(
            id=customer.id,
            name=customer.name,
            age=customer.age,
            phone_number=customer.phone_number,
            gender=customer.gender,
        )


class PaymentMethodResponse(BaseModel):
    id: int
    payment_type: str
    identifier: str  # masked
    balance: Decimal
    customer_id: Optional[int]

    @classmethod
    def from_domain(cls, method: PaymentMethod) -> "PaymentMethodResponse":
        return cls(
            id=method.id,
            payment_type=method.kind.value,
            identifier=method.masked_identifier,
            balance=method.balance,
            customer_id=method.customer_id,
        )


class OrderLineResponse(BaseModel):
    food_id: int
    food_name: str
    quantity: int
    unit_price: Decimal
    subtotal: Decimal

    @classmethod
    def from_domain(cls, line: OrderLine) -> "OrderLineResponse":
        return cls(
            food_id=line.food_id,
            food_name=line.food_name,
            quantity=line.quantity,
            unit_price=line.unit_price,
            subtotal=line.subtotal,
        )


class PaymentResponse(BaseModel):
    payment_type: str
    amount: Decimal
    balance: Decimal
    reference: str
    currency: str
    processed_at: datetime

    @classmethod
    def from_domain(cls, result: PaymentResult) -> "PaymentResponse":
        return cls(
            payment_type=result.kind.value,
            amount=result.amount,
            balance=result.balance,
            reference=result.reference,
            currency=result.currency,
            processed_at=result.processed_at,
        )


class OrderResponse(BaseModel):
    """Response schema for a single order."""
    id: int
    customer_id: int
    ordered_at: datetime
    status: str
    total: Decimal
    lines: List[OrderLineResponse]
    payment: PaymentResponse

    @classmethod
    def from_domain(cls, order: Order) -> "OrderResponse":
        return cls(
            id=order.id,
            customer_id=order.customer_id,
            ordered_at=order.ordered_at,
            status=order.status.value,
            total=order.total,
            lines=[OrderLineResponse.from_domain(line) for line in order.lines],
            payment=PaymentResponse.from_domain(order.payment),
        )


class OrderCreateResponse(BaseModel):
    """Response after successfully creating an order."""
    success: bool
    message: str
    order: OrderResponse


class OrderPreviewResponse(BaseModel):
    lines: List[OrderLineResponse]
    total: Decimal
    currency: str


class OrderListResponse(BaseModel):
    """Response for listing multiple orders."""
    total: int
    orders: List[OrderResponse]


class ReportResponse(BaseModel):
    success: bool
    message: str
    orders: int
    rows: int
    path: str
    exported_at: Optional[str] = None


class ErrorResponse(BaseModel):
    """Standard error response."""
    success: bool = False
    error: str
    detail: Optional[str] = None


class HealthResponse(BaseModel):
    """Health check response."""
    status: str
    database: str
    payment_service: str
    timestamp: datetime
