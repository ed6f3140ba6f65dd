"""
Payment Processor Abstract Base Class

Defines the interface contract for payment processing. The order workflow
depends only on this contract, so the ledger-backed processor can be swapped
for another implementation (or a test double) without touching order code.

Design Pattern: Strategy Pattern
    - One charge operation for every PaymentKind
    - Kinds differ only in the identifier namespace that is searched
    - Failures are raised as typed errors, never returned as results

Author: Food Ordering Team
Version: 1.0.0
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Optional

from foodorder.domain import PaymentKind, PaymentMethod


@dataclass(frozen=True)
class PaymentResult:
    """
    Result of a successful debit.

    Produced once per charge and never modified afterwards. An order holds
    its PaymentResult by value.

    Attributes:
        kind: Payment kind that was charged
        amount: Amount charged (always equal to the requested amount)
        balance: Balance left on the payment method after the debit
        payment_method_id: Id of the debited payment method
        reference: Unique reference for this charge (pay_xxx)
        currency: Currency code
        processed_at: When the debit was committed
    """
    kind: PaymentKind
    amount: Decimal
    balance: Decimal
    payment_method_id: int
    reference: str
    currency: str = "MYR"
    processed_at: datetime = field(default_factory=datetime.now)

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "kind": self.kind.value,
            "amount": str(self.amount),
            "balance": str(self.balance),
            "payment_method_id": self.payment_method_id,
            "reference": self.reference,
            "currency": self.currency,
            "processed_at": self.processed_at.isoformat(),
        }


@dataclass(frozen=True)
class RefundResult:
    """
    Result of crediting a charge back to its payment method.

    Attributes:
        reference: Reference of the charge that was credited back
        amount: Amount credited
        balance: Balance after the credit
    """
    reference: str
    amount: Decimal
    balance: Decimal


class BasePaymentProcessor(ABC):
    """
    Abstract base class for payment processors.

    Example:
        >>> result = await processor.charge(
        ...     PaymentKind.TNG, "TNG001", "secret", Decimal("21.00")
        ... )
        >>> result.balance
        Decimal('29.00')
    """

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Return the name of the processor (e.g. "ledger")."""

    @abstractmethod
    async def charge(
        self,
        kind: PaymentKind,
        identifier: str,
        secret: str,
        amount: Decimal,
    ) -> PaymentResult:
        """
        Authenticate a payment method and debit it.

        Args:
            kind: Which payment kind to search (TNG, GRAB, BANK)
            identifier: Wallet id or card number
            secret: Plain-text secret to verify against the stored hash
            amount: Amount to debit

        Returns:
            PaymentResult: Result of the committed debit

        Raises:
            MethodNotFound: No method with this identifier for the kind
            AuthenticationFailed: Secret does not match
            InsufficientFunds: Balance is lower than the amount
        """

    @abstractmethod
    async def refund(self, result: PaymentResult) -> RefundResult:
        """Credit a previous charge back to its payment method."""

    @abstractmethod
    async def register_method(
        self,
        kind: PaymentKind,
        identifier: str,
        secret: str,
        balance: Decimal,
        customer_id: Optional[int] = None,
        expiry_date: Optional[str] = None,
    ) -> PaymentMethod:
        """Create a payment method (account setup)."""

    @abstractmethod
    async def get_method(self, kind: PaymentKind, identifier: str) -> PaymentMethod:
        """Look up a payment method, raising MethodNotFound if missing."""

    @abstractmethod
    async def health_check(self) -> bool:
        """Verify that the processor can reach its ledger."""
