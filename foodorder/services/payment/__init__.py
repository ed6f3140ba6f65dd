"""
Payment Processor Package

Exposes the processor contract, its result types and the ledger-backed
implementation used by the order workflow.

Usage:
    from foodorder.services.payment import LedgerPaymentProcessor

    processor = LedgerPaymentProcessor(PaymentMethodRepository(database))
    result = await processor.charge(PaymentKind.GRAB, "GRAB42", "secret", Decimal("9.90"))

Author: Food Ordering Team
Version: 1.0.0
"""

from foodorder.services.payment.base import (
    BasePaymentProcessor,
    PaymentResult,
    RefundResult,
)
from foodorder.services.payment.ledger import LedgerPaymentProcessor

__all__ = [
    "BasePaymentProcessor",
    "PaymentResult",
    "RefundResult",
    "LedgerPaymentProcessor",
]
