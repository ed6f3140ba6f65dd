"""
Ledger Payment Processor Implementation

Debits payment methods stored in the local payment ledger. TNG and Grab
wallets and bank cards all go through the same authenticate-and-debit path;
the PaymentKind only decides which identifier namespace is searched.

Behavior:
    - Resolves the method by (kind, identifier)
    - Verifies the secret against the stored one-way hash
    - Debits with a conditional UPDATE (balance >= amount)
    - Generates unique references (pay_xxx) for each charge

Author: Food Ordering Team
Version: 1.0.0
"""

import logging
import uuid
from datetime import datetime
from decimal import Decimal
from typing import Optional

from foodorder.core.config import get_settings
from foodorder.core.errors import (
    AuthenticationFailed,
    DuplicateRecord,
    InsufficientFunds,
    InvalidPaymentDetails,
    MethodNotFound,
    PersistenceError,
)
from foodorder.core.security import hash_secret, verify_secret
from foodorder.domain import PaymentFamily, PaymentKind, PaymentMethod, to_money
from foodorder.repositories.payment_methods import PaymentMethodRepository
from foodorder.services.payment.base import (
    BasePaymentProcessor,
    PaymentResult,
    RefundResult,
)
from foodorder.services.validation import validate_card_details

logger = logging.getLogger(__name__)


def _parse_kind(kind) -> PaymentKind:
    try:
        return PaymentKind.parse(kind)
    except ValueError as e:
        raise InvalidPaymentDetails(str(e)) from None


class LedgerPaymentProcessor(BasePaymentProcessor):
    """
    Payment processor backed by the payment_methods table.

    Example:
        >>> processor = LedgerPaymentProcessor(PaymentMethodRepository(database))
        >>> result = await processor.charge(PaymentKind.TNG, "TNG001", "secret", Decimal("21.00"))
        >>> print(result.balance)
        29.00
    """

    def __init__(self, payment_methods: PaymentMethodRepository, currency: Optional[str] = None):
        self._methods = payment_methods
        self._currency = currency or get_settings().currency

        logger.info(f"LedgerPaymentProcessor initialized (currency={self._currency})")

    @property
    def provider_name(self) -> str:
        """Return the provider name."""
        return "ledger"

    def _generate_reference(self) -> str:
        """Generate a unique charge reference."""
        return f"pay_{uuid.uuid4().hex[:24]}"

    async def get_method(self, kind: PaymentKind, identifier: str) -> PaymentMethod:
        method = await self._methods.find_by_identifier(kind, identifier)
        if method is None:
            raise MethodNotFound(f"No {kind.value} payment method with that {kind.identifier_label}")
        return method

    async def charge(
        self,
        kind: PaymentKind,
        identifier: str,
        secret: str,
        amount: Decimal,
    ) -> PaymentResult:
        """Authenticate the payment method and debit ``amount`` from it."""
        kind = _parse_kind(kind)
        amount = to_money(amount)

        if amount <= 0:
            raise InvalidPaymentDetails("Amount must be greater than 0")

        method = await self.get_method(kind, identifier)

        if not verify_secret(secret, method.secret_hash):
            logger.warning(f"{kind.value}: authentication failed for {method.masked_identifier}")
            raise AuthenticationFailed(f"Authentication failed for {kind.value} payment method")

        logger.debug(f"{kind.value}: debiting {amount} from {method.masked_identifier}")

        new_balance = await self._methods.debit(method.id, amount)
        if new_balance is None:
            logger.info(f"{kind.value}: declined, insufficient balance on {method.masked_identifier}")
            raise InsufficientFunds(f"Insufficient balance to pay RM {amount}")

        result = PaymentResult(
            kind=kind,
            amount=amount,
            balance=new_balance,
            payment_method_id=method.id,
            reference=self._generate_reference(),
            currency=self._currency,
            processed_at=datetime.now(),
        )

        logger.info(f"{kind.value}: payment successful - {result.reference} - RM {amount}")
        return result

    async def refund(self, result: PaymentResult) -> RefundResult:
        """Credit the full amount of ``result`` back to its payment method."""
        new_balance = await self._methods.credit(result.payment_method_id, result.amount)
        if new_balance is None:
            raise PersistenceError(
                f"Refund of {result.reference} failed: payment method "
                f"{result.payment_method_id} no longer exists"
            )

        logger.info(f"{result.kind.value}: refund processed - {result.reference} - RM {result.amount}")
        return RefundResult(reference=result.reference, amount=result.amount, balance=new_balance)

    async def register_method(
        self,
        kind: PaymentKind,
        identifier: str,
        secret: str,
        balance: Decimal,
        customer_id: Optional[int] = None,
        expiry_date: Optional[str] = None,
    ) -> PaymentMethod:
        """
        Create a wallet or card.

        Raises:
            InvalidPaymentDetails: Bad identifier, secret, balance or card data
            DuplicateRecord: The identifier is already registered for the kind
        """
        kind = _parse_kind(kind)
        identifier = (identifier or "").strip()
        balance = to_money(balance)

        if not identifier:
            raise InvalidPaymentDetails(f"A {kind.identifier_label} is required")
        if not secret:
            raise InvalidPaymentDetails("A secret is required")
        if balance < 0:
            raise InvalidPaymentDetails("Balance cannot be negative")
        if kind.family is PaymentFamily.CARD:
            check = validate_card_details(identifier, expiry_date)
            if not check.is_valid:
                raise InvalidPaymentDetails(check.error_message)
        else:
            expiry_date = None

        if await self._methods.find_by_identifier(kind, identifier) is not None:
            raise DuplicateRecord(f"{kind.value} {kind.identifier_label} already registered")

        method = await self._methods.save(PaymentMethod(
            id=None,
            kind=kind,
            identifier=identifier,
            secret_hash=hash_secret(secret),
            balance=balance,
            customer_id=customer_id,
            expiry_date=expiry_date,
        ))
        logger.info(f"{kind.value}: payment method #{method.id} registered ({method.masked_identifier})")
        return method

    async def health_check(self) -> bool:
        """Check that the ledger table can be queried."""
        try:
            await self._methods.find_by_id(0)
        except PersistenceError:
            return False
        return True
