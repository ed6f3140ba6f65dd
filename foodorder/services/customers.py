"""Customer registration and login."""

import logging

from foodorder.core.errors import AuthenticationFailed, CustomerNotFound, DuplicateRecord, InvalidCustomer
from foodorder.core.security import hash_secret, verify_secret
from foodorder.domain import Customer
from foodorder.repositories.customers import CustomerRepository
from foodorder.services.validation import (
    first_failure,
    validate_age,
    validate_customer_name,
    validate_gender,
    validate_password,
    validate_phone_number,
)

logger = logging.getLogger(__name__)


class CustomerService:
    def __init__(self, customer_repository: CustomerRepository):
        self._customers = customer_repository

    async def register(
        self,
        name: str,
        age: int,
        phone_number: str,
        gender: str,
        password: str,
    ) -> Customer:
        """
        Validate and register a customer.

        Raises:
            InvalidCustomer: A field breaks a registration rule
            DuplicateRecord: The phone number is already registered
        """
        failure = first_failure(
            validate_customer_name(name),
            validate_age(age),
            validate_phone_number(phone_number),
            validate_gender(gender),
            validate_password(password),
        )
        if failure is not None:
            raise InvalidCustomer(failure.error_message)

        if await self._customers.exists_by_phone(phone_number):
            raise DuplicateRecord("Phone number already registered")

        customer = await self._customers.save(Customer(
            id=None,
            name=" ".join(name.split()),
            age=age,
            phone_number=phone_number,
            gender=gender.strip().capitalize(),
            password_hash=hash_secret(password),
        ))
        logger.info(f"Customer #{customer.id} registered")
        return customer

    async def get_customer(self, customer_id: int) -> Customer:
        customer = await self._customers.find_by_id(customer_id)
        if customer is None:
            raise CustomerNotFound(customer_id)
        return customer

    async def login(self, customer_id: int, password: str) -> Customer:
        customer = await self._customers.find_by_id(customer_id)
        # Same error for unknown id and wrong password
        if customer is None or not verify_secret(password, customer.password_hash):
            logger.warning(f"Login failed for customer #{customer_id}")
            raise AuthenticationFailed("Invalid customer id or password")
        return customer
