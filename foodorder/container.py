"""
Service Wiring

Builds every repository and service around one explicitly constructed
Database. The API lifespan creates a container at startup and closes it at
shutdown; scripts and tests build their own.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from foodorder.core.config import Settings, get_settings
from foodorder.database import Database
from foodorder.repositories import (
    CustomerRepository,
    FoodRepository,
    OrderRepository,
    PaymentMethodRepository,
)
from foodorder.repositories.customers import CUSTOMER_COUNTER
from foodorder.repositories.foods import FOOD_COUNTER
from foodorder.repositories.orders import ORDER_COUNTER
from foodorder.services.catalog import Catalog
from foodorder.services.customers import CustomerService
from foodorder.services.excel_manager import ExcelManager
from foodorder.services.orders import OrderWorkflow
from foodorder.services.payment import BasePaymentProcessor, LedgerPaymentProcessor

logger = logging.getLogger(__name__)


@dataclass
class Container:
    """Everything a request handler needs."""
    settings: Settings
    database: Database
    catalog: Catalog
    customers: CustomerService
    payments: BasePaymentProcessor
    orders: OrderWorkflow
    reports: ExcelManager

    async def open(self) -> None:
        await self.database.open({
            FOOD_COUNTER: self.settings.first_food_id,
            CUSTOMER_COUNTER: self.settings.first_customer_id,
            ORDER_COUNTER: self.settings.first_order_id,
        })

    async def close(self) -> None:
        await self.database.close()


def build_container(
    settings: Optional[Settings] = None,
    database: Optional[Database] = None,
) -> Container:
    """
    Construct the service graph.

    Args:
        settings: Settings to use (defaults to get_settings())
        database: Storage handle (defaults to one built from settings)
    """
    settings = settings or get_settings()
    database = database or Database.from_settings(settings)

    customer_repository = CustomerRepository(database)
    catalog = Catalog(
        FoodRepository(database),
        min_price=settings.min_food_price,
        max_price=settings.max_food_price,
    )
    payments = LedgerPaymentProcessor(PaymentMethodRepository(database), currency=settings.currency)
    orders = OrderWorkflow(
        catalog=catalog,
        payment_processor=payments,
        order_repository=OrderRepository(database),
        customer_repository=customer_repository,
        refund_on_stock_failure=settings.refund_on_stock_failure,
    )

    logger.debug(f"Services wired (payments={payments.provider_name})")

    return Container(
        settings=settings,
        database=database,
        catalog=catalog,
        customers=CustomerService(customer_repository),
        payments=payments,
        orders=orders,
        reports=ExcelManager(
            data_directory=settings.data_directory,
            filename=settings.excel_filename,
            lock_timeout=settings.excel_lock_timeout,
        ),
    )
