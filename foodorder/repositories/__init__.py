"""
Repositories Module

SQLAlchemy-backed persistence for catalog, customers, payment methods and
orders. Every repository takes the shared Database handle and runs each
operation in its own transaction.
"""

from foodorder.repositories.customers import CustomerRepository
from foodorder.repositories.foods import FoodRepository
from foodorder.repositories.orders import OrderRepository
from foodorder.repositories.payment_methods import PaymentMethodRepository

__all__ = [
    "CustomerRepository",
    "FoodRepository",
    "OrderRepository",
    "PaymentMethodRepository",
]
