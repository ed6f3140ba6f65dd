"""
Ordering Error Taxonomy

Every failure the ordering core can report is a subclass of OrderingError.
Each carries a machine-readable ``error_code`` and the HTTP status the API
layer should answer with, mirroring the error_code / error_message pair the
service result objects expose.

Families:
    - ValidationFailed: caller input is wrong; fix the input and retry
    - NotFoundError: a referenced record does not exist
    - ResourceConflict: stock, funds or credentials do not allow the request
    - PersistenceError: the store failed during a write; fatal for the call
"""

from typing import Optional


class OrderingError(Exception):
    """Base class for all domain errors."""

    error_code: str = "ordering_error"
    status_code: int = 400

    def __init__(self, message: Optional[str] = None):
        super().__init__(message or self.__class__.__doc__)
        self.message = message or self.__class__.__doc__

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "success": False,
            "error": self.error_code,
            "detail": self.message,
        }


# =============================================================================
# VALIDATION ERRORS
# =============================================================================

class ValidationFailed(OrderingError):
    """The request failed validation."""
    error_code = "validation_failed"
    status_code = 422


class EmptyOrder(ValidationFailed):
    """Order must contain at least one item."""
    error_code = "empty_order"


class InvalidQuantity(ValidationFailed):
    """Quantity must be greater than zero."""
    error_code = "invalid_quantity"


class UnknownFood(ValidationFailed):
    """Order references a food item that is not in the catalog."""
    error_code = "unknown_food"

    def __init__(self, food_id: int):
        super().__init__(f"Food with ID {food_id} not found")
        self.food_id = food_id


class InvalidFood(ValidationFailed):
    """Food item details are invalid."""
    error_code = "invalid_food"


class InvalidCustomer(ValidationFailed):
    """Customer details are invalid."""
    error_code = "invalid_customer"


class InvalidPaymentDetails(ValidationFailed):
    """Payment method details are invalid."""
    error_code = "invalid_payment_details"


# =============================================================================
# NOT FOUND
# =============================================================================

class NotFoundError(OrderingError):
    """Record not found."""
    error_code = "not_found"
    status_code = 404


class FoodNotFound(NotFoundError):
    """Food item not found."""
    error_code = "food_not_found"

    def __init__(self, food_id: int):
        super().__init__(f"Food with ID {food_id} not found")
        self.food_id = food_id


class CustomerNotFound(NotFoundError):
    """Customer not found."""
    error_code = "customer_not_found"

    def __init__(self, customer_id: int):
        super().__init__(f"Customer #{customer_id} not found")
        self.customer_id = customer_id


class OrderNotFound(NotFoundError):
    """Order not found."""
    error_code = "order_not_found"

    def __init__(self, order_id: int):
        super().__init__(f"Order #{order_id} not found")
        self.order_id = order_id


# =============================================================================
# RESOURCE CONFLICTS
# =============================================================================

class ResourceConflict(OrderingError):
    """The request conflicts with the current state of a resource."""
    error_code = "resource_conflict"
    status_code = 409


class InsufficientStock(ResourceConflict):
    """Not enough stock to fulfil the order."""
    error_code = "insufficient_stock"

    def __init__(self, food_id: int, requested: int, available: Optional[int] = None):
        if available is None:
            message = f"Insufficient stock for food {food_id} (requested {requested})"
        else:
            message = (
                f"Insufficient stock for food {food_id} "
                f"(requested {requested}, available {available})"
            )
        super().__init__(message)
        self.food_id = food_id
        self.requested = requested
        self.available = available


class InsufficientFunds(ResourceConflict):
    """Insufficient balance."""
    error_code = "insufficient_funds"
    status_code = 402


class AuthenticationFailed(ResourceConflict):
    """Authentication failed."""
    error_code = "authentication_failed"
    status_code = 401


class MethodNotFound(ResourceConflict):
    """Payment method not found."""
    error_code = "payment_method_not_found"
    status_code = 404


class DuplicateRecord(ResourceConflict):
    """A record with the same unique value already exists."""
    error_code = "duplicate_record"


# =============================================================================
# PERSISTENCE
# =============================================================================

class PersistenceError(OrderingError):
    """The data store failed to complete a write."""
    error_code = "persistence_error"
    status_code = 500
