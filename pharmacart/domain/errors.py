# pharmacart/domain/errors.py
from typing import Any, Dict, Optional

from pharmacart.domain.schemas import Notice


class CartError(Exception):
    """
    Base for every condition the cart core turns into a user-visible notice.
    Raised inside the services, caught at the caller-facing boundary.
    """

    code = "CART_ERROR"
    level = "error"
    default_message = "Something went wrong with your cart"

    def __init__(self, message: Optional[str] = None, **context: Any):
        self.message = message or self.default_message
        self.context: Dict[str, Any] = context
        super().__init__(self.message)

    def to_notice(self) -> Notice:
        return Notice(
            code=self.code,
            message=self.message,
            level=self.level,
            context={k: v for k, v in self.context.items() if v is not None},
        )


class MalformedPersistedStateError(CartError):
    """Persisted cart snapshot could not be parsed. Recovered silently."""

    code = "MALFORMED_PERSISTED_STATE"
    default_message = "Saved cart could not be read"


class InvalidProductError(CartError):
    code = "INVALID_PRODUCT"
    default_message = "This product cannot be added to the cart"


class InvalidQuantityError(CartError):
    code = "INVALID_QUANTITY"
    level = "warning"
    default_message = "Quantity must be a positive whole number"


class OutOfStockError(CartError):
    code = "OUT_OF_STOCK"
    level = "warning"
    default_message = "This product is out of stock"


class StockLimitReachedError(CartError):
    code = "STOCK_LIMIT_REACHED"
    level = "warning"
    default_message = "Only limited stock is available for this product"


class EmptyCartCheckoutError(CartError):
    code = "EMPTY_CART"
    level = "warning"
    default_message = "Your cart is empty"


class TermsNotAcceptedError(CartError):
    code = "TERMS_NOT_ACCEPTED"
    level = "warning"
    default_message = "Please accept the Terms & Conditions"


class IdentityRequiredError(CartError):
    code = "IDENTITY_REQUIRED"
    level = "warning"
    default_message = "Please log in to place your order"


class CheckoutInProgressError(CartError):
    code = "CHECKOUT_IN_PROGRESS"
    level = "info"
    default_message = "Your order is already being placed"


class OrderServiceRejectedError(CartError):
    code = "ORDER_REJECTED"
    default_message = "Failed to create order"

    def __init__(self, message: Optional[str] = None, status_code: Optional[int] = None, **context: Any):
        super().__init__(message, status_code=status_code, **context)
        self.status_code = status_code


class OrderServiceUnreachableError(CartError):
    code = "ORDER_SERVICE_UNREACHABLE"
    default_message = "Could not reach the order service, please try again"


class CatalogNotFoundError(Exception):
    """Catalog has no product or pharmacy with the requested id."""


class CartStorageError(Exception):
    """Persistence backend failed to read or write the cart snapshot."""
