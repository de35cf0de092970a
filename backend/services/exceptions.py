"""Storefront domain exceptions.

Raised by the service layer when a business rule is violated. The routes
catch these and translate them into HTTP responses.
"""


class StoreError(Exception):
    """Base class for every storefront business-rule failure."""


class NotFound(StoreError):
    """A referenced record does not exist."""


class ProductNotFound(NotFound):
    def __init__(self, product_id: int):
        self.product_id = product_id
        super().__init__(f"Product {product_id} not found")


class OrderNotFound(NotFound):
    def __init__(self, order_id: int):
        self.order_id = order_id
        super().__init__(f"Order {order_id} not found")


class CartItemNotFound(NotFound):
    def __init__(self, product_id: int):
        self.product_id = product_id
        super().__init__(f"Product {product_id} is not in the cart")


class InsufficientStock(StoreError):
    """Requested quantity exceeds the product's available stock."""

    def __init__(self, product_id: int, requested: int, available: int):
        self.product_id = product_id
        self.requested = requested
        self.available = available
        super().__init__(
            f"Product {product_id} not available: requested {requested}, in stock {available}"
        )


class InvalidTransition(StoreError):
    """An order status change outside the transition table was attempted."""

    def __init__(self, current, target=None):
        self.current = current
        self.target = target
        if target is None:
            message = f"Order in status '{_label(current)}' has no next status"
        else:
            message = f"Cannot change order status from '{_label(current)}' to '{_label(target)}'"
        super().__init__(message)


class InvalidOrderRequest(StoreError):
    """The order request itself is malformed (no lines, bad quantity, no address)."""


class ProductInUse(StoreError):
    """A product cannot be deleted while order history references it."""

    def __init__(self, product_id: int):
        self.product_id = product_id
        super().__init__(f"Product {product_id} is referenced by existing orders")


class PaymentConflict(StoreError):
    """The order's payment state rules out the requested action."""


class OrderAlreadyPaid(PaymentConflict):
    def __init__(self, order_id: int):
        self.order_id = order_id
        super().__init__(f"Order {order_id} has already been paid")


class OrderNotPayable(PaymentConflict):
    def __init__(self, order_id: int, status):
        self.order_id = order_id
        self.status = status
        super().__init__(f"Order {order_id} cannot be paid in status '{_label(status)}'")


class PaidOrderCancellation(PaymentConflict):
    def __init__(self, order_id: int):
        self.order_id = order_id
        super().__init__(f"Order {order_id} is paid; refund it before cancelling")


class GatewayError(StoreError):
    """The payment gateway rejected the request or could not be reached."""


def _label(status) -> str:
    return getattr(status, "value", status)
