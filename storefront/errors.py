"""Storefront exceptions"""

from dataclasses import dataclass
from typing import Optional


class StorefrontError(Exception):
    """Base exception for storefront errors"""
    pass


@dataclass
class FieldError:
    """A single invalid checkout form field"""
    field: str
    reason: str


class OrderValidationError(StorefrontError):
    """One or more checkout form fields are invalid"""

    def __init__(self, errors: list[FieldError]):
        self.errors = errors
        fields = ", ".join(e.field for e in errors)
        super().__init__(f"Invalid checkout fields: {fields}")


class EmptyCartError(StorefrontError):
    """Checkout attempted with nothing in the cart"""
    pass


class InvalidQuantityError(StorefrontError, ValueError):
    """Cart quantity below 1"""
    pass


class CheckoutInProgressError(StorefrontError):
    """A checkout is already running for this session"""
    pass


class InvalidOrderAmountError(StorefrontError):
    """Order total cannot be charged through the gateway"""
    pass


class GatewayError(StorefrontError):
    """Base exception for payment gateway errors"""
    pass


class GatewayLoadError(GatewayError):
    """Gateway client library could not be loaded"""
    pass


class GatewaySignatureError(GatewayError):
    """Callback signature does not match the payment"""
    pass


class UnknownPaymentAttemptError(GatewayError):
    """No payment attempt was opened for this order id"""
    pass


class GatewayPaymentError(GatewayError):
    """The gateway reported a failed payment"""

    def __init__(
        self,
        code: Optional[str] = None,
        description: Optional[str] = None,
        source: Optional[str] = None,
        step: Optional[str] = None,
        reason: Optional[str] = None,
    ):
        self.code = code
        self.description = description
        self.source = source
        self.step = step
        self.reason = reason
        super().__init__(description or code or "Payment failed")


class OrderStoreError(StorefrontError):
    """Base exception for persistence failures"""
    pass


class DuplicateOrderIdError(OrderStoreError):
    """An order with this id already exists"""
    pass


class OrderStatusConflictError(OrderStoreError):
    """Order was not in the expected status when updated"""
    pass


class OrderNotFoundError(StorefrontError):
    """No order with this id"""
    pass


class DuplicateCallbackError(StorefrontError):
    """Gateway callback for an order that already left 'created'"""

    def __init__(self, order_id: str, status: str):
        self.order_id = order_id
        self.status = status
        super().__init__(f"Order {order_id} already {status}")


class ReconciliationError(StorefrontError):
    """
    Gateway reported success but the order could not be updated.

    The buyer has been charged; this needs manual follow-up.
    """

    def __init__(self, order_id: str, payment_id: str, signature: str, cause: str):
        self.order_id = order_id
        self.payment_id = payment_id
        self.signature = signature
        self.cause = cause
        super().__init__(
            f"Payment {payment_id} succeeded but order {order_id} was not updated: {cause}"
        )
