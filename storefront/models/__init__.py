# Storefront Models

from .cart import CartItem, AddToCartRequest, UpdateCartItemRequest, CartView, CartResponse
from .checkout import (
    INDIAN_STATES,
    BuyerContact,
    CheckoutForm,
    CheckoutResponse,
    OrderRequest,
    PaymentMethod,
    ShippingAddress,
)
from .notification import Notification
from .order import Order, OrderHistoryPage, OrderStatus
from .payment import (
    CashOnDeliveryConfirmed,
    CheckoutOptions,
    GatewayErrorDetails,
    GatewayOutcome,
    OrderEvent,
    PaymentFailed,
    PaymentSpec,
    PaymentSucceeded,
    Prefill,
    to_subunits,
)

__all__ = [
    "CartItem",
    "AddToCartRequest",
    "UpdateCartItemRequest",
    "CartView",
    "CartResponse",
    "INDIAN_STATES",
    "BuyerContact",
    "CheckoutForm",
    "CheckoutResponse",
    "OrderRequest",
    "PaymentMethod",
    "ShippingAddress",
    "Notification",
    "Order",
    "OrderHistoryPage",
    "OrderStatus",
    "CashOnDeliveryConfirmed",
    "CheckoutOptions",
    "GatewayErrorDetails",
    "GatewayOutcome",
    "OrderEvent",
    "PaymentFailed",
    "PaymentSpec",
    "PaymentSucceeded",
    "Prefill",
    "to_subunits",
]
