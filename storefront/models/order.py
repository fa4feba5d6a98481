"""Order models"""

from datetime import datetime
from enum import Enum
from typing import Literal, Optional

from pydantic import BaseModel

from .cart import CartItem
from .checkout import PaymentMethod, ShippingAddress


class OrderStatus(str, Enum):
    CREATED = "created"
    PAID = "paid"
    FAILED = "failed"
    # Set only by out-of-band administrative action
    REFUNDED = "refunded"

    @property
    def is_terminal(self) -> bool:
        return self is not OrderStatus.CREATED


class Order(BaseModel):
    """Persisted order record"""
    order_id: str
    buyer_id: str
    amount: float
    currency: str = "INR"
    customer_name: str
    customer_email: str
    customer_phone: Optional[str] = None
    shipping_address: ShippingAddress
    payment_method: PaymentMethod
    items: list[CartItem]
    status: OrderStatus = OrderStatus.CREATED

    # Populated on success
    payment_id: Optional[str] = None
    payment_signature: Optional[str] = None

    # Populated on failure
    error_code: Optional[str] = None
    error_description: Optional[str] = None
    error_source: Optional[str] = None
    error_step: Optional[str] = None
    error_reason: Optional[str] = None

    created_at: datetime
    updated_at: datetime


class OrderHistoryPage(BaseModel):
    """
    One page of a buyer's orders.

    ``status`` is "unavailable" when the store could not be read, so an
    outage is never shown as "no orders yet".
    """
    status: Literal["ok", "unavailable"] = "ok"
    orders: list[Order] = []
    page: int = 1
    page_size: int = 10
    total_count: int = 0
    total_pages: int = 0
    error: Optional[str] = None

    @property
    def is_empty(self) -> bool:
        return self.status == "ok" and not self.orders
