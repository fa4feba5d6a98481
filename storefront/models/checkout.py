"""Checkout models"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from .cart import CartItem

INDIAN_STATES = (
    "Andhra Pradesh", "Arunachal Pradesh", "Assam", "Bihar", "Chhattisgarh",
    "Goa", "Gujarat", "Haryana", "Himachal Pradesh", "Jharkhand", "Karnataka",
    "Kerala", "Madhya Pradesh", "Maharashtra", "Manipur", "Meghalaya", "Mizoram",
    "Nagaland", "Odisha", "Punjab", "Rajasthan", "Sikkim", "Tamil Nadu", "Telangana",
    "Tripura", "Uttar Pradesh", "Uttarakhand", "West Bengal",
    "Andaman and Nicobar Islands", "Chandigarh", "Dadra and Nagar Haveli and Daman and Diu",
    "Delhi", "Jammu and Kashmir", "Ladakh", "Lakshadweep", "Puducherry",
)


class PaymentMethod(str, Enum):
    GATEWAY = "razorpay"
    PAY_ON_DELIVERY = "cod"


class CheckoutForm(BaseModel):
    """Raw checkout form as submitted; validated by the order builder"""
    name: str = ""
    email: str = ""
    phone: str = ""
    address: str = ""
    city: str = ""
    state: str = ""
    pincode: str = ""
    payment_method: str = PaymentMethod.GATEWAY.value


class BuyerContact(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    email: str
    phone: str


class ShippingAddress(BaseModel):
    model_config = ConfigDict(frozen=True)

    street: str
    city: str
    state: str
    postal_code: str
    country: str = "IN"


class OrderRequest(BaseModel):
    """Snapshot of one checkout submission"""
    model_config = ConfigDict(frozen=True)

    buyer: BuyerContact
    shipping_address: ShippingAddress
    payment_method: PaymentMethod
    items: tuple[CartItem, ...]
    total_amount: float
    currency: str = "INR"


class CheckoutResponse(BaseModel):
    """Response from checkout"""
    order_id: str
    status: str
    payment_method: PaymentMethod
    total_amount: float
    checkout: Optional[dict] = Field(
        default=None,
        description="Options for the gateway's checkout script, absent for pay-on-delivery",
    )
