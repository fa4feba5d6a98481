"""Payment gateway models"""

from decimal import Decimal, ROUND_HALF_UP
from typing import Literal, Optional, Union

from pydantic import BaseModel, Field


def to_subunits(amount: float) -> int:
    """Convert rupees to paise"""
    return int((Decimal(str(amount)) * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


class Prefill(BaseModel):
    name: Optional[str] = None
    email: Optional[str] = None
    contact: Optional[str] = None


class PaymentSpec(BaseModel):
    """What the gateway needs to open a checkout"""
    order_id: str
    amount: int = Field(gt=0, description="Smallest currency unit")
    currency: str = "INR"
    prefill: Prefill = Field(default_factory=Prefill)


class CheckoutOptions(BaseModel):
    """Options handed to the gateway's checkout script by the UI"""
    key: str
    amount: int
    currency: str
    name: str
    description: Optional[str] = None
    order_id: str
    prefill: Prefill
    theme: dict[str, str] = {}


class GatewayErrorDetails(BaseModel):
    """Structured failure reported by the gateway"""
    code: Optional[str] = None
    description: Optional[str] = None
    source: Optional[str] = None
    step: Optional[str] = None
    reason: Optional[str] = None


class PaymentSucceeded(BaseModel):
    kind: Literal["succeeded"] = "succeeded"
    order_id: str
    payment_id: str
    signature: str


class PaymentFailed(BaseModel):
    kind: Literal["failed"] = "failed"
    order_id: str
    error: GatewayErrorDetails


class CashOnDeliveryConfirmed(BaseModel):
    kind: Literal["cod_confirmed"] = "cod_confirmed"
    order_id: str


GatewayOutcome = Union[PaymentSucceeded, PaymentFailed]
OrderEvent = Union[PaymentSucceeded, PaymentFailed, CashOnDeliveryConfirmed]


class PaymentSuccessCallback(BaseModel):
    """Body posted by the gateway's success handler"""
    razorpay_order_id: str
    razorpay_payment_id: str
    razorpay_signature: str


class PaymentFailureCallback(BaseModel):
    """Body posted on the gateway's payment.failed event"""
    razorpay_order_id: str
    error: GatewayErrorDetails = Field(default_factory=GatewayErrorDetails)


class CallbackResponse(BaseModel):
    status: Literal["processed", "ignored"]
    order_id: str
