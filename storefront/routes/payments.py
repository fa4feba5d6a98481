"""Payment gateway callback routes"""

import logging

from fastapi import APIRouter, HTTPException, Depends

from ..dependencies import get_razorpay_gateway
from ..errors import GatewaySignatureError, ReconciliationError, UnknownPaymentAttemptError
from ..models.payment import CallbackResponse, PaymentFailureCallback, PaymentSuccessCallback
from ..services.razorpay_gateway import RazorpayGateway

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/payments/razorpay", tags=["Payments"])


@router.post("/success", response_model=CallbackResponse)
async def payment_success(
    callback: PaymentSuccessCallback,
    gateway: RazorpayGateway = Depends(get_razorpay_gateway),
):
    """Razorpay success handler"""
    order_id = callback.razorpay_order_id
    try:
        processed = await gateway.resolve_success(
            order_id,
            callback.razorpay_payment_id,
            callback.razorpay_signature,
        )
    except UnknownPaymentAttemptError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except GatewaySignatureError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except ReconciliationError as e:
        raise HTTPException(
            status_code=500,
            detail={"message": "Payment received but order update failed", "order_id": e.order_id},
        )

    return CallbackResponse(status="processed" if processed else "ignored", order_id=order_id)


@router.post("/failure", response_model=CallbackResponse)
async def payment_failure(
    callback: PaymentFailureCallback,
    gateway: RazorpayGateway = Depends(get_razorpay_gateway),
):
    """Razorpay payment.failed handler"""
    order_id = callback.razorpay_order_id
    try:
        processed = await gateway.resolve_failure(order_id, callback.error)
    except UnknownPaymentAttemptError as e:
        raise HTTPException(status_code=404, detail=str(e))

    return CallbackResponse(status="processed" if processed else "ignored", order_id=order_id)
