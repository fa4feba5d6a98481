"""Checkout API routes"""

import logging
from dataclasses import asdict
from typing import Optional

from fastapi import APIRouter, HTTPException, Depends
from pydantic import BaseModel

from ..core.config import settings
from ..core.session import BuyerSession
from ..dependencies import current_session, get_order_lifecycle
from ..errors import (
    CheckoutInProgressError,
    EmptyCartError,
    GatewayLoadError,
    InvalidOrderAmountError,
    OrderStoreError,
    OrderValidationError,
)
from ..models.checkout import CheckoutForm, CheckoutResponse
from ..services.order_builder import build_order_request
from ..services.order_lifecycle import OrderLifecycleManager

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/checkout", tags=["Checkout"])


class PendingPaymentResponse(BaseModel):
    pending: bool
    order_id: Optional[str] = None
    status: Optional[str] = None
    stale: bool = False


@router.post("", response_model=CheckoutResponse)
async def checkout(
    form: CheckoutForm,
    session: BuyerSession = Depends(current_session),
    lifecycle: OrderLifecycleManager = Depends(get_order_lifecycle),
):
    """
    Place an order from the session's cart.

    Pay-on-delivery orders come back already paid. Gateway orders come
    back 'created' with the options the UI passes to the checkout script.
    """
    try:
        order_request = build_order_request(session.cart, form, currency=settings.currency)
    except EmptyCartError as e:
        raise HTTPException(status_code=400, detail={"message": str(e), "redirect": "/gallery"})
    except OrderValidationError as e:
        raise HTTPException(
            status_code=422,
            detail={"message": str(e), "errors": [asdict(err) for err in e.errors]},
        )

    try:
        placed = await lifecycle.place_order(session, order_request)
    except CheckoutInProgressError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except EmptyCartError as e:
        raise HTTPException(status_code=400, detail={"message": str(e), "redirect": "/gallery"})
    except InvalidOrderAmountError as e:
        raise HTTPException(
            status_code=422,
            detail={"message": str(e), "alternatives": ["cod"]},
        )
    except GatewayLoadError as e:
        raise HTTPException(
            status_code=503,
            detail={"message": str(e), "alternatives": ["cod"]},
        )
    except OrderStoreError as e:
        logger.error(f"Order creation failed for session {session.session_id}: {e}")
        raise HTTPException(
            status_code=503,
            detail="We couldn't process your order. Please try again.",
        )

    return CheckoutResponse(
        order_id=placed.order.order_id,
        status=placed.order.status.value,
        payment_method=placed.order.payment_method,
        total_amount=placed.order.amount,
        checkout=placed.checkout.model_dump() if placed.checkout else None,
    )


@router.get("/status", response_model=PendingPaymentResponse)
async def checkout_status(
    session: BuyerSession = Depends(current_session),
    lifecycle: OrderLifecycleManager = Depends(get_order_lifecycle),
):
    """Check on the session's in-flight gateway payment"""
    pending = await lifecycle.check_pending(session)
    if pending is None:
        return PendingPaymentResponse(pending=False)
    return PendingPaymentResponse(
        pending=not pending.stale,
        order_id=pending.order_id,
        status=pending.status.value,
        stale=pending.stale,
    )
