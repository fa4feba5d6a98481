"""Order history API routes"""

from fastapi import APIRouter, HTTPException, Depends, Query

from ..core.session import BuyerSession
from ..dependencies import current_session, get_order_history, get_order_store
from ..database.orders import OrderStore
from ..errors import OrderNotFoundError, OrderStoreError
from ..models.order import Order, OrderHistoryPage
from ..services.order_history import OrderHistoryReader

router = APIRouter(prefix="/api/orders", tags=["Orders"])


@router.get("", response_model=OrderHistoryPage)
async def list_orders(
    page: int = Query(1),
    page_size: int = Query(0),
    session: BuyerSession = Depends(current_session),
    history: OrderHistoryReader = Depends(get_order_history),
):
    """List the buyer's orders, newest first"""
    return await history.list_orders(session.buyer_key, page=page, page_size=page_size)


@router.get("/{order_id}", response_model=Order)
async def get_order(
    order_id: str,
    session: BuyerSession = Depends(current_session),
    store: OrderStore = Depends(get_order_store),
):
    """Get order details"""
    try:
        order = await store.get_order(order_id)
    except OrderNotFoundError:
        raise HTTPException(status_code=404, detail="Order not found")
    except OrderStoreError:
        raise HTTPException(status_code=503, detail="Orders are temporarily unavailable")

    if order.buyer_id != session.buyer_key:
        raise HTTPException(status_code=404, detail="Order not found")
    return order
