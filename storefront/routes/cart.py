"""Cart API routes"""

from fastapi import APIRouter, HTTPException, Depends

from ..core.session import BuyerSession
from ..dependencies import current_session
from ..errors import InvalidQuantityError
from ..models.cart import AddToCartRequest, UpdateCartItemRequest, CartResponse

router = APIRouter(prefix="/api/cart", tags=["Cart"])


@router.get("", response_model=CartResponse)
async def get_cart(session: BuyerSession = Depends(current_session)):
    """Get the session's cart"""
    return CartResponse(cart=session.cart.view())


@router.post("/items", response_model=CartResponse)
async def add_to_cart(
    request: AddToCartRequest,
    session: BuyerSession = Depends(current_session),
):
    """Add an artwork to the cart"""
    session.cart.add_item(request.to_cart_item())
    return CartResponse(
        cart=session.cart.view(),
        message=f"Added {request.quantity}x {request.title} to cart",
    )


@router.put("/items/{item_id}", response_model=CartResponse)
async def update_cart_item(
    item_id: str,
    request: UpdateCartItemRequest,
    session: BuyerSession = Depends(current_session),
):
    """Update item quantity in cart"""
    try:
        updated = session.cart.update_quantity(item_id, request.quantity)
    except InvalidQuantityError as e:
        raise HTTPException(status_code=422, detail=str(e))

    if not updated:
        raise HTTPException(status_code=404, detail="Item not in cart")

    return CartResponse(cart=session.cart.view(), message="Cart updated")


@router.delete("/items/{item_id}", response_model=CartResponse)
async def remove_from_cart(
    item_id: str,
    session: BuyerSession = Depends(current_session),
):
    """Remove an item from the cart"""
    removed = session.cart.remove_item(item_id)
    return CartResponse(
        cart=session.cart.view(),
        message="Item removed" if removed else "Item not in cart",
    )
