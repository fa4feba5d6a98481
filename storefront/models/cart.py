"""Cart models"""

from pydantic import BaseModel, Field
from typing import Optional


class CartItem(BaseModel):
    """Artwork line in a shopping cart"""
    id: str
    title: str
    artist: str
    price: float = Field(ge=0)
    image: Optional[str] = None
    quantity: int = Field(default=1, ge=1)

    @property
    def line_total(self) -> float:
        return self.price * self.quantity


class AddToCartRequest(BaseModel):
    """Request to add an artwork to the cart"""
    id: str
    title: str
    artist: str
    price: float = Field(ge=0)
    discount_price: Optional[float] = Field(default=None, ge=0)
    image: Optional[str] = None
    quantity: int = Field(default=1, ge=1)

    def to_cart_item(self) -> CartItem:
        """Build a cart line priced at the discount when one is set"""
        price = self.discount_price if self.discount_price is not None else self.price
        return CartItem(
            id=self.id,
            title=self.title,
            artist=self.artist,
            price=price,
            image=self.image,
            quantity=self.quantity,
        )


class UpdateCartItemRequest(BaseModel):
    """Request to update cart item quantity"""
    quantity: int


class CartView(BaseModel):
    """Cart contents with derived totals"""
    items: list[CartItem] = []
    item_count: int = 0
    total_amount: float = 0.0


class CartResponse(BaseModel):
    """Cart API response"""
    cart: CartView
    message: Optional[str] = None
