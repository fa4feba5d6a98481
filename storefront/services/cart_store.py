"""Session-scoped cart"""

import logging
from typing import Optional

from ..errors import InvalidQuantityError
from ..models.cart import CartItem, CartView

logger = logging.getLogger(__name__)


class CartStore:
    """
    In-memory cart for one buyer session.

    Items keep insertion order. Totals are derived from the items on every
    read and never stored.
    """

    def __init__(self, items: Optional[list[CartItem]] = None):
        self._items: list[CartItem] = []
        for item in items or []:
            self.add_item(item)

    def _find(self, item_id: str) -> Optional[CartItem]:
        return next((item for item in self._items if item.id == item_id), None)

    def add_item(self, item: CartItem) -> CartItem:
        """Add an item, merging quantities if the artwork is already in the cart"""
        existing = self._find(item.id)
        if existing:
            existing.quantity += item.quantity
            return existing.model_copy()

        self._items.append(item.model_copy())
        return item.model_copy()

    def update_quantity(self, item_id: str, quantity: int) -> bool:
        """
        Set an item's quantity.

        Quantities below 1 are rejected and the stored quantity is left
        as it was. Returns False if the item is not in the cart.
        """
        if quantity < 1:
            raise InvalidQuantityError(f"Quantity must be at least 1, got {quantity}")

        item = self._find(item_id)
        if not item:
            return False

        item.quantity = quantity
        return True

    def remove_item(self, item_id: str) -> bool:
        """Remove an item from the cart"""
        before = len(self._items)
        self._items = [i for i in self._items if i.id != item_id]
        return len(self._items) != before

    def clear(self) -> None:
        """Empty the cart; called once an order is confirmed paid"""
        self._items = []

    @property
    def items(self) -> list[CartItem]:
        return [item.model_copy() for item in self._items]

    @property
    def item_count(self) -> int:
        return sum(item.quantity for item in self._items)

    @property
    def total_amount(self) -> float:
        return sum(item.line_total for item in self._items)

    @property
    def is_empty(self) -> bool:
        return not self._items

    def view(self) -> CartView:
        return CartView(
            items=self.items,
            item_count=self.item_count,
            total_amount=self.total_amount,
        )
