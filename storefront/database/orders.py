"""Order storage"""

import asyncio
from abc import ABC, abstractmethod
from typing import Any, Optional

from ..errors import DuplicateOrderIdError, OrderNotFoundError, OrderStatusConflictError
from ..models.order import Order, OrderStatus


class OrderStore(ABC):
    """
    Persistence interface for orders.

    Implementations raise ``OrderStoreError`` subclasses when the backing
    store fails, and ``OrderNotFoundError`` for unknown ids.
    """

    @abstractmethod
    async def insert_order(self, order: Order) -> Order:
        """Insert a new order; raises DuplicateOrderIdError if the id is taken"""

    @abstractmethod
    async def update_order(
        self,
        order_id: str,
        patch: dict[str, Any],
        expected_status: Optional[OrderStatus] = None,
    ) -> Order:
        """
        Apply a partial update.

        When ``expected_status`` is given the update only happens if the
        stored status still matches, otherwise OrderStatusConflictError.
        """

    @abstractmethod
    async def get_order(self, order_id: str) -> Order:
        """Get an order by ID"""

    @abstractmethod
    async def query_orders(self, buyer_id: str, offset: int, limit: int) -> tuple[list[Order], int]:
        """Orders for a buyer, newest first, with the total count"""


class InMemoryOrderDatabase(OrderStore):
    """In-memory order storage"""

    def __init__(self):
        self.orders: dict[str, Order] = {}
        self._lock = asyncio.Lock()

    async def insert_order(self, order: Order) -> Order:
        async with self._lock:
            if order.order_id in self.orders:
                raise DuplicateOrderIdError(f"Order {order.order_id} already exists")
            self.orders[order.order_id] = order.model_copy(deep=True)
            return order.model_copy(deep=True)

    async def update_order(
        self,
        order_id: str,
        patch: dict[str, Any],
        expected_status: Optional[OrderStatus] = None,
    ) -> Order:
        async with self._lock:
            current = self.orders.get(order_id)
            if current is None:
                raise OrderNotFoundError(f"Order {order_id} not found")
            if expected_status is not None and current.status != expected_status:
                raise OrderStatusConflictError(
                    f"Order {order_id} is {current.status.value}, expected {expected_status.value}"
                )
            # Validate the merged record so a bad patch never lands
            updated = Order.model_validate({**current.model_dump(), **patch})
            self.orders[order_id] = updated
            return updated.model_copy(deep=True)

    async def get_order(self, order_id: str) -> Order:
        order = self.orders.get(order_id)
        if order is None:
            raise OrderNotFoundError(f"Order {order_id} not found")
        return order.model_copy(deep=True)

    async def query_orders(self, buyer_id: str, offset: int, limit: int) -> tuple[list[Order], int]:
        orders = [o for o in self.orders.values() if o.buyer_id == buyer_id]
        orders.sort(key=lambda o: o.created_at, reverse=True)
        total = len(orders)
        return [o.model_copy(deep=True) for o in orders[offset : offset + limit]], total
