"""Read-only view over a buyer's orders"""

import logging
import math

from ..database.orders import OrderStore
from ..errors import OrderStoreError
from ..models.order import OrderHistoryPage

logger = logging.getLogger(__name__)


def normalize_paging(page: int, page_size: int, default_page_size: int = 10, max_page_size: int = 50) -> tuple[int, int]:
    p = page if page and page > 0 else 1
    ps = page_size if page_size and page_size > 0 else default_page_size
    ps = min(ps, max_page_size)
    return p, ps


class OrderHistoryReader:
    """Paginated order history, newest first"""

    def __init__(self, store: OrderStore, default_page_size: int = 10, max_page_size: int = 50):
        self.store = store
        self.default_page_size = default_page_size
        self.max_page_size = max_page_size

    async def list_orders(self, buyer_id: str, page: int = 1, page_size: int = 0) -> OrderHistoryPage:
        """
        Get one page of a buyer's orders.

        A buyer with no orders gets an empty "ok" page. If the store
        fails, the page comes back with status "unavailable" instead.
        """
        page, page_size = normalize_paging(page, page_size, self.default_page_size, self.max_page_size)

        try:
            orders, total = await self.store.query_orders(
                buyer_id, offset=(page - 1) * page_size, limit=page_size
            )
        except OrderStoreError as e:
            logger.exception(f"Failed to read order history for {buyer_id}")
            return OrderHistoryPage(
                status="unavailable",
                page=page,
                page_size=page_size,
                error=f"Order history is temporarily unavailable: {e}",
            )

        return OrderHistoryPage(
            orders=orders,
            page=page,
            page_size=page_size,
            total_count=total,
            total_pages=math.ceil(total / page_size),
        )
