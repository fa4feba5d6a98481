# API Routes

from .session import router as session_router
from .cart import router as cart_router
from .checkout import router as checkout_router
from .payments import router as payments_router
from .orders import router as orders_router

__all__ = ["session_router", "cart_router", "checkout_router", "payments_router", "orders_router"]
