"""Service wiring for the API routes"""

from datetime import timedelta
from typing import Optional

from fastapi import Header, HTTPException, Depends

from .core.config import settings
from .core.session import BuyerSession, SessionManager
from .database.orders import InMemoryOrderDatabase, OrderStore
from .services.order_history import OrderHistoryReader
from .services.order_lifecycle import OrderLifecycleManager
from .services.razorpay_gateway import RazorpayGateway

# Initialize services lazily; tests swap them via app.dependency_overrides
session_manager: Optional[SessionManager] = None
order_store: Optional[OrderStore] = None
razorpay_gateway: Optional[RazorpayGateway] = None
order_lifecycle: Optional[OrderLifecycleManager] = None
order_history: Optional[OrderHistoryReader] = None


def get_session_manager() -> SessionManager:
    """Get or create session manager"""
    global session_manager
    if session_manager is None:
        session_manager = SessionManager()
    return session_manager


def get_order_store() -> OrderStore:
    """Get or create order store"""
    global order_store
    if order_store is None:
        order_store = InMemoryOrderDatabase()
    return order_store


def get_razorpay_gateway() -> RazorpayGateway:
    """Get or create Razorpay adapter"""
    global razorpay_gateway
    if razorpay_gateway is None:
        razorpay_gateway = RazorpayGateway(
            key_id=settings.razorpay_key_id,
            key_secret=settings.razorpay_key_secret,
            checkout_script_url=settings.razorpay_checkout_url,
            merchant_name=settings.store_name,
            description=settings.checkout_description,
            theme_color=settings.checkout_theme_color,
            timeout=settings.gateway_timeout_seconds,
        )
    return razorpay_gateway


def get_order_lifecycle() -> OrderLifecycleManager:
    """Get or create order lifecycle manager"""
    global order_lifecycle
    if order_lifecycle is None:
        order_lifecycle = OrderLifecycleManager(
            store=get_order_store(),
            gateway=get_razorpay_gateway(),
            attempt_timeout=timedelta(seconds=settings.payment_attempt_timeout_seconds),
            max_id_attempts=settings.order_id_max_attempts,
        )
    return order_lifecycle


def get_order_history() -> OrderHistoryReader:
    """Get or create order history reader"""
    global order_history
    if order_history is None:
        order_history = OrderHistoryReader(
            store=get_order_store(),
            default_page_size=settings.order_history_page_size,
            max_page_size=settings.order_history_max_page_size,
        )
    return order_history


class SessionDependency:
    """
    FastAPI dependency resolving the buyer session from X-Session-Id.

    Rejects requests without a known session with 401/404.
    """

    async def __call__(
        self,
        x_session_id: Optional[str] = Header(None),
        sessions: SessionManager = Depends(get_session_manager),
    ) -> BuyerSession:
        if not x_session_id:
            raise HTTPException(status_code=401, detail="X-Session-Id header required")

        session = sessions.get_session(x_session_id)
        if not session:
            raise HTTPException(status_code=404, detail="Session not found")

        session.touch()
        return session


current_session = SessionDependency()
