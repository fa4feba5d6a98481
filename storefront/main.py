"""
ArtVista Storefront

Cart, checkout and order tracking API for the ArtVista art store.
Payments go through Razorpay's hosted checkout or pay-on-delivery.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .core.config import settings
from .routes import session_router, cart_router, checkout_router, payments_router, orders_router
from . import dependencies

# Configure logging
logging.basicConfig(
    level=logging.DEBUG if settings.debug else settings.log_level.upper(),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events"""
    logger.info("Storefront starting up...")
    logger.info(f"Razorpay: {'configured' if settings.razorpay_key_id else 'not configured'}")
    logger.info(f"Signature verification: {'enabled' if settings.gateway_signature_enabled else 'disabled'}")

    yield

    logger.info("Storefront shutting down...")
    gateway = dependencies.razorpay_gateway
    if gateway:
        await gateway.close()
    lifecycle = dependencies.order_lifecycle
    if lifecycle and lifecycle.reconciliation_queue:
        logger.critical(
            f"{len(lifecycle.reconciliation_queue)} payment(s) awaiting reconciliation at shutdown"
        )


# Create FastAPI app
app = FastAPI(
    title=settings.app_name,
    description="Cart, checkout and order tracking for the ArtVista storefront",
    version="1.0.0",
    lifespan=lifespan,
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # In production, restrict this
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include API routers
app.include_router(session_router)
app.include_router(cart_router)
app.include_router(checkout_router)
app.include_router(payments_router)
app.include_router(orders_router)


@app.get("/")
async def home():
    """API index"""
    return {
        "message": "ArtVista Storefront API",
        "docs": "/docs",
        "endpoints": {
            "session": "/api/session",
            "cart": "/api/cart",
            "checkout": "/api/checkout",
            "payments": "/api/payments/razorpay",
            "orders": "/api/orders",
        },
    }


@app.get("/health")
async def health_check():
    """Health check endpoint"""
    return {
        "status": "healthy",
        "service": "storefront",
        "gateway_configured": bool(settings.razorpay_key_id),
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "storefront.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
    )
