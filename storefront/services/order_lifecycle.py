"""
Order Lifecycle Manager

Creates the pending order record, hands payment to the gateway, and moves
the order to its terminal status when the gateway reports back. This is
the only component that writes orders.

    created --payment succeeded--> paid
    created --payment failed-----> failed
    created --cod confirmed------> paid
"""

import logging
import secrets
import time
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

from ..core.session import BuyerSession
from ..database.orders import OrderStore
from ..errors import (
    CheckoutInProgressError,
    DuplicateCallbackError,
    DuplicateOrderIdError,
    EmptyCartError,
    GatewayLoadError,
    GatewayPaymentError,
    InvalidOrderAmountError,
    OrderNotFoundError,
    OrderStatusConflictError,
    OrderStoreError,
    ReconciliationError,
)
from ..models.checkout import OrderRequest, PaymentMethod
from ..models.notification import Notification
from ..models.order import Order, OrderStatus
from ..models.payment import (
    CashOnDeliveryConfirmed,
    CheckoutOptions,
    GatewayErrorDetails,
    OrderEvent,
    PaymentFailed,
    PaymentSpec,
    PaymentSucceeded,
    Prefill,
    to_subunits,
)
from .razorpay_gateway import RazorpayGateway

logger = logging.getLogger(__name__)


def generate_order_id() -> str:
    """Order id with a millisecond timestamp and a random suffix"""
    return f"ORD{int(time.time() * 1000)}{secrets.token_hex(4).upper()}"


def next_status(current: OrderStatus, event: OrderEvent) -> OrderStatus:
    """
    Status an order moves to when ``event`` happens.

    Only 'created' orders move; anything else means the event was already
    applied (or the order was settled another way).
    """
    if current is not OrderStatus.CREATED:
        raise DuplicateCallbackError(event.order_id, current.value)
    if isinstance(event, PaymentFailed):
        return OrderStatus.FAILED
    return OrderStatus.PAID


def _event_patch(event: OrderEvent) -> dict:
    if isinstance(event, PaymentSucceeded):
        return {"payment_id": event.payment_id, "payment_signature": event.signature}
    if isinstance(event, PaymentFailed):
        return {
            "error_code": event.error.code,
            "error_description": event.error.description,
            "error_source": event.error.source,
            "error_step": event.error.step,
            "error_reason": event.error.reason,
        }
    return {}


@dataclass
class PlacedOrder:
    """Result of placing an order"""
    order: Order
    checkout: Optional[CheckoutOptions] = None


@dataclass
class PendingAttempt:
    """Status of a session's in-flight gateway payment"""
    order_id: str
    status: OrderStatus
    started_at: datetime
    stale: bool = False


class OrderLifecycleManager:
    """Drives orders from creation to a terminal status"""

    def __init__(
        self,
        store: OrderStore,
        gateway: RazorpayGateway,
        attempt_timeout: timedelta = timedelta(minutes=15),
        max_id_attempts: int = 3,
    ):
        self.store = store
        self.gateway = gateway
        self.attempt_timeout = attempt_timeout
        self.max_id_attempts = max_id_attempts
        self.reconciliation_queue: list[ReconciliationError] = []

    async def place_order(self, session: BuyerSession, request: OrderRequest) -> PlacedOrder:
        """
        Persist a 'created' order and start payment.

        Pay-on-delivery orders are confirmed right away. Gateway orders
        return the checkout options; the outcome arrives later through
        on_gateway_success / on_gateway_failure.

        Raises:
            CheckoutInProgressError: this session already has a submission
                running or an unresolved gateway attempt
            EmptyCartError: the cart was emptied since the request was built
            InvalidOrderAmountError: a gateway payment for a total of zero
            GatewayLoadError: the gateway script could not be loaded; no
                order is created
            OrderStoreError: the order could not be created
        """
        if session.checkout_lock.locked():
            raise CheckoutInProgressError("An order is already being placed")

        async with session.checkout_lock:
            pending = await self.check_pending(session)
            if pending is not None and not pending.stale:
                raise CheckoutInProgressError(
                    f"Payment for order {pending.order_id} has not completed yet"
                )

            # A cart emptied by a confirmed order cannot be placed again
            if session.cart.is_empty:
                raise EmptyCartError("Your cart is empty. Add some items before checkout.")

            if request.payment_method is PaymentMethod.GATEWAY:
                if to_subunits(request.total_amount) <= 0:
                    raise InvalidOrderAmountError(
                        "Orders with no amount to pay cannot go through the payment gateway"
                    )
                if not await self.gateway.load_client_library():
                    raise GatewayLoadError("Could not load payment gateway. Please try again.")

            order = await self._create_order(session, request)

            if request.payment_method is PaymentMethod.PAY_ON_DELIVERY:
                order = await self._confirm_cash_on_delivery(session, order)
                return PlacedOrder(order=order)

            return await self._open_payment(session, order, request)

    async def _create_order(self, session: BuyerSession, request: OrderRequest) -> Order:
        now = datetime.utcnow()
        for attempt in range(1, self.max_id_attempts + 1):
            order = Order(
                order_id=generate_order_id(),
                buyer_id=session.buyer_key,
                amount=request.total_amount,
                currency=request.currency,
                customer_name=request.buyer.name,
                customer_email=request.buyer.email,
                customer_phone=request.buyer.phone,
                shipping_address=request.shipping_address,
                payment_method=request.payment_method,
                items=list(request.items),
                status=OrderStatus.CREATED,
                created_at=now,
                updated_at=now,
            )
            try:
                order = await self.store.insert_order(order)
            except DuplicateOrderIdError:
                logger.warning(f"Order id collision on {order.order_id} (attempt {attempt})")
                continue

            logger.info(
                f"Order {order.order_id} created: {order.amount} {order.currency} "
                f"via {order.payment_method.value}, {len(order.items)} item(s)"
            )
            return order

        raise DuplicateOrderIdError(f"Could not allocate a unique order id in {self.max_id_attempts} attempts")

    async def _confirm_cash_on_delivery(self, session: BuyerSession, order: Order) -> Order:
        order = await self._transition(CashOnDeliveryConfirmed(order_id=order.order_id))
        session.cart.clear()
        session.notify(Notification(
            title="Order Placed Successfully!",
            description=f"Your order #{order.order_id} has been placed. Thank you for shopping with ArtVista!",
            order_id=order.order_id,
        ))
        return order

    async def _open_payment(self, session: BuyerSession, order: Order, request: OrderRequest) -> PlacedOrder:
        order_id = order.order_id
        spec = PaymentSpec(
            order_id=order_id,
            amount=to_subunits(order.amount),
            currency=order.currency,
            prefill=Prefill(
                name=request.buyer.name,
                email=request.buyer.email,
                contact=request.buyer.phone,
            ),
        )

        async def on_success(payment_id: str, signature: str) -> None:
            await self.on_gateway_success(session, order_id, payment_id, signature)

        async def on_failure(error: GatewayErrorDetails) -> None:
            await self.on_gateway_failure(session, order_id, error)

        session.mark_pending(order_id)
        try:
            options = await self.gateway.open(spec, on_success, on_failure)
        except Exception:
            session.release_pending(order_id)
            raise
        return PlacedOrder(order=order, checkout=options)

    async def _transition(self, event: OrderEvent) -> Order:
        """Apply an event to a 'created' order with compare-and-set"""
        current = await self.store.get_order(event.order_id)
        status = next_status(current.status, event)

        patch = _event_patch(event)
        patch["status"] = status
        patch["updated_at"] = datetime.utcnow()
        try:
            order = await self.store.update_order(
                event.order_id, patch, expected_status=OrderStatus.CREATED
            )
        except OrderStatusConflictError:
            # Another delivery won the race between read and write
            latest = await self.store.get_order(event.order_id)
            raise DuplicateCallbackError(event.order_id, latest.status.value)

        logger.info(f"Order {order.order_id}: {current.status.value} -> {order.status.value}")
        return order

    async def on_gateway_success(
        self,
        session: BuyerSession,
        order_id: str,
        payment_id: str,
        signature: str,
    ) -> Optional[Order]:
        """
        Mark the order paid and clear the cart.

        Returns None for a duplicate or unknown callback. Raises
        ReconciliationError if the order could not be updated after the
        buyer was charged.
        """
        event = PaymentSucceeded(order_id=order_id, payment_id=payment_id, signature=signature)
        try:
            order = await self._transition(event)
        except DuplicateCallbackError as e:
            logger.warning(f"Ignoring success callback for order {order_id}: {e}")
            return None
        except OrderNotFoundError:
            logger.warning(f"Ignoring success callback for unknown order {order_id}")
            return None
        except OrderStoreError as e:
            error = ReconciliationError(order_id, payment_id, signature, cause=str(e))
            self.reconciliation_queue.append(error)
            logger.critical(f"RECONCILIATION NEEDED: {error}")
            session.release_pending(order_id)
            session.notify(Notification(
                title="Payment Verification Error",
                description=(
                    "Your payment was received but we couldn't update your order. "
                    "Our team will contact you."
                ),
                variant="destructive",
                order_id=order_id,
            ))
            raise error from e

        session.cart.clear()
        session.release_pending(order_id)
        session.notify(Notification(
            title="Payment Successful",
            description="Your payment has been processed successfully. Thank you for your purchase!",
            order_id=order_id,
        ))
        return order

    async def on_gateway_failure(
        self,
        session: BuyerSession,
        order_id: str,
        error: GatewayErrorDetails,
    ) -> Optional[Order]:
        """
        Mark the order failed with the gateway's error details.

        The cart is left alone so the buyer can try again.
        """
        failure = GatewayPaymentError(**error.model_dump())
        order = None
        try:
            order = await self._transition(PaymentFailed(order_id=order_id, error=error))
        except DuplicateCallbackError as e:
            logger.warning(f"Ignoring failure callback for order {order_id}: {e}")
            return None
        except OrderNotFoundError:
            logger.warning(f"Ignoring failure callback for unknown order {order_id}")
            return None
        except OrderStoreError:
            # Order stays 'created'; the pending-attempt timeout reports it
            logger.exception(f"Failed to record payment failure for order {order_id}")

        session.release_pending(order_id)
        session.notify(Notification(
            title="Payment Failed",
            description=failure.description or "Your payment couldn't be processed. Please try again.",
            variant="destructive",
            order_id=order_id,
        ))
        return order

    async def check_pending(self, session: BuyerSession) -> Optional[PendingAttempt]:
        """
        Report the session's unresolved gateway attempt.

        Once an attempt outlives the timeout it is released so the buyer
        can retry with a fresh order. The order itself stays 'created' so
        a late genuine callback still settles it.
        """
        order_id = session.pending_order_id
        if order_id is None:
            return None

        try:
            order = await self.store.get_order(order_id)
        except OrderNotFoundError:
            session.release_pending(order_id)
            return None

        if order.status.is_terminal:
            session.release_pending(order_id)
            return None

        started_at = session.pending_since or order.created_at
        if datetime.utcnow() - started_at < self.attempt_timeout:
            return PendingAttempt(order_id=order_id, status=order.status, started_at=started_at)

        logger.warning(f"Payment attempt for order {order_id} unresolved after {self.attempt_timeout}")
        session.release_pending(order_id)
        session.notify(Notification(
            title="Payment Not Completed",
            description=(
                f"We haven't received a payment result for order #{order_id}. "
                "If you weren't charged, you can place the order again."
            ),
            variant="destructive",
            order_id=order_id,
        ))
        return PendingAttempt(order_id=order_id, status=order.status, started_at=started_at, stale=True)
