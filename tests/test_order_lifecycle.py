"""Tests for placing orders and settling them from gateway callbacks."""

import asyncio
from datetime import datetime, timedelta

import pytest

from storefront.errors import (
    CheckoutInProgressError,
    DuplicateCallbackError,
    DuplicateOrderIdError,
    EmptyCartError,
    GatewayLoadError,
    InvalidOrderAmountError,
    OrderStoreError,
    ReconciliationError,
)
from storefront.models.order import OrderStatus
from storefront.models.payment import (
    CashOnDeliveryConfirmed,
    GatewayErrorDetails,
    PaymentFailed,
    PaymentSucceeded,
)
from storefront.services import order_lifecycle
from storefront.services.order_builder import build_order_request
from storefront.services.order_lifecycle import generate_order_id, next_status

from factories import make_form, make_item, sign

DECLINED = GatewayErrorDetails(
    code="BAD_REQUEST_ERROR",
    description="Your payment has been declined by the bank.",
    source="bank",
    step="payment_authorization",
    reason="payment_declined",
)


def _fill_cart(session, *items):
    for item in items or (make_item("1", price=15000),):
        session.cart.add_item(item)


async def _place_gateway_order(lifecycle, session):
    _fill_cart(session)
    request = build_order_request(session.cart, make_form())
    return await lifecycle.place_order(session, request)


class TestNextStatus:
    def test_success_pays(self):
        event = PaymentSucceeded(order_id="O", payment_id="p", signature="s")
        assert next_status(OrderStatus.CREATED, event) is OrderStatus.PAID

    def test_failure_fails(self):
        event = PaymentFailed(order_id="O", error=DECLINED)
        assert next_status(OrderStatus.CREATED, event) is OrderStatus.FAILED

    def test_cod_pays(self):
        assert next_status(OrderStatus.CREATED, CashOnDeliveryConfirmed(order_id="O")) is OrderStatus.PAID

    @pytest.mark.parametrize("status", [OrderStatus.PAID, OrderStatus.FAILED, OrderStatus.REFUNDED])
    def test_terminal_orders_do_not_move(self, status):
        event = PaymentSucceeded(order_id="O", payment_id="p", signature="s")
        with pytest.raises(DuplicateCallbackError):
            next_status(status, event)


class TestOrderIds:
    def test_format(self):
        order_id = generate_order_id()
        assert order_id.startswith("ORD")
        assert len(order_id) == 3 + 13 + 8

    def test_unique(self):
        assert len({generate_order_id() for _ in range(1000)}) == 1000

    @pytest.mark.asyncio
    async def test_collision_is_retried(self, lifecycle, session, order_db, monkeypatch):
        ids = iter(["ORDTAKEN", "ORDTAKEN", "ORDFRESH"])
        monkeypatch.setattr(order_lifecycle, "generate_order_id", lambda: next(ids))
        _fill_cart(session)
        order_db.orders["ORDTAKEN"] = None  # occupied slot

        placed = await lifecycle.place_order(session, build_order_request(session.cart, make_form()))
        assert placed.order.order_id == "ORDFRESH"

    @pytest.mark.asyncio
    async def test_gives_up_after_max_attempts(self, lifecycle, session, order_db, monkeypatch):
        monkeypatch.setattr(order_lifecycle, "generate_order_id", lambda: "ORDTAKEN")
        _fill_cart(session)
        order_db.orders["ORDTAKEN"] = None

        with pytest.raises(DuplicateOrderIdError):
            await lifecycle.place_order(session, build_order_request(session.cart, make_form()))


class TestPayOnDelivery:
    @pytest.mark.asyncio
    async def test_paid_immediately_and_cart_cleared(self, lifecycle, session, order_db, script_host):
        _fill_cart(session, make_item("2", price=22000))
        request = build_order_request(session.cart, make_form(payment_method="cod"))

        placed = await lifecycle.place_order(session, request)

        assert placed.checkout is None
        assert placed.order.status is OrderStatus.PAID
        assert placed.order.amount == 22000
        assert order_db.orders[placed.order.order_id].status is OrderStatus.PAID
        assert session.cart.is_empty
        assert script_host.requests == []

        notes = session.drain_notifications()
        assert [n.title for n in notes] == ["Order Placed Successfully!"]
        assert placed.order.order_id in notes[0].description

    @pytest.mark.asyncio
    async def test_same_request_twice_creates_one_order(self, lifecycle, session, order_db):
        _fill_cart(session)
        request = build_order_request(session.cart, make_form(payment_method="cod"))

        results = await asyncio.gather(
            lifecycle.place_order(session, request),
            lifecycle.place_order(session, request),
            return_exceptions=True,
        )

        assert len(order_db.orders) == 1
        errors = [r for r in results if isinstance(r, Exception)]
        assert len(errors) == 1
        assert isinstance(errors[0], (CheckoutInProgressError, EmptyCartError))


class TestGatewayCheckout:
    @pytest.mark.asyncio
    async def test_order_created_before_payment(self, lifecycle, session, order_db, gateway):
        placed = await _place_gateway_order(lifecycle, session)

        order = order_db.orders[placed.order.order_id]
        assert order.status is OrderStatus.CREATED
        assert order.buyer_id == "user-3"
        assert order.customer_email == "ananya@example.com"
        assert [i.id for i in order.items] == ["1"]
        assert placed.checkout.order_id == order.order_id
        assert placed.checkout.amount == 1500000
        assert gateway.get_attempt(order.order_id) is not None
        assert session.pending_order_id == order.order_id
        assert not session.cart.is_empty

    @pytest.mark.asyncio
    async def test_load_failure_creates_no_order(self, lifecycle, session, order_db, script_host):
        script_host.status_code = 500
        with pytest.raises(GatewayLoadError):
            await _place_gateway_order(lifecycle, session)
        assert order_db.orders == {}
        assert session.pending_order_id is None

    @pytest.mark.asyncio
    async def test_zero_total_rejected_before_order_exists(self, lifecycle, session, order_db, script_host):
        _fill_cart(session, make_item("9", price=0.0))
        request = build_order_request(session.cart, make_form())

        with pytest.raises(InvalidOrderAmountError):
            await lifecycle.place_order(session, request)

        assert order_db.orders == {}
        assert session.pending_order_id is None
        assert script_host.requests == []
        assert not session.checkout_lock.locked()

    @pytest.mark.asyncio
    async def test_zero_total_on_delivery_is_confirmed(self, lifecycle, session, order_db):
        _fill_cart(session, make_item("9", price=0.0))
        request = build_order_request(session.cart, make_form(payment_method="cod"))

        placed = await lifecycle.place_order(session, request)

        assert placed.order.status is OrderStatus.PAID
        assert len(order_db.orders) == 1

    @pytest.mark.asyncio
    async def test_store_failure_on_create(self, lifecycle, session, order_db):
        order_db.fail_inserts = True
        with pytest.raises(OrderStoreError):
            await _place_gateway_order(lifecycle, session)
        assert session.pending_order_id is None

    @pytest.mark.asyncio
    async def test_rapid_double_submit_creates_one_order(self, lifecycle, session, order_db):
        _fill_cart(session)
        request = build_order_request(session.cart, make_form())

        results = await asyncio.gather(
            lifecycle.place_order(session, request),
            lifecycle.place_order(session, request),
            return_exceptions=True,
        )

        assert len(order_db.orders) == 1
        assert sum(isinstance(r, CheckoutInProgressError) for r in results) == 1

    @pytest.mark.asyncio
    async def test_submit_while_locked_is_rejected(self, lifecycle, session, order_db):
        _fill_cart(session)
        request = build_order_request(session.cart, make_form())
        async with session.checkout_lock:
            with pytest.raises(CheckoutInProgressError):
                await lifecycle.place_order(session, request)
        assert order_db.orders == {}

    @pytest.mark.asyncio
    async def test_sessions_do_not_block_each_other(self, lifecycle, sessions, order_db):
        first = sessions.create_session(buyer_id="a")
        second = sessions.create_session(buyer_id="b")
        await _place_gateway_order(lifecycle, first)
        await _place_gateway_order(lifecycle, second)
        assert len(order_db.orders) == 2


class TestGatewaySuccess:
    @pytest.mark.asyncio
    async def test_success_pays_and_clears_cart(self, lifecycle, session, order_db, gateway):
        placed = await _place_gateway_order(lifecycle, session)
        order_id = placed.order.order_id
        signature = sign(order_id, "pay_abc")

        assert await gateway.resolve_success(order_id, "pay_abc", signature) is True

        order = order_db.orders[order_id]
        assert order.status is OrderStatus.PAID
        assert order.payment_id == "pay_abc"
        assert order.payment_signature == signature
        assert order.updated_at >= order.created_at
        assert order.error_code is None
        assert session.cart.is_empty
        assert session.pending_order_id is None
        assert [n.title for n in session.drain_notifications()] == ["Payment Successful"]

    @pytest.mark.asyncio
    async def test_duplicate_success_is_noop(self, lifecycle, session, order_db):
        placed = await _place_gateway_order(lifecycle, session)
        order_id = placed.order.order_id

        first = await lifecycle.on_gateway_success(session, order_id, "pay_1", "sig")
        paid_at = order_db.orders[order_id].updated_at
        session.cart.add_item(make_item("5"))
        second = await lifecycle.on_gateway_success(session, order_id, "pay_2", "sig2")

        assert first.status is OrderStatus.PAID
        assert second is None
        assert order_db.orders[order_id].payment_id == "pay_1"
        assert order_db.orders[order_id].updated_at == paid_at
        # cart contents added after payment survive the duplicate
        assert [i.id for i in session.cart.items] == ["5"]
        assert len(session.drain_notifications()) == 1

    @pytest.mark.asyncio
    async def test_interleaved_deliveries_transition_once(self, lifecycle, session, order_db):
        placed = await _place_gateway_order(lifecycle, session)
        order_id = placed.order.order_id

        results = await asyncio.gather(
            lifecycle.on_gateway_success(session, order_id, "pay_1", "sig"),
            lifecycle.on_gateway_success(session, order_id, "pay_1", "sig"),
        )
        assert sum(r is not None for r in results) == 1
        assert order_db.orders[order_id].status is OrderStatus.PAID

    @pytest.mark.asyncio
    async def test_failure_after_success_is_ignored(self, lifecycle, session, order_db):
        placed = await _place_gateway_order(lifecycle, session)
        order_id = placed.order.order_id
        await lifecycle.on_gateway_success(session, order_id, "pay_1", "sig")

        assert await lifecycle.on_gateway_failure(session, order_id, DECLINED) is None
        assert order_db.orders[order_id].status is OrderStatus.PAID

    @pytest.mark.asyncio
    async def test_unknown_order_is_ignored(self, lifecycle, session):
        assert await lifecycle.on_gateway_success(session, "ORD-missing", "pay_1", "sig") is None

    @pytest.mark.asyncio
    async def test_store_failure_raises_reconciliation_error(self, lifecycle, session, order_db, gateway):
        placed = await _place_gateway_order(lifecycle, session)
        order_id = placed.order.order_id
        order_db.fail_updates = True

        with pytest.raises(ReconciliationError) as exc_info:
            await gateway.resolve_success(order_id, "pay_lost", sign(order_id, "pay_lost"))

        assert exc_info.value.order_id == order_id
        assert exc_info.value.payment_id == "pay_lost"
        assert lifecycle.reconciliation_queue == [exc_info.value]
        assert order_db.orders[order_id].status is OrderStatus.CREATED
        assert not session.cart.is_empty
        assert session.pending_order_id is None

        notes = session.drain_notifications()
        assert notes[0].title == "Payment Verification Error"
        assert notes[0].variant == "destructive"


class TestGatewayFailure:
    @pytest.mark.asyncio
    async def test_failure_records_error_and_keeps_cart(self, lifecycle, session, order_db, gateway):
        placed = await _place_gateway_order(lifecycle, session)
        order_id = placed.order.order_id

        assert await gateway.resolve_failure(order_id, DECLINED) is True

        order = order_db.orders[order_id]
        assert order.status is OrderStatus.FAILED
        assert order.error_code == "BAD_REQUEST_ERROR"
        assert order.error_description == "Your payment has been declined by the bank."
        assert order.error_source == "bank"
        assert order.error_step == "payment_authorization"
        assert order.error_reason == "payment_declined"
        assert order.payment_id is None
        assert [i.id for i in session.cart.items] == ["1"]
        assert session.pending_order_id is None

        notes = session.drain_notifications()
        assert notes[0].title == "Payment Failed"
        assert notes[0].description == DECLINED.description

    @pytest.mark.asyncio
    async def test_retry_after_failure_uses_new_order(self, lifecycle, session, order_db, gateway):
        placed = await _place_gateway_order(lifecycle, session)
        await gateway.resolve_failure(placed.order.order_id, DECLINED)

        retry = await lifecycle.place_order(session, build_order_request(session.cart, make_form()))

        assert retry.order.order_id != placed.order.order_id
        assert len(order_db.orders) == 2

    @pytest.mark.asyncio
    async def test_default_message_without_description(self, lifecycle, session):
        placed = await _place_gateway_order(lifecycle, session)
        await lifecycle.on_gateway_failure(session, placed.order.order_id, GatewayErrorDetails(code="X"))
        notes = session.drain_notifications()
        assert notes[0].description == "Your payment couldn't be processed. Please try again."

    @pytest.mark.asyncio
    async def test_store_failure_still_tells_buyer(self, lifecycle, session, order_db):
        placed = await _place_gateway_order(lifecycle, session)
        order_db.fail_updates = True

        assert await lifecycle.on_gateway_failure(session, placed.order.order_id, DECLINED) is None
        assert order_db.orders[placed.order.order_id].status is OrderStatus.CREATED
        assert session.drain_notifications()[0].title == "Payment Failed"


class TestPendingAttempts:
    @pytest.mark.asyncio
    async def test_second_checkout_blocked_while_payment_open(self, lifecycle, session, order_db):
        await _place_gateway_order(lifecycle, session)
        with pytest.raises(CheckoutInProgressError):
            await lifecycle.place_order(session, build_order_request(session.cart, make_form()))
        assert len(order_db.orders) == 1

    @pytest.mark.asyncio
    async def test_fresh_attempt_is_pending(self, lifecycle, session):
        placed = await _place_gateway_order(lifecycle, session)
        pending = await lifecycle.check_pending(session)
        assert pending.order_id == placed.order.order_id
        assert pending.status is OrderStatus.CREATED
        assert not pending.stale

    @pytest.mark.asyncio
    async def test_no_pending_attempt(self, lifecycle, session):
        assert await lifecycle.check_pending(session) is None

    @pytest.mark.asyncio
    async def test_stale_attempt_is_released(self, lifecycle, session, order_db):
        placed = await _place_gateway_order(lifecycle, session)
        session.pending_since = datetime.utcnow() - timedelta(hours=1)

        pending = await lifecycle.check_pending(session)

        assert pending.stale
        assert session.pending_order_id is None
        assert order_db.orders[placed.order.order_id].status is OrderStatus.CREATED
        assert session.drain_notifications()[0].title == "Payment Not Completed"

    @pytest.mark.asyncio
    async def test_retry_after_timeout_gets_fresh_id(self, lifecycle, session, order_db):
        placed = await _place_gateway_order(lifecycle, session)
        session.pending_since = datetime.utcnow() - timedelta(hours=1)

        retry = await lifecycle.place_order(session, build_order_request(session.cart, make_form()))

        assert retry.order.order_id != placed.order.order_id
        assert session.pending_order_id == retry.order.order_id

    @pytest.mark.asyncio
    async def test_late_success_for_stale_order_still_settles(self, lifecycle, session, order_db, gateway):
        placed = await _place_gateway_order(lifecycle, session)
        order_id = placed.order.order_id
        session.pending_since = datetime.utcnow() - timedelta(hours=1)
        await lifecycle.check_pending(session)

        assert await gateway.resolve_success(order_id, "pay_late", sign(order_id, "pay_late")) is True
        assert order_db.orders[order_id].status is OrderStatus.PAID
