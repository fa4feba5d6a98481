"""
Razorpay Gateway Adapter

Bridges the storefront to Razorpay's hosted checkout. The adapter loads
the checkout script once, hands the UI the options it needs to open the
checkout, and relays the gateway's success/failure callback to whoever
opened the attempt. It never writes orders itself.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Awaitable, Callable, Optional

import httpx
from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives import hashes, hmac

from ..errors import (
    GatewayLoadError,
    GatewayPaymentError,
    GatewaySignatureError,
    UnknownPaymentAttemptError,
)
from ..models.payment import (
    CheckoutOptions,
    GatewayErrorDetails,
    GatewayOutcome,
    PaymentFailed,
    PaymentSpec,
    PaymentSucceeded,
)

logger = logging.getLogger(__name__)

SuccessHandler = Callable[[str, str], Awaitable[None]]
FailureHandler = Callable[[GatewayErrorDetails], Awaitable[None]]


@dataclass
class PaymentAttempt:
    """One open() call and its eventual outcome"""
    spec: PaymentSpec
    on_success: SuccessHandler
    on_failure: FailureHandler
    opened_at: datetime = field(default_factory=datetime.utcnow)
    resolved_at: Optional[datetime] = None
    _outcome: Optional[asyncio.Future] = field(default=None, init=False, repr=False)

    def __post_init__(self):
        self._outcome = asyncio.get_running_loop().create_future()

    @property
    def resolved(self) -> bool:
        return self._outcome.done()

    def settle(self, outcome: GatewayOutcome) -> None:
        self._outcome.set_result(outcome)
        self.resolved_at = datetime.utcnow()

    async def result(self) -> PaymentSucceeded:
        """
        Wait for the buyer to finish paying.

        Returns the success, or raises GatewayPaymentError on failure.
        Never completes if the buyer abandons the checkout.
        """
        outcome = await asyncio.shield(self._outcome)
        if isinstance(outcome, PaymentFailed):
            raise GatewayPaymentError(**outcome.error.model_dump())
        return outcome


class RazorpayGateway:
    """
    Razorpay checkout adapter.

    Usage:
        gateway = RazorpayGateway(key_id="rzp_test_...", key_secret="...")
        if await gateway.load_client_library():
            options = await gateway.open(spec, on_success, on_failure)
        ...
        # later, from the callback endpoint
        await gateway.resolve_success(order_id, payment_id, signature)
    """

    def __init__(
        self,
        key_id: Optional[str],
        key_secret: Optional[str] = None,
        checkout_script_url: str = "https://checkout.razorpay.com/v1/checkout.js",
        merchant_name: str = "ArtVista",
        description: str = "Purchase of artwork(s)",
        theme_color: str = "#6c5ce7",
        timeout: float = 10.0,
        retention: timedelta = timedelta(hours=24),
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        """
        Args:
            key_id: Public key id sent to the checkout script
            key_secret: Secret used to verify success signatures; if None,
                signatures are not checked
            checkout_script_url: Where the checkout script is served from
            retention: How long attempts are remembered, resolved ones for
                dedup and abandoned ones for late callbacks
            http_client: Client to fetch the script with (created lazily)
        """
        self.key_id = key_id
        self._key_secret = key_secret
        self.checkout_script_url = checkout_script_url
        self.merchant_name = merchant_name
        self.description = description
        self.theme_color = theme_color
        self.retention = retention
        self._timeout = timeout
        self._http_client = http_client
        self._loaded = False
        self._load_lock = asyncio.Lock()
        self._attempts: dict[str, PaymentAttempt] = {}

    @property
    def is_loaded(self) -> bool:
        return self._loaded

    async def close(self) -> None:
        """Close HTTP client"""
        if self._http_client:
            await self._http_client.aclose()
            self._http_client = None

    async def load_client_library(self) -> bool:
        """
        Make sure the checkout script is reachable.

        Idempotent: once loaded, later calls return True without fetching
        again. Returns False on any failure instead of raising.
        """
        if self._loaded:
            return True

        async with self._load_lock:
            if self._loaded:
                return True

            if not self.key_id:
                logger.warning("Razorpay key id not configured - gateway unavailable")
                return False

            if self._http_client is None:
                self._http_client = httpx.AsyncClient(timeout=self._timeout)

            try:
                response = await self._http_client.get(self.checkout_script_url)
                response.raise_for_status()
            except (httpx.RequestError, httpx.HTTPStatusError) as e:
                logger.warning(f"Could not load Razorpay checkout script: {e}")
                return False

            self._loaded = True
            logger.info(f"Razorpay checkout script loaded from {self.checkout_script_url}")
            return True

    async def open(
        self,
        spec: PaymentSpec,
        on_success: SuccessHandler,
        on_failure: FailureHandler,
    ) -> CheckoutOptions:
        """
        Open a payment attempt for a pre-created order.

        Exactly one of the handlers runs later, when the gateway reports
        back. If the buyer walks away, neither runs.
        """
        if not self._loaded:
            raise GatewayLoadError("Razorpay checkout script is not loaded")

        existing = self._attempts.get(spec.order_id)
        if existing and not existing.resolved:
            raise ValueError(f"Payment attempt for {spec.order_id} is already open")

        self._prune()
        self._attempts[spec.order_id] = PaymentAttempt(
            spec=spec,
            on_success=on_success,
            on_failure=on_failure,
        )
        logger.info(f"Opened Razorpay attempt for order {spec.order_id}: {spec.amount} {spec.currency}")

        return CheckoutOptions(
            key=self.key_id,
            amount=spec.amount,
            currency=spec.currency,
            name=self.merchant_name,
            description=self.description,
            order_id=spec.order_id,
            prefill=spec.prefill,
            theme={"color": self.theme_color},
        )

    def get_attempt(self, order_id: str) -> Optional[PaymentAttempt]:
        return self._attempts.get(order_id)

    def _pending_attempt(self, order_id: str) -> Optional[PaymentAttempt]:
        attempt = self._attempts.get(order_id)
        if attempt is None:
            raise UnknownPaymentAttemptError(f"No payment attempt for order {order_id}")
        if attempt.resolved:
            logger.warning(f"Duplicate gateway callback for order {order_id} ignored")
            return None
        return attempt

    def verify_signature(self, order_id: str, payment_id: str, signature: str) -> bool:
        """Check Razorpay's HMAC-SHA256 over '<order_id>|<payment_id>'"""
        if not self._key_secret:
            return True

        try:
            expected = bytes.fromhex(signature)
        except ValueError:
            return False

        mac = hmac.HMAC(self._key_secret.encode(), hashes.SHA256())
        mac.update(f"{order_id}|{payment_id}".encode())
        try:
            mac.verify(expected)
        except InvalidSignature:
            return False
        return True

    async def resolve_success(self, order_id: str, payment_id: str, signature: str) -> bool:
        """
        Deliver a success callback.

        Returns True if this delivery resolved the attempt, False if it was
        already resolved. The attempt stays open on a bad signature.
        """
        attempt = self._pending_attempt(order_id)
        if attempt is None:
            return False

        if not self.verify_signature(order_id, payment_id, signature):
            logger.warning(f"Invalid Razorpay signature for order {order_id}, payment {payment_id}")
            raise GatewaySignatureError(f"Signature mismatch for order {order_id}")

        attempt.settle(PaymentSucceeded(order_id=order_id, payment_id=payment_id, signature=signature))
        logger.info(f"Razorpay payment {payment_id} succeeded for order {order_id}")
        await attempt.on_success(payment_id, signature)
        return True

    async def resolve_failure(self, order_id: str, error: GatewayErrorDetails) -> bool:
        """Deliver a payment.failed callback; same return contract as resolve_success"""
        attempt = self._pending_attempt(order_id)
        if attempt is None:
            return False

        attempt.settle(PaymentFailed(order_id=order_id, error=error))
        logger.info(f"Razorpay payment failed for order {order_id}: {error.code} {error.reason}")
        await attempt.on_failure(error)
        return True

    def _prune(self) -> None:
        """Forget resolved attempts and abandoned ones once past retention"""
        cutoff = datetime.utcnow() - self.retention
        expired = [
            oid for oid, attempt in self._attempts.items()
            if (attempt.resolved_at or attempt.opened_at) < cutoff
        ]
        for oid in expired:
            del self._attempts[oid]
