# backend/app/services/payment_gateway.py
"""
Payment gateway contract and the Stripe Checkout implementation.

The booking core only needs four things from a gateway: open a hosted
checkout session, read a session back, expire it, and verify signed
notifications. Everything Stripe-specific stays in this module.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
import json
import logging
from typing import Any, Dict, Mapping, Optional

import stripe

from ..core.config import settings
from ..core.exceptions import (
    PaymentGatewayException,
    ServiceException,
    WebhookSignatureException,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CheckoutSession:
    """Handle for a freshly opened hosted checkout page."""

    session_id: str
    url: Optional[str]


@dataclass(frozen=True)
class GatewaySession:
    """Gateway-side view of a checkout session."""

    session_id: str
    status: Optional[str]
    payment_status: Optional[str]
    payment_intent_id: Optional[str] = None
    metadata: Dict[str, str] = field(default_factory=dict)

    @property
    def is_paid(self) -> bool:
        return self.payment_status == "paid"

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "GatewaySession":
        """Build from a notification's ``data.object`` dictionary."""
        return cls(
            session_id=str(payload.get("id") or ""),
            status=payload.get("status"),
            payment_status=payload.get("payment_status"),
            payment_intent_id=_intent_id(payload.get("payment_intent")),
            metadata={str(k): str(v) for k, v in (payload.get("metadata") or {}).items()},
        )


def _intent_id(value: Any) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, str):
        return value
    return getattr(value, "id", None) or (value.get("id") if isinstance(value, dict) else None)


def _as_dict(obj: Any) -> Dict[str, Any]:
    if obj is None:
        return {}
    if isinstance(obj, dict):
        return dict(obj)
    to_dict = getattr(obj, "to_dict", None)
    if callable(to_dict):
        return dict(to_dict())
    return {}


class PaymentGateway(ABC):
    """Contract the checkout, retry, reconciliation and cleanup services depend on."""

    @abstractmethod
    def create_checkout_session(
        self,
        *,
        amount: int,
        currency: str,
        line_item_name: str,
        metadata: Dict[str, str],
        success_url: str,
        cancel_url: str,
    ) -> CheckoutSession:
        """Open a single-line-item checkout session. ``amount`` is in currency subunits."""

    @abstractmethod
    def retrieve_session(self, session_id: str) -> GatewaySession:
        ...

    @abstractmethod
    def expire_session(self, session_id: str) -> None:
        ...

    @abstractmethod
    def verify_webhook(self, payload: bytes, signature: Optional[str]) -> Dict[str, Any]:
        """Return the parsed event or raise WebhookSignatureException."""


class StripePaymentGateway(PaymentGateway):
    """Stripe Checkout adapter."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        webhook_secret: Optional[str] = None,
    ) -> None:
        self.logger = logging.getLogger(self.__class__.__name__)
        if api_key is None and settings.stripe_secret_key is not None:
            api_key = settings.stripe_secret_key.get_secret_value()
        if webhook_secret is None and settings.stripe_webhook_secret is not None:
            webhook_secret = settings.stripe_webhook_secret.get_secret_value()
        self.webhook_secret = webhook_secret

        self.stripe_configured = False
        if api_key:
            stripe.api_key = api_key
            # Bounded timeout; 1 retry for transient failures
            stripe.default_http_client = stripe.RequestsClient(
                timeout=settings.stripe_http_timeout_seconds
            )
            stripe.max_network_retries = settings.stripe_max_network_retries
            self.stripe_configured = True
        else:
            self.logger.warning("Stripe secret key not configured - gateway calls will fail")

    def create_checkout_session(
        self,
        *,
        amount: int,
        currency: str,
        line_item_name: str,
        metadata: Dict[str, str],
        success_url: str,
        cancel_url: str,
    ) -> CheckoutSession:
        try:
            session = stripe.checkout.Session.create(
                mode="payment",
                payment_method_types=["card"],
                line_items=[
                    {
                        "price_data": {
                            "currency": currency,
                            "product_data": {"name": line_item_name},
                            "unit_amount": amount,
                        },
                        "quantity": 1,
                    }
                ],
                metadata=metadata,
                success_url=success_url,
                cancel_url=cancel_url,
            )
        except stripe.StripeError as e:
            self.logger.error(
                f"Stripe checkout session creation failed: {str(e)}",
                extra={"booking_id": metadata.get("booking_id")},
            )
            raise PaymentGatewayException() from e
        return CheckoutSession(session_id=session.id, url=session.url)

    def retrieve_session(self, session_id: str) -> GatewaySession:
        try:
            session = stripe.checkout.Session.retrieve(session_id)
        except stripe.StripeError as e:
            self.logger.error(f"Stripe session retrieve failed for {session_id}: {str(e)}")
            raise PaymentGatewayException() from e
        return GatewaySession(
            session_id=session.id,
            status=session.status,
            payment_status=session.payment_status,
            payment_intent_id=_intent_id(session.payment_intent),
            metadata={str(k): str(v) for k, v in _as_dict(session.metadata).items()},
        )

    def expire_session(self, session_id: str) -> None:
        try:
            stripe.checkout.Session.expire(session_id)
        except stripe.StripeError as e:
            self.logger.warning(f"Stripe session expire failed for {session_id}: {str(e)}")
            raise PaymentGatewayException() from e

    def verify_webhook(self, payload: bytes, signature: Optional[str]) -> Dict[str, Any]:
        if not self.webhook_secret:
            raise ServiceException("Webhook secret not configured")
        if not signature:
            self.logger.warning("Missing Stripe signature header")
            raise WebhookSignatureException("Missing stripe-signature header")
        try:
            stripe.Webhook.construct_event(payload, signature, self.webhook_secret)
        except stripe.SignatureVerificationError as e:
            self.logger.warning("Invalid webhook signature")
            raise WebhookSignatureException() from e
        except ValueError as e:
            raise WebhookSignatureException("Malformed webhook payload") from e
        return json.loads(payload.decode("utf-8"))
