"""Route tests for POST /api/v1/webhooks/stripe."""

import hashlib
import hmac
import json
import time
from unittest.mock import patch

import pytest

from app.api.dependencies import get_payment_gateway
from app.core.enums import BookingStatus, SlotStatus, Sport
from app.main import app
from app.models.booking import Booking
from app.services.checkout_service import CheckoutService
from app.services.payment_gateway import StripePaymentGateway
from app.services.payment_reconciliation_service import (
    SESSION_COMPLETED,
    SESSION_EXPIRED,
    PaymentReconciliationService,
)
from tests.helpers.factories import reload
from tests.helpers.fake_gateway import VALID_SIGNATURE

URL = "/api/v1/webhooks/stripe"
WEBHOOK_SECRET = "whsec_route_test"


@pytest.fixture
def pending_checkout(db, gateway, sub_venue, slot, user_id):
    return CheckoutService(db, gateway).create_direct_booking(
        user_id, sub_venue.id, slot.day_id, slot.id, Sport.CRICKET
    )


def post_event(client, event, signature=VALID_SIGNATURE):
    return client.post(
        URL,
        content=json.dumps(event),
        headers={"stripe-signature": signature, "content-type": "application/json"},
    )


def stripe_signature(payload: str, secret: str, timestamp: int) -> str:
    signed = f"{timestamp}.{payload}".encode("utf-8")
    digest = hmac.new(secret.encode("utf-8"), signed, hashlib.sha256).hexdigest()
    return f"t={timestamp},v1={digest}"


class TestSignature:
    def test_missing_signature_is_rejected(self, client, db, gateway, pending_checkout):
        response = client.post(URL, content=json.dumps({"type": SESSION_EXPIRED}))

        assert response.status_code == 400
        assert response.json()["code"] == "INVALID_WEBHOOK_SIGNATURE"
        assert db.get(Booking, pending_checkout.booking_id).status == BookingStatus.PENDING.value

    def test_bad_signature_changes_nothing(self, client, db, gateway, pending_checkout, slot):
        event = gateway.event(SESSION_EXPIRED, pending_checkout.session_id)

        response = post_event(client, event, signature="t=1,v1=forged")

        assert response.status_code == 400
        assert db.get(Booking, pending_checkout.booking_id).status == BookingStatus.PENDING.value
        assert reload(db, slot).status == SlotStatus.BOOKED.value


class TestEvents:
    def test_completed_session(self, client, db, gateway, pending_checkout):
        gateway.complete(pending_checkout.session_id)

        response = post_event(client, gateway.event(SESSION_COMPLETED, pending_checkout.session_id))

        assert response.status_code == 200
        assert response.json()["status"] == "success"
        assert response.json()["event_type"] == SESSION_COMPLETED
        assert db.get(Booking, pending_checkout.booking_id).status == BookingStatus.PAID.value

    def test_expired_session(self, client, db, gateway, pending_checkout, slot):
        response = post_event(client, gateway.event(SESSION_EXPIRED, pending_checkout.session_id))

        assert response.status_code == 200
        assert db.get(Booking, pending_checkout.booking_id).status == BookingStatus.FAILED.value
        assert reload(db, slot).status == SlotStatus.AVAILABLE.value

    def test_unhandled_event_is_acknowledged(self, client):
        response = post_event(client, {"type": "charge.refunded", "data": {"object": {}}})

        assert response.status_code == 200
        assert response.json()["status"] == "ignored"

    def test_processing_failure_asks_for_redelivery(self, client, gateway, pending_checkout):
        with patch.object(
            PaymentReconciliationService, "handle_event", side_effect=RuntimeError("db down")
        ):
            response = post_event(
                client, gateway.event(SESSION_COMPLETED, pending_checkout.session_id)
            )

        assert response.status_code == 500
        assert response.json()["detail"] == "Failed to process webhook"


class TestStripeSignedPayloads:
    @pytest.fixture
    def stripe_client(self, client):
        stripe_gateway = StripePaymentGateway(api_key=None, webhook_secret=WEBHOOK_SECRET)
        app.dependency_overrides[get_payment_gateway] = lambda: stripe_gateway
        return client

    def test_valid_stripe_signature(self, stripe_client, db, gateway, pending_checkout):
        event = gateway.event(SESSION_EXPIRED, pending_checkout.session_id)
        payload = json.dumps(event)

        response = stripe_client.post(
            URL,
            content=payload,
            headers={
                "stripe-signature": stripe_signature(payload, WEBHOOK_SECRET, int(time.time())),
                "content-type": "application/json",
            },
        )

        assert response.status_code == 200
        assert db.get(Booking, pending_checkout.booking_id).status == BookingStatus.FAILED.value

    def test_signature_with_wrong_secret(self, stripe_client, gateway, pending_checkout):
        payload = json.dumps(gateway.event(SESSION_EXPIRED, pending_checkout.session_id))

        response = stripe_client.post(
            URL,
            content=payload,
            headers={"stripe-signature": stripe_signature(payload, "whsec_other", int(time.time()))},
        )

        assert response.status_code == 400

    def test_stale_signature(self, stripe_client, gateway, pending_checkout):
        payload = json.dumps(gateway.event(SESSION_EXPIRED, pending_checkout.session_id))
        an_hour_ago = int(time.time()) - 3600

        response = stripe_client.post(
            URL,
            content=payload,
            headers={"stripe-signature": stripe_signature(payload, WEBHOOK_SECRET, an_hour_ago)},
        )

        assert response.status_code == 400
