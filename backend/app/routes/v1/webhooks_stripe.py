# backend/app/routes/v1/webhooks_stripe.py
"""
Stripe Webhook Endpoint - API v1

Receives Stripe Checkout notifications. The signature is verified before
anything else; only then is the event handed to the reconciliation
service.

Handled events:
- checkout.session.completed: booking Paid, game Booked
- checkout.session.expired: booking Failed, slot released, game reopened

Every other event type is acknowledged and ignored. Processing failures
return 500 so that Stripe redelivers the event; reconciliation is
idempotent.
"""

import asyncio
import logging

from fastapi import APIRouter, Depends, HTTPException, Request, status

from ...api.dependencies import get_payment_reconciliation_service
from ...core.exceptions import DomainException, WebhookSignatureException
from ...schemas.payment_schemas import WebhookResponse
from ...services.payment_reconciliation_service import PaymentReconciliationService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["stripe-webhooks-v1"])


@router.post("", response_model=WebhookResponse)
async def handle_stripe_webhook(
    request: Request,
    reconciliation_service: PaymentReconciliationService = Depends(
        get_payment_reconciliation_service
    ),
) -> WebhookResponse:
    """
    Handle Stripe Checkout webhook events.

    Raises:
        HTTPException: 400 on a missing or invalid signature, 500 when
            processing fails
    """
    payload = await request.body()
    signature = request.headers.get("stripe-signature")

    try:
        event = reconciliation_service.verify_webhook(payload, signature)
    except WebhookSignatureException as e:
        logger.warning(f"Rejected Stripe webhook: {e.message}")
        raise e.to_http_exception()
    except DomainException as e:
        logger.error(f"Stripe webhook verification unavailable: {e.message}")
        raise e.to_http_exception()

    event_type = str(event.get("type") or "")
    try:
        outcome = await asyncio.to_thread(reconciliation_service.handle_event, event)
    except Exception as e:
        logger.error(f"Error processing Stripe webhook {event_type}: {str(e)}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to process webhook"
        )

    if outcome["status"] == "success":
        logger.info(f"Successfully processed {event_type} event")
    return WebhookResponse(status=outcome["status"], event_type=outcome["event_type"])
