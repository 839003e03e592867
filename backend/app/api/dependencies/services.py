# backend/app/api/dependencies/services.py
"""
Service layer dependencies for dependency injection.

This module provides factory functions that create service instances
with their required dependencies properly injected. Tests replace
``get_payment_gateway`` through ``app.dependency_overrides``.
"""

from functools import lru_cache
import logging

from fastapi import Depends
from sqlalchemy.orm import Session

from ...services.booking_service import BookingService
from ...services.checkout_service import CheckoutService
from ...services.payment_gateway import PaymentGateway, StripePaymentGateway
from ...services.payment_reconciliation_service import PaymentReconciliationService
from ...services.retry_payment_service import RetryPaymentService
from ...services.timeslot_service import TimeSlotService
from .database import get_db

logger = logging.getLogger(__name__)


@lru_cache(maxsize=1)
def _stripe_gateway_singleton() -> StripePaymentGateway:
    logger.info("Initialising Stripe payment gateway")
    return StripePaymentGateway()


def get_payment_gateway() -> PaymentGateway:
    """Get the process-wide payment gateway."""
    return _stripe_gateway_singleton()


def get_checkout_service(
    db: Session = Depends(get_db), gateway: PaymentGateway = Depends(get_payment_gateway)
) -> CheckoutService:
    return CheckoutService(db, gateway)


def get_retry_payment_service(
    db: Session = Depends(get_db), gateway: PaymentGateway = Depends(get_payment_gateway)
) -> RetryPaymentService:
    return RetryPaymentService(db, gateway)


def get_payment_reconciliation_service(
    db: Session = Depends(get_db), gateway: PaymentGateway = Depends(get_payment_gateway)
) -> PaymentReconciliationService:
    """
    Get payment reconciliation service instance.

    Args:
        db: Database session
        gateway: Payment gateway used to verify and read back sessions

    Returns:
        PaymentReconciliationService instance
    """
    return PaymentReconciliationService(db, gateway)


def get_booking_service(db: Session = Depends(get_db)) -> BookingService:
    return BookingService(db)


def get_timeslot_service(db: Session = Depends(get_db)) -> TimeSlotService:
    return TimeSlotService(db)
