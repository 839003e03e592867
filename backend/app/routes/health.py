# backend/app/routes/health.py
"""
Health check endpoint for the application.

Used by load balancers and uptime monitoring; the only dependency that
is probed is the database.
"""

from datetime import datetime, timezone
import logging

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy import text
from sqlalchemy.orm import Session

from ..api.dependencies import get_db
from ..core.constants import API_TITLE, API_VERSION
from ..schemas.health import HealthCheckResponse

logger = logging.getLogger(__name__)
router = APIRouter(tags=["health"])


@router.get("/health", response_model=HealthCheckResponse)
def health_check(response: Response, db: Session = Depends(get_db)) -> HealthCheckResponse:
    """
    Basic health check endpoint.

    Returns:
        Simple status indicating the service is running.
    """
    try:
        db.execute(text("SELECT 1"))
        db_status = True
        health_status = "healthy"
    except Exception as e:
        logger.error(f"Database health check failed: {e}")
        db_status = False
        health_status = "degraded"
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE

    response.headers["Cache-Control"] = "no-store"
    return HealthCheckResponse(
        status=health_status,
        service=API_TITLE,
        version=API_VERSION,
        timestamp=datetime.now(timezone.utc),
        checks={"database": db_status},
    )
