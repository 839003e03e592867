# backend/app/main.py
from contextlib import asynccontextmanager
import logging
from typing import AsyncGenerator

from fastapi import APIRouter, FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .core.config import is_running_tests, settings
from .core.constants import API_DESCRIPTION, API_TITLE, API_VERSION, BRAND_NAME
from .routes import health, prometheus
from .routes.v1 import (
    bookings as bookings_v1,
    timeslots as timeslots_v1,
    webhooks_stripe as webhooks_stripe_v1,
)

# Configure logging
logging.basicConfig(
    level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)

logger = logging.getLogger(__name__)


def _validate_startup_config() -> None:
    """Refuse to serve production traffic with a half-configured payment setup."""
    if settings.environment.lower() != "production":
        return
    missing = [
        name
        for name, value in (
            ("STRIPE_SECRET_KEY", settings.stripe_secret_key),
            ("STRIPE_WEBHOOK_SECRET", settings.stripe_webhook_secret),
        )
        if value is None
    ]
    if missing:
        raise RuntimeError(f"Missing required settings for production: {', '.join(missing)}")
    if settings.payment_bypass_enabled:
        raise RuntimeError("PAYMENT_BYPASS_ENABLED must not be set in production")


@asynccontextmanager
async def app_lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Handle application startup/shutdown."""
    logger.info(f"{BRAND_NAME} API starting up...")
    logger.info(f"Environment: {settings.environment}")
    _validate_startup_config()

    if is_running_tests():
        logger.info("Running under pytest (test mode active)")
    if settings.payment_bypass_enabled:
        logger.warning("Payment bypass is ENABLED; game bookings will not be charged")

    yield

    logger.info(f"{BRAND_NAME} API shutting down...")


app = FastAPI(
    title=API_TITLE,
    description=API_DESCRIPTION,
    version=API_VERSION,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=app_lifespan,
)
# Register unified error envelope handlers
from .errors import register_error_handlers  # noqa: E402

register_error_handlers(app)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[settings.frontend_url],
    allow_credentials=True,
    allow_methods=["GET", "HEAD", "OPTIONS", "POST", "PATCH", "DELETE"],
    allow_headers=["*"],
)

api_v1 = APIRouter(prefix="/api/v1")

api_v1.include_router(bookings_v1.router, prefix="/bookings")
api_v1.include_router(timeslots_v1.router, prefix="/timeslots")
api_v1.include_router(webhooks_stripe_v1.router, prefix="/webhooks/stripe")
api_v1.include_router(health.router)

app.include_router(api_v1)

# Infrastructure endpoints at the root
app.include_router(health.router)
app.include_router(prometheus.router)


@app.get("/")
def read_root() -> dict:
    return {"message": f"Welcome to the {BRAND_NAME} API", "version": API_VERSION}
