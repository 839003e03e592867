# backend/app/core/config.py
import logging
import os
from typing import Optional

from dotenv import load_dotenv
from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
import pytz

from .constants import BRAND_NAME, PAYMENT_CANCEL_PATH, PAYMENT_SUCCESS_PATH

load_dotenv()

logger = logging.getLogger(__name__)


def is_running_tests() -> bool:
    """
    Detect if code is running under pytest.

    PYTEST_CURRENT_TEST is set automatically by pytest during test runs, and is
    not expected to be present in production environments.
    """
    return os.getenv("PYTEST_CURRENT_TEST") is not None


class Settings(BaseSettings):
    environment: str = Field(
        default="development",
        description="Deployment environment (development, testing, production)",
    )

    # Database
    database_url: str = Field(
        default="sqlite:///./turfbook.db",
        description="SQLAlchemy URL for the primary database",
    )
    database_echo: bool = Field(default=False, description="Echo SQL statements to the log")

    # Authentication (identity issuance lives in the accounts service)
    secret_key: SecretStr = Field(
        default=SecretStr("change-me-in-production"),
        description="HMAC key for verifying bearer tokens",
    )
    algorithm: str = "HS256"
    access_token_expire_minutes: int = Field(default=60, ge=1)

    # Stripe
    stripe_secret_key: Optional[SecretStr] = Field(
        default=None, description="Stripe secret API key"
    )
    stripe_webhook_secret: Optional[SecretStr] = Field(
        default=None, description="Signing secret for the Stripe webhook endpoint"
    )
    stripe_currency: str = Field(default="inr", description="ISO currency for checkout sessions")
    currency_subunit_factor: int = Field(
        default=100,
        ge=1,
        description="Multiplier converting a major-unit price into gateway subunits",
    )
    stripe_http_timeout_seconds: int = Field(default=8, ge=1)
    stripe_max_network_retries: int = Field(default=1, ge=0)

    # Frontend redirect base for checkout success/cancel pages
    frontend_url: str = Field(default="http://localhost:3000")

    # Game bookings skip the gateway entirely when enabled (local/demo only)
    payment_bypass_enabled: bool = Field(default=False)

    # Cleanup sweep
    booking_cleanup_stale_minutes: int = Field(
        default=10,
        ge=1,
        description="Age after which a Pending booking is considered abandoned",
    )
    booking_cleanup_interval_seconds: int = Field(
        default=60,
        ge=5,
        description="Celery beat period for the cleanup sweep",
    )

    # Calendar dates for slot days are interpreted in this zone
    server_timezone: str = Field(default="Asia/Kolkata")

    # Celery broker / result backend
    redis_url: str = Field(default="redis://localhost:6379")

    is_testing: bool = Field(default=False)

    model_config = SettingsConfigDict(
        env_file=".env" if not os.getenv("CI") else None,
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("frontend_url")
    @classmethod
    def _strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")

    @field_validator("stripe_currency")
    @classmethod
    def _normalize_currency(cls, value: str) -> str:
        normalized = value.strip().lower()
        if len(normalized) != 3:
            raise ValueError("STRIPE_CURRENCY must be a three-letter ISO code")
        return normalized

    @field_validator("server_timezone")
    @classmethod
    def _validate_timezone(cls, value: str) -> str:
        try:
            pytz.timezone(value)
        except pytz.UnknownTimeZoneError as exc:
            raise ValueError(f"Unknown SERVER_TIMEZONE: {value}") from exc
        return value

    @property
    def tzinfo(self) -> pytz.BaseTzInfo:
        """Timezone object used to interpret slot-day calendar dates."""
        return pytz.timezone(self.server_timezone)

    @property
    def is_sqlite(self) -> bool:
        return self.database_url.startswith("sqlite")

    def get_database_url(self) -> str:
        return self.database_url

    def checkout_success_url(self, *, bypass: bool = False) -> str:
        url = f"{self.frontend_url}{PAYMENT_SUCCESS_PATH}?session_id={{CHECKOUT_SESSION_ID}}"
        if bypass:
            url = f"{self.frontend_url}{PAYMENT_SUCCESS_PATH}?bypass=true"
        return url

    def checkout_cancel_url(self) -> str:
        return f"{self.frontend_url}{PAYMENT_CANCEL_PATH}"


settings = Settings()
logger.info(
    "[CONFIG] %s settings loaded: environment=%s stripe_configured=%s bypass=%s",
    BRAND_NAME,
    settings.environment,
    settings.stripe_secret_key is not None,
    settings.payment_bypass_enabled,
)
