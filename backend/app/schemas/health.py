"""Health check response schemas."""

from datetime import datetime
from typing import Dict

from pydantic import Field

from ..core.constants import API_TITLE
from ._strict_base import StrictModel


class HealthCheckResponse(StrictModel):
    """Standard health check response."""

    status: str = Field(description="Service health status", pattern="^(healthy|degraded)$")
    service: str = Field(default=API_TITLE, description="Service name")
    version: str = Field(description="API version")
    timestamp: datetime = Field(description="Check timestamp")
    checks: Dict[str, bool] = Field(description="Individual component health checks")
