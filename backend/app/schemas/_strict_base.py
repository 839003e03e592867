"""Shared pydantic bases for Turfbook request and response bodies."""

from pydantic import BaseModel, ConfigDict


class StrictModel(BaseModel):
    """Response DTO base; unknown fields are rejected."""

    model_config = ConfigDict(extra="forbid", validate_assignment=True)


class StrictRequestModel(StrictModel):
    """Request DTO base: unknown fields are rejected and strings stripped."""

    model_config = ConfigDict(extra="forbid", validate_assignment=True, str_strip_whitespace=True)


class ORMResponseModel(StrictModel):
    """Response DTO built straight from SQLAlchemy rows."""

    model_config = ConfigDict(extra="forbid", validate_assignment=True, from_attributes=True)
