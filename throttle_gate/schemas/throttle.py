"""Pydantic schemas for quota status responses."""

from __future__ import annotations

from pydantic import BaseModel, Field


class ThrottleStatusResponse(BaseModel):
    """Quota state of the calling client, as counted for this very request."""

    limit: int = Field(..., description="Maximum requests allowed per period.")
    remaining: int = Field(
        ..., description="Requests left in the current period (never negative)."
    )
    requests: int = Field(
        ..., description="Requests counted in the current period, including this one."
    )
    period_seconds: float = Field(..., description="Length of one counting window.")
    period_start: float = Field(
        ..., description="UNIX epoch seconds when the current window began."
    )
    reset_at: float = Field(
        ..., description="UNIX epoch seconds after which the next request starts a new window."
    )
