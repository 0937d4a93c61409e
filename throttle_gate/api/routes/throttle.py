from __future__ import annotations

from fastapi import APIRouter, HTTPException, Request, status

from throttle_gate.core.throttling import ThrottleDecision
from throttle_gate.schemas.throttle import ThrottleStatusResponse

router = APIRouter(tags=["Throttle"])


@router.get("/throttle/status", response_model=ThrottleStatusResponse)
async def throttle_status(request: Request) -> ThrottleStatusResponse:
    """Report the caller's quota state.

    The request is itself counted, so the figures match the RateLimit-*
    headers sent with this response.

    Raises:
        HTTPException: 404 when throttling is disabled or the path is exempt.
    """
    decision: ThrottleDecision | None = getattr(request.state, "throttle_decision", None)
    if decision is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Throttling is not enabled for this endpoint.",
        )

    return ThrottleStatusResponse(
        limit=decision.limit,
        remaining=decision.remaining,
        requests=decision.requests,
        period_seconds=decision.period_seconds,
        period_start=decision.period_start,
        reset_at=decision.reset_at,
    )
