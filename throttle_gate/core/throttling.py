"""Request throttling for the HTTP pipeline.

Each request from a client identifier is counted against a fixed window
(``period_seconds``) in an ``AbstractThrottleStore``. Once the count exceeds
the identifier's quota the request is answered with 409 Conflict instead of
being forwarded. Denied requests are counted too, so hammering the API while
throttled keeps the client throttled.

Windows expire lazily: the first request after ``period_start + period``
rolls the window over and starts counting again from one.

Usage:
    interceptor = ThrottlingInterceptor(store, quota_for, period_seconds=60)
    app.middleware("http")(interceptor)
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Awaitable, Callable, Iterable

from starlette.requests import Request
from starlette.responses import PlainTextResponse, Response

from throttle_gate.adapters.throttle_store.base import AbstractThrottleStore
from throttle_gate.core.errors import (
    ClientUnidentifiedError,
    StoreInconsistencyError,
    ThrottleAppError,
)
from throttle_gate.core.identity import IdentifierResolver, client_ip_identifier
from throttle_gate.core.logging import hash_identifier
from throttle_gate.core.quotas import QuotaFunction

logger = logging.getLogger(__name__)

DEFAULT_MESSAGE = "The allowed number of requests has been exceeded."
LIMIT_HEADER = "RateLimit-Limit"
REMAINING_HEADER = "RateLimit-Remaining"

CallNext = Callable[[Request], Awaitable[Response]]


@dataclass(frozen=True)
class ThrottleDecision:
    """Outcome of counting one request.

    Attributes:
        allowed: Whether the request may be forwarded.
        limit: Quota for the identifier in the current period.
        requests: Count in the window after this request was counted.
        period_start: UNIX epoch seconds when the window began.
        period_seconds: Window length.
    """

    allowed: bool
    limit: int
    requests: int
    period_start: float
    period_seconds: float

    @property
    def remaining(self) -> int:
        return max(0, self.limit - self.requests)

    @property
    def reset_at(self) -> float:
        return self.period_start + self.period_seconds

    def headers(self) -> dict[str, str]:
        return {
            LIMIT_HEADER: str(self.limit),
            REMAINING_HEADER: str(self.remaining),
        }


class ThrottlingInterceptor:
    """Admission control in front of downstream request processing.

    The instance is an HTTP middleware callable (``request, call_next``). The
    decision itself lives in ``evaluate`` and does not depend on HTTP, so
    other pipelines can reuse it with their own identifiers.
    """

    def __init__(
        self,
        store: AbstractThrottleStore,
        max_requests_for: QuotaFunction,
        period_seconds: float,
        message: str = DEFAULT_MESSAGE,
        *,
        identifier_resolver: IdentifierResolver = client_ip_identifier,
        exempt_paths: Iterable[str] = (),
        clock: Callable[[], float] = time.time,
    ) -> None:
        """Initialize the interceptor.

        Args:
            store: Shared per-identifier counters.
            max_requests_for: Quota function ``identifier -> max requests``.
            period_seconds: Length of one counting window.
            message: Body of the 409 response sent to throttled clients.
            identifier_resolver: Maps a request to a client identifier.
            exempt_paths: Request paths forwarded without counting.
            clock: Time source function returning UNIX time in seconds.

        Raises:
            ValueError: If period_seconds is not positive.
        """
        if period_seconds <= 0:
            raise ValueError("period_seconds must be > 0")

        self._store = store
        self._max_requests_for = max_requests_for
        self._period_seconds = period_seconds
        self._message = message
        self._identifier_resolver = identifier_resolver
        self._exempt_paths = frozenset(exempt_paths)
        self._clock = clock

    @property
    def store(self) -> AbstractThrottleStore:
        return self._store

    @property
    def period_seconds(self) -> float:
        return self._period_seconds

    def get_identifier(self, request: Request) -> str | None:
        """Resolve the client identifier for a request."""
        return self._identifier_resolver(request)

    def evaluate(self, identifier: str | None) -> ThrottleDecision:
        """Count one request for ``identifier`` and decide whether to admit it.

        Args:
            identifier: Client identifier resolved for the request.

        Returns:
            ThrottleDecision built from the entry as re-read after counting.

        Raises:
            ClientUnidentifiedError: If the identifier is empty or None.
            StoreInconsistencyError: If the entry is missing after the increment.
        """
        if not identifier:
            raise ClientUnidentifiedError()

        max_requests = self._max_requests_for(identifier)

        entry = self._store.try_get(identifier)
        if entry is not None and entry.is_expired(self._period_seconds, self._clock()):
            self._store.rollover(identifier, expected_period_start=entry.period_start)
            logger.info(
                "throttle.rollover",
                extra={
                    "identifier_hash": hash_identifier(identifier),
                    "previous_requests": entry.requests,
                    "period_s": self._period_seconds,
                },
            )

        self._store.increment_requests(identifier)

        entry = self._store.try_get(identifier)
        if entry is None:
            raise StoreInconsistencyError(
                details={"identifier_hash": hash_identifier(identifier)},
            )

        return ThrottleDecision(
            allowed=entry.requests <= max_requests,
            limit=max_requests,
            requests=entry.requests,
            period_start=entry.period_start,
            period_seconds=self._period_seconds,
        )

    async def __call__(self, request: Request, call_next: CallNext) -> Response:
        if request.url.path in self._exempt_paths:
            return await call_next(request)

        identifier = self.get_identifier(request)

        try:
            decision = self.evaluate(identifier)
        except ThrottleAppError as exc:
            logger.warning(
                "throttle.rejected",
                extra={
                    "error_code": exc.code,
                    "request_path": request.url.path,
                    "request_method": request.method,
                },
            )
            return PlainTextResponse(exc.message, status_code=403)

        log_extra = {
            "identifier_hash": hash_identifier(identifier),
            "limit": decision.limit,
            "requests": decision.requests,
            "remaining": decision.remaining,
            "period_s": self._period_seconds,
        }

        if decision.allowed:
            logger.info("throttle.admitted", extra=log_extra)
            request.state.throttle_decision = decision
            response = await call_next(request)
        else:
            logger.warning("throttle.denied", extra=log_extra)
            response = PlainTextResponse(self._message, status_code=409)

        for name, value in decision.headers().items():
            response.headers[name] = value
        return response
