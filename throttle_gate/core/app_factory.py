"""Application factory for the FastAPI app.

Centralizes construction (logging, middleware, handlers, routers) so tests
can build isolated apps with their own settings, store and clock.
"""

from __future__ import annotations

import logging
import time
from typing import Callable

from fastapi import FastAPI

from throttle_gate.adapters.throttle_store.base import AbstractThrottleStore
from throttle_gate.adapters.throttle_store.in_memory import InMemoryThrottleStore
from throttle_gate.api.routes import health_router, throttle_router
from throttle_gate.core.config import AppSettings, settings
from throttle_gate.core.exception_handlers import setup_exception_handlers
from throttle_gate.core.identity import get_identifier_resolver
from throttle_gate.core.logging import configure_logging
from throttle_gate.core.middleware import request_id_middleware
from throttle_gate.core.quotas import build_quota_function, parse_quota_overrides
from throttle_gate.core.throttling import ThrottlingInterceptor

logger = logging.getLogger(__name__)


def parse_exempt_paths(paths_string: str | None) -> set[str]:
    """Parse comma-separated request paths into a set."""
    if not paths_string:
        return set()
    return {path.strip() for path in paths_string.split(",") if path.strip()}


def build_throttling_interceptor(
    app_settings: AppSettings,
    *,
    store: AbstractThrottleStore | None = None,
    clock: Callable[[], float] = time.time,
) -> ThrottlingInterceptor:
    """Build the throttling middleware from settings.

    Args:
        app_settings: Resolved application settings.
        store: Optional store; a fresh in-memory store is created when omitted.
        clock: Time source shared by the interceptor and the default store.

    Returns:
        Configured ThrottlingInterceptor.

    Raises:
        ValidationAppError: If APP_THROTTLE_QUOTA_OVERRIDES is malformed.
    """
    if store is None:
        store = InMemoryThrottleStore(shards=app_settings.throttle_store_shards, clock=clock)

    quota_for = build_quota_function(
        app_settings.throttle_max_requests,
        parse_quota_overrides(app_settings.throttle_quota_overrides),
    )

    return ThrottlingInterceptor(
        store,
        quota_for,
        app_settings.throttle_period_seconds,
        app_settings.throttle_message,
        identifier_resolver=get_identifier_resolver(app_settings.throttle_identifier),
        exempt_paths=parse_exempt_paths(app_settings.throttle_exempt_paths),
        clock=clock,
    )


def create_app(
    app_settings: AppSettings | None = None,
    *,
    store: AbstractThrottleStore | None = None,
    clock: Callable[[], float] = time.time,
) -> FastAPI:
    """Create and configure the FastAPI application instance.

    Args:
        app_settings: Optional settings; defaults to the global settings.
        store: Optional throttle store shared across requests.
        clock: Time source for throttling windows.

    Returns:
        Configured FastAPI app.
    """
    cfg = app_settings or settings.app

    # Logging first so subsequent init logs are formatted as desired
    configure_logging(settings.log)

    app = FastAPI(
        title="Throttle Gate",
        description=(
            "Per-client request throttling. Every throttled response carries "
            "RateLimit-Limit and RateLimit-Remaining headers; clients over "
            "quota receive 409 Conflict."
        ),
        version="0.1.0",
        debug=cfg.debug,
    )

    # The last middleware registered runs first, so request ids wrap throttling.
    if cfg.throttle_enabled:
        interceptor = build_throttling_interceptor(cfg, store=store, clock=clock)
        app.middleware("http")(interceptor)
        logger.info(
            "throttle.configured",
            extra={
                "max_requests": cfg.throttle_max_requests,
                "period_s": cfg.throttle_period_seconds,
                "identifier_strategy": cfg.throttle_identifier,
            },
        )
    app.middleware("http")(request_id_middleware)

    setup_exception_handlers(app)

    app.include_router(throttle_router, prefix="/v1")
    app.include_router(health_router)

    return app
