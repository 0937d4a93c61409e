"""Request ID propagation and timing middleware.

Every response carries the correlation id (taken from the incoming header or
freshly generated) and the time spent handling the request. The id is kept
in contextvars while the request runs so log records pick it up.

Usage:
    app.middleware("http")(request_id_middleware)
"""

from __future__ import annotations

import time
import uuid

from starlette.requests import Request
from starlette.responses import Response

from throttle_gate.core.config import settings
from throttle_gate.core.logging import clear_request_id, set_request_id
from throttle_gate.core.throttling import CallNext


async def request_id_middleware(request: Request, call_next: CallNext) -> Response:
    """Set ``X-Request-ID`` and ``X-Request-Duration-ms`` on every response.

    Registered after the throttling middleware so it wraps it, which means
    403/409 responses from the throttle are correlated as well.
    """

    header_name = settings.log.request_id_header
    request_id = request.headers.get(header_name) or str(uuid.uuid4())
    set_request_id(request_id)
    start = time.perf_counter()
    try:
        response = await call_next(request)
    finally:
        clear_request_id()

    duration_ms = (time.perf_counter() - start) * 1000
    response.headers[header_name] = request_id
    response.headers.setdefault("X-Request-Duration-ms", f"{duration_ms:.2f}")
    return response
