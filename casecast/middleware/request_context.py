"""
Request Context Middleware.

Adds:
- Unique request_id to every request (for log correlation)
- Request timing (X-Response-Time header)
- Structured request/response logging

The request_id is read from the X-Request-ID header when an upstream
proxy provides one, otherwise generated as UUID4. It is echoed back in
X-Request-ID and bound into the structlog context for every log line.
"""

import time
import uuid

import structlog
from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

logger = structlog.get_logger(__name__)


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Adds request_id and timing to every request. Wraps the error handler, so 500s carry X-Request-ID too."""

    async def dispatch(self, request: Request, call_next) -> Response:
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        request.state.request_id = request_id

        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(
            request_id=request_id,
            method=request.method,
            path=request.url.path,
        )

        start = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = round((time.perf_counter() - start) * 1000, 2)

        response.headers["X-Request-ID"] = request_id
        response.headers["X-Response-Time"] = f"{elapsed_ms}ms"

        logger.info(
            "request_completed",
            status=response.status_code,
            elapsed_ms=elapsed_ms,
        )
        return response
