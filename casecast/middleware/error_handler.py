"""
Global Error Handler Middleware.

Catches all unhandled exceptions and returns the standard error shape.
NEVER leaks stack traces, file paths or internal details to clients.
Every error gets a unique error_id for correlation with server logs.
"""

import traceback
import uuid

import structlog
from fastapi import Request, Response
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from casecast.config import settings
from casecast.exceptions import CaseCastError

logger = structlog.get_logger(__name__)

GENERIC_MESSAGE = "An internal error occurred. Please try again later."


class ErrorHandlerMiddleware(BaseHTTPMiddleware):
    """
    Last-resort catch-all for anything the exception handlers did not render.

    Response body:
    {
      "error": {"code": "E1000", "message": "...", "field": null,
                "details": {"error_id": "..."}},
      "request_id": "...",
      "timestamp": "..."
    }
    """

    async def dispatch(self, request: Request, call_next) -> Response:
        try:
            return await call_next(request)

        except Exception as exc:
            error_id = str(uuid.uuid4())

            logger.error(
                "unhandled_exception",
                error_id=error_id,
                path=request.url.path,
                method=request.method,
                error=str(exc),
                traceback=traceback.format_exc(),
            )

            details: dict = {"error_id": error_id}
            if settings.debug:
                details["debug_hint"] = type(exc).__name__

            body = CaseCastError(GENERIC_MESSAGE, details=details).to_response(
                getattr(request.state, "request_id", None)
            )
            return JSONResponse(status_code=500, content=body.model_dump())
