"""
CaseCast Exceptions.

Centralized exception taxonomy with:
- Error codes for client handling
- HTTP status code mapping
- Structured error responses

Recovery policy:
- ConfigurationError            → fatal at import / registration time
- InputValidationError          → 400, raised before any scoring runs
- TrendStoreUnavailableError    → recovered inside TrendStore, logged
- ExternalGeneratorError        → recovered inside BlendOrchestrator, logged
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional

import structlog
from fastapi import Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel

logger = structlog.get_logger(__name__)


# ============================================================================
# ERROR CODES
# ============================================================================


class ErrorCode(str, Enum):
    """Application error codes."""

    # General errors (1xxx)
    INTERNAL_ERROR = "E1000"
    VALIDATION_ERROR = "E1001"

    # Configuration errors (2xxx)
    CONFIGURATION_ERROR = "E2000"
    INVALID_RULE_PATTERN = "E2001"
    UNKNOWN_SCENARIO_CATEGORY = "E2002"

    # Dependency errors (5xxx)
    TREND_STORE_UNAVAILABLE = "E5000"
    EXTERNAL_GENERATOR_ERROR = "E5001"


# ============================================================================
# ERROR RESPONSE MODEL
# ============================================================================


class ErrorDetail(BaseModel):
    """Detailed error information."""

    code: str
    message: str
    field: Optional[str] = None
    details: Optional[Dict[str, Any]] = None


class ErrorResponse(BaseModel):
    """Standard error response returned by every API error."""

    error: ErrorDetail
    request_id: Optional[str] = None
    timestamp: Optional[str] = None


# ============================================================================
# BASE EXCEPTION
# ============================================================================


class CaseCastError(Exception):
    """Base exception for the CaseCast engine."""

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.INTERNAL_ERROR,
        status_code: int = 500,
        details: Optional[Dict[str, Any]] = None,
        field: Optional[str] = None,
    ):
        self.message = message
        self.code = code
        self.status_code = status_code
        self.details = details or {}
        self.field = field
        super().__init__(message)

    def to_response(self, request_id: Optional[str] = None) -> ErrorResponse:
        """Convert to error response."""
        return ErrorResponse(
            error=ErrorDetail(
                code=self.code.value,
                message=self.message,
                field=self.field,
                details=self.details,
            ),
            request_id=request_id,
            timestamp=datetime.now(timezone.utc).isoformat(),
        )


# ============================================================================
# SPECIFIC EXCEPTIONS
# ============================================================================


class ConfigurationError(CaseCastError):
    """Malformed rule table, variable definition, or category registration."""

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.CONFIGURATION_ERROR,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, code=code, status_code=500, details=details)


class UnknownScenarioCategoryError(ConfigurationError):
    """A scenario category was requested that was never registered."""

    def __init__(self, category: str):
        super().__init__(
            message=f"Scenario category not registered: {category}",
            code=ErrorCode.UNKNOWN_SCENARIO_CATEGORY,
            details={"category": category},
        )
        self.category = category


class InputValidationError(CaseCastError):
    """Caller payload rejected before any scoring runs."""

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(
            message=message,
            code=ErrorCode.VALIDATION_ERROR,
            status_code=400,
            details=details,
            field=field,
        )


class TrendStoreUnavailableError(CaseCastError):
    """Trend persistence backend could not be read or written."""

    def __init__(self, backend: str, reason: str):
        super().__init__(
            message=f"Trend store '{backend}' unavailable: {reason}",
            code=ErrorCode.TREND_STORE_UNAVAILABLE,
            status_code=503,
            details={"backend": backend},
        )
        self.backend = backend


class ExternalGeneratorError(CaseCastError):
    """External generator call failed, timed out, or returned an invalid payload."""

    def __init__(self, reason: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(
            message=f"External generator unavailable: {reason}",
            code=ErrorCode.EXTERNAL_GENERATOR_ERROR,
            status_code=502,
            details=details,
        )
        self.reason = reason


# ============================================================================
# EXCEPTION HANDLERS
# ============================================================================


async def casecast_exception_handler(
    request: Request,
    exc: CaseCastError,
) -> JSONResponse:
    """Handle CaseCastError exceptions."""
    request_id = getattr(request.state, "request_id", None)

    log = logger.warning if exc.status_code < 500 else logger.error
    log(
        "casecast_error",
        error_code=exc.code.value,
        message=exc.message,
        status_code=exc.status_code,
        details=exc.details,
    )

    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_response(request_id).model_dump(),
    )


def register_exception_handlers(app) -> None:
    """Register exception handlers with FastAPI app."""
    app.add_exception_handler(CaseCastError, casecast_exception_handler)
