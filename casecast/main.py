"""
CaseCast — FastAPI Application.

Entry point for the API server.
Run: uvicorn casecast.main:app --host 0.0.0.0 --port 8010 --reload

Routes:
  - POST /api/v1/insights/realtime
  - POST /api/v1/twin/simulate
  - GET  /api/v1/scenarios (+ /{category}/defaults, /{category}/sanitize)
  - POST /api/v1/matching/candidates
  - POST /api/v1/compliance/scan
  - GET  /api/v1/trends
  - POST /api/v1/evidence/summarize
  - POST /api/v1/negotiation/coach
  - POST /api/v1/reports/draft
  - GET  /health
"""

import logging
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from casecast.api.routers.compliance import router as compliance_router
from casecast.api.routers.evidence import router as evidence_router
from casecast.api.routers.insights import router as insights_router
from casecast.api.routers.matching import router as matching_router
from casecast.api.routers.negotiation import router as negotiation_router
from casecast.api.routers.reports import router as reports_router
from casecast.api.routers.scenarios import router as scenarios_router
from casecast.api.routers.trends import router as trends_router
from casecast.api.routers.twin import router as twin_router
from casecast.config import settings
from casecast.db.engine import close_db, init_db
from casecast.exceptions import register_exception_handlers
from casecast.middleware.error_handler import ErrorHandlerMiddleware
from casecast.middleware.request_context import RequestContextMiddleware
from casecast.services.registry import get_services

logger = structlog.get_logger(__name__)


def configure_logging() -> None:
    """Route structlog through stdlib logging; JSON or console by LOG_FORMAT."""
    level = getattr(logging, settings.log_level.upper(), logging.INFO)
    logging.basicConfig(format="%(message)s", level=level)

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.processors.JSONRenderer() if settings.log_format == "json"
            else structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan — startup and shutdown."""
    configure_logging()
    logger.info(
        "casecast_starting",
        version=settings.app_version,
        environment=settings.environment,
        trend_store_backend=settings.trend_store_backend,
    )
    if settings.external_generator_enabled and not settings.anthropic_api_key:
        logger.warning("anthropic_api_key_not_set", msg="Twin analysis will return heuristic-only results")
    if settings.trend_store_backend == "sql":
        await init_db()

    yield

    await get_services().close()
    await close_db()
    logger.info("casecast_shutdown")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title=settings.app_name,
        description=(
            "# CaseCast — Heuristic Risk & Matching Intelligence\n\n"
            "Deterministic risk detection, trend alerts, digital-twin success "
            "estimates, candidate matching, compliance scanning, negotiation "
            "coaching and report drafts for "
            "investigation cases.\n"
        ),
        version=settings.app_version,
        lifespan=lifespan,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        openapi_tags=[
            {"name": "health", "description": "Liveness check"},
            {"name": "insights", "description": "Realtime risk insights for an intake conversation"},
            {"name": "twin", "description": "Digital-twin success estimate"},
            {"name": "scenarios", "description": "Scenario variable definitions"},
            {"name": "matching", "description": "Candidate ranking"},
            {"name": "compliance", "description": "Regulatory text scan"},
            {"name": "trends", "description": "Signal trend history"},
            {"name": "evidence", "description": "Evidence artifact triage"},
            {"name": "negotiation", "description": "Negotiation coaching plan"},
            {"name": "reports", "description": "Investigation report draft"},
        ],
    )

    # ── Middleware (last added = outermost) ──────────────────────────
    app.add_middleware(ErrorHandlerMiddleware)
    app.add_middleware(RequestContextMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app)

    # ── Routes ────────────────────────────────────────────────────────
    app.include_router(insights_router)     # POST /api/v1/insights/realtime
    app.include_router(twin_router)         # POST /api/v1/twin/simulate
    app.include_router(scenarios_router)    # /api/v1/scenarios/*
    app.include_router(matching_router)     # POST /api/v1/matching/candidates
    app.include_router(compliance_router)   # POST /api/v1/compliance/scan
    app.include_router(trends_router)       # GET /api/v1/trends
    app.include_router(evidence_router)     # POST /api/v1/evidence/summarize
    app.include_router(negotiation_router)  # POST /api/v1/negotiation/coach
    app.include_router(reports_router)      # POST /api/v1/reports/draft

    @app.get("/health", tags=["health"])
    async def health():
        """Liveness check. Does NOT check the trend store."""
        return {
            "status": "ok",
            "version": settings.app_version,
            "environment": settings.environment,
            "service": "casecast",
        }

    return app


# Application instance
app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "casecast.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.debug,
    )
