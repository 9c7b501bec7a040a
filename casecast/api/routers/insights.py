"""
Realtime Insights API.

POST /api/v1/insights/realtime — detect risk signals, record trends and
                                 build the full insight bundle
"""

from typing import Any

from fastapi import APIRouter, Body

from casecast.config import settings
from casecast.schemas.insights import RealtimeInsights
from casecast.services.registry import get_services

router = APIRouter(prefix=f"{settings.api_prefix}/insights", tags=["insights"])

_services = get_services()


@router.post("/realtime", response_model=RealtimeInsights)
async def realtime_insights(payload: dict[str, Any] = Body(...)):
    """
    Validated by the analyzer rather than by FastAPI, so an empty
    transcript or a malformed summary is a 400 InputValidationError.
    """
    return await _services.realtime_analyzer.analyze(payload)
