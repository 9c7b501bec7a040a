"""
Negotiation Coaching API.

POST /api/v1/negotiation/coach — tone, scripts and warnings for the next conversation
"""

from fastapi import APIRouter

from casecast.config import settings
from casecast.engine.negotiation import generate_coaching
from casecast.schemas.negotiation import NegotiationCoachPlan, NegotiationRequest

router = APIRouter(prefix=f"{settings.api_prefix}/negotiation", tags=["negotiation"])


@router.post("/coach", response_model=NegotiationCoachPlan)
async def coach(body: NegotiationRequest):
    return generate_coaching(body)
