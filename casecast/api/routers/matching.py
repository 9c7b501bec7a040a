"""
Candidate Matching API.

POST /api/v1/matching/candidates — rank candidate profiles against a case
"""

from fastapi import APIRouter

from casecast.config import settings
from casecast.schemas.matching import MatchRequest, MatchResponse
from casecast.services.registry import get_services

router = APIRouter(prefix=f"{settings.api_prefix}/matching", tags=["matching"])

_services = get_services()


@router.post("/candidates", response_model=MatchResponse)
async def match_candidates(body: MatchRequest):
    results = _services.candidate_matcher.match(body.candidates, body.context)
    return MatchResponse(results=results, total_candidates=len(body.candidates))
