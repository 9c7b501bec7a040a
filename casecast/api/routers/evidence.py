"""
Evidence Triage API.

POST /api/v1/evidence/summarize — keyword-hint summary per artifact
"""

from fastapi import APIRouter

from casecast.config import settings
from casecast.engine.evidence import summarize_artifacts
from casecast.schemas.evidence import EvidenceSummarizeRequest, EvidenceSummary

router = APIRouter(prefix=f"{settings.api_prefix}/evidence", tags=["evidence"])


@router.post("/summarize", response_model=list[EvidenceSummary])
async def summarize(body: EvidenceSummarizeRequest):
    return summarize_artifacts(body.artifacts)
