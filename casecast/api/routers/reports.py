"""
Report Draft API.

POST /api/v1/reports/draft — structured investigation report draft with Markdown
"""

from fastapi import APIRouter

from casecast.config import settings
from casecast.engine.report_draft import build_report_draft
from casecast.schemas.report import ReportDraft, ReportDraftRequest

router = APIRouter(prefix=f"{settings.api_prefix}/reports", tags=["reports"])


@router.post("/draft", response_model=ReportDraft)
async def draft(body: ReportDraftRequest):
    return build_report_draft(body)
