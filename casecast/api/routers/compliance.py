"""
Compliance Scan API.

POST /api/v1/compliance/scan — scan explicit segments, or segments built
                               from the case summary fields
"""

from fastapi import APIRouter

from casecast.config import settings
from casecast.engine.compliance import to_compliance_segments
from casecast.schemas.compliance import ComplianceReport, ComplianceScanRequest
from casecast.services.registry import get_services

router = APIRouter(prefix=f"{settings.api_prefix}/compliance", tags=["compliance"])

_services = get_services()


@router.post("/scan", response_model=ComplianceReport)
async def scan(body: ComplianceScanRequest):
    segments = body.segments or to_compliance_segments(
        conversation_summary=body.conversation_summary,
        realtime_summary=body.realtime_summary,
        report_draft=body.report_draft,
        negotiation_plan=body.negotiation_plan,
        additional_notes=body.additional_notes,
    )
    return _services.compliance_scanner.scan(segments)
